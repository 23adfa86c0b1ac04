# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – OTP-gated signup / login, Google sign-in, password reset,
refresh-token rotation, logout.

Security notes
--------------
* The refresh token only ever travels in the http-only ``refreshToken``
  cookie; the access token is returned in the body for use as a bearer.
* Every refresh rotates the cookie; a refresh token works exactly once.
* Logout clears the cookie even when the presented token is invalid.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from auth import service
from auth.schemas import (
    ChangePasswordRequest,
    DeleteOtpRequest,
    ForgotPasswordRequest,
    GoogleAuthRequest,
    LoginRequest,
    MessageResponse,
    OtpIssuedResponse,
    SessionResponse,
    SessionUser,
    SignupRequest,
    VerifyOtpRequest,
)
from auth.tokens import SessionGrant, refresh_session
from core.config import settings
from core.security import get_client_ip, get_current_user
from models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])

REFRESH_COOKIE = "refreshToken"
_SIGNED_IN = "Your account has been verified successfully. You are now signed in."


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def _session_response(response: Response, grant: SessionGrant, message: str = _SIGNED_IN) -> SessionResponse:
    _set_refresh_cookie(response, grant.refresh_token)
    return SessionResponse(message=message, user=grant.user, access_token=grant.access_token)


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=OtpIssuedResponse, status_code=status.HTTP_202_ACCEPTED)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    """Stage a new account and e-mail the verification code."""
    issued = service.request_signup(
        db, username=body.username, email=body.email, password=body.password, visitor_id=body.query
    )
    return OtpIssuedResponse(
        message="A verification code has been sent to your email.",
        otp_id=issued.otp_id,
        username=issued.username,
        email=issued.email,
    )


@router.post("/signup/verify", response_model=SessionResponse)
def verify_signup(body: VerifyOtpRequest, request: Request, response: Response,
                  db: Session = Depends(get_db)):
    grant = service.verify_signup(
        db, otp_id=body.otp_id, otp_code=body.otp_code, client_ip=get_client_ip(request)
    )
    return _session_response(response, grant)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=OtpIssuedResponse, status_code=status.HTTP_202_ACCEPTED)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Verify the password and e-mail a login code."""
    issued = service.request_login(db, email=body.email, password=body.password, visitor_id=body.query)
    return OtpIssuedResponse(
        message="A verification code has been sent to your email. Please check your inbox.",
        otp_id=issued.otp_id,
        username=issued.username,
        email=issued.email,
    )


@router.post("/login/verify", response_model=SessionResponse)
def verify_login(body: VerifyOtpRequest, request: Request, response: Response,
                 db: Session = Depends(get_db)):
    grant = service.verify_login(
        db, otp_id=body.otp_id, otp_code=body.otp_code, client_ip=get_client_ip(request)
    )
    return _session_response(response, grant)


@router.post("/delete-otp", response_model=MessageResponse)
def delete_otp(body: DeleteOtpRequest, db: Session = Depends(get_db)):
    """Discard a pending code, e.g. when the client-side countdown runs out."""
    service.delete_otp(db, email=body.email, otp_id=body.otp_id)
    return MessageResponse(
        message="Your verification code has expired. Please request a new one to continue."
    )


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


@router.post("/google-auth", response_model=SessionResponse)
def google_auth(body: GoogleAuthRequest, request: Request, response: Response,
                db: Session = Depends(get_db)):
    grant = service.google_auth(
        db,
        username=body.username,
        email=body.email,
        google_uid=body.uid,
        profile_pic=body.profile_pic,
        visitor_id=body.query,
        client_ip=get_client_ip(request),
    )
    return _session_response(response, grant)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    message = service.forgot_password(db, email=body.email, visitor_id=body.query)
    return MessageResponse(message=message)


@router.post("/change-password", response_model=MessageResponse)
def change_password(body: ChangePasswordRequest, request: Request, db: Session = Depends(get_db)):
    message = service.change_password(
        db, uid=body.uid, password=body.password, client_ip=get_client_ip(request)
    )
    return MessageResponse(message=message)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.get("/refresh-token", response_model=SessionResponse)
def refresh_token(
    response: Response,
    token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
):
    """Rotate the refresh cookie and hand out a new access token."""
    grant = refresh_session(db, token)
    return _session_response(response, grant, message="Session refreshed.")


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
):
    service.logout(db, token, client_ip=get_client_ip(request))
    response.delete_cookie(
        REFRESH_COOKIE,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return MessageResponse(message="You have been logged out successfully.")


@router.get("/me", response_model=SessionUser)
def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the authenticated user's session payload (no secrets)."""
    return service.current_session(db, current_user)
