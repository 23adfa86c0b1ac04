# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Auth flows: signup, login, Google sign-in, forgot / change password, logout.

Every successful sign-in ends the same way: fresh ``uid``, permission
resolution, token pair, audit row, commit, and a welcome e-mail queued on
the outbox.  Mail is queued only after the commit and a queueing failure
is logged, never raised.

Security notes
--------------
* Signup credentials live only in the OTP challenge until the code is
  verified; no users row is written before that.
* Forgot-password answers identically whether or not the request came from
  a device already bound to the account; only the e-mail differs.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.access_gate import (
    check_google_access,
    check_signin_access,
    check_signup_access,
)
from auth.credentials import (
    bind_visitor,
    default_role_id,
    find_user_by_email,
    find_user_by_uid,
    normalize_email,
    require_visitor,
    rotate_uid,
)
from auth.otp import consume_challenge, discard_challenge, issue_challenge, verify_challenge
from auth.permissions import resolve_role
from auth.schemas import SessionUser
from auth.tokens import (
    SessionGrant,
    grant_session,
    revoke_all_refresh_tokens,
    revoke_refresh_token,
    session_user,
)
from core.config import settings
from core.errors import AuthenticationError, NotFoundError, ValidationError
from core.logger import logger, redact_email
from core.security import (
    decode_refresh_token,
    hash_password,
    unusable_password_hash,
    validate_password_policy,
    verify_password,
)
from database import utcnow
from models.audit_log import AuditLog
from models.otp import PURPOSE_LOGIN, PURPOSE_SIGNUP
from models.user import AccountStatus, User
from notifications import messages
from notifications.mailer import MailMessage, outbox

RESET_LINK_SENT = "We've sent a password reset link to your registered email address."


@dataclass
class OtpIssued:
    otp_id: str
    username: str
    email: str


def _notify(message: MailMessage) -> None:
    try:
        outbox.enqueue(message)
    except Exception:
        logger.exception("could not queue mail to=%s", redact_email(message.to))


def _audit(db: Session, user: User, action: str, client_ip: Optional[str], detail: Optional[str] = None) -> None:
    db.add(AuditLog(user_id=user.id, action=action, detail=detail, request_ip=client_ip))


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


def request_signup(db: Session, *, username: str, email: str, password: str, visitor_id: str) -> OtpIssued:
    """Stage the new credentials in an OTP challenge and mail the code."""
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email address is required.")

    check_signup_access(find_user_by_email(db, email))
    validate_password_policy(password)
    visitor = require_visitor(db, visitor_id)
    default_role_id(db)

    challenge = issue_challenge(
        db,
        email=email,
        purpose=PURPOSE_SIGNUP,
        username=username,
        password_hash=hash_password(password),
        visitor_id=visitor.id,
    )
    _notify(messages.otp_message(email, username, challenge.otp_code, challenge.otp_id, PURPOSE_SIGNUP))
    logger.info("signup OTP issued | email=%s", redact_email(email))
    return OtpIssued(challenge.otp_id, username, email)


def verify_signup(db: Session, *, otp_id: Optional[str], otp_code: Optional[str],
                  client_ip: Optional[str] = None) -> SessionGrant:
    """Commit the staged account once the code checks out."""
    challenge = verify_challenge(db, otp_id, otp_code, PURPOSE_SIGNUP)
    username = challenge.username
    email = challenge.email
    password_hash = challenge.password_hash

    role_id = default_role_id(db)
    visitor = require_visitor(db, challenge.visitor_id)

    user = find_user_by_email(db, email)
    check_signup_access(user)
    consume_challenge(db, challenge)

    now = utcnow()
    if user is None:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            profile_pic=settings.default_profile_pic or None,
            role_id=role_id,
            time_added=now,
        )
        user.visitors.append(visitor)
        db.add(user)
    else:
        # Reclaiming a soft-deleted e-mail slot: start over as a fresh member.
        user.username = username
        user.password_hash = password_hash
        user.role_id = role_id
        user.active = True
        user.suspend = False
        user.subscribed = True
        user.first_login = False
        user.last_login_at = now
        bind_visitor(user, visitor)
        rotate_uid(user)
        revoke_all_refresh_tokens(db, user.id)
    db.flush()

    grant = grant_session(db, user)
    _audit(db, user, "signup_verified", client_ip)
    db.commit()

    logger.info("signup verified | user_id=%s", user.id)
    _notify(messages.welcome_message(email, username, returning=False))
    return grant


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def request_login(db: Session, *, email: str, password: str, visitor_id: str) -> OtpIssued:
    """Check the password, then mail a login OTP."""
    user = check_signin_access(find_user_by_email(db, email))
    visitor = require_visitor(db, visitor_id)

    if not verify_password(password, user.password_hash):
        logger.warning("login rejected: bad password | user_id=%s", user.id)
        raise AuthenticationError("The email or password you entered is incorrect.",
                                  error_code="bad_credentials")

    bind_visitor(user, visitor)
    challenge = issue_challenge(
        db,
        email=user.email,
        purpose=PURPOSE_LOGIN,
        username=user.username,
        password_hash=user.password_hash,
        visitor_id=visitor.id,
    )
    _notify(messages.otp_message(user.email, user.username, challenge.otp_code,
                                 challenge.otp_id, PURPOSE_LOGIN))
    logger.info("login OTP issued | user_id=%s", user.id)
    return OtpIssued(challenge.otp_id, user.username, user.email)


def verify_login(db: Session, *, otp_id: Optional[str], otp_code: Optional[str],
                 client_ip: Optional[str] = None) -> SessionGrant:
    challenge = verify_challenge(db, otp_id, otp_code, PURPOSE_LOGIN)
    email = challenge.email

    visitor = require_visitor(db, challenge.visitor_id)
    user = find_user_by_email(db, email)
    if user is None:
        raise NotFoundError(
            "No account was found with this email address. Please create an account first.",
            error_code="account_not_found",
        )
    check_signin_access(user)
    consume_challenge(db, challenge)

    returning = not user.first_login
    bind_visitor(user, visitor)
    user.first_login = False
    user.google_auth = False
    user.last_login_at = utcnow()
    rotate_uid(user)
    db.flush()

    grant = grant_session(db, user)
    _audit(db, user, "login_verified", client_ip)
    db.commit()

    logger.info("login verified | user_id=%s", user.id)
    _notify(messages.welcome_message(user.email, user.username, returning=returning))
    return grant


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


def google_auth(db: Session, *, username: str, email: Optional[str], google_uid: Optional[str],
                profile_pic: Optional[str], visitor_id: str,
                client_ip: Optional[str] = None) -> SessionGrant:
    """Sign in (or implicitly sign up) with an identity asserted by Google."""
    email = normalize_email(email)
    if not google_uid or not email:
        raise ValidationError("Invalid Google account data received. Please try again.")

    user = find_user_by_email(db, email)
    check_google_access(user)
    visitor = require_visitor(db, visitor_id)
    now = utcnow()
    username = username or email.split("@", 1)[0]

    if user is None:
        user = User(
            username=username,
            email=email,
            password_hash=unusable_password_hash(),
            google_uid=google_uid,
            profile_pic=profile_pic or settings.default_profile_pic or None,
            google_auth=True,
            role_id=default_role_id(db),
            time_added=now,
            last_login_at=now,
        )
        user.visitors.append(visitor)
        db.add(user)
    else:
        if user.status is AccountStatus.DELETED:
            user.username = username
            user.role_id = default_role_id(db)
            revoke_all_refresh_tokens(db, user.id)
        bind_visitor(user, visitor)
        user.first_login = False
        user.google_auth = True
        user.last_login_at = now
        user.active = True
        user.suspend = False
        if not user.google_uid:
            user.google_uid = google_uid
        if profile_pic:
            user.profile_pic = profile_pic
        rotate_uid(user)
    db.flush()

    grant = grant_session(db, user)
    _audit(db, user, "google_login", client_ip)
    db.commit()

    logger.info("google sign-in | user_id=%s", user.id)
    _notify(messages.welcome_message(email, user.username, returning=not user.first_login, via_google=True))
    return grant


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


def forgot_password(db: Session, *, email: Optional[str], visitor_id: str) -> str:
    """
    Mail a reset link built on the account's current uid.  A request from a
    device never seen on this account gets the "suspicious attempt" variant.
    """
    if not normalize_email(email):
        raise ValidationError("Please enter the email address associated with your account.")

    user = check_signin_access(find_user_by_email(db, email))
    visitor = require_visitor(db, visitor_id)
    link = f"{settings.frontend_url}/auth/forgot-password/{user.uid}"

    if any(v.id == visitor.id for v in user.visitors):
        message = messages.password_reset_message(user.email, user.username, link)
    else:
        logger.warning("password reset from unknown device | user_id=%s", user.id)
        message = messages.suspicious_reset_message(
            user.email, user.username, link, device=visitor.device or "", location=visitor.location()
        )
    _notify(message)
    return RESET_LINK_SENT


def change_password(db: Session, *, uid: Optional[str], password: Optional[str],
                    client_ip: Optional[str] = None) -> str:
    if not uid or not password:
        raise ValidationError("Please provide your new password.")
    validate_password_policy(password)

    user = find_user_by_uid(db, uid)
    if user is None:
        raise NotFoundError("No user found for the provided account.", error_code="account_not_found")

    user.password_hash = hash_password(password)
    rotate_uid(user)
    _audit(db, user, "password_changed", client_ip)
    db.commit()

    logger.info("password changed | user_id=%s", user.id)
    _notify(messages.password_changed_message(user.email, user.username))
    return "Your password has been updated successfully."


# ---------------------------------------------------------------------------
# Session end, OTP discard, current user
# ---------------------------------------------------------------------------


def logout(db: Session, token: Optional[str], client_ip: Optional[str] = None) -> None:
    """Drop the presented refresh record.  A bad or absent token is a no-op."""
    if not token:
        return
    try:
        payload = decode_refresh_token(token)
    except AuthenticationError:
        logger.info("logout with unverifiable refresh token; treating as logged out")
        return

    user_id = payload.get("user_id")
    try:
        if revoke_refresh_token(db, user_id, token):
            db.add(AuditLog(user_id=user_id, action="logout", request_ip=client_ip))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("logout could not revoke refresh token | user_id=%s", user_id)


def delete_otp(db: Session, *, email: str, otp_id: str) -> None:
    if not discard_challenge(db, normalize_email(email), otp_id):
        raise NotFoundError("This verification code is no longer valid.", error_code="otp_not_found")


def current_session(db: Session, user: User) -> SessionUser:
    return session_user(user, resolve_role(db, user.role_id))
