# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification and policy   (passlib pbkdf2_sha256)
2. One-time password codes                      (secrets)
3. JWT creation / decoding                      (PyJWT / HS256)
4. FastAPI dependency guards                    (get_current_user, require_permission)
"""

import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.config import settings
from core.errors import AuthenticationError, ForbiddenError, ValidationError
from database import get_db

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password; the salt is embedded in the returned string."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """Constant-time check of *plain* against a :func:`hash_password` result."""
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        # Not a pbkdf2 hash (e.g. the unusable marker of Google-only accounts)
        return False


def unusable_password_hash() -> str:
    """A hash no password can match; used for accounts created via Google."""
    return hash_password(secrets.token_urlsafe(32))


PASSWORD_SYMBOLS = "@$!%*?&"


def validate_password_policy(pw: str) -> None:
    """
    Raise :class:`ValidationError` unless *pw* satisfies the policy:
    >= 7 chars, one lowercase, one uppercase, one digit, one of ``@$!%*?&``.
    """
    if not re.search(r"[a-z]", pw):
        raise ValidationError("Password must contain at least one lowercase letter.")
    if not re.search(r"[A-Z]", pw):
        raise ValidationError("Password must contain at least one uppercase letter.")
    if not re.search(r"\d", pw):
        raise ValidationError("Password must contain at least one number.")
    if not any(ch in PASSWORD_SYMBOLS for ch in pw):
        raise ValidationError("Password must contain at least one special character.")
    if len(pw) < 7:
        raise ValidationError("Password must be at least 7 characters long.")


# ---------------------------------------------------------------------------
# 2.  OTP codes
# ---------------------------------------------------------------------------


def generate_otp_code() -> str:
    """Six decimal digits, never starting with 0."""
    return str(100_000 + secrets.randbelow(900_000))


def otp_codes_match(expected: str, supplied: str) -> bool:
    return secrets.compare_digest(expected.encode("ascii"), supplied.encode("ascii", "replace"))


# ---------------------------------------------------------------------------
# 3.  JWT – access and refresh tokens
# ---------------------------------------------------------------------------
# Every token carries a random ``jti`` so two tokens minted for the same user
# within the same second are still distinct strings; the refresh-token store
# relies on that for exact-match revocation.


def _encode(claims: dict, secret: str, lifetime: timedelta) -> str:
    to_encode = claims.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + lifetime
    to_encode["jti"] = uuid.uuid4().hex
    return _jwt.encode(to_encode, secret, algorithm="HS256")


def create_access_token(user_id: int, role_id: Optional[int]) -> str:
    return _encode(
        {"user_id": user_id, "role": role_id, "typ": "access"},
        settings.jwt_access_secret,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(
        {"user_id": user_id, "typ": "refresh"},
        settings.jwt_refresh_secret,
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_access_token(token: str) -> dict:
    """Verify an access JWT.  Raises :class:`AuthenticationError` on any failure."""
    try:
        payload = _jwt.decode(token, settings.jwt_access_secret, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        raise AuthenticationError("Invalid or expired token")
    if payload.get("typ") != "access":
        raise AuthenticationError("Invalid or expired token")
    return payload


def decode_refresh_token(token: str) -> dict:
    """Verify a refresh JWT.  Raises :class:`AuthenticationError` on any failure."""
    try:
        payload = _jwt.decode(token, settings.jwt_refresh_secret, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        raise AuthenticationError("Invalid refresh token")
    if payload.get("typ") != "refresh":
        raise AuthenticationError("Invalid refresh token")
    return payload


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Dependency: decode the bearer access token and load the User row.

    Raises 401 when the token is missing or invalid or the user is gone,
    403 when the account is no longer active.
    """
    if credentials is None:
        raise AuthenticationError("Unauthorized")
    payload = decode_access_token(credentials.credentials)

    # Lazy import to avoid circular dependency at module load time
    from models.user import AccountStatus, User  # noqa: E402

    user = db.get(User, payload.get("user_id"))
    if user is None:
        raise AuthenticationError("User not found")
    if user.status is not AccountStatus.ACTIVE:
        raise ForbiddenError("Your account is not active. Please contact support.", verify=True)
    return user


def require_permission(module_slug: str, action: str):
    """
    Dependency factory: the caller's role must carry *action* on the active
    module *module_slug*.  Usage::

        @router.get("/", dependencies=[Depends(require_permission("_users_", "get"))])
    """

    def _guard(current_user=Depends(get_current_user), db: Session = Depends(get_db)):
        from auth.permissions import find_permission  # noqa: E402

        permission = find_permission(db, current_user.role_id, module_slug)
        if permission is None:
            raise ForbiddenError(f"Forbidden: Module '{module_slug}' not found or no permission.")
        if not permission.allows(action):
            raise ForbiddenError(f"Forbidden: No '{action}' permission for your role.")
        return current_user

    return _guard


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For first (proxies), then falls back to the peer address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
