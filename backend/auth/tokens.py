# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Token service: mint access/refresh JWTs and keep the server-side record set.

A refresh token is valid iff its signature verifies AND a record with the
exact token string exists for the user AND ``now <= expires_at``.  Record
expiry and the JWT ``exp`` are both ``refresh_token_expire_days``.

Rotation is a single conditional DELETE on (user, token, not expired); the
new record is inserted only if that DELETE removed exactly one row, so a
refresh token can be exchanged at most once even under concurrent requests.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from auth.access_gate import check_session_access
from auth.permissions import redirect_route, resolve_role
from auth.schemas import RoleView, SessionUser
from core.config import settings
from core.errors import AuthenticationError
from core.logger import logger
from core.security import create_access_token, create_refresh_token, decode_refresh_token
from database import as_utc, utcnow
from models.user import RefreshToken, User


@dataclass
class SessionGrant:
    """What every successful auth flow hands back to the router."""

    user: SessionUser
    access_token: str
    refresh_token: str


def issue_tokens(user: User) -> Tuple[str, str]:
    return create_access_token(user.id, user.role_id), create_refresh_token(user.id)


def persist_refresh_token(db: Session, user_id: int, token: str) -> RefreshToken:
    now = utcnow()
    record = RefreshToken(
        user_id=user_id,
        token=token,
        created_at=now,
        expires_at=now + timedelta(days=settings.refresh_token_expire_days),
    )
    db.add(record)
    db.flush()
    return record


def revoke_refresh_token(db: Session, user_id: int, token: str) -> bool:
    removed = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.token == token)
        .delete(synchronize_session=False)
    )
    return removed > 0


def revoke_all_refresh_tokens(db: Session, user_id: int) -> int:
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id)
        .delete(synchronize_session=False)
    )


def is_refresh_token_valid(db: Session, user_id: Optional[int], token: str) -> bool:
    if user_id is None or not token:
        return False
    record = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.token == token)
        .first()
    )
    return record is not None and utcnow() <= as_utc(record.expires_at)


def rotate_refresh_token(db: Session, user_id: int, old_token: str, new_token: str) -> bool:
    """Swap *old_token* for *new_token*; False if the old one was already gone."""
    removed = (
        db.query(RefreshToken)
        .filter(
            RefreshToken.user_id == user_id,
            RefreshToken.token == old_token,
            RefreshToken.expires_at >= utcnow(),
        )
        .delete(synchronize_session=False)
    )
    if removed != 1:
        return False
    persist_refresh_token(db, user_id, new_token)
    return True


def session_user(user: User, role: RoleView) -> SessionUser:
    return SessionUser(
        username=user.username,
        email=user.email,
        uid=user.uid,
        profile_pic=user.profile_pic,
        g_auth=user.google_auth,
        theme=user.theme,
        first_login=user.first_login,
        redirect_route=redirect_route(role.name, user.uid),
        role=role,
    )


def grant_session(db: Session, user: User) -> SessionGrant:
    """
    Resolve permissions, mint a token pair and store the refresh record.
    The caller commits.
    """
    role = resolve_role(db, user.role_id)
    access_token, refresh_token = issue_tokens(user)
    persist_refresh_token(db, user.id, refresh_token)
    return SessionGrant(session_user(user, role), access_token, refresh_token)


def refresh_session(db: Session, token: Optional[str]) -> SessionGrant:
    """Exchange a refresh token for a new access token and a rotated refresh token."""
    if not token:
        raise AuthenticationError("No refresh token")

    payload = decode_refresh_token(token)
    user_id = payload.get("user_id")

    if not is_refresh_token_valid(db, user_id, token):
        raise AuthenticationError("Invalid refresh token")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Invalid refresh token")

    check_session_access(user)
    role = resolve_role(db, user.role_id)

    access_token, new_refresh = issue_tokens(user)
    if not rotate_refresh_token(db, user.id, token, new_refresh):
        db.rollback()
        logger.warning("refresh token reuse rejected | user_id=%s", user_id)
        raise AuthenticationError("Invalid refresh token")
    db.commit()

    return SessionGrant(session_user(user, role), access_token, new_refresh)


def sweep_expired_refresh_tokens(db: Session) -> int:
    removed = (
        db.query(RefreshToken)
        .filter(RefreshToken.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
