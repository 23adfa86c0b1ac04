# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Lookups and small mutations on persisted accounts and their collaborators."""

from typing import Optional

from sqlalchemy.orm import Session

from core.errors import NotFoundError, ValidationError
from models.role import Defaults
from models.user import User, new_uid
from models.visitor import Visitor

DEFAULT_ROLE_KEY = "Role"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def find_user_by_uid(db: Session, uid: str) -> Optional[User]:
    return db.query(User).filter(User.uid == uid).first()


def rotate_uid(user: User) -> str:
    """Issue a fresh public uid, invalidating links built on the old one."""
    user.uid = new_uid()
    return user.uid


def require_visitor(db: Session, visitor_id: Optional[str]) -> Visitor:
    """Load the visitor fingerprint the client claims to be, or refuse."""
    if not visitor_id:
        raise ValidationError("Identifier is required.")
    visitor = db.get(Visitor, str(visitor_id))
    if visitor is None:
        raise NotFoundError(
            "Your session could not be verified. Please try again.",
            refresh=True,
            error_code="visitor_not_found",
        )
    return visitor


def bind_visitor(user: User, visitor: Visitor) -> None:
    if all(v.id != visitor.id for v in user.visitors):
        user.visitors.append(visitor)


def default_role_id(db: Session) -> int:
    """The role assigned to every new account, via the ``Defaults`` pointer."""
    defaults = db.query(Defaults).filter(Defaults.prior == DEFAULT_ROLE_KEY).first()
    if defaults is None or defaults.role_id is None:
        raise NotFoundError("Unable to set up your account. Please try again later.")
    return defaults.role_id
