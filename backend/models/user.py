# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""User, refresh-token and user↔visitor ORM models."""

import enum
import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from database import Base, utcnow


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DEACTIVATED = "deactivated"
    # Soft-deleted: the e-mail slot may be reclaimed by a new signup.
    DELETED = "deleted"


# (active, suspend) → status.  Total over all four flag combinations, so the
# precedence question never arises: suspended-and-active is SUSPENDED, both
# flags false is DELETED, inactive-but-suspended is DEACTIVATED.
_STATUS_BY_FLAGS = {
    (True, False): AccountStatus.ACTIVE,
    (True, True): AccountStatus.SUSPENDED,
    (False, False): AccountStatus.DELETED,
    (False, True): AccountStatus.DEACTIVATED,
}


def account_status(active: bool, suspend: bool) -> AccountStatus:
    return _STATUS_BY_FLAGS[(bool(active), bool(suspend))]


def new_uid() -> str:
    return str(uuid.uuid4())


user_visitors = Table(
    "user_visitors",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("visitor_id", String(36), ForeignKey("visitors.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    # Public, rotating identifier.  Reissued on every successful auth event,
    # which invalidates client routes and reset links built on the old one.
    uid = Column(String(36), unique=True, nullable=False, default=new_uid, index=True)
    google_uid = Column(String(255), nullable=True)
    profile_pic = Column(String(1024), nullable=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    suspend = Column(Boolean, nullable=False, default=False)

    theme = Column(Boolean, nullable=False, default=True)
    first_login = Column(Boolean, nullable=False, default=True)
    google_auth = Column(Boolean, nullable=False, default=False)
    subscribed = Column(Boolean, nullable=False, default=True)

    time_added = Column(DateTime, nullable=False, default=utcnow)
    last_login_at = Column(DateTime, nullable=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    visitors = relationship("Visitor", secondary=user_visitors, lazy="selectin")
    role = relationship("Role")

    @property
    def status(self) -> AccountStatus:
        return account_status(self.active, self.suspend)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # The signed refresh JWT exactly as handed to the client
    token = Column(String(512), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")
