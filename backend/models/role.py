# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Role, Permission, Module and Defaults ORM models."""

import re
import secrets
import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from database import Base, utcnow

ACTIONS = ("get", "post", "put", "delete")


def module_slug(name: str) -> str:
    """``"User Management"`` → ``"_user_management_"``."""
    formatted = re.sub(r"\s+", "_", name.strip().lower())
    formatted = re.sub(r"[^a-z0-9_]", "", formatted)
    return f"_{formatted}_"


def role_slug(name: str) -> str:
    """``"Super Admin"`` → ``"super-admin-3fa2c1"``."""
    base = re.sub(r"\s+", "-", name.strip().lower())
    base = re.sub(r"[^a-z0-9-]", "", base)
    return f"{base}-{secrets.token_hex(3)}"


def _uuid() -> str:
    return str(uuid.uuid4())


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(36), unique=True, nullable=False, default=_uuid)
    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    is_system = Column(Boolean, nullable=False, default=True)
    active = Column(Boolean, nullable=False, default=True)
    maintenance = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(36), unique=True, nullable=False, default=_uuid)
    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    permissions = relationship(
        "Permission",
        back_populates="role",
        order_by="Permission.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Permission(Base):
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Soft reference: deleting a module leaves this row behind and the
    # permission resolver drops it.
    module_id = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    can_get = Column(Boolean, nullable=False, default=False)
    can_post = Column(Boolean, nullable=False, default=False)
    can_put = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)

    role = relationship("Role", back_populates="permissions")

    def allows(self, action: str) -> bool:
        if action not in ACTIONS:
            return False
        return bool(getattr(self, f"can_{action}"))

    def actions(self) -> dict:
        return {action: self.allows(action) for action in ACTIONS}


class Defaults(Base):
    """Singleton pointers keyed by category; ``prior="Role"`` is the signup role."""

    __tablename__ = "defaults"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prior = Column(String(64), unique=True, nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
