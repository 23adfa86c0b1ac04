# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""AuditLog ORM model – one row per security-relevant account event."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from database import Base, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # The account the event happened to
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # The administrator who caused it, NULL for self-service events
    actor_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(String(64), nullable=False, index=True)   # e.g. "login_verified"
    detail = Column(Text, nullable=True)
    request_ip = Column(String(45), nullable=True)            # IPv4 or IPv6
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
