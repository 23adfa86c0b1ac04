# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""OtpChallenge ORM model – the staging area for not-yet-verified credentials."""

from sqlalchemy import Column, Integer, String, DateTime

from database import Base, utcnow

PURPOSE_SIGNUP = "signup"
PURPOSE_LOGIN = "login"


class OtpChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    otp_id = Column(String(36), unique=True, nullable=False, index=True)
    # At most one challenge per e-mail; issuing a new one deletes the old.
    email = Column(String(255), nullable=False, index=True)
    purpose = Column(String(16), nullable=False)
    otp_code = Column(String(6), nullable=False)
    # Pending identity, committed to the users table only on verification
    username = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    visitor_id = Column(String(36), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
