# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Visitor ORM model.

Rows are written by the visitor-tracking service; this backend only reads
them to bind OTP challenges and logins to a device fingerprint.
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime

from database import Base, utcnow


class Visitor(Base):
    __tablename__ = "visitors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    device = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    region_name = Column(String(128), nullable=True)
    country = Column(String(128), nullable=True)
    impression = Column(Integer, nullable=False, default=1)
    time_added = Column(DateTime, nullable=False, default=utcnow)

    def location(self) -> str:
        return ", ".join(p for p in (self.city, self.region_name, self.country) if p)
