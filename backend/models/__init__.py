"""Import every ORM model so that Base.metadata knows about all tables."""

from models.audit_log import AuditLog
from models.otp import OtpChallenge
from models.role import Defaults, Module, Permission, Role
from models.user import AccountStatus, RefreshToken, User
from models.visitor import Visitor

__all__ = [
    "AccountStatus",
    "AuditLog",
    "Defaults",
    "Module",
    "OtpChallenge",
    "Permission",
    "RefreshToken",
    "Role",
    "User",
    "Visitor",
]
