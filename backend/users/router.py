# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
User-management endpoints – account status, role assignment, audit trail.

Every endpoint is guarded by ``require_permission("_users_", <action>)``.
A caller whose role lacks the action on an active ``_users_`` module gets
403 before any business logic runs.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, aliased

from database import get_db
from auth.tokens import revoke_all_refresh_tokens
from core.errors import NotFoundError, ValidationError
from core.logger import logger
from core.security import get_client_ip, require_permission
from models.audit_log import AuditLog
from models.role import Role
from models.user import AccountStatus, User, account_status
from users.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    ChangeAccessRequest,
    ChangeRoleRequest,
    RoleRef,
    UserDetail,
    VisitorRow,
)

router = APIRouter(prefix="/api/users", tags=["users"])

USERS_MODULE = "_users_"


def _target(db: Session, uid: str) -> User:
    user = db.query(User).filter(User.uid == uid).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _detail(user: User) -> UserDetail:
    return UserDetail(
        uid=user.uid,
        username=user.username,
        email=user.email,
        status=user.status.value,
        active=user.active,
        suspend=user.suspend,
        first_login=user.first_login,
        google_auth=user.google_auth,
        subscribed=user.subscribed,
        time_added=user.time_added,
        last_login_at=user.last_login_at,
        role=RoleRef.model_validate(user.role) if user.role else None,
        visitors=[VisitorRow.model_validate(v) for v in user.visitors],
    )


# ---------------------------------------------------------------------------
# GET /api/users/audit-logs  – auth event trail, newest first
# ---------------------------------------------------------------------------


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    emails: list[str] | None = Query(None, description="Filter by exact email(s) – repeated param"),
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    _=Depends(require_permission(USERS_MODULE, "get")),
    db: Session = Depends(get_db),
):
    """
    Optional filters:

    * ``emails`` – match rows whose subject *or* actor has one of them.
    * ``since`` / ``until`` – bounds on ``created_at``.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    Subject = aliased(User)
    Actor   = aliased(User)

    q = (
        db.query(AuditLog, Subject.email, Actor.email)
        .outerjoin(Subject, AuditLog.user_id  == Subject.id)
        .outerjoin(Actor,   AuditLog.actor_id == Actor.id)
    )
    if emails:
        q = q.filter(Subject.email.in_(emails) | Actor.email.in_(emails))
    if since:
        q = q.filter(AuditLog.created_at >= since)
    if until:
        q = q.filter(AuditLog.created_at <= until)

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=row.id,
            user_email=user_email,
            actor_email=actor_email,
            action=row.action,
            detail=row.detail,
            request_ip=row.request_ip,
            created_at=row.created_at,
        )
        for row, user_email, actor_email in rows
    ])


# ---------------------------------------------------------------------------
# GET /api/users/{uid}  – profile, status, role, bound visitors
# ---------------------------------------------------------------------------


@router.get("/{uid}", response_model=UserDetail)
def get_user(
    uid: str,
    _=Depends(require_permission(USERS_MODULE, "get")),
    db: Session = Depends(get_db),
):
    return _detail(_target(db, uid))


# ---------------------------------------------------------------------------
# PUT /api/users/{uid}/access  – suspend, deactivate, delete or re-activate
# ---------------------------------------------------------------------------


@router.put("/{uid}/access", response_model=UserDetail)
def change_access(
    uid: str,
    body: ChangeAccessRequest,
    request: Request,
    admin: User = Depends(require_permission(USERS_MODULE, "put")),
    db: Session = Depends(get_db),
):
    """
    Set the ``active`` / ``suspend`` flags.  Any resulting status other than
    ACTIVE revokes every refresh token of the account, ending all sessions.

    Guard: a caller cannot change their own access.
    """
    target = _target(db, uid)
    if target.id == admin.id:
        raise ValidationError("Cannot change your own access")

    target.active = body.active
    target.suspend = body.suspend
    new_status = account_status(body.active, body.suspend)

    revoked = 0
    if new_status is not AccountStatus.ACTIVE:
        revoked = revoke_all_refresh_tokens(db, target.id)

    db.add(AuditLog(
        user_id=target.id,
        actor_id=admin.id,
        action="access_changed",
        detail=f"status={new_status.value}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    db.refresh(target)

    logger.info("access changed | user_id=%s status=%s revoked=%d", target.id, new_status.value, revoked)
    return _detail(target)


# ---------------------------------------------------------------------------
# PUT /api/users/{uid}/role  – assign a different role
# ---------------------------------------------------------------------------


@router.put("/{uid}/role", response_model=UserDetail)
def change_role(
    uid: str,
    body: ChangeRoleRequest,
    request: Request,
    admin: User = Depends(require_permission(USERS_MODULE, "put")),
    db: Session = Depends(get_db),
):
    """
    Guards:
    * The role must exist.
    * A caller cannot change their own role (prevents accidental self-lockout).
    """
    target = _target(db, uid)
    if target.id == admin.id:
        raise ValidationError("Cannot change your own role")

    role = db.query(Role).filter(Role.uid == body.role_uid).first()
    if not role:
        raise NotFoundError("Role not found")

    target.role_id = role.id
    db.add(AuditLog(
        user_id=target.id,
        actor_id=admin.id,
        action="role_changed",
        detail=f"role={role.slug}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    db.refresh(target)
    return _detail(target)
