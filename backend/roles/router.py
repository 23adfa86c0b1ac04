# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Read-only view of a role's effective permissions."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from auth.permissions import resolve_role
from auth.schemas import RoleView
from core.errors import NotFoundError
from core.security import require_permission
from models.role import Role

router = APIRouter(prefix="/api/roles", tags=["roles"])


@router.get(
    "/{uid}/permissions",
    response_model=RoleView,
    dependencies=[Depends(require_permission("_roles_", "get"))],
)
def role_permissions(uid: str, db: Session = Depends(get_db)):
    """Permissions on deleted or inactive modules are left out."""
    role = db.query(Role).filter(Role.uid == uid).first()
    if not role:
        raise NotFoundError("Role not found")
    return resolve_role(db, role.id)
