# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Permission resolution: role → module → action.

Permissions are never trusted as stored.  Every resolution re-reads the
referenced modules and drops entries whose module has been deleted or is
inactive.  Loaded Role rows are only read, never modified.
"""

from typing import Optional

from sqlalchemy.orm import Session

from auth.schemas import Actions, ModuleRef, ModuleStatus, PermissionView, RoleView
from core.errors import NotFoundError
from models.role import Module, Permission, Role


def resolve_role(db: Session, role_id: Optional[int]) -> RoleView:
    """
    Return the role with its effective permission list.

    Raises :class:`NotFoundError` when the role itself is gone; a user
    whose role was deleted is a data problem to surface, not to paper over
    with the default role.
    """
    role = db.get(Role, role_id) if role_id is not None else None
    if role is None:
        raise NotFoundError("Role not found for this user.", error_code="role_not_found")

    module_ids = {p.module_id for p in role.permissions}
    modules = {}
    if module_ids:
        modules = {m.id: m for m in db.query(Module).filter(Module.id.in_(module_ids))}

    effective = []
    for perm in role.permissions:
        module = modules.get(perm.module_id)
        if module is None or not module.active:
            continue
        effective.append(
            PermissionView(
                module=ModuleRef(
                    slug=module.slug,
                    uid=module.uid,
                    status=ModuleStatus(active=module.active, maintenance=module.maintenance),
                ),
                actions=Actions(**perm.actions()),
            )
        )

    return RoleView(name=role.name, slug=role.slug, uid=role.uid, permissions=effective)


def find_permission(db: Session, role_id: Optional[int], module_slug: str) -> Optional[Permission]:
    """The role's permission entry for an existing, active module, if any."""
    if role_id is None:
        return None
    return (
        db.query(Permission)
        .join(Module, Module.id == Permission.module_id)
        .filter(
            Permission.role_id == role_id,
            Module.slug == module_slug,
            Module.active.is_(True),
        )
        .first()
    )


def redirect_route(role_name: str, uid: str) -> str:
    """Client landing route, e.g. ``/admin/<uid>``."""
    return f"/{(role_name or '').lower()}/{uid}"
