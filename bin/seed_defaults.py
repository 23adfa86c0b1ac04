# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the system modules, the Admin and Member roles and
the default-role pointer used by signup and Google sign-in.

Run once after the initial migration:
    python bin/seed_defaults.py

Safe to re-run: rows that already exist are left untouched.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_defaults.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from auth.credentials import DEFAULT_ROLE_KEY            # noqa: E402
from database import SessionLocal                        # noqa: E402
from models.role import Defaults, Module, Permission, Role, module_slug, role_slug  # noqa: E402

SYSTEM_MODULES = ("Users", "Roles", "Modules")
ADMIN_ROLE = "Admin"
MEMBER_ROLE = "Member"


def _module(db, name):
    slug = module_slug(name)
    module = db.query(Module).filter(Module.slug == slug).first()
    if module:
        return module
    module = Module(name=name, slug=slug, is_system=True)
    db.add(module)
    db.flush()
    print(f"[seed_defaults] Module '{slug}' created.")
    return module


def _role(db, name):
    role = db.query(Role).filter(Role.name == name).first()
    if role:
        return role, False
    role = Role(name=name, slug=role_slug(name))
    db.add(role)
    db.flush()
    print(f"[seed_defaults] Role '{name}' created.")
    return role, True


def seed(db):
    modules = [_module(db, name) for name in SYSTEM_MODULES]

    admin, created = _role(db, ADMIN_ROLE)
    if created:
        for position, module in enumerate(modules):
            db.add(Permission(
                role_id=admin.id,
                module_id=module.id,
                position=position,
                can_get=True,
                can_post=True,
                can_put=True,
                can_delete=True,
            ))

    member, _ = _role(db, MEMBER_ROLE)

    default = db.query(Defaults).filter(Defaults.prior == DEFAULT_ROLE_KEY).first()
    if default is None:
        db.add(Defaults(prior=DEFAULT_ROLE_KEY, role_id=member.id))
        print(f"[seed_defaults] Default role set to '{MEMBER_ROLE}'.")
    elif default.role_id is None:
        default.role_id = member.id
        print(f"[seed_defaults] Default role pointer repaired → '{MEMBER_ROLE}'.")

    db.commit()


def main():
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
