"""Unit tests for role → module → action resolution."""

import pytest

from auth.permissions import find_permission, redirect_route, resolve_role
from core.errors import NotFoundError
from models.role import Module, Permission, Role, module_slug, role_slug


class TestSlugs:
    def test_module_slug(self):
        assert module_slug("User Management") == "_user_management_"
        assert module_slug("  Roles & Rights ") == "_roles__rights_"

    def test_role_slug_has_random_suffix(self):
        slug = role_slug("Super Admin")
        assert slug.startswith("super-admin-")
        assert len(slug) == len("super-admin-") + 6
        assert role_slug("Super Admin") != slug


class TestResolveRole:
    def test_admin_sees_every_active_module(self, db, seed):
        view = resolve_role(db, seed.admin_role_id)
        assert view.name == "Admin"
        assert [p.module.slug for p in view.permissions] == ["_users_", "_roles_", "_modules_"]
        assert all(p.actions.put for p in view.permissions)

    def test_member_has_no_permissions(self, db, seed):
        assert resolve_role(db, seed.member_role_id).permissions == []

    def test_inactive_module_is_dropped(self, db, seed):
        db.get(Module, seed.module_ids["_roles_"]).active = False
        db.commit()
        slugs = [p.module.slug for p in resolve_role(db, seed.admin_role_id).permissions]
        assert slugs == ["_users_", "_modules_"]

    def test_deleted_module_is_dropped_but_row_kept(self, db, seed):
        db.delete(db.get(Module, seed.module_ids["_modules_"]))
        db.commit()

        slugs = [p.module.slug for p in resolve_role(db, seed.admin_role_id).permissions]
        assert slugs == ["_users_", "_roles_"]
        assert db.query(Permission).filter(Permission.role_id == seed.admin_role_id).count() == 3

    def test_resolution_does_not_touch_stored_role(self, db, seed):
        db.get(Module, seed.module_ids["_users_"]).active = False
        db.commit()
        resolve_role(db, seed.admin_role_id)
        assert len(db.get(Role, seed.admin_role_id).permissions) == 3

    def test_missing_role_is_not_found(self, db):
        with pytest.raises(NotFoundError) as exc:
            resolve_role(db, 9999)
        assert exc.value.error_code == "role_not_found"

    def test_no_role_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            resolve_role(db, None)


class TestFindPermission:
    def test_permission_on_active_module(self, db, seed):
        permission = find_permission(db, seed.admin_role_id, "_users_")
        assert permission is not None
        assert permission.allows("delete")
        assert not permission.allows("patch")

    def test_no_permission_for_member(self, db, seed):
        assert find_permission(db, seed.member_role_id, "_users_") is None

    def test_inactive_module_grants_nothing(self, db, seed):
        db.get(Module, seed.module_ids["_users_"]).active = False
        db.commit()
        assert find_permission(db, seed.admin_role_id, "_users_") is None

    def test_unknown_module(self, db, seed):
        assert find_permission(db, seed.admin_role_id, "_billing_") is None


def test_redirect_route():
    assert redirect_route("Admin", "abc") == "/admin/abc"
