"""
Tests for the permission matrix and the seeding of default roles.
"""
import pytest

from app.config.permissions_config import (
    DEFAULT_ROLES,
    PERMISSION_MATRIX,
    is_valid_permission_code,
)
from app.modules.roles.service import RoleService
from app.scripts.seed_permissions_roles import seed_roles
from fakes import InMemoryRoleRepository, InMemoryStore


@pytest.mark.parametrize("code,valid", [
    ("cages.delete", True),
    ("daily_records.upload", True),
    ("users.assign_roles", True),
    ("cages", False),
    ("Cages.read", False),
    (".read", False),
    ("cages.", False),
    ("", False),
])
def test_permission_code_shape(code, valid):
    assert is_valid_permission_code(code) is valid


def test_catalog_codes_are_unique_and_valid():
    codes = [p["code"] for p in PERMISSION_MATRIX["permissions"]]
    assert len(codes) == len(set(codes))
    assert all(is_valid_permission_code(code) for code in codes)
    assert codes == sorted(codes)


def test_default_roles_only_grant_catalog_codes():
    catalog = {p["code"] for p in PERMISSION_MATRIX["permissions"]}
    assert [r["name"] for r in PERMISSION_MATRIX["roles"]] == list(DEFAULT_ROLES)
    for role in PERMISSION_MATRIX["roles"]:
        assert set(role["permissions"]) <= catalog


def test_administrator_holds_every_permission():
    administrator = next(r for r in PERMISSION_MATRIX["roles"] if r["name"] == "Administrator")
    assert len(administrator["permissions"]) == len(PERMISSION_MATRIX["permissions"])


def test_viewer_is_read_only():
    viewer = next(r for r in PERMISSION_MATRIX["roles"] if r["name"] == "Viewer")
    assert all(code.endswith(".read") for code in viewer["permissions"])


class TestSeedRoles:
    @pytest.fixture
    def service(self):
        store = InMemoryStore()
        for permission in PERMISSION_MATRIX["permissions"]:
            store.add_permission(permission["code"], permission["description"])
        return RoleService(InMemoryRoleRepository(store))

    def test_creates_default_roles(self, service):
        assert seed_roles(service) == len(DEFAULT_ROLES)
        assert [r.name for r in service.list_roles()] == sorted(DEFAULT_ROLES)

    def test_reseeding_resets_permissions(self, service):
        seed_roles(service)
        viewer = service.find_role_by_name("Viewer")
        service.replace_role_permissions(viewer.id, [])

        seed_roles(service)

        expected = next(r for r in PERMISSION_MATRIX["roles"] if r["name"] == "Viewer")["permissions"]
        assert [p.code for p in service.get_role_with_permissions(viewer.id).permissions] == expected
        assert len(service.list_roles()) == len(DEFAULT_ROLES)
