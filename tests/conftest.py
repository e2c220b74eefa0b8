"""
Shared fixtures: an in-memory store seeded with a small permission catalog,
repositories over it and the services built on top.
"""
from datetime import datetime, timezone

import pytest

from app.modules.access.evaluator import PermissionEvaluator
from app.modules.audit_logs.service import AuditLogService
from app.modules.audit_logs.writer import AuditLogWriter
from app.modules.roles.service import RoleService
from app.modules.user_roles.service import UserRoleService
from fakes import (
    InMemoryAuditLogRepository,
    InMemoryRoleRepository,
    InMemoryStore,
    InMemoryUserRoleRepository,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

CATALOG = [
    "audit_logs.read",
    "cages.create",
    "cages.delete",
    "cages.read",
    "cages.update",
    "harvest.read",
    "roles.assign",
    "roles.create",
    "roles.read",
    "users.assign_roles",
    "users.read",
    "x.read",
    "x.write",
]


@pytest.fixture
def store():
    store = InMemoryStore()
    for code in CATALOG:
        store.add_permission(code, f"Permission {code}")
    store.add_user("u1", email="ana@farm.test", full_name="Ana Mensah")
    store.add_user("u2", email="kofi@farm.test")
    store.add_user("admin", email="admin@farm.test", full_name="Farm Admin")
    store.add_company("c1")
    store.add_company("c2")
    return store


@pytest.fixture
def role_repository(store):
    return InMemoryRoleRepository(store)


@pytest.fixture
def user_role_repository(store):
    return InMemoryUserRoleRepository(store)


@pytest.fixture
def audit_repository(store):
    return InMemoryAuditLogRepository(store)


@pytest.fixture
def role_service(role_repository):
    return RoleService(role_repository)


@pytest.fixture
def user_role_service(user_role_repository):
    return UserRoleService(user_role_repository)


@pytest.fixture
def evaluator(user_role_repository):
    return PermissionEvaluator(user_role_repository)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def audit_writer(audit_repository, clock):
    return AuditLogWriter(audit_repository, session_user_id="u1", clock=clock)


@pytest.fixture
def audit_service(audit_repository, clock):
    return AuditLogService(audit_repository, clock=clock)
