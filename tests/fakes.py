"""
In-memory implementations of the repository ports.

They keep the same row shapes the Supabase repositories return and mimic the
store-side guarantees: unique constraints, foreign keys and the atomic
replace functions.
"""

import itertools
from collections import Counter
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

from pydantic import TypeAdapter

from app.core.errors import ConflictError, StoreError
from app.modules.audit_logs.repository import AuditLogRepository, Row
from app.modules.audit_logs.schemas import AuditLogFilter
from app.modules.roles.repository import RoleRepository
from app.modules.user_roles.repository import UserRoleRepository

_timestamp = TypeAdapter(datetime)


def parse_ts(value) -> datetime:
    parsed = _timestamp.validate_python(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class InMemoryStore:
    def __init__(self):
        self.lock = threading.Lock()
        self.permissions: Dict[str, Row] = {}
        self.roles: Dict[str, Row] = {}
        self.role_permissions: Set[Tuple[str, str]] = set()
        self.profiles: Dict[str, Row] = {}
        self.companies: Set[str] = set()
        self.user_roles: List[Row] = []
        self.audit_logs: List[Row] = []
        self.failing: Set[str] = set()
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids):04d}"

    def maybe_fail(self, context: str) -> None:
        if context in self.failing:
            raise StoreError(context, code="08006", detail="connection lost")

    def add_permission(self, code: str, description: Optional[str] = None) -> Row:
        row = {"id": f"perm-{code}", "code": code, "description": description}
        self.permissions[row["id"]] = row
        return row

    def add_user(self, user_id: str, email: Optional[str] = None, full_name: Optional[str] = None) -> Row:
        row = {"id": user_id, "email": email, "full_name": full_name}
        self.profiles[user_id] = row
        return row

    def add_company(self, company_id: str) -> str:
        self.companies.add(company_id)
        return company_id

    def permission_ids_of(self, role_id: str) -> Set[str]:
        return {pid for rid, pid in self.role_permissions if rid == role_id}


class InMemoryRoleRepository(RoleRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def list_permissions(self) -> List[Row]:
        self.store.maybe_fail("list permissions")
        return sorted((dict(p) for p in self.store.permissions.values()), key=lambda p: p["code"])

    def get_permissions_by_ids(self, permission_ids: List[str]) -> List[Row]:
        return [dict(self.store.permissions[pid]) for pid in permission_ids if pid in self.store.permissions]

    def get_permissions_by_codes(self, codes: List[str]) -> List[Row]:
        return [dict(p) for p in self.store.permissions.values() if p["code"] in codes]

    def list_roles(self) -> List[Row]:
        return sorted((dict(r) for r in self.store.roles.values()), key=lambda r: r["name"])

    def get_role(self, role_id: str) -> Optional[Row]:
        role = self.store.roles.get(role_id)
        return dict(role) if role else None

    def get_role_by_name(self, name: str) -> Optional[Row]:
        for role in self.store.roles.values():
            if role["name"] == name:
                return dict(role)
        return None

    def get_role_permissions(self, role_id: str) -> List[Row]:
        return [dict(self.store.permissions[pid]) for pid in self.store.permission_ids_of(role_id)]

    def _check_foreign_keys(self, permission_ids: List[str], context: str) -> None:
        unknown = [pid for pid in permission_ids if pid not in self.store.permissions]
        if unknown:
            raise StoreError(context, code="23503", detail="foreign key violation")

    def create_role(self, name: str, description: Optional[str], permission_ids: List[str]) -> Row:
        with self.store.lock:
            if self.get_role_by_name(name):
                raise ConflictError(f"Role name '{name}' already exists")
            self._check_foreign_keys(permission_ids, "create role")
            self.store.maybe_fail("create role")
            row = {
                "id": self.store.next_id("role"),
                "name": name,
                "description": description,
                "created_at": datetime.now(timezone.utc).isoformat()
            }
            self.store.roles[row["id"]] = row
            self.store.role_permissions |= {(row["id"], pid) for pid in permission_ids}
            return dict(row)

    def replace_role_permissions(self, role_id: str, permission_ids: List[str]) -> None:
        with self.store.lock:
            self._check_foreign_keys(permission_ids, "replace role permissions")
            self.store.maybe_fail("replace role permissions")
            kept = {(rid, pid) for rid, pid in self.store.role_permissions if rid != role_id}
            self.store.role_permissions = kept | {(role_id, pid) for pid in permission_ids}


class InMemoryUserRoleRepository(UserRoleRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def user_exists(self, user_id: str) -> bool:
        return user_id in self.store.profiles

    def role_exists(self, role_id: str) -> bool:
        return role_id in self.store.roles

    def company_exists(self, company_id: str) -> bool:
        return company_id in self.store.companies

    def _matches(self, row: Row, user_id: str, role_id: str, company_id: str) -> bool:
        return (row["user_id"], row["role_id"], row["company_id"]) == (user_id, role_id, company_id)

    def get_assignment(self, user_id: str, role_id: str, company_id: str) -> Optional[Row]:
        for row in self.store.user_roles:
            if self._matches(row, user_id, role_id, company_id):
                return dict(row)
        return None

    def list_assignments(self, user_id: str, company_id: Optional[str] = None) -> List[Row]:
        self.store.maybe_fail("list user roles")
        rows = []
        for row in self.store.user_roles:
            if row["user_id"] != user_id or (company_id and row["company_id"] != company_id):
                continue
            role = self.store.roles.get(row["role_id"])
            embedded = None
            if role:
                embedded = {
                    "id": role["id"],
                    "name": role["name"],
                    "description": role.get("description"),
                    "role_permissions": [
                        {"permissions": dict(self.store.permissions[pid])}
                        for pid in self.store.permission_ids_of(role["id"])
                    ]
                }
            rows.append({**row, "roles": embedded})
        return rows

    def insert_assignment(self, row: Row) -> Optional[Row]:
        with self.store.lock:
            if self.get_assignment(row["user_id"], row["role_id"], row["company_id"]):
                return None
            self.store.user_roles.append(dict(row))
            return dict(row)

    def replace_assignments(
        self,
        user_id: str,
        role_id: str,
        company_id: str,
        assigned_by: Optional[str]
    ) -> None:
        with self.store.lock:
            self.store.maybe_fail("replace user role")
            kept = [
                row for row in self.store.user_roles
                if not (row["user_id"] == user_id and row["company_id"] == company_id)
            ]
            kept.append({
                "user_id": user_id,
                "role_id": role_id,
                "company_id": company_id,
                "assigned_by": assigned_by,
                "assigned_at": datetime.now(timezone.utc).isoformat()
            })
            self.store.user_roles = kept

    def delete_assignment(self, user_id: str, role_id: str, company_id: str) -> int:
        with self.store.lock:
            before = len(self.store.user_roles)
            self.store.user_roles = [
                row for row in self.store.user_roles
                if not self._matches(row, user_id, role_id, company_id)
            ]
            return before - len(self.store.user_roles)


class InMemoryAuditLogRepository(AuditLogRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _newest_first(self, rows: List[Row]) -> List[Row]:
        return sorted(rows, key=lambda r: (parse_ts(r["timestamp"]), r["id"]), reverse=True)

    def _with_user(self, row: Row) -> Row:
        profile = self.store.profiles.get(row.get("user_id"))
        return {**row, "user": dict(profile) if profile else None}

    def insert(self, row: Row) -> Row:
        self.store.maybe_fail("write audit log")
        with self.store.lock:
            saved = {**row, "id": self.store.next_id("log")}
            self.store.audit_logs.append(saved)
            return dict(saved)

    def get(self, log_id: str) -> Optional[Row]:
        for row in self.store.audit_logs:
            if row["id"] == log_id:
                return self._with_user(row)
        return None

    def query(self, log_filter: AuditLogFilter) -> List[Row]:
        self.store.maybe_fail("query audit logs")
        rows = []
        for row in self.store.audit_logs:
            if any(
                getattr(log_filter, column) and row[column] != getattr(log_filter, column)
                for column in ("user_id", "company_id", "table_name", "record_id")
            ):
                continue
            if log_filter.action_type and row["action_type"] != log_filter.action_type.value:
                continue
            ts = parse_ts(row["timestamp"])
            if log_filter.from_date and ts < log_filter.from_date:
                continue
            if log_filter.to_date and ts > log_filter.to_date:
                continue
            rows.append(self._with_user(row))
        start = log_filter.offset
        return self._newest_first(rows)[start:start + log_filter.limit]

    def history(self, table_name: str, record_id: str) -> List[Row]:
        return self._newest_first([
            self._with_user(row) for row in self.store.audit_logs
            if row["table_name"] == table_name and row["record_id"] == record_id
        ])

    def _window(self, company_id: str, since: Optional[datetime], until: Optional[datetime]) -> List[Row]:
        self.store.maybe_fail("aggregate audit logs")
        rows = []
        for row in self.store.audit_logs:
            ts = parse_ts(row["timestamp"])
            if row["company_id"] != company_id:
                continue
            if (since and ts < since) or (until and ts > until):
                continue
            rows.append(row)
        return rows

    def count_actions(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        counts = Counter(row["action_type"] for row in self._window(company_id, since, until))
        return [{"action_type": action, "count": count} for action, count in counts.items()]

    def count_per_day(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        counts = Counter(
            parse_ts(row["timestamp"]).astimezone(timezone.utc).date().isoformat()
            for row in self._window(company_id, since, until)
        )
        return [{"day": day, "count": count} for day, count in sorted(counts.items())]

    def top_users(self, company_id: str, limit: int) -> List[Row]:
        counts = Counter(row.get("user_id") for row in self._window(company_id, None, None))
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0] is None, item[0] or ""))
        return [{"user_id": user_id, "count": count} for user_id, count in ranked[:limit]]

    def get_user_profiles(self, user_ids: List[str]) -> List[Row]:
        return [dict(self.store.profiles[uid]) for uid in user_ids if uid in self.store.profiles]
