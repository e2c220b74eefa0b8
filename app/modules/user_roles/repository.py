from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any

from supabase import Client

from app.database.supabase_client import execute, fetch_rows

Row = Dict[str, Any]

ASSIGNMENT_COLUMNS = "user_id, role_id, company_id, assigned_by, assigned_at"
ASSIGNMENT_WITH_PERMISSIONS = (
    f"{ASSIGNMENT_COLUMNS}, "
    "roles(id, name, description, role_permissions(permissions(id, code, description)))"
)


class UserRoleRepository(ABC):
    """Storage port for user_roles and the entities an assignment references."""

    @abstractmethod
    def user_exists(self, user_id: str) -> bool:
        ...

    @abstractmethod
    def role_exists(self, role_id: str) -> bool:
        ...

    @abstractmethod
    def company_exists(self, company_id: str) -> bool:
        ...

    @abstractmethod
    def get_assignment(self, user_id: str, role_id: str, company_id: str) -> Optional[Row]:
        ...

    @abstractmethod
    def list_assignments(self, user_id: str, company_id: Optional[str] = None) -> List[Row]:
        """Assignments with the role and its permissions embedded under `roles`."""

    @abstractmethod
    def insert_assignment(self, row: Row) -> Optional[Row]:
        """Insert unless the triple exists; returns None when nothing was inserted."""

    @abstractmethod
    def replace_assignments(
        self,
        user_id: str,
        role_id: str,
        company_id: str,
        assigned_by: Optional[str]
    ) -> None:
        """Drop every role of the user in the company and insert one, atomically."""

    @abstractmethod
    def delete_assignment(self, user_id: str, role_id: str, company_id: str) -> int:
        ...


class SupabaseUserRoleRepository(UserRoleRepository):
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _exists(self, table: str, entity_id: str) -> bool:
        rows = fetch_rows(
            self.supabase.table(table).select("id").eq("id", entity_id).limit(1),
            f"check {table}"
        )
        return bool(rows)

    def user_exists(self, user_id: str) -> bool:
        return self._exists("profiles", user_id)

    def role_exists(self, role_id: str) -> bool:
        return self._exists("roles", role_id)

    def company_exists(self, company_id: str) -> bool:
        return self._exists("companies", company_id)

    def get_assignment(self, user_id: str, role_id: str, company_id: str) -> Optional[Row]:
        rows = fetch_rows(
            self.supabase.table("user_roles")\
                .select(ASSIGNMENT_COLUMNS)\
                .eq("user_id", user_id)\
                .eq("role_id", role_id)\
                .eq("company_id", company_id)\
                .limit(1),
            "load user role"
        )
        return rows[0] if rows else None

    def list_assignments(self, user_id: str, company_id: Optional[str] = None) -> List[Row]:
        query = self.supabase.table("user_roles")\
            .select(ASSIGNMENT_WITH_PERMISSIONS)\
            .eq("user_id", user_id)
        if company_id:
            query = query.eq("company_id", company_id)
        return fetch_rows(query, "list user roles")

    def insert_assignment(self, row: Row) -> Optional[Row]:
        result = execute(
            self.supabase.table("user_roles").upsert(
                row,
                on_conflict="user_id,role_id,company_id",
                ignore_duplicates=True
            ),
            "assign user role"
        )
        return result.data[0] if result.data else None

    def replace_assignments(
        self,
        user_id: str,
        role_id: str,
        company_id: str,
        assigned_by: Optional[str]
    ) -> None:
        execute(
            self.supabase.rpc("replace_user_role", {
                "p_user_id": user_id,
                "p_role_id": role_id,
                "p_company_id": company_id,
                "p_assigned_by": assigned_by
            }),
            "replace user role"
        )

    def delete_assignment(self, user_id: str, role_id: str, company_id: str) -> int:
        result = execute(
            self.supabase.table("user_roles")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("role_id", role_id)\
                .eq("company_id", company_id),
            "remove user role"
        )
        return len(result.data or [])
