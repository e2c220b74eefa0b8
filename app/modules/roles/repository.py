from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any

from supabase import Client

from app.core.errors import ConflictError, StoreError
from app.database.supabase_client import execute, fetch_rows, UNIQUE_VIOLATION

Row = Dict[str, Any]


class RoleRepository(ABC):
    """Storage port for the permission catalog, roles and role_permissions."""

    @abstractmethod
    def list_permissions(self) -> List[Row]:
        ...

    @abstractmethod
    def get_permissions_by_ids(self, permission_ids: List[str]) -> List[Row]:
        ...

    @abstractmethod
    def get_permissions_by_codes(self, codes: List[str]) -> List[Row]:
        ...

    @abstractmethod
    def list_roles(self) -> List[Row]:
        ...

    @abstractmethod
    def get_role(self, role_id: str) -> Optional[Row]:
        ...

    @abstractmethod
    def get_role_by_name(self, name: str) -> Optional[Row]:
        ...

    @abstractmethod
    def get_role_permissions(self, role_id: str) -> List[Row]:
        ...

    @abstractmethod
    def create_role(self, name: str, description: Optional[str], permission_ids: List[str]) -> Row:
        """Insert the role and link its permissions in one atomic unit."""

    @abstractmethod
    def replace_role_permissions(self, role_id: str, permission_ids: List[str]) -> None:
        """Swap the whole permission set of a role in one atomic unit."""


class SupabaseRoleRepository(RoleRepository):
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_permissions(self) -> List[Row]:
        result = execute(
            self.supabase.table("permissions").select("id, code, description").order("code"),
            "list permissions"
        )
        return result.data or []

    def get_permissions_by_ids(self, permission_ids: List[str]) -> List[Row]:
        if not permission_ids:
            return []
        return fetch_rows(
            self.supabase.table("permissions")\
                .select("id, code, description")\
                .in_("id", permission_ids),
            "load permissions by id"
        )

    def get_permissions_by_codes(self, codes: List[str]) -> List[Row]:
        if not codes:
            return []
        result = execute(
            self.supabase.table("permissions")\
                .select("id, code, description")\
                .in_("code", codes),
            "load permissions by code"
        )
        return result.data or []

    def list_roles(self) -> List[Row]:
        result = execute(
            self.supabase.table("roles").select("*").order("name"),
            "list roles"
        )
        return result.data or []

    def get_role(self, role_id: str) -> Optional[Row]:
        rows = fetch_rows(
            self.supabase.table("roles")\
                .select("*")\
                .eq("id", role_id)\
                .limit(1),
            "load role"
        )
        return rows[0] if rows else None

    def get_role_by_name(self, name: str) -> Optional[Row]:
        result = execute(
            self.supabase.table("roles")\
                .select("*")\
                .eq("name", name)\
                .limit(1),
            "load role by name"
        )
        return result.data[0] if result.data else None

    def get_role_permissions(self, role_id: str) -> List[Row]:
        rows = fetch_rows(
            self.supabase.table("role_permissions")\
                .select("permission_id, permissions(id, code, description)")\
                .eq("role_id", role_id),
            "load role permissions"
        )
        return [item["permissions"] for item in rows if item.get("permissions")]

    def create_role(self, name: str, description: Optional[str], permission_ids: List[str]) -> Row:
        try:
            result = execute(
                self.supabase.rpc("create_role_with_permissions", {
                    "p_name": name,
                    "p_description": description,
                    "p_permission_ids": permission_ids
                }),
                "create role"
            )
        except StoreError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(f"Role name '{name}' already exists") from e
            raise
        data = result.data
        if isinstance(data, list):
            if not data:
                raise StoreError("create role", detail="no row returned")
            return data[0]
        return data

    def replace_role_permissions(self, role_id: str, permission_ids: List[str]) -> None:
        execute(
            self.supabase.rpc("replace_role_permissions", {
                "p_role_id": role_id,
                "p_permission_ids": permission_ids
            }),
            "replace role permissions"
        )
