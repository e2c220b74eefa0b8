import logging
from typing import List, Optional

from app.config.permissions_config import is_valid_permission_code
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import (
    PermissionResponse, RoleCreate, RoleResponse, RoleWithPermissionsResponse,
    RolePermissionsReplaceResponse
)

logger = logging.getLogger(__name__)


def _dedupe(values: List[str]) -> List[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))


def validate_permission_code(code: str) -> str:
    if not is_valid_permission_code(code):
        raise ValidationError(f"Invalid permission code '{code}', expected 'category.action'")
    return code


class PermissionService:
    def __init__(self, repository: RoleRepository):
        self.repository = repository

    def list_permissions(self) -> List[PermissionResponse]:
        """List the whole permission catalog ordered by code"""
        rows = self.repository.list_permissions()
        return sorted((PermissionResponse(**row) for row in rows), key=lambda p: p.code)

    def get_permissions_by_codes(self, codes: List[str]) -> List[PermissionResponse]:
        """Resolve permission codes; unknown codes are a validation error"""
        codes = _dedupe([validate_permission_code(code) for code in codes])
        rows = self.repository.get_permissions_by_codes(codes)
        found = {row["code"] for row in rows}
        missing = [code for code in codes if code not in found]
        if missing:
            raise ValidationError(f"Unknown permission codes: {', '.join(missing)}")
        return sorted((PermissionResponse(**row) for row in rows), key=lambda p: p.code)

    def ensure_permission_ids(self, permission_ids: List[str]) -> List[str]:
        """Dedupe ids and check every one exists in the catalog"""
        permission_ids = _dedupe(permission_ids)
        rows = self.repository.get_permissions_by_ids(permission_ids)
        found = {row["id"] for row in rows}
        missing = [pid for pid in permission_ids if pid not in found]
        if missing:
            raise ValidationError(f"Unknown permission ids: {', '.join(missing)}")
        return permission_ids


class RoleService:
    def __init__(self, repository: RoleRepository):
        self.repository = repository
        self.permissions = PermissionService(repository)

    def list_roles(self) -> List[RoleResponse]:
        """List roles ordered by name"""
        rows = self.repository.list_roles()
        return sorted((RoleResponse(**row) for row in rows), key=lambda r: r.name)

    def get_role(self, role_id: str) -> RoleResponse:
        """Get role by ID"""
        row = self.repository.get_role(role_id)
        if not row:
            raise NotFoundError("Role", role_id)
        return RoleResponse(**row)

    def get_role_with_permissions(self, role_id: str) -> RoleWithPermissionsResponse:
        """Get role with all associated permissions, ordered by code"""
        role = self.get_role(role_id)
        permissions = sorted(
            (PermissionResponse(**row) for row in self.repository.get_role_permissions(role_id)),
            key=lambda p: p.code
        )
        return RoleWithPermissionsResponse(**role.model_dump(), permissions=permissions)

    def create_role(self, role_data: RoleCreate) -> RoleResponse:
        """Create a role, linking its initial permissions in the same atomic call"""
        name = role_data.name.strip()
        if not name:
            raise ValidationError("Role name is required")
        if self.repository.get_role_by_name(name):
            raise ConflictError(f"Role name '{name}' already exists")

        permission_ids = self.permissions.ensure_permission_ids(role_data.permission_ids)
        if role_data.permission_codes:
            resolved = self.permissions.get_permissions_by_codes(role_data.permission_codes)
            permission_ids = _dedupe(permission_ids + [p.id for p in resolved])

        row = self.repository.create_role(name, role_data.description, permission_ids)
        logger.info(f"Created role {name} with {len(permission_ids)} permissions")
        return RoleResponse(**row)

    def replace_role_permissions(
        self,
        role_id: str,
        permission_ids: List[str]
    ) -> RolePermissionsReplaceResponse:
        """Replace the full permission set of a role atomically"""
        self.get_role(role_id)
        permission_ids = self.permissions.ensure_permission_ids(permission_ids)
        self.repository.replace_role_permissions(role_id, permission_ids)
        logger.info(f"Replaced permissions of role {role_id}: {len(permission_ids)} granted")
        return RolePermissionsReplaceResponse(
            role_id=role_id,
            permission_count=len(permission_ids),
            message=f"Updated role with {len(permission_ids)} permissions"
        )

    def find_role_by_name(self, name: str) -> Optional[RoleResponse]:
        row = self.repository.get_role_by_name(name)
        return RoleResponse(**row) if row else None
