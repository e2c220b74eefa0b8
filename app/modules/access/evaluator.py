"""
Permission evaluation.

A user's effective permissions are the union of the permission codes of
every role they hold, either across all companies or within one. Checks are
fail-closed: missing data never grants access.
"""

from typing import Dict, Iterable, List, Optional

from app.core.errors import ValidationError
from app.modules.access.schemas import RoleAssignmentResponse
from app.modules.roles.schemas import PermissionResponse, RoleResponse
from app.modules.user_roles.repository import UserRoleRepository


def has_permission(codes: Optional[Iterable[str]], required_code: Optional[str]) -> bool:
    if not codes or not required_code:
        return False
    return required_code in codes


def group_by_category(permissions: List[PermissionResponse]) -> Dict[str, List[PermissionResponse]]:
    """Partition permissions by the category part of `category.action`."""
    grouped: Dict[str, List[PermissionResponse]] = {}
    for permission in permissions:
        if "." not in permission.code:
            raise ValidationError(f"Permission code '{permission.code}' is not of the form 'category.action'")
        category = permission.code.split(".", 1)[0]
        grouped.setdefault(category, []).append(permission)
    return {category: grouped[category] for category in sorted(grouped)}


class PermissionEvaluator:
    def __init__(self, repository: UserRoleRepository):
        self.repository = repository

    def role_assignments(self, user_id: str, company_id: Optional[str] = None) -> List[RoleAssignmentResponse]:
        """Each role the user holds with its company and permission set"""
        if not user_id:
            return []
        assignments = []
        for row in self.repository.list_assignments(user_id, company_id):
            role = row.get("roles")
            if not role:
                continue
            permissions = [
                PermissionResponse(**rp["permissions"])
                for rp in role.get("role_permissions") or []
                if rp.get("permissions")
            ]
            assignments.append(RoleAssignmentResponse(
                role=RoleResponse(
                    id=role["id"],
                    name=role["name"],
                    description=role.get("description")
                ),
                company_id=row["company_id"],
                permissions=sorted(permissions, key=lambda p: p.code)
            ))
        return sorted(assignments, key=lambda a: (a.company_id, a.role.name))

    def effective_permissions(self, user_id: str, company_id: Optional[str] = None) -> List[str]:
        """Union of permission codes over the user's roles, sorted"""
        codes = set()
        for assignment in self.role_assignments(user_id, company_id):
            codes.update(p.code for p in assignment.permissions)
        return sorted(codes)
