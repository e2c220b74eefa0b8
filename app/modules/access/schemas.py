from pydantic import BaseModel
from typing import Optional, List

from app.modules.roles.schemas import PermissionResponse, RoleResponse


class RoleAssignmentResponse(BaseModel):
    role: RoleResponse
    company_id: str
    permissions: List[PermissionResponse]


class EffectivePermissionsResponse(BaseModel):
    user_id: str
    company_id: Optional[str] = None
    is_super_user: bool = False
    permissions: List[str]
    roles: List[RoleAssignmentResponse]
