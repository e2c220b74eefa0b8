from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime


class PermissionResponse(BaseModel):
    id: str
    code: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    permission_codes: List[str] = Field(default_factory=list)
    permission_ids: List[str] = Field(default_factory=list)


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleWithPermissionsResponse(RoleResponse):
    permissions: List[PermissionResponse]


class RolePermissionsReplace(BaseModel):
    permission_ids: List[str]


class RolePermissionsReplaceResponse(BaseModel):
    role_id: str
    permission_count: int
    message: str


PermissionsByCategory = Dict[str, List[PermissionResponse]]
