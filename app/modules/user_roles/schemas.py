from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserRoleAssign(BaseModel):
    user_id: str
    role_id: str


class UserRoleReplace(BaseModel):
    role_id: str


class UserRoleResponse(BaseModel):
    user_id: str
    role_id: str
    company_id: str
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None

    class Config:
        from_attributes = True
