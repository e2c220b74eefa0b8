from fastapi import APIRouter, Depends
from app.modules.access.evaluator import PermissionEvaluator
from app.modules.access.schemas import EffectivePermissionsResponse
from app.core.dependencies import (
    get_company_id,
    get_current_user_id,
    get_effective_permissions,
    get_permission_evaluator,
    is_super_user,
)
from typing import List, Dict, Optional

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/me", response_model=EffectivePermissionsResponse)
async def my_permissions(
    user_data: Dict = Depends(get_current_user_id),
    company_id: Optional[str] = Depends(get_company_id),
    permissions: List[str] = Depends(get_effective_permissions),
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator)
):
    """Caller's roles and effective permission codes, used to gate the dashboard UI"""
    return EffectivePermissionsResponse(
        user_id=user_data["id"],
        company_id=company_id,
        is_super_user=is_super_user(user_data),
        permissions=permissions,
        roles=evaluator.role_assignments(user_data["id"], company_id)
    )
