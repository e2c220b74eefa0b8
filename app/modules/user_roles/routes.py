from fastapi import APIRouter, BackgroundTasks, Depends
from app.modules.audit_logs.writer import AuditLogWriter
from app.modules.user_roles.repository import UserRoleRepository
from app.modules.user_roles.schemas import UserRoleAssign, UserRoleReplace, UserRoleResponse
from app.modules.user_roles.service import UserRoleService
from app.core.dependencies import (
    get_audit_writer,
    get_user_role_repository,
    require_company_id,
    require_permission,
)
from typing import List, Dict

router = APIRouter(prefix="/user-roles", tags=["user-roles"])


def get_user_role_service(repository: UserRoleRepository = Depends(get_user_role_repository)) -> UserRoleService:
    return UserRoleService(repository)


def _record_id(user_id: str, role_id: str) -> str:
    return f"{user_id}:{role_id}"


@router.get("/{user_id}", response_model=List[UserRoleResponse])
async def list_user_roles(
    user_id: str,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("users.read")),
    service: UserRoleService = Depends(get_user_role_service)
):
    """Roles a user holds in the current company"""
    return service.list_assignments(user_id, company_id)


@router.post("", response_model=UserRoleResponse, status_code=201)
async def assign_role(
    assignment: UserRoleAssign,
    background_tasks: BackgroundTasks,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("users.assign_roles")),
    service: UserRoleService = Depends(get_user_role_service),
    audit: AuditLogWriter = Depends(get_audit_writer)
):
    """Assign a role to a user in the current company. Idempotent."""
    result, created = service.grant_role(assignment.user_id, assignment.role_id, company_id, user_data["id"])
    if created:
        background_tasks.add_task(
            audit.record_create, company_id, "user_roles",
            _record_id(assignment.user_id, assignment.role_id),
            {"user_id": assignment.user_id, "role_id": assignment.role_id, "company_id": company_id}
        )
    return result


@router.put("/{user_id}", status_code=204)
async def replace_role(
    user_id: str,
    replacement: UserRoleReplace,
    background_tasks: BackgroundTasks,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("users.assign_roles")),
    service: UserRoleService = Depends(get_user_role_service),
    audit: AuditLogWriter = Depends(get_audit_writer)
):
    """Make the given role the only one the user holds in the current company"""
    previous = service.list_assignments(user_id, company_id)
    service.replace_role(user_id, replacement.role_id, company_id, user_data["id"])
    background_tasks.add_task(
        audit.record_update, company_id, "user_roles", user_id,
        {"role_ids": ",".join(a.role_id for a in previous)},
        {"role_ids": replacement.role_id}
    )
    return None


@router.delete("/{user_id}/{role_id}", status_code=204)
async def remove_role(
    user_id: str,
    role_id: str,
    background_tasks: BackgroundTasks,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("users.assign_roles")),
    service: UserRoleService = Depends(get_user_role_service),
    audit: AuditLogWriter = Depends(get_audit_writer)
):
    """Revoke a role from a user in the current company"""
    if service.remove_role(user_id, role_id, company_id):
        background_tasks.add_task(
            audit.record_delete, company_id, "user_roles", _record_id(user_id, role_id),
            {"user_id": user_id, "role_id": role_id, "company_id": company_id}
        )
    return None
