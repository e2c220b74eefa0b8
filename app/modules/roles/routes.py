from fastapi import APIRouter, BackgroundTasks, Depends
from app.modules.access.evaluator import group_by_category
from app.modules.audit_logs.writer import AuditLogWriter
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import (
    PermissionResponse, PermissionsByCategory,
    RoleCreate, RoleResponse, RoleWithPermissionsResponse,
    RolePermissionsReplace, RolePermissionsReplaceResponse
)
from app.modules.roles.service import RoleService, PermissionService
from app.core.dependencies import (
    get_audit_writer,
    get_role_repository,
    require_company_id,
    require_permission,
)
from typing import List, Dict

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(repository: RoleRepository = Depends(get_role_repository)) -> RoleService:
    return RoleService(repository)


def get_permission_service(repository: RoleRepository = Depends(get_role_repository)) -> PermissionService:
    return PermissionService(repository)


# Permission catalog endpoints
@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    user_data: Dict = Depends(require_permission("roles.read")),
    service: PermissionService = Depends(get_permission_service)
):
    """List the permission catalog ordered by code"""
    return service.list_permissions()


@router.get("/permissions/by-category", response_model=PermissionsByCategory)
async def list_permissions_by_category(
    user_data: Dict = Depends(require_permission("roles.read")),
    service: PermissionService = Depends(get_permission_service)
):
    """Permission catalog grouped by category, for role editing screens"""
    return group_by_category(service.list_permissions())


# Role endpoints
@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    background_tasks: BackgroundTasks,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("roles.create")),
    service: RoleService = Depends(get_role_service),
    audit: AuditLogWriter = Depends(get_audit_writer)
):
    """Create a new role, optionally with its initial permissions"""
    role = service.create_role(role_data)
    background_tasks.add_task(
        audit.record_create, company_id, "roles", role.id,
        {"name": role.name, "description": role.description}
    )
    return role


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    user_data: Dict = Depends(require_permission("roles.read")),
    service: RoleService = Depends(get_role_service)
):
    """List roles ordered by name"""
    return service.list_roles()


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles.read")),
    service: RoleService = Depends(get_role_service)
):
    """Get role by ID"""
    return service.get_role(role_id)


@router.get("/{role_id}/with-permissions", response_model=RoleWithPermissionsResponse)
async def get_role_with_permissions(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles.read")),
    service: RoleService = Depends(get_role_service)
):
    """Get role with all associated permissions"""
    return service.get_role_with_permissions(role_id)


@router.put("/{role_id}/permissions", response_model=RolePermissionsReplaceResponse)
async def replace_role_permissions(
    role_id: str,
    bulk_data: RolePermissionsReplace,
    background_tasks: BackgroundTasks,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("roles.assign")),
    service: RoleService = Depends(get_role_service),
    audit: AuditLogWriter = Depends(get_audit_writer)
):
    """Replace all permissions of a role in one atomic step"""
    previous = service.get_role_with_permissions(role_id)
    result = service.replace_role_permissions(role_id, bulk_data.permission_ids)
    current = service.get_role_with_permissions(role_id)
    background_tasks.add_task(
        audit.record_update, company_id, "role_permissions", role_id,
        {"permissions": ",".join(p.code for p in previous.permissions)},
        {"permissions": ",".join(p.code for p in current.permissions)}
    )
    return result
