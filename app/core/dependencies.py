"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.database.supabase_client import get_supabase
from app.modules.access.evaluator import PermissionEvaluator, has_permission
from app.modules.audit_logs.repository import AuditLogRepository, SupabaseAuditLogRepository
from app.modules.audit_logs.writer import AuditLogWriter
from app.modules.auth.service import AuthService
from app.modules.roles.repository import RoleRepository, SupabaseRoleRepository
from app.modules.user_roles.repository import UserRoleRepository, SupabaseUserRoleRepository
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for effective permissions, keyed by company scope."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


# Repositories: the concrete store is chosen here, tests override these
def get_role_repository(supabase: Client = Depends(get_supabase)) -> RoleRepository:
    return SupabaseRoleRepository(supabase)


def get_user_role_repository(supabase: Client = Depends(get_supabase)) -> UserRoleRepository:
    return SupabaseUserRoleRepository(supabase)


def get_audit_log_repository(supabase: Client = Depends(get_supabase)) -> AuditLogRepository:
    return SupabaseAuditLogRepository(supabase)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def get_company_id(request: Request) -> Optional[str]:
    """Tenant the request acts on, from the company header (None when absent)."""
    value = request.headers.get(settings.company_header)
    return value.strip() if value and value.strip() else None


def require_company_id(company_id: Optional[str] = Depends(get_company_id)) -> str:
    if not company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{settings.company_header} header is required"
        )
    return company_id


def get_permission_evaluator(
    repository: UserRoleRepository = Depends(get_user_role_repository)
) -> PermissionEvaluator:
    return PermissionEvaluator(repository)


def get_effective_permissions(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    company_id: Optional[str] = Depends(get_company_id),
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator)
) -> List[str]:
    """Permission codes of the caller within the request's company. Cached per request."""
    cache = _get_request_cache(request)
    cache_key = company_id or "*"
    if cache_key not in cache:
        cache[cache_key] = evaluator.effective_permissions(user_data["id"], company_id)
    return cache[cache_key]


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(
        request: Request,
        user_data: dict = Depends(get_current_user_id),
        company_id: Optional[str] = Depends(get_company_id),
        evaluator: PermissionEvaluator = Depends(get_permission_evaluator)
    ) -> dict:
        """Dependency to check if user has required permission"""
        if is_super_user(user_data):
            return user_data
        user_permissions = get_effective_permissions(request, user_data, company_id, evaluator)
        if not has_permission(user_permissions, required_permission):
            logger.info(f"Denied {required_permission} to user {user_data['id']} in company {company_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return user_data
    return check_permission


def get_audit_writer(
    user_data: dict = Depends(get_current_user_id),
    repository: AuditLogRepository = Depends(get_audit_log_repository)
) -> AuditLogWriter:
    """Audit writer bound to the caller's verified session."""
    return AuditLogWriter(repository, session_user_id=user_data["id"])
