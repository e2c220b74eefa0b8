from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from app.modules.audit_logs.repository import AuditLogRepository
from app.modules.audit_logs.schemas import (
    ActionType, ActionTypeStat, AuditLogCreate, AuditLogFilter, AuditLogResponse,
    TimelinePoint, UserActivity
)
from app.modules.audit_logs.service import AuditLogService
from app.modules.audit_logs.writer import AuditLogWriter
from app.config.settings import settings
from app.core.dependencies import (
    get_audit_log_repository,
    get_audit_writer,
    require_company_id,
    require_permission,
)
from typing import List, Dict, Optional

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


def get_audit_log_service(repository: AuditLogRepository = Depends(get_audit_log_repository)) -> AuditLogService:
    return AuditLogService(repository)


def _ensure_same_company(log: AuditLogResponse, company_id: str) -> AuditLogResponse:
    if log.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Audit log not found")
    return log


@router.post("", response_model=AuditLogResponse, status_code=201)
async def create_audit_log(
    entry: AuditLogCreate,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.create")),
    writer: AuditLogWriter = Depends(get_audit_writer)
):
    """Write a manual audit entry for events that no data trigger observes"""
    if entry.company_id != company_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Audit entries can only be written for the current company"
        )
    saved = writer.record(entry)
    if saved is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit entry could not be stored, please try again"
        )
    return saved


@router.get("", response_model=List[AuditLogResponse])
async def query_audit_logs(
    user_id: Optional[str] = None,
    action_type: Optional[ActionType] = None,
    table_name: Optional[str] = None,
    record_id: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    limit: int = Query(settings.audit_default_limit, ge=1),
    offset: int = Query(0, ge=0),
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    """Audit entries of the current company, newest first"""
    return service.query_logs(AuditLogFilter(
        user_id=user_id,
        company_id=company_id,
        action_type=action_type,
        table_name=table_name,
        record_id=record_id,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset
    ))


@router.get("/history/{table_name}/{record_id}", response_model=List[AuditLogResponse])
async def record_history(
    table_name: str,
    record_id: str,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    """Change trail of one record, newest first"""
    return [log for log in service.record_history(table_name, record_id) if log.company_id == company_id]


@router.get("/stats/recent", response_model=List[AuditLogResponse])
async def recent_activity(
    limit: int = Query(settings.audit_recent_limit, ge=1),
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    return service.recent_activity(company_id, limit)


@router.get("/stats/actions", response_model=List[ActionTypeStat])
async def action_type_stats(
    days: int = Query(settings.audit_stats_days, ge=0),
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    return service.action_type_stats(company_id, days)


@router.get("/stats/timeline", response_model=List[TimelinePoint])
async def changes_timeline(
    days: int = Query(settings.audit_timeline_days, ge=0),
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    """Zero-filled daily change counts for the timeline chart"""
    return service.changes_timeline(company_id, days)


@router.get("/stats/users", response_model=List[UserActivity])
async def user_activity_distribution(
    limit: int = Query(settings.audit_top_users, ge=1),
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    return service.user_activity_distribution(company_id, limit)


@router.get("/{log_id}", response_model=AuditLogResponse)
async def get_audit_log(
    log_id: str,
    company_id: str = Depends(require_company_id),
    user_data: Dict = Depends(require_permission("audit_logs.read")),
    service: AuditLogService = Depends(get_audit_log_service)
):
    return _ensure_same_company(service.get_log(log_id), company_id)
