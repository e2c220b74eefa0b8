from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, List, Optional

from pydantic import TypeAdapter

from app.config.settings import settings
from app.core.errors import NotFoundError, ValidationError
from app.modules.audit_logs.repository import AuditLogRepository
from app.modules.audit_logs.schemas import (
    ActionType, ActionTypeStat, AuditLogFilter, AuditLogResponse, TimelinePoint, UserActivity
)
from app.modules.audit_logs.writer import utcnow


_day = TypeAdapter(date)


def _check_window(days: int) -> None:
    if days < 0:
        raise ValidationError("days must not be negative")


def _check_limit(limit: int) -> None:
    if limit < 1 or limit > settings.audit_max_limit:
        raise ValidationError(f"limit must be between 1 and {settings.audit_max_limit}")


def display_name(user_id: Optional[str], profile: Optional[Dict]) -> str:
    if profile:
        if profile.get("full_name"):
            return profile["full_name"]
        if profile.get("email"):
            return profile["email"]
    return user_id or "Unknown"


class AuditLogService:
    """Filtered retrieval and dashboard aggregations over the audit trail."""

    def __init__(self, repository: AuditLogRepository, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    def query_logs(self, log_filter: AuditLogFilter) -> List[AuditLogResponse]:
        """Entries matching every given filter, newest first"""
        _check_limit(log_filter.limit)
        if log_filter.from_date and log_filter.to_date and log_filter.from_date > log_filter.to_date:
            raise ValidationError("from_date must not be after to_date")
        return [AuditLogResponse(**row) for row in self.repository.query(log_filter)]

    def get_log(self, log_id: str) -> AuditLogResponse:
        row = self.repository.get(log_id)
        if not row:
            raise NotFoundError("Audit log", log_id)
        return AuditLogResponse(**row)

    def record_history(self, table_name: str, record_id) -> List[AuditLogResponse]:
        """Full change trail of one record, newest first"""
        if not table_name:
            raise ValidationError("table_name is required")
        return [
            AuditLogResponse(**row)
            for row in self.repository.history(table_name, str(record_id))
        ]

    def recent_activity(self, company_id: str, limit: Optional[int] = None) -> List[AuditLogResponse]:
        limit = limit or settings.audit_recent_limit
        return self.query_logs(AuditLogFilter(company_id=company_id, limit=limit))

    def action_type_stats(self, company_id: str, days: Optional[int] = None) -> List[ActionTypeStat]:
        """Entry count per action type over the last `days` days"""
        days = settings.audit_stats_days if days is None else days
        _check_window(days)
        now = self.clock()
        counts = {
            row["action_type"]: row["count"]
            for row in self.repository.count_actions(company_id, now - timedelta(days=days), now)
        }
        return [
            ActionTypeStat(action=action.label, count=counts[action.value])
            for action in ActionType
            if counts.get(action.value)
        ]

    def changes_timeline(self, company_id: str, days: Optional[int] = None) -> List[TimelinePoint]:
        """
        Changes per UTC calendar day, from `days` days ago through today.

        Days without entries are filled with zero so the series always has
        `days + 1` points.
        """
        days = settings.audit_timeline_days if days is None else days
        _check_window(days)
        now = self.clock().astimezone(timezone.utc)
        first_day = now.date() - timedelta(days=days)
        since = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

        daily: Dict[date, int] = {first_day + timedelta(days=i): 0 for i in range(days + 1)}
        for row in self.repository.count_per_day(company_id, since, now):
            day = _day.validate_python(row["day"])
            if day in daily:
                daily[day] += row["count"]

        return [TimelinePoint(date=day.isoformat(), changes=count) for day, count in daily.items()]

    def user_activity_distribution(self, company_id: str, limit: Optional[int] = None) -> List[UserActivity]:
        """Top users of the company by number of audit entries"""
        limit = limit or settings.audit_top_users
        _check_limit(limit)
        rows = self.repository.top_users(company_id, limit)
        user_ids = [row["user_id"] for row in rows if row.get("user_id")]
        profiles = {profile["id"]: profile for profile in self.repository.get_user_profiles(user_ids)}
        activity = [
            UserActivity(
                user=display_name(row.get("user_id"), profiles.get(row.get("user_id"))),
                activities=row["count"]
            )
            for row in rows
        ]
        activity.sort(key=lambda a: (-a.activities, a.user))
        return activity[:limit]
