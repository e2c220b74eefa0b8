from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Dict, Any

from supabase import Client

from app.config.settings import settings
from app.core.errors import StoreError
from app.database.supabase_client import execute, fetch_rows
from app.modules.audit_logs.schemas import AuditLogFilter

Row = Dict[str, Any]

LOG_COLUMNS = (
    "id, timestamp, user_id, company_id, action_type, table_name, record_id, "
    "previous_values, new_values, user:profiles!user_id(id, email, full_name)"
)


class AuditLogRepository(ABC):
    """Append-only storage port for audit_logs. There is no update or delete."""

    @abstractmethod
    def insert(self, row: Row) -> Row:
        ...

    @abstractmethod
    def get(self, log_id: str) -> Optional[Row]:
        ...

    @abstractmethod
    def query(self, log_filter: AuditLogFilter) -> List[Row]:
        """Rows matching every set filter, newest first, one page."""

    @abstractmethod
    def history(self, table_name: str, record_id: str) -> List[Row]:
        """Every row of one logical record, newest first."""

    @abstractmethod
    def count_actions(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        """`{action_type, count}` per action present in [since, until]."""

    @abstractmethod
    def count_per_day(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        """`{day, count}` per UTC calendar day with entries in [since, until]."""

    @abstractmethod
    def top_users(self, company_id: str, limit: int) -> List[Row]:
        """`{user_id, count}` for the most active users, largest count first."""

    @abstractmethod
    def get_user_profiles(self, user_ids: List[str]) -> List[Row]:
        ...


class SupabaseAuditLogRepository(AuditLogRepository):
    def __init__(self, supabase: Client, page_size: Optional[int] = None):
        self.supabase = supabase
        self.page_size = page_size or settings.audit_page_size

    def insert(self, row: Row) -> Row:
        result = execute(self.supabase.table("audit_logs").insert(row), "write audit log")
        if not result.data:
            raise StoreError("write audit log", detail="no row returned")
        return result.data[0]

    def get(self, log_id: str) -> Optional[Row]:
        rows = fetch_rows(
            self.supabase.table("audit_logs")\
                .select(LOG_COLUMNS)\
                .eq("id", log_id)\
                .limit(1),
            "load audit log"
        )
        return rows[0] if rows else None

    def query(self, log_filter: AuditLogFilter) -> List[Row]:
        query = self.supabase.table("audit_logs").select(LOG_COLUMNS)
        for column in ("user_id", "company_id", "table_name", "record_id"):
            value = getattr(log_filter, column)
            if value:
                query = query.eq(column, value)
        if log_filter.action_type:
            query = query.eq("action_type", log_filter.action_type.value)
        if log_filter.from_date:
            query = query.gte("timestamp", log_filter.from_date.isoformat())
        if log_filter.to_date:
            query = query.lte("timestamp", log_filter.to_date.isoformat())
        return fetch_rows(
            query.order("timestamp", desc=True)\
                .order("id", desc=True)\
                .range(log_filter.offset, log_filter.offset + log_filter.limit - 1),
            "query audit logs"
        )

    def history(self, table_name: str, record_id: str) -> List[Row]:
        """Page through the record's trail until PostgREST returns a short page."""
        rows: List[Row] = []
        start = 0
        while True:
            result = execute(
                self.supabase.table("audit_logs")\
                    .select(LOG_COLUMNS)\
                    .eq("table_name", table_name)\
                    .eq("record_id", record_id)\
                    .order("timestamp", desc=True)\
                    .order("id", desc=True)\
                    .range(start, start + self.page_size - 1),
                "load record history"
            )
            page = result.data or []
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            start += self.page_size

    def _aggregate(self, function: str, params: Dict[str, Any]) -> List[Row]:
        return fetch_rows(self.supabase.rpc(function, params), "aggregate audit logs")

    def count_actions(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        return self._aggregate("audit_action_counts", {
            "p_company_id": company_id,
            "p_since": since.isoformat(),
            "p_until": until.isoformat()
        })

    def count_per_day(self, company_id: str, since: datetime, until: datetime) -> List[Row]:
        return self._aggregate("audit_daily_counts", {
            "p_company_id": company_id,
            "p_since": since.isoformat(),
            "p_until": until.isoformat()
        })

    def top_users(self, company_id: str, limit: int) -> List[Row]:
        return self._aggregate("audit_top_users", {
            "p_company_id": company_id,
            "p_limit": limit
        })

    def get_user_profiles(self, user_ids: List[str]) -> List[Row]:
        if not user_ids:
            return []
        return fetch_rows(
            self.supabase.table("profiles")\
                .select("id, email, full_name")\
                .in_("id", user_ids),
            "load user profiles"
        )
