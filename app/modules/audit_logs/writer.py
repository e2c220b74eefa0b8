"""
Audit log writer.

Domain mutations call the writer after they succeed. Writing is pure append;
a store failure is reported on the ``app.audit`` logger and swallowed so the
business operation that triggered it keeps its outcome.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

import pydantic

from app.core.errors import StoreError, ValidationError
from app.modules.audit_logs.repository import AuditLogRepository
from app.modules.audit_logs.schemas import ActionType, AuditLogCreate, AuditLogResponse

audit_logger = logging.getLogger("app.audit")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_snapshots(entry: AuditLogCreate) -> None:
    """create has no before, delete has no after, update has both."""
    if entry.action_type == ActionType.CREATE and entry.previous_values:
        raise ValidationError("A create entry cannot carry previous values")
    if entry.action_type == ActionType.DELETE and entry.new_values:
        raise ValidationError("A delete entry cannot carry new values")
    if entry.action_type == ActionType.UPDATE and not (entry.previous_values and entry.new_values):
        raise ValidationError("An update entry needs both previous and new values")


class AuditLogWriter:
    def __init__(
        self,
        repository: AuditLogRepository,
        session_user_id: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repository = repository
        self.session_user_id = session_user_id
        self.clock = clock

    def record(self, entry: Union[AuditLogCreate, Dict[str, Any]]) -> Optional[AuditLogResponse]:
        """Append one entry. Returns None when the store rejected the write."""
        if not isinstance(entry, AuditLogCreate):
            try:
                entry = AuditLogCreate.model_validate(entry)
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid audit log entry: {e.errors()[0]['msg']}") from e
        check_snapshots(entry)

        row = entry.model_dump(mode="json")
        if not row.get("user_id"):
            row["user_id"] = self.session_user_id
        if not row.get("timestamp"):
            row["timestamp"] = self.clock().isoformat()

        try:
            saved = self.repository.insert(row)
        except StoreError as e:
            audit_logger.error(
                f"Audit write dropped for {row['table_name']}/{row['record_id']} "
                f"({row['action_type']}, company {row['company_id']}): {e}"
            )
            return None
        return AuditLogResponse(**saved)

    def record_create(self, company_id: str, table_name: str, record_id, new_values: Dict[str, Any]):
        return self.record({
            "company_id": company_id,
            "action_type": ActionType.CREATE,
            "table_name": table_name,
            "record_id": record_id,
            "new_values": new_values
        })

    def record_update(
        self,
        company_id: str,
        table_name: str,
        record_id,
        previous_values: Dict[str, Any],
        new_values: Dict[str, Any]
    ):
        return self.record({
            "company_id": company_id,
            "action_type": ActionType.UPDATE,
            "table_name": table_name,
            "record_id": record_id,
            "previous_values": previous_values,
            "new_values": new_values
        })

    def record_delete(self, company_id: str, table_name: str, record_id, previous_values: Dict[str, Any]):
        return self.record({
            "company_id": company_id,
            "action_type": ActionType.DELETE,
            "table_name": table_name,
            "record_id": record_id,
            "previous_values": previous_values
        })
