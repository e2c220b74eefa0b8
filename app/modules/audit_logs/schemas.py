from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import (
    BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, field_validator
)


class ActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# A snapshot maps column names to scalar values; nested structures are rejected
SnapshotValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]
Snapshot = Dict[str, SnapshotValue]


def _normalize_record_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class AuditLogCreate(BaseModel):
    timestamp: Optional[datetime] = None
    user_id: Optional[str] = None
    company_id: str = Field(min_length=1)
    action_type: ActionType
    table_name: str = Field(min_length=1)
    record_id: str = Field(min_length=1)
    previous_values: Snapshot = Field(default_factory=dict)
    new_values: Snapshot = Field(default_factory=dict)

    @field_validator("record_id", mode="before")
    @classmethod
    def coerce_record_id(cls, value):
        return _normalize_record_id(value)

    @field_validator("previous_values", "new_values", mode="before")
    @classmethod
    def empty_snapshot(cls, value):
        return {} if value is None else value


class AuditLogUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class AuditLogResponse(BaseModel):
    id: str
    timestamp: datetime
    user_id: Optional[str] = None
    company_id: str
    action_type: ActionType
    table_name: str
    record_id: str
    previous_values: Snapshot = Field(default_factory=dict)
    new_values: Snapshot = Field(default_factory=dict)
    user: Optional[AuditLogUser] = None  # author profile, embedded on reads

    @field_validator("record_id", mode="before")
    @classmethod
    def coerce_record_id(cls, value):
        return _normalize_record_id(value)

    @field_validator("previous_values", "new_values", mode="before")
    @classmethod
    def empty_snapshot(cls, value):
        return {} if value is None else value


class AuditLogFilter(BaseModel):
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    action_type: Optional[ActionType] = None
    table_name: Optional[str] = None
    record_id: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("record_id", mode="before")
    @classmethod
    def coerce_record_id(cls, value):
        return _normalize_record_id(value)

    @field_validator("from_date", "to_date")
    @classmethod
    def assume_utc(cls, value):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ActionTypeStat(BaseModel):
    action: str
    count: int


class TimelinePoint(BaseModel):
    date: str  # YYYY-MM-DD, UTC calendar day
    changes: int


class UserActivity(BaseModel):
    user: str
    activities: int
