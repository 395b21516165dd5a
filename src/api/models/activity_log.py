"""Activity log API response models."""

from typing import Any

from pydantic import BaseModel, Field

from src.api.models.admin_task import DateTimeWithZ


class ActivityLogEntryResponse(BaseModel):
    """One audit log entry.

    ``entity_exists`` tells whether the weakly referenced entity could
    still be found when the page was built (None if not checked).
    """

    id: str
    user_id: str
    action: str
    entity: str
    entity_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: DateTimeWithZ
    restorable: bool = False
    entity_exists: bool | None = None


class ActivityLogListResponse(BaseModel):
    """One page of activity log entries, newest first."""

    items: list[ActivityLogEntryResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class CountEntry(BaseModel):
    """A name with its count."""

    name: str
    count: int


class ActivityStatsResponse(BaseModel):
    """Activity counters."""

    total_today: int
    total_this_week: int
    total_this_month: int
    by_action: list[CountEntry]
    by_entity: list[CountEntry]


class RestoreResponse(BaseModel):
    """Restore outcome."""

    success: bool
    message: str
    restored_id: str | None = None
    restore_log_id: str | None = None
