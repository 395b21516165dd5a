"""Audit logger service.

Builds audit log entries, records standalone events (e.g. ``login``) and
serves the activity log queries of the admin console.

Task mutations do not append through this service: the TaskStore builds
the entry here and hands it to the task repository, which commits it
together with the state change.

Queries:
- activity_logs: filtered, newest first, page size capped by config
- activity_stats: today / this week (weeks start on Sunday) / this month,
  plus the most frequent actions and entity kinds

Both queries require the ``system:logs`` permission.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4

from src.application.ports.admin_task_repository import AdminTaskRepositoryProtocol
from src.application.ports.audit_log_repository import (
    AuditLogFilters,
    AuditLogRepositoryProtocol,
)
from src.application.ports.workflow_metrics import WorkflowMetricsProtocol
from src.application.services.base import LoggingMixin
from src.config.workflow_config import DEFAULT_WORKFLOW_CONFIG, WorkflowConfig
from src.domain.errors.audit import AuditWriteError
from src.domain.models.actor import Actor
from src.domain.models.admin_task import AdminTask
from src.domain.models.audit_details import AuditDetails
from src.domain.models.audit_log import AuditAction, AuditEntity, AuditLogEntry
from src.domain.services.access_gate import AccessGate, Permission


@dataclass(frozen=True)
class ActivityLogQuery:
    """Activity log filters as given by the caller.

    Attributes:
        user_id: Only entries by this actor.
        action: Only entries with this action.
        entity: Only entries about this entity kind.
        entity_id: Only entries about this entity id.
        start_date: First day included.
        end_date: Last day included (the whole day counts).
        search: Substring of entity id, action or details text.
    """

    user_id: str | None = None
    action: str | None = None
    entity: str | None = None
    entity_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None


@dataclass(frozen=True)
class ActivityLogPage:
    """One page of activity log entries."""

    items: list[AuditLogEntry]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


@dataclass(frozen=True)
class ActivityStats:
    """Activity log counters.

    Attributes:
        total_today: Entries since midnight.
        total_this_week: Entries since the most recent Sunday midnight.
        total_this_month: Entries since the first of the month.
        by_action: Most frequent actions with counts.
        by_entity: Most frequent entity kinds with counts.
    """

    total_today: int
    total_this_week: int
    total_this_month: int
    by_action: list[tuple[str, int]] = field(default_factory=list)
    by_entity: list[tuple[str, int]] = field(default_factory=list)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def period_starts(now: datetime) -> tuple[datetime, datetime, datetime]:
    """Return the starts of today, this week (Sunday) and this month for ``now``."""
    today = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    # date.weekday(): Monday is 0, Sunday is 6
    week = today - timedelta(days=(now.weekday() + 1) % 7)
    month = today.replace(day=1)
    return today, week, month


class AuditLoggerService(LoggingMixin):
    """Builds, records and queries audit log entries.

    Attributes:
        _audit_log: Append-only entry storage.
        _tasks: Task storage used to resolve weak references.
        _gate: Access gate for the query permission.
    """

    def __init__(
        self,
        audit_log: AuditLogRepositoryProtocol,
        tasks: AdminTaskRepositoryProtocol,
        access_gate: AccessGate,
        config: WorkflowConfig = DEFAULT_WORKFLOW_CONFIG,
        metrics: WorkflowMetricsProtocol | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._audit_log = audit_log
        self._tasks = tasks
        self._gate = access_gate
        self._config = config
        self._metrics = metrics
        self._clock = clock
        self._init_logger(component="audit")

    def build_entry(
        self,
        actor: Actor,
        action: AuditAction | str,
        entity: str,
        entity_id: str,
        details: AuditDetails,
        created_at: datetime | None = None,
    ) -> AuditLogEntry:
        """Compose an entry for ``actor`` without storing it."""
        return AuditLogEntry(
            id=uuid4(),
            user_id=actor.id,
            action=action.value if isinstance(action, AuditAction) else action,
            entity=entity,
            entity_id=entity_id,
            details=details,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            created_at=created_at or self._clock(),
        )

    def committed(self, entry: AuditLogEntry) -> None:
        """Note an entry that a repository committed alongside its change."""
        if self._metrics is not None:
            self._metrics.record_audit_entry(entry.action, entry.entity)

    async def record(
        self,
        actor: Actor,
        action: AuditAction | str,
        entity: str,
        entity_id: str,
        details: AuditDetails,
    ) -> AuditLogEntry:
        """Append an entry for an event with no paired state change.

        Raises:
            AuditWriteError: If the entry could not be stored.
        """
        entry = self.build_entry(actor, action, entity, entity_id, details)
        log = self._log_operation(
            "record", action=entry.action, entity=entity, entity_id=entity_id
        )
        try:
            await self._audit_log.append(entry)
        except AuditWriteError:
            log.error("audit_record_failed", actor_id=actor.id)
            raise
        self.committed(entry)
        log.info("audit_entry_recorded", log_id=str(entry.id))
        return entry

    async def activity_logs(
        self,
        actor: Actor,
        query: ActivityLogQuery | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> ActivityLogPage:
        """Return one page of entries matching ``query``, newest first.

        Raises:
            UnauthorizedError: If the actor lacks ``system:logs``.
        """
        self._gate.require(actor, Permission.SYSTEM_LOGS)
        query = query or ActivityLogQuery()
        page = max(page, 1)
        size = self._config.clamp_page_size(page_size)

        filters = AuditLogFilters(
            user_id=query.user_id,
            action=query.action,
            entity=query.entity,
            entity_id=query.entity_id,
            created_from=(
                datetime.combine(query.start_date, time.min, tzinfo=timezone.utc)
                if query.start_date
                else None
            ),
            created_before=(
                datetime.combine(
                    query.end_date + timedelta(days=1), time.min, tzinfo=timezone.utc
                )
                if query.end_date
                else None
            ),
            search=query.search or None,
        )
        items, total = await self._audit_log.query(
            filters, limit=size, offset=(page - 1) * size
        )
        return ActivityLogPage(items=items, total=total, page=page, page_size=size)

    async def activity_stats(
        self, actor: Actor, now: datetime | None = None
    ) -> ActivityStats:
        """Return activity counters.

        Raises:
            UnauthorizedError: If the actor lacks ``system:logs``.
        """
        self._gate.require(actor, Permission.SYSTEM_LOGS)
        today, week, month = period_starts(now or self._clock())
        top = self._config.top_n_stats
        return ActivityStats(
            total_today=await self._audit_log.count_since(today),
            total_this_week=await self._audit_log.count_since(week),
            total_this_month=await self._audit_log.count_since(month),
            by_action=await self._audit_log.top_actions(top),
            by_entity=await self._audit_log.top_entities(top),
        )

    async def history(self, entity: str, entity_id: str) -> list[AuditLogEntry]:
        """Every entry about one entity, newest first."""
        filters = AuditLogFilters(entity=entity, entity_id=entity_id)
        items, total = await self._audit_log.query(filters, limit=1)
        if total <= 1:
            return items
        items, _ = await self._audit_log.query(filters, limit=total)
        return items

    async def resolve_entity(self, entry: AuditLogEntry) -> AdminTask | None:
        """Best-effort lookup of an entry's weak reference.

        Returns the referenced task if it still exists, None when the
        reference dangles or points at a kind this service cannot load.
        """
        if entry.entity != AuditEntity.ADMIN_TASK:
            return None
        try:
            task_id = int(entry.entity_id)
        except ValueError:
            return None
        return await self._tasks.get(task_id)
