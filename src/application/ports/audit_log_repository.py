"""Audit log repository port.

Append-only storage for audit log entries. There is no update or delete
operation. Appends need no cross-entry locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.models.audit_log import AuditLogEntry


@dataclass(frozen=True)
class AuditLogFilters:
    """Filters for querying the audit log. All given filters must match.

    Attributes:
        user_id: Only entries by this actor.
        action: Only entries with this action string.
        entity: Only entries about this entity kind.
        entity_id: Only entries about this entity id.
        created_from: Inclusive lower bound on created_at.
        created_before: Exclusive upper bound on created_at.
        search: Case-insensitive substring of entity_id, action or details.
    """

    user_id: str | None = None
    action: str | None = None
    entity: str | None = None
    entity_id: str | None = None
    created_from: datetime | None = None
    created_before: datetime | None = None
    search: str | None = None


class AuditLogRepositoryProtocol(Protocol):
    """Repository protocol for the append-only audit log."""

    async def append(self, entry: AuditLogEntry) -> None:
        """Append an entry.

        Raises:
            AuditWriteError: If the entry could not be stored.
        """
        ...

    async def get(self, log_id: UUID) -> AuditLogEntry | None:
        """Get an entry by id, or None if absent."""
        ...

    async def query(
        self,
        filters: AuditLogFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        """Query entries, newest first.

        Returns:
            Tuple of (page of entries, total count matching filters).
        """
        ...

    async def count_since(self, since: datetime) -> int:
        """Count entries created at or after ``since``."""
        ...

    async def top_actions(self, limit: int) -> list[tuple[str, int]]:
        """Most frequent actions with their counts, most frequent first."""
        ...

    async def top_entities(self, limit: int) -> list[tuple[str, int]]:
        """Most frequent entity kinds with their counts, most frequent first."""
        ...
