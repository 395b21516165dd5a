"""Audit log repository stub implementation.

In-memory, append-only implementation of AuditLogRepositoryProtocol for
development and testing. Supports injecting a write failure so callers
can exercise rollback paths.
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime
from uuid import UUID

from src.application.ports.audit_log_repository import (
    AuditLogFilters,
    AuditLogRepositoryProtocol,
)
from src.domain.errors.audit import AuditWriteError
from src.domain.models.audit_log import AuditLogEntry


def _matches(entry: AuditLogEntry, filters: AuditLogFilters) -> bool:
    if filters.user_id is not None and entry.user_id != filters.user_id:
        return False
    if filters.action is not None and entry.action != filters.action:
        return False
    if filters.entity is not None and entry.entity != filters.entity:
        return False
    if filters.entity_id is not None and entry.entity_id != filters.entity_id:
        return False
    if filters.created_from is not None and entry.created_at < filters.created_from:
        return False
    if filters.created_before is not None and entry.created_at >= filters.created_before:
        return False
    if filters.search:
        needle = filters.search.lower()
        haystack = (
            entry.entity_id,
            entry.action,
            json.dumps(entry.details_dict(), default=str, ensure_ascii=False),
        )
        if not any(needle in part.lower() for part in haystack):
            return False
    return True


class AuditLogRepositoryStub(AuditLogRepositoryProtocol):
    """In-memory stub implementation of AuditLogRepositoryProtocol.

    NOT suitable for production use.

    Attributes:
        _entries: Entries in append order.
        _fail_with: Error raised by the next append, if set.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._entries: list[AuditLogEntry] = []
        self._by_id: dict[UUID, AuditLogEntry] = {}
        self._fail_with: Exception | None = None

    def fail_next_append(self, error: Exception | None = None) -> None:
        """Make the next append raise (for testing rollback)."""
        self._fail_with = error or RuntimeError("audit storage unavailable")

    def append_now(self, entry: AuditLogEntry) -> None:
        """Append synchronously.

        Used by repository stubs that must apply an entry and their own
        change without yielding to the event loop in between.

        Raises:
            AuditWriteError: If a failure was injected or the id is taken.
        """
        if self._fail_with is not None:
            cause, self._fail_with = self._fail_with, None
            raise AuditWriteError(
                entity=entry.entity,
                entity_id=entry.entity_id,
                action=entry.action,
                cause=cause,
            )
        if entry.id in self._by_id:
            raise AuditWriteError(
                entity=entry.entity,
                entity_id=entry.entity_id,
                action=entry.action,
                cause=ValueError(f"duplicate audit entry id {entry.id}"),
            )
        self._entries.append(entry)
        self._by_id[entry.id] = entry

    async def append(self, entry: AuditLogEntry) -> None:
        """Append an entry."""
        self.append_now(entry)

    async def get(self, log_id: UUID) -> AuditLogEntry | None:
        """Get an entry by id."""
        return self._by_id.get(log_id)

    async def query(
        self,
        filters: AuditLogFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        """Query entries, newest first (append order breaks timestamp ties)."""
        matching = [
            entry
            for _, entry in sorted(
                enumerate(self._entries),
                key=lambda pair: (pair[1].created_at, pair[0]),
                reverse=True,
            )
            if _matches(entry, filters)
        ]
        return matching[offset : offset + limit], len(matching)

    async def count_since(self, since: datetime) -> int:
        """Count entries created at or after ``since``."""
        return sum(1 for e in self._entries if e.created_at >= since)

    async def top_actions(self, limit: int) -> list[tuple[str, int]]:
        """Most frequent actions."""
        return Counter(e.action for e in self._entries).most_common(limit)

    async def top_entities(self, limit: int) -> list[tuple[str, int]]:
        """Most frequent entity kinds."""
        return Counter(e.entity for e in self._entries).most_common(limit)

    def all_entries(self) -> list[AuditLogEntry]:
        """Return every entry in append order (for tests)."""
        return list(self._entries)

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._entries.clear()
        self._by_id.clear()
        self._fail_with = None
