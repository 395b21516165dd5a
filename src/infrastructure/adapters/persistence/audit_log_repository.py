"""PostgreSQL audit log repository.

Append-only: this adapter issues INSERT and SELECT only. ``insert_entry``
is shared with the task repository so task writes can insert their entry
inside their own transaction.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from src.application.ports.audit_log_repository import (
    AuditLogFilters,
    AuditLogRepositoryProtocol,
)
from src.domain.errors.audit import AuditWriteError
from src.domain.models.audit_details import parse_details
from src.domain.models.audit_log import AuditLogEntry

logger = get_logger()

_INSERT_SQL = text(
    """
    INSERT INTO activity_logs
        (id, user_id, action, entity, entity_id, details,
         ip_address, user_agent, created_at)
    VALUES
        (:id, :user_id, :action, :entity, :entity_id, CAST(:details AS JSONB),
         :ip_address, :user_agent, :created_at)
    """
)

_COLUMNS = (
    "id, user_id, action, entity, entity_id, details, "
    "ip_address, user_agent, created_at"
)


async def insert_entry(session: AsyncSession, entry: AuditLogEntry) -> None:
    """Insert one entry using the caller's session and transaction."""
    await session.execute(
        _INSERT_SQL,
        {
            "id": entry.id,
            "user_id": entry.user_id,
            "action": entry.action,
            "entity": entry.entity,
            "entity_id": entry.entity_id,
            "details": json.dumps(entry.details_dict(), default=str),
            "ip_address": entry.ip_address,
            "user_agent": entry.user_agent,
            "created_at": entry.created_at,
        },
    )


def row_to_entry(row: Any) -> AuditLogEntry:
    """Map a result row to an AuditLogEntry."""
    details = row.details
    if isinstance(details, str):
        details = json.loads(details)
    return AuditLogEntry(
        id=row.id,
        user_id=row.user_id,
        action=row.action,
        entity=row.entity,
        entity_id=row.entity_id,
        details=parse_details(row.action, details),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        created_at=row.created_at,
    )


def _where(filters: AuditLogFilters) -> tuple[str, dict[str, Any]]:
    clauses: list[str] = []
    params: dict[str, Any] = {}
    for column in ("user_id", "action", "entity", "entity_id"):
        value = getattr(filters, column)
        if value is not None:
            clauses.append(f"{column} = :{column}")
            params[column] = value
    if filters.created_from is not None:
        clauses.append("created_at >= :created_from")
        params["created_from"] = filters.created_from
    if filters.created_before is not None:
        clauses.append("created_at < :created_before")
        params["created_before"] = filters.created_before
    if filters.search:
        clauses.append(
            "(entity_id ILIKE :search OR action ILIKE :search "
            "OR details::text ILIKE :search)"
        )
        params["search"] = f"%{filters.search}%"
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class PostgresAuditLogRepository(AuditLogRepositoryProtocol):
    """PostgreSQL implementation of AuditLogRepositoryProtocol.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append(self, entry: AuditLogEntry) -> None:
        """Insert an entry in its own transaction.

        Raises:
            AuditWriteError: If the insert fails.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await insert_entry(session, entry)
        except SQLAlchemyError as exc:
            logger.error(
                "audit_append_failed",
                action=entry.action,
                entity=entry.entity,
                entity_id=entry.entity_id,
                error=str(exc),
            )
            raise AuditWriteError(
                entity=entry.entity,
                entity_id=entry.entity_id,
                action=entry.action,
                cause=exc,
            ) from exc

    async def get(self, log_id: UUID) -> AuditLogEntry | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"SELECT {_COLUMNS} FROM activity_logs WHERE id = :id"),
                {"id": log_id},
            )
            row = result.fetchone()
            return row_to_entry(row) if row else None

    async def query(
        self,
        filters: AuditLogFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        where, params = _where(filters)
        async with self._session_factory() as session:
            total = (
                await session.execute(
                    text(f"SELECT COUNT(*) FROM activity_logs {where}"), params
                )
            ).scalar() or 0
            result = await session.execute(
                text(
                    f"SELECT {_COLUMNS} FROM activity_logs {where} "
                    "ORDER BY created_at DESC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
            return [row_to_entry(row) for row in result.fetchall()], total

    async def count_since(self, since: datetime) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT COUNT(*) FROM activity_logs WHERE created_at >= :since"),
                {"since": since},
            )
            return result.scalar() or 0

    async def _top(self, column: str, limit: int) -> list[tuple[str, int]]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(
                    f"SELECT {column}, COUNT(*) AS n FROM activity_logs "
                    f"GROUP BY {column} ORDER BY n DESC, {column} LIMIT :limit"
                ),
                {"limit": limit},
            )
            return [(row[0], row[1]) for row in result.fetchall()]

    async def top_actions(self, limit: int) -> list[tuple[str, int]]:
        return await self._top("action", limit)

    async def top_entities(self, limit: int) -> list[tuple[str, int]]:
        return await self._top("entity", limit)
