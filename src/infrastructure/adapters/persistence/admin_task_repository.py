"""PostgreSQL admin task repository.

Each write runs in one transaction holding both statements:

    UPDATE admin_tasks SET ... WHERE id = :id AND version = :expected RETURNING id
    INSERT INTO activity_logs ...

If the UPDATE matches no row the version check failed (or the task is
gone) and the transaction is rolled back; if the INSERT fails the UPDATE
is rolled back with it. A task change is never visible without its entry.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from src.application.ports.admin_task_repository import (
    AdminTaskRepositoryProtocol,
    TaskListFilters,
)
from src.domain.errors.audit import AuditWriteError, DuplicateTaskNoError
from src.domain.errors.concurrent_modification import ConflictError
from src.domain.errors.not_found import TaskNotFoundError
from src.domain.models.admin_task import (
    OPEN_STATUSES,
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskStatus,
)
from src.domain.models.audit_log import AuditLogEntry
from src.domain.models.task_payload import TaskPayload
from src.domain.services.task_snapshot import (
    attachment_from_json,
    attachment_to_json,
    record_from_json,
    record_to_json,
)
from src.infrastructure.adapters.persistence.audit_log_repository import insert_entry

logger = get_logger()

_TASK_COLUMNS = (
    "id, task_no, task_type, title, applicant_id, applicant_name, "
    "processor_id, processor_name, approver_id, reviewer_id, status, "
    "approval_route, approval_mark, payload, notes, deadline, "
    "application_date, received_at, completed_at, attachments, "
    "approval_records, created_at, updated_at, version"
)

_INSERT_SQL = text(
    """
    INSERT INTO admin_tasks (
        id, task_no, task_type, title, applicant_id, applicant_name,
        processor_id, processor_name, approver_id, reviewer_id, status,
        approval_route, approval_mark, payload, notes, deadline,
        application_date, received_at, completed_at, attachments,
        approval_records, created_at, updated_at, version
    ) VALUES (
        :id, :task_no, :task_type, :title, :applicant_id, :applicant_name,
        :processor_id, :processor_name, :approver_id, :reviewer_id, :status,
        :approval_route, :approval_mark, CAST(:payload AS JSONB), :notes, :deadline,
        :application_date, :received_at, :completed_at, CAST(:attachments AS JSONB),
        CAST(:approval_records AS JSONB), :created_at, :updated_at, :version
    )
    """
)

_UPDATE_SQL = text(
    """
    UPDATE admin_tasks SET
        task_type = :task_type,
        title = :title,
        applicant_name = :applicant_name,
        processor_id = :processor_id,
        processor_name = :processor_name,
        approver_id = :approver_id,
        reviewer_id = :reviewer_id,
        status = :status,
        approval_route = :approval_route,
        approval_mark = :approval_mark,
        payload = CAST(:payload AS JSONB),
        notes = :notes,
        deadline = :deadline,
        received_at = :received_at,
        completed_at = :completed_at,
        attachments = CAST(:attachments AS JSONB),
        approval_records = CAST(:approval_records AS JSONB),
        updated_at = :updated_at,
        version = :version
    WHERE id = :id AND version = :expected_version
    RETURNING id
    """
)

_SORT_COLUMNS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "deadline": "deadline",
    "task_no": "task_no",
}


def _task_params(task: AdminTask) -> dict[str, Any]:
    return {
        "id": task.id,
        "task_no": task.task_no,
        "task_type": task.task_type,
        "title": task.title,
        "applicant_id": task.applicant_id,
        "applicant_name": task.applicant_name,
        "processor_id": task.processor_id,
        "processor_name": task.processor_name,
        "approver_id": task.approver_id,
        "reviewer_id": task.reviewer_id,
        "status": task.status.value,
        "approval_route": task.approval_route.value,
        "approval_mark": task.approval_mark.value if task.approval_mark else None,
        "payload": json.dumps(task.payload_fields()),
        "notes": task.notes,
        "deadline": task.deadline,
        "application_date": task.application_date,
        "received_at": task.received_at,
        "completed_at": task.completed_at,
        "attachments": json.dumps([attachment_to_json(a) for a in task.attachments]),
        "approval_records": json.dumps(
            [record_to_json(r) for r in task.approval_records]
        ),
        "created_at": task.created_at,
        "updated_at": task.updated_at,
        "version": task.version,
    }


def _json_column(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


def row_to_task(row: Any) -> AdminTask:
    """Map a result row to an AdminTask."""
    return AdminTask(
        id=row.id,
        task_no=row.task_no,
        task_type=row.task_type,
        title=row.title,
        applicant_id=row.applicant_id,
        applicant_name=row.applicant_name,
        processor_id=row.processor_id,
        processor_name=row.processor_name,
        approver_id=row.approver_id,
        reviewer_id=row.reviewer_id,
        status=TaskStatus(row.status),
        approval_route=ApprovalRoute(row.approval_route),
        approval_mark=ApprovalMark(row.approval_mark) if row.approval_mark else None,
        payload=TaskPayload.from_json(row.task_type, _json_column(row.payload)),
        notes=row.notes,
        deadline=row.deadline,
        application_date=row.application_date,
        received_at=row.received_at,
        completed_at=row.completed_at,
        attachments=tuple(
            attachment_from_json(row.id, a)
            for a in _json_column(row.attachments) or []
        ),
        approval_records=tuple(
            record_from_json(row.id, i, r)
            for i, r in enumerate(_json_column(row.approval_records) or [])
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


def _where(filters: TaskListFilters) -> tuple[str, dict[str, Any]]:
    clauses: list[str] = []
    params: dict[str, Any] = {}
    if filters.status is not None:
        clauses.append("status = :status")
        params["status"] = filters.status.value
    for column in ("task_type", "applicant_id", "processor_id", "approver_id"):
        value = getattr(filters, column)
        if value is not None:
            clauses.append(f"{column} = :{column}")
            params[column] = value
    if filters.involves_user_id is not None:
        clauses.append(
            "(applicant_id = :uid OR processor_id = :uid "
            "OR approver_id = :uid OR reviewer_id = :uid)"
        )
        params["uid"] = filters.involves_user_id
    if filters.search:
        clauses.append(
            "(task_no ILIKE :search OR title ILIKE :search OR notes ILIKE :search)"
        )
        params["search"] = f"%{filters.search}%"
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class PostgresAdminTaskRepository(AdminTaskRepositoryProtocol):
    """PostgreSQL implementation of AdminTaskRepositoryProtocol.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _nextval(self, sequence: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(text(f"SELECT nextval('{sequence}')"))
            return int(result.scalar())

    async def next_task_id(self) -> int:
        return await self._nextval("admin_tasks_id_seq")

    async def next_record_id(self) -> int:
        return await self._nextval("admin_task_approval_records_id_seq")

    async def next_attachment_id(self) -> int:
        return await self._nextval("admin_task_attachments_id_seq")

    async def allocate_task_no_sequence(self, date_key: str) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text(
                        """
                        INSERT INTO admin_task_no_sequences (date_key, last_sequence)
                        VALUES (:date_key, 1)
                        ON CONFLICT (date_key) DO UPDATE
                            SET last_sequence = admin_task_no_sequences.last_sequence + 1
                        RETURNING last_sequence
                        """
                    ),
                    {"date_key": date_key},
                )
                return int(result.scalar())

    async def get(self, task_id: int) -> AdminTask | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"SELECT {_TASK_COLUMNS} FROM admin_tasks WHERE id = :id"),
                {"id": task_id},
            )
            row = result.fetchone()
            return row_to_task(row) if row else None

    async def list(
        self,
        filters: TaskListFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AdminTask], int]:
        where, params = _where(filters)
        column = _SORT_COLUMNS[filters.sort_by.value]
        direction = "DESC" if filters.descending else "ASC"
        async with self._session_factory() as session:
            total = (
                await session.execute(
                    text(f"SELECT COUNT(*) FROM admin_tasks {where}"), params
                )
            ).scalar() or 0
            result = await session.execute(
                text(
                    f"SELECT {_TASK_COLUMNS} FROM admin_tasks {where} "
                    f"ORDER BY {column} {direction} NULLS LAST, id {direction} "
                    "LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
            return [row_to_task(row) for row in result.fetchall()], total

    async def count_by_status(self) -> dict[TaskStatus, int]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT status, COUNT(*) FROM admin_tasks GROUP BY status")
            )
            return {TaskStatus(row[0]): row[1] for row in result.fetchall()}

    async def count_overdue(self, now: datetime) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                text(
                    "SELECT COUNT(*) FROM admin_tasks "
                    "WHERE status = ANY(:statuses) AND deadline < :now"
                ),
                {"statuses": [s.value for s in OPEN_STATUSES], "now": now},
            )
            return result.scalar() or 0

    async def insert(self, task: AdminTask, audit_entry: AuditLogEntry) -> AdminTask:
        """Insert a task and its audit entry in one transaction.

        Raises:
            DuplicateTaskNoError: If the task number is taken.
            AuditWriteError: If the audit insert fails (task not stored).
        """
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    try:
                        await session.execute(_INSERT_SQL, _task_params(task))
                    except IntegrityError as exc:
                        raise DuplicateTaskNoError(task.task_no) from exc
                    await self._insert_entry(session, audit_entry)
            except SQLAlchemyError as exc:
                raise self._audit_error(audit_entry, exc) from exc
        return task

    async def commit(
        self,
        updated: AdminTask,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> AdminTask:
        """Version-checked update plus audit insert in one transaction.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConflictError: If the stored version differs from expected.
            AuditWriteError: If the audit insert fails (update rolled back).
        """
        params = _task_params(updated)
        params["expected_version"] = expected_version
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(_UPDATE_SQL, params)
                if result.fetchone() is None:
                    await self._raise_missing_or_conflict(
                        session, updated.id, expected_version, audit_entry.action
                    )
                await self._insert_entry(session, audit_entry)
        return updated

    async def delete(
        self,
        task_id: int,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> None:
        """Version-checked delete plus audit insert in one transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text(
                        "DELETE FROM admin_tasks "
                        "WHERE id = :id AND version = :expected_version RETURNING id"
                    ),
                    {"id": task_id, "expected_version": expected_version},
                )
                if result.fetchone() is None:
                    await self._raise_missing_or_conflict(
                        session, task_id, expected_version, "delete"
                    )
                await self._insert_entry(session, audit_entry)

    async def _insert_entry(self, session: AsyncSession, entry: AuditLogEntry) -> None:
        try:
            await insert_entry(session, entry)
        except SQLAlchemyError as exc:
            raise self._audit_error(entry, exc) from exc

    @staticmethod
    def _audit_error(entry: AuditLogEntry, exc: Exception) -> AuditWriteError:
        logger.error(
            "task_write_rolled_back",
            action=entry.action,
            entity_id=entry.entity_id,
            error=str(exc),
        )
        return AuditWriteError(
            entity=entry.entity,
            entity_id=entry.entity_id,
            action=entry.action,
            cause=exc,
        )

    @staticmethod
    async def _raise_missing_or_conflict(
        session: AsyncSession, task_id: int, expected_version: int, operation: str
    ) -> None:
        result = await session.execute(
            text("SELECT version FROM admin_tasks WHERE id = :id"), {"id": task_id}
        )
        actual = result.scalar()
        if actual is None:
            raise TaskNotFoundError(task_id)
        raise ConflictError(
            task_id=task_id,
            expected_version=expected_version,
            actual_version=actual,
            operation=operation,
        )
