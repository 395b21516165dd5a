"""Unit tests for the PostgreSQL repositories.

The SQLAlchemy session is replaced by a fake whose ``execute`` is an
AsyncMock, so these tests check the statements issued and the mapping of
results and failures, not PostgreSQL itself.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.application.ports.admin_task_repository import TaskListFilters
from src.application.ports.audit_log_repository import AuditLogFilters
from src.domain.errors import (
    AuditWriteError,
    ConflictError,
    TaskNotFoundError,
)
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction, ApprovalRecord
from src.domain.models.audit_details import (
    ApprovalDecisionDetails,
    UnknownActionDetails,
)
from src.domain.models.audit_log import AuditEntity, AuditLogEntry
from src.domain.models.task_payload import TaskPayload
from src.infrastructure.adapters.persistence.admin_task_repository import (
    PostgresAdminTaskRepository,
    _task_params,
    row_to_task,
)
from src.infrastructure.adapters.persistence.audit_log_repository import (
    PostgresAuditLogRepository,
    row_to_entry,
)

NOW = datetime(2026, 3, 4, 10, 30, tzinfo=timezone.utc)


class _Transaction:
    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeSession:
    """Stands in for AsyncSession; ``execute`` returns the queued results."""

    def __init__(self, *results: Any) -> None:
        self.execute = AsyncMock(side_effect=list(results))

    def begin(self) -> _Transaction:
        return _Transaction()

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False

    def statements(self) -> list[str]:
        return [str(call.args[0]) for call in self.execute.call_args_list]


def result(fetchone: Any = None, scalar: Any = None, fetchall: Any = ()) -> MagicMock:
    mock = MagicMock()
    mock.fetchone.return_value = fetchone
    mock.scalar.return_value = scalar
    mock.fetchall.return_value = list(fetchall)
    return mock


def db_error() -> OperationalError:
    return OperationalError("INSERT", {}, Exception("connection reset"))


def make_task(**overrides: Any) -> AdminTask:
    fields: dict[str, Any] = {
        "id": 7,
        "task_no": "AT-20260304-0007",
        "task_type": "CREATE_FILE",
        "title": "Open file",
        "applicant_id": "alice",
        "status": TaskStatus.APPROVED,
        "approval_mark": ApprovalMark.V,
        "payload": TaskPayload.from_json("CREATE_FILE", {"dept": "Ops", "n": 2}),
        "processor_id": "bob",
        "received_at": NOW,
        "attachments": (
            TaskAttachment(
                id=1,
                task_id=7,
                filename="a.pdf",
                original_name="A.pdf",
                mime_type="application/pdf",
                size=3,
                path="/a.pdf",
                uploaded_by="alice",
                created_at=NOW,
            ),
        ),
        "approval_records": (
            ApprovalRecord(
                id=4,
                task_id=7,
                action=ApprovalAction.APPROVE,
                approver_id="olivia",
                created_at=NOW,
            ),
        ),
        "application_date": NOW,
        "created_at": NOW,
        "updated_at": NOW,
        "version": 3,
    }
    fields.update(overrides)
    return AdminTask(**fields)


def make_entry() -> AuditLogEntry:
    return AuditLogEntry(
        id=uuid4(),
        user_id="olivia",
        action="approve",
        entity=AuditEntity.ADMIN_TASK,
        entity_id="7",
        details=ApprovalDecisionDetails(
            comment=None, old_status="PENDING_REVIEW", new_status="APPROVED", approval_mark="V"
        ),
        created_at=NOW,
    )


class TestRowMapping:
    """Row <-> domain mapping."""

    def test_task_row_round_trip(self) -> None:
        task = make_task()
        row = SimpleNamespace(**_task_params(task))
        assert row_to_task(row) == task

    def test_entry_row_with_text_details(self) -> None:
        entry = make_entry()
        row = SimpleNamespace(
            id=entry.id,
            user_id=entry.user_id,
            action=entry.action,
            entity=entry.entity,
            entity_id=entry.entity_id,
            details=json.dumps(entry.details_dict()),
            ip_address=None,
            user_agent=None,
            created_at=NOW,
        )
        assert row_to_entry(row) == entry

    def test_entry_row_with_unknown_action(self) -> None:
        row = SimpleNamespace(
            id=uuid4(),
            user_id="sam",
            action="export_csv",
            entity="report",
            entity_id="r1",
            details={"rows": 3},
            ip_address=None,
            user_agent=None,
            created_at=NOW,
        )
        assert row_to_entry(row).details == UnknownActionDetails(raw={"rows": 3})


class TestPostgresAdminTaskRepository:
    """Transaction shape of task writes."""

    async def test_commit_updates_then_journals(self) -> None:
        session = FakeSession(result(fetchone=(7,)), result())
        repo = PostgresAdminTaskRepository(lambda: session)
        task = make_task()

        assert await repo.commit(task, 2, make_entry()) == task

        update_sql, insert_sql = session.statements()
        assert "WHERE id = :id AND version = :expected_version" in update_sql
        assert "INSERT INTO activity_logs" in insert_sql
        params = session.execute.call_args_list[0].args[1]
        assert params["expected_version"] == 2
        assert params["version"] == 3

    async def test_commit_conflict_skips_journal(self) -> None:
        session = FakeSession(result(fetchone=None), result(scalar=5))
        repo = PostgresAdminTaskRepository(lambda: session)

        with pytest.raises(ConflictError) as exc_info:
            await repo.commit(make_task(), 2, make_entry())

        assert exc_info.value.actual_version == 5
        assert session.execute.await_count == 2

    async def test_commit_missing_task(self) -> None:
        session = FakeSession(result(fetchone=None), result(scalar=None))
        repo = PostgresAdminTaskRepository(lambda: session)
        with pytest.raises(TaskNotFoundError):
            await repo.commit(make_task(), 2, make_entry())

    async def test_commit_journal_failure(self) -> None:
        session = FakeSession(result(fetchone=(7,)), db_error())
        repo = PostgresAdminTaskRepository(lambda: session)
        with pytest.raises(AuditWriteError, match="connection reset"):
            await repo.commit(make_task(), 2, make_entry())

    async def test_delete_conflict(self) -> None:
        session = FakeSession(result(fetchone=None), result(scalar=4))
        repo = PostgresAdminTaskRepository(lambda: session)
        with pytest.raises(ConflictError):
            await repo.delete(7, 3, make_entry())

    async def test_allocate_task_no_sequence(self) -> None:
        session = FakeSession(result(scalar=12))
        repo = PostgresAdminTaskRepository(lambda: session)
        assert await repo.allocate_task_no_sequence("20260304") == 12
        assert "ON CONFLICT (date_key)" in session.statements()[0]

    async def test_list_builds_filters(self) -> None:
        session = FakeSession(result(scalar=0), result(fetchall=[]))
        repo = PostgresAdminTaskRepository(lambda: session)

        items, total = await repo.list(
            TaskListFilters(status=TaskStatus.PENDING, involves_user_id="bob"), limit=5
        )

        assert (items, total) == ([], 0)
        select_sql = session.statements()[1]
        assert "status = :status" in select_sql
        assert "reviewer_id = :uid" in select_sql
        assert "ORDER BY created_at DESC NULLS LAST" in select_sql


class TestPostgresAuditLogRepository:
    """Append-only audit log adapter."""

    async def test_append_failure(self) -> None:
        session = FakeSession(db_error())
        repo = PostgresAuditLogRepository(lambda: session)
        with pytest.raises(AuditWriteError):
            await repo.append(make_entry())

    async def test_query_search_and_bounds(self) -> None:
        session = FakeSession(result(scalar=0), result(fetchall=[]))
        repo = PostgresAuditLogRepository(lambda: session)

        await repo.query(
            AuditLogFilters(search="lease", created_before=NOW), limit=20, offset=40
        )

        count_sql, select_sql = session.statements()
        assert "details::text ILIKE :search" in count_sql
        assert "created_at < :created_before" in select_sql
        assert "ORDER BY created_at DESC" in select_sql
        params = session.execute.call_args_list[1].args[1]
        assert params["search"] == "%lease%"
        assert params["offset"] == 40

    async def test_get_missing(self) -> None:
        session = FakeSession(result(fetchone=None))
        repo = PostgresAuditLogRepository(lambda: session)
        assert await repo.get(uuid4()) is None
