"""Admin task repository stub implementation.

In-memory implementation of AdminTaskRepositoryProtocol for development
and testing. It is paired with an AuditLogRepositoryStub: each write
appends its audit entry and swaps the task inside the same per-task lock
with no await in between, so a task change and its entry are applied
together or not at all.

In production, PostgreSQL's UPDATE ... WHERE version = ... RETURNING and
a single transaction provide the same guarantee.
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from datetime import datetime

from src.application.ports.admin_task_repository import (
    AdminTaskRepositoryProtocol,
    TaskListFilters,
    TaskSortField,
)
from src.domain.errors.audit import DuplicateTaskNoError
from src.domain.errors.concurrent_modification import ConflictError
from src.domain.errors.not_found import TaskNotFoundError
from src.domain.models.admin_task import AdminTask, TaskStatus
from src.domain.models.audit_log import AuditLogEntry
from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub


def _matches(task: AdminTask, filters: TaskListFilters) -> bool:
    if filters.status is not None and task.status is not filters.status:
        return False
    if filters.task_type is not None and task.task_type != filters.task_type:
        return False
    if filters.applicant_id is not None and task.applicant_id != filters.applicant_id:
        return False
    if filters.processor_id is not None and task.processor_id != filters.processor_id:
        return False
    if filters.approver_id is not None and task.approver_id != filters.approver_id:
        return False
    if filters.involves_user_id is not None and not task.involves(
        filters.involves_user_id
    ):
        return False
    if filters.search:
        needle = filters.search.lower()
        if not any(
            needle in (part or "").lower()
            for part in (task.task_no, task.title, task.notes)
        ):
            return False
    return True


def _sort_key(sort_by: TaskSortField):
    if sort_by is TaskSortField.DEADLINE:
        # Tasks without a deadline sort last when ascending
        return lambda t: (t.deadline is None, t.deadline or datetime.min, t.id)
    return lambda t: (getattr(t, sort_by.value), t.id)


class AdminTaskRepositoryStub(AdminTaskRepositoryProtocol):
    """In-memory stub implementation of AdminTaskRepositoryProtocol.

    NOT suitable for production use.

    Attributes:
        _tasks: Tasks by id.
        _audit_log: Audit log receiving the entries of every write.
        _task_locks: One lock per task id serializing its writes.
    """

    def __init__(self, audit_log: AuditLogRepositoryStub) -> None:
        """Initialize the stub with empty storage.

        Args:
            audit_log: Audit log stub that writes are journalled to.
        """
        self._tasks: dict[int, AdminTask] = {}
        self._audit_log = audit_log
        self._task_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._id_lock = asyncio.Lock()
        self._last_task_id = 0
        self._last_record_id = 0
        self._last_attachment_id = 0
        self._task_no_sequences: dict[str, int] = {}

    @property
    def audit_log(self) -> AuditLogRepositoryStub:
        return self._audit_log

    async def next_task_id(self) -> int:
        async with self._id_lock:
            self._last_task_id += 1
            return self._last_task_id

    async def next_record_id(self) -> int:
        async with self._id_lock:
            self._last_record_id += 1
            return self._last_record_id

    async def next_attachment_id(self) -> int:
        async with self._id_lock:
            self._last_attachment_id += 1
            return self._last_attachment_id

    async def allocate_task_no_sequence(self, date_key: str) -> int:
        """Return the next sequence for the day; deleted numbers stay counted."""
        async with self._id_lock:
            sequence = self._task_no_sequences.get(date_key, 0) + 1
            self._task_no_sequences[date_key] = sequence
            return sequence

    async def get(self, task_id: int) -> AdminTask | None:
        return self._tasks.get(task_id)

    async def list(
        self,
        filters: TaskListFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AdminTask], int]:
        matching = [t for t in self._tasks.values() if _matches(t, filters)]
        matching.sort(key=_sort_key(filters.sort_by), reverse=filters.descending)
        return matching[offset : offset + limit], len(matching)

    async def count_by_status(self) -> dict[TaskStatus, int]:
        return dict(Counter(t.status for t in self._tasks.values()))

    async def count_overdue(self, now: datetime) -> int:
        return sum(1 for t in self._tasks.values() if t.is_overdue(now))

    async def insert(self, task: AdminTask, audit_entry: AuditLogEntry) -> AdminTask:
        """Store a new task with its audit entry.

        Raises:
            DuplicateTaskNoError: If the task number is already used.
            ValueError: If the task id already exists.
            AuditWriteError: If the audit append fails (task not stored).
        """
        async with self._task_locks[task.id]:
            if task.id in self._tasks:
                raise ValueError(f"Task already exists: {task.id}")
            if any(t.task_no == task.task_no for t in self._tasks.values()):
                raise DuplicateTaskNoError(task.task_no)
            self._audit_log.append_now(audit_entry)
            self._tasks[task.id] = task
            return task

    async def commit(
        self,
        updated: AdminTask,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> AdminTask:
        """Compare-and-swap a task with its audit entry.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConflictError: If the stored version differs from expected.
            AuditWriteError: If the audit append fails (no change applied).
        """
        async with self._task_locks[updated.id]:
            current = self._tasks.get(updated.id)
            if current is None:
                raise TaskNotFoundError(updated.id)
            if current.version != expected_version:
                raise ConflictError(
                    task_id=updated.id,
                    expected_version=expected_version,
                    actual_version=current.version,
                    operation=audit_entry.action,
                )
            self._audit_log.append_now(audit_entry)
            self._tasks[updated.id] = updated
            return updated

    async def delete(
        self,
        task_id: int,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> None:
        """Hard-delete a task with its audit entry.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConflictError: If the stored version differs from expected.
            AuditWriteError: If the audit append fails (task kept).
        """
        async with self._task_locks[task_id]:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)
            if current.version != expected_version:
                raise ConflictError(
                    task_id=task_id,
                    expected_version=expected_version,
                    actual_version=current.version,
                    operation="delete",
                )
            self._audit_log.append_now(audit_entry)
            del self._tasks[task_id]

    def clear(self) -> None:
        """Clear all tasks (for testing). Id and number counters keep counting."""
        self._tasks.clear()
