"""Admin task repository port.

Persistence for admin tasks. Every write commits the task change and its
audit log entry together: either both are stored or neither is.

Writes after creation are compare-and-swap on ``AdminTask.version``; a
stale expected version raises ConflictError and changes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from src.domain.models.admin_task import AdminTask, TaskStatus
from src.domain.models.audit_log import AuditLogEntry


class TaskSortField(Enum):
    """Sortable task columns."""

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DEADLINE = "deadline"
    TASK_NO = "task_no"


@dataclass(frozen=True)
class TaskListFilters:
    """Filters for listing tasks. All given filters must match.

    Attributes:
        status: Only tasks in this status.
        task_type: Only tasks of this type.
        applicant_id: Only tasks filed by this user.
        processor_id: Only tasks assigned to this processor.
        approver_id: Only tasks assigned to this approver.
        involves_user_id: Only tasks where this user holds any assignment.
        search: Case-insensitive substring of task_no, title or notes.
        sort_by: Sort column.
        descending: Sort direction.
    """

    status: TaskStatus | None = None
    task_type: str | None = None
    applicant_id: str | None = None
    processor_id: str | None = None
    approver_id: str | None = None
    involves_user_id: str | None = None
    search: str | None = None
    sort_by: TaskSortField = TaskSortField.CREATED_AT
    descending: bool = True


class AdminTaskRepositoryProtocol(Protocol):
    """Repository protocol for admin tasks."""

    async def next_task_id(self) -> int:
        """Reserve a new task identifier. Identifiers are never reused."""
        ...

    async def next_record_id(self) -> int:
        """Reserve a new approval record identifier."""
        ...

    async def next_attachment_id(self) -> int:
        """Reserve a new attachment identifier."""
        ...

    async def allocate_task_no_sequence(self, date_key: str) -> int:
        """Return the next task number sequence for a day.

        Sequences count from the highest number ever issued for the day,
        including numbers of tasks deleted since, so a task number is
        never issued twice.

        Args:
            date_key: The day as YYYYMMDD.
        """
        ...

    async def get(self, task_id: int) -> AdminTask | None:
        """Get a task by id, or None if it does not exist."""
        ...

    async def list(
        self,
        filters: TaskListFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AdminTask], int]:
        """List tasks matching the filters.

        Returns:
            Tuple of (page of tasks, total count matching filters).
        """
        ...

    async def count_by_status(self) -> dict[TaskStatus, int]:
        """Count tasks per status. Statuses with no tasks may be absent."""
        ...

    async def count_overdue(self, now: datetime) -> int:
        """Count PENDING/PROCESSING tasks whose deadline is before ``now``."""
        ...

    async def insert(self, task: AdminTask, audit_entry: AuditLogEntry) -> AdminTask:
        """Store a new task together with its audit entry.

        Raises:
            DuplicateTaskNoError: If the task number is already used.
            AuditWriteError: If the entry could not be written (task not stored).
        """
        ...

    async def commit(
        self,
        updated: AdminTask,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> AdminTask:
        """Replace a task if its stored version matches, with its audit entry.

        Args:
            updated: The new task state (version already bumped).
            expected_version: Version the caller read before deciding.
            audit_entry: Entry recording the change.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConflictError: If the stored version differs.
            AuditWriteError: If the entry could not be written (no change).
        """
        ...

    async def delete(
        self,
        task_id: int,
        expected_version: int,
        audit_entry: AuditLogEntry,
    ) -> None:
        """Hard-delete a task if its version matches, with its audit entry.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConflictError: If the stored version differs.
            AuditWriteError: If the entry could not be written (not deleted).
        """
        ...
