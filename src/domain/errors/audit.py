"""Audit write errors.

A task's visible status must never outpace its audit trail. When the
audit append fails, the paired state change is not applied and the
operation fails with AuditWriteError.
"""

from __future__ import annotations

from src.domain.exceptions import AdminDeskError


class AuditWriteError(AdminDeskError):
    """Raised when an audit entry could not be made durable.

    The paired state change has been rolled back (or never applied).

    Attributes:
        entity: Entity kind of the failed entry.
        entity_id: Entity identifier of the failed entry.
        action: Action of the failed entry.
        cause: The underlying exception.
    """

    def __init__(
        self,
        entity: str,
        entity_id: str,
        action: str,
        cause: Exception,
    ) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.action = action
        self.cause = cause
        super().__init__(
            f"Audit write failed for {entity} {entity_id} ({action}); "
            f"state change rolled back: {cause}"
        )


class DuplicateTaskNoError(AdminDeskError):
    """Raised when a task number is already taken."""

    def __init__(self, task_no: str) -> None:
        self.task_no = task_no
        super().__init__(f"Task number already assigned: {task_no}")
