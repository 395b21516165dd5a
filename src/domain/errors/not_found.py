"""Not-found errors for tasks and audit log entries."""

from __future__ import annotations

from src.domain.exceptions import AdminDeskError


class NotFoundError(AdminDeskError):
    """Base error for a referenced record that does not exist."""


class TaskNotFoundError(NotFoundError):
    """Raised when a referenced admin task does not exist.

    Attributes:
        task_id: The missing task identifier.
    """

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Admin task not found: {task_id}")


class AttachmentNotFoundError(NotFoundError):
    """Raised when a referenced task attachment does not exist."""

    def __init__(self, attachment_id: int) -> None:
        self.attachment_id = attachment_id
        super().__init__(f"Task attachment not found: {attachment_id}")


class AuditLogEntryNotFoundError(NotFoundError):
    """Raised when a referenced audit log entry does not exist.

    Attributes:
        log_id: The missing entry identifier.
    """

    def __init__(self, log_id: object) -> None:
        self.log_id = log_id
        super().__init__(f"Audit log entry not found: {log_id}")
