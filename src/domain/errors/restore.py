"""Restore errors."""

from __future__ import annotations

from src.domain.exceptions import AdminDeskError


class NotRestorableError(AdminDeskError):
    """Raised when an audit entry cannot be used to rebuild an entity.

    Only ``delete`` entries that carry a snapshot of a restorable entity
    kind can be restored.

    Attributes:
        log_id: The audit entry that was targeted.
        action: The entry's action.
        reason: Why the entry cannot be restored.
    """

    def __init__(self, log_id: object, action: str, reason: str) -> None:
        self.log_id = log_id
        self.action = action
        self.reason = reason
        super().__init__(f"Audit log entry {log_id} ({action}) is not restorable: {reason}")
