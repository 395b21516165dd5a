"""Domain errors for Admin Desk.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from AdminDeskError.
"""

from src.domain.errors.access import UnauthorizedError
from src.domain.errors.audit import AuditWriteError, DuplicateTaskNoError
from src.domain.errors.concurrent_modification import ConflictError
from src.domain.errors.not_found import (
    AttachmentNotFoundError,
    AuditLogEntryNotFoundError,
    NotFoundError,
    TaskNotFoundError,
)
from src.domain.errors.restore import NotRestorableError
from src.domain.errors.state_transition import InvalidTransitionError

__all__: list[str] = [
    "AttachmentNotFoundError",
    "AuditLogEntryNotFoundError",
    "AuditWriteError",
    "ConflictError",
    "DuplicateTaskNoError",
    "InvalidTransitionError",
    "NotFoundError",
    "NotRestorableError",
    "TaskNotFoundError",
    "UnauthorizedError",
]
