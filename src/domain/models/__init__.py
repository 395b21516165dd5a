"""Domain models for Admin Desk.

Immutable value objects for tasks, approval decisions, actors and audit
entries. No infrastructure dependencies.
"""

from src.domain.models.actor import Actor, Role
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction, ApprovalRecord
from src.domain.models.audit_log import AuditAction, AuditEntity, AuditLogEntry
from src.domain.models.task_payload import TaskPayload

__all__: list[str] = [
    "Actor",
    "AdminTask",
    "ApprovalAction",
    "ApprovalMark",
    "ApprovalRecord",
    "ApprovalRoute",
    "AuditAction",
    "AuditEntity",
    "AuditLogEntry",
    "Role",
    "TaskAttachment",
    "TaskPayload",
    "TaskStatus",
]
