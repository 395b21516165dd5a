"""Application services - Use case orchestration.

Available services:
- TaskStoreService: Admin task lifecycle and approval workflow
- AuditLoggerService: Audit entry building and activity log queries
- RestoreEngine: Recreating deleted entities from audit snapshots
"""

from src.application.services.audit_logger_service import (
    ActivityLogPage,
    ActivityLogQuery,
    ActivityStats,
    AuditLoggerService,
)
from src.application.services.restore_service import RestoreEngine, RestoreResult
from src.application.services.task_store_service import (
    AttachmentUpload,
    BulkAssignOutcome,
    TaskDraft,
    TaskPage,
    TaskStats,
    TaskStoreService,
)

__all__: list[str] = [
    "ActivityLogPage",
    "ActivityLogQuery",
    "ActivityStats",
    "AttachmentUpload",
    "AuditLoggerService",
    "BulkAssignOutcome",
    "RestoreEngine",
    "RestoreResult",
    "TaskDraft",
    "TaskPage",
    "TaskStats",
    "TaskStoreService",
]
