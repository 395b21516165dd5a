"""Application ports - Abstract interfaces for infrastructure adapters.

Available ports:
- AdminTaskRepositoryProtocol: Task storage committing changes with audit entries
- AuditLogRepositoryProtocol: Append-only audit log storage and queries
- WorkflowMetricsProtocol: Workflow counters
"""

from src.application.ports.admin_task_repository import (
    AdminTaskRepositoryProtocol,
    TaskListFilters,
    TaskSortField,
)
from src.application.ports.audit_log_repository import (
    AuditLogFilters,
    AuditLogRepositoryProtocol,
)
from src.application.ports.workflow_metrics import WorkflowMetricsProtocol

__all__: list[str] = [
    "AdminTaskRepositoryProtocol",
    "AuditLogFilters",
    "AuditLogRepositoryProtocol",
    "TaskListFilters",
    "TaskSortField",
    "WorkflowMetricsProtocol",
]
