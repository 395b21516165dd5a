"""Infrastructure stubs for development and testing.

Available stubs:
- AuditLogRepositoryStub: In-memory append-only audit log with failure injection
- AdminTaskRepositoryStub: In-memory task storage journalling to an AuditLogRepositoryStub
"""

from src.infrastructure.stubs.admin_task_repository_stub import (
    AdminTaskRepositoryStub,
)
from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub

__all__: list[str] = [
    "AdminTaskRepositoryStub",
    "AuditLogRepositoryStub",
]
