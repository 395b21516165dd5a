"""PostgreSQL persistence adapters (SQLAlchemy async + asyncpg)."""

from src.infrastructure.adapters.persistence.admin_task_repository import (
    PostgresAdminTaskRepository,
)
from src.infrastructure.adapters.persistence.audit_log_repository import (
    PostgresAuditLogRepository,
)
from src.infrastructure.adapters.persistence.schema import create_schema

__all__ = [
    "PostgresAdminTaskRepository",
    "PostgresAuditLogRepository",
    "create_schema",
]
