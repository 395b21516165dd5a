"""Admin desk API dependencies.

Thin FastAPI-facing wrappers over the bootstrap composition root, so routes
can be wired with ``Depends`` and tests can swap services through
``app.dependency_overrides``.
"""

from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.restore_service import RestoreEngine
from src.application.services.task_store_service import TaskStoreService
from src.bootstrap.admin_desk import (
    get_audit_logger,
    get_restore_engine,
    get_task_store,
    reset_admin_desk_dependencies,
)


def get_task_store_service() -> TaskStoreService:
    """Get the task store service."""
    return get_task_store()


def get_audit_logger_service() -> AuditLoggerService:
    """Get the audit logger service."""
    return get_audit_logger()


def get_restore_engine_service() -> RestoreEngine:
    """Get the restore engine."""
    return get_restore_engine()


__all__ = [
    "get_audit_logger_service",
    "get_restore_engine_service",
    "get_task_store_service",
    "reset_admin_desk_dependencies",
]
