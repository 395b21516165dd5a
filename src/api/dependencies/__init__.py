"""API dependencies for dependency injection."""

from src.api.dependencies.admin_desk import (
    get_audit_logger_service,
    get_restore_engine_service,
    get_task_store_service,
    reset_admin_desk_dependencies,
)

__all__: list[str] = [
    "get_audit_logger_service",
    "get_restore_engine_service",
    "get_task_store_service",
    "reset_admin_desk_dependencies",
]
