"""Bootstrap wiring for admin desk dependencies."""

from __future__ import annotations

import os

from structlog import get_logger

from src.application.ports.admin_task_repository import AdminTaskRepositoryProtocol
from src.application.ports.audit_log_repository import AuditLogRepositoryProtocol
from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.restore_service import RestoreEngine
from src.application.services.task_store_service import TaskStoreService
from src.config.access_config import DEFAULT_ROLE_PERMISSION_CONFIG
from src.config.approval_route_config import approval_route_config_from_environment
from src.config.workflow_config import WorkflowConfig
from src.domain.services.access_gate import AccessGate
from src.domain.services.approval_router import ApprovalRouter
from src.infrastructure.monitoring.workflow_metrics import (
    WorkflowMetricsCollector,
    get_workflow_metrics_collector,
)
from src.infrastructure.stubs.admin_task_repository_stub import (
    AdminTaskRepositoryStub,
)
from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub

logger = get_logger()

_audit_log_repository: AuditLogRepositoryProtocol | None = None
_admin_task_repository: AdminTaskRepositoryProtocol | None = None
_access_gate: AccessGate | None = None
_approval_router: ApprovalRouter | None = None
_workflow_config: WorkflowConfig | None = None
_audit_logger: AuditLoggerService | None = None
_task_store: TaskStoreService | None = None
_restore_engine: RestoreEngine | None = None


def _init_repositories() -> None:
    """Create both repositories together.

    A task write and its audit entry must land in the same store, so the
    two repositories are always chosen as a pair.
    """
    global _audit_log_repository, _admin_task_repository

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        try:
            from src.bootstrap.database import get_session_factory
            from src.infrastructure.adapters.persistence import (
                PostgresAdminTaskRepository,
                PostgresAuditLogRepository,
            )

            session_factory = get_session_factory()
            _audit_log_repository = PostgresAuditLogRepository(
                session_factory=session_factory
            )
            _admin_task_repository = PostgresAdminTaskRepository(
                session_factory=session_factory
            )
            logger.info(
                "admin_desk_repositories_initialized",
                repository_type="PostgreSQL",
                message="Using PostgreSQL repositories for tasks and audit log",
            )
            return
        except ValueError as e:
            logger.error(
                "postgres_repository_init_failed",
                error=str(e),
                message="Falling back to in-memory stubs",
            )

    if not database_url:
        logger.warning(
            "admin_desk_repositories_initialized",
            repository_type="InMemoryStub",
            message="DATABASE_URL not set - using in-memory stubs (data will not persist)",
        )
    audit_log = AuditLogRepositoryStub()
    _audit_log_repository = audit_log
    _admin_task_repository = AdminTaskRepositoryStub(audit_log)


def get_audit_log_repository() -> AuditLogRepositoryProtocol:
    """Get audit log repository instance.

    Returns the PostgreSQL repository if DATABASE_URL is configured,
    otherwise the in-memory stub shared with the task repository stub.
    """
    if _audit_log_repository is None:
        _init_repositories()
    assert _audit_log_repository is not None
    return _audit_log_repository


def get_admin_task_repository() -> AdminTaskRepositoryProtocol:
    """Get admin task repository instance (paired with the audit log)."""
    if _admin_task_repository is None:
        _init_repositories()
    assert _admin_task_repository is not None
    return _admin_task_repository


def get_access_gate() -> AccessGate:
    """Get access gate instance."""
    global _access_gate
    if _access_gate is None:
        _access_gate = AccessGate(DEFAULT_ROLE_PERMISSION_CONFIG)
    return _access_gate


def get_approval_router() -> ApprovalRouter:
    """Get approval router instance."""
    global _approval_router
    if _approval_router is None:
        _approval_router = ApprovalRouter(
            approval_route_config_from_environment(), get_access_gate()
        )
    return _approval_router


def get_workflow_config() -> WorkflowConfig:
    """Get workflow configuration."""
    global _workflow_config
    if _workflow_config is None:
        _workflow_config = WorkflowConfig.from_environment()
    return _workflow_config


def get_workflow_metrics() -> WorkflowMetricsCollector:
    """Get workflow metrics collector."""
    return get_workflow_metrics_collector()


def get_audit_logger() -> AuditLoggerService:
    """Get audit logger service instance."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLoggerService(
            audit_log=get_audit_log_repository(),
            tasks=get_admin_task_repository(),
            access_gate=get_access_gate(),
            config=get_workflow_config(),
            metrics=get_workflow_metrics(),
        )
    return _audit_logger


def get_task_store() -> TaskStoreService:
    """Get task store service instance."""
    global _task_store
    if _task_store is None:
        _task_store = TaskStoreService(
            tasks=get_admin_task_repository(),
            access_gate=get_access_gate(),
            router=get_approval_router(),
            audit_logger=get_audit_logger(),
            config=get_workflow_config(),
            metrics=get_workflow_metrics(),
        )
    return _task_store


def get_restore_engine() -> RestoreEngine:
    """Get restore engine instance."""
    global _restore_engine
    if _restore_engine is None:
        _restore_engine = RestoreEngine(
            audit_log=get_audit_log_repository(),
            tasks=get_admin_task_repository(),
            task_store=get_task_store(),
            audit_logger=get_audit_logger(),
            access_gate=get_access_gate(),
            metrics=get_workflow_metrics(),
        )
    return _restore_engine


def set_repositories(
    tasks: AdminTaskRepositoryProtocol,
    audit_log: AuditLogRepositoryProtocol,
) -> None:
    """Set custom repositories for testing. Services are rebuilt on next use."""
    global _admin_task_repository, _audit_log_repository
    global _audit_logger, _task_store, _restore_engine
    _admin_task_repository = tasks
    _audit_log_repository = audit_log
    _audit_logger = None
    _task_store = None
    _restore_engine = None


def set_workflow_config(config: WorkflowConfig) -> None:
    """Set custom workflow config for testing."""
    global _workflow_config, _audit_logger, _task_store, _restore_engine
    _workflow_config = config
    _audit_logger = None
    _task_store = None
    _restore_engine = None


def reset_admin_desk_dependencies() -> None:
    """Reset admin desk dependency singletons."""
    global _audit_log_repository
    global _admin_task_repository
    global _access_gate
    global _approval_router
    global _workflow_config
    global _audit_logger
    global _task_store
    global _restore_engine

    _audit_log_repository = None
    _admin_task_repository = None
    _access_gate = None
    _approval_router = None
    _workflow_config = None
    _audit_logger = None
    _task_store = None
    _restore_engine = None
