"""
Pytest configuration and shared fixtures for Admin Desk tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/

Services are wired over the in-memory stubs with a fixed clock
(Wednesday 2026-03-04 10:30 UTC) and an isolated Prometheus registry.
"""

from datetime import datetime, timezone

import pytest
from prometheus_client import CollectorRegistry

from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.restore_service import RestoreEngine
from src.application.services.task_store_service import TaskDraft, TaskStoreService
from src.config.access_config import DEFAULT_ROLE_PERMISSION_CONFIG
from src.config.approval_route_config import DEFAULT_APPROVAL_ROUTE_CONFIG
from src.config.workflow_config import TEST_WORKFLOW_CONFIG, WorkflowConfig
from src.domain.models.actor import Actor, Role
from src.domain.models.admin_task import AdminTask
from src.domain.services.access_gate import AccessGate
from src.domain.services.approval_router import ApprovalRouter
from src.infrastructure.monitoring.workflow_metrics import WorkflowMetricsCollector
from src.infrastructure.stubs.admin_task_repository_stub import (
    AdminTaskRepositoryStub,
)
from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub

FIXED_NOW = datetime(2026, 3, 4, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from src import __version__

    return __version__


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture
def super_admin() -> Actor:
    return Actor(id="sam", role=Role.SUPER_ADMIN, ip_address="10.0.0.1")


@pytest.fixture
def owner() -> Actor:
    return Actor(id="olivia", role=Role.OWNER, ip_address="10.0.0.2")


@pytest.fixture
def applicant() -> Actor:
    """STAFF member filing tasks."""
    return Actor(id="alice", role=Role.STAFF, user_agent="pytest")


@pytest.fixture
def processor() -> Actor:
    """STAFF member processing tasks."""
    return Actor(id="bob", role=Role.STAFF)


@pytest.fixture
def other_staff() -> Actor:
    """STAFF member with no part in any task."""
    return Actor(id="carol", role=Role.STAFF)


# ---------------------------------------------------------------------------
# Infrastructure stubs and services
# ---------------------------------------------------------------------------


@pytest.fixture
def audit_log_stub() -> AuditLogRepositoryStub:
    return AuditLogRepositoryStub()


@pytest.fixture
def task_repo(audit_log_stub: AuditLogRepositoryStub) -> AdminTaskRepositoryStub:
    return AdminTaskRepositoryStub(audit_log_stub)


@pytest.fixture
def metrics() -> WorkflowMetricsCollector:
    return WorkflowMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def workflow_config() -> WorkflowConfig:
    return TEST_WORKFLOW_CONFIG


@pytest.fixture
def access_gate() -> AccessGate:
    return AccessGate(DEFAULT_ROLE_PERMISSION_CONFIG)


@pytest.fixture
def approval_router(access_gate: AccessGate) -> ApprovalRouter:
    return ApprovalRouter(DEFAULT_APPROVAL_ROUTE_CONFIG, access_gate)


@pytest.fixture
def audit_logger(
    audit_log_stub: AuditLogRepositoryStub,
    task_repo: AdminTaskRepositoryStub,
    access_gate: AccessGate,
    workflow_config: WorkflowConfig,
    metrics: WorkflowMetricsCollector,
    clock,
) -> AuditLoggerService:
    return AuditLoggerService(
        audit_log=audit_log_stub,
        tasks=task_repo,
        access_gate=access_gate,
        config=workflow_config,
        metrics=metrics,
        clock=clock,
    )


@pytest.fixture
def task_store(
    task_repo: AdminTaskRepositoryStub,
    access_gate: AccessGate,
    approval_router: ApprovalRouter,
    audit_logger: AuditLoggerService,
    workflow_config: WorkflowConfig,
    metrics: WorkflowMetricsCollector,
    clock,
) -> TaskStoreService:
    return TaskStoreService(
        tasks=task_repo,
        access_gate=access_gate,
        router=approval_router,
        audit_logger=audit_logger,
        config=workflow_config,
        metrics=metrics,
        clock=clock,
    )


@pytest.fixture
def restore_engine(
    audit_log_stub: AuditLogRepositoryStub,
    task_repo: AdminTaskRepositoryStub,
    task_store: TaskStoreService,
    audit_logger: AuditLoggerService,
    access_gate: AccessGate,
    metrics: WorkflowMetricsCollector,
) -> RestoreEngine:
    return RestoreEngine(
        audit_log=audit_log_stub,
        tasks=task_repo,
        task_store=task_store,
        audit_logger=audit_logger,
        access_gate=access_gate,
        metrics=metrics,
    )


@pytest.fixture
def create_file_draft() -> TaskDraft:
    """A task type that requires a processor step (V route)."""
    return TaskDraft(
        task_type="CREATE_FILE",
        title="Open personnel file for new hire",
        payload={"employeeName": "Dana", "department": "Logistics"},
        notes="Urgent",
    )


@pytest.fixture
def general_draft() -> TaskDraft:
    """A task type an approver may decide directly (DEFAULT route)."""
    return TaskDraft(task_type="GENERAL", title="Order office supplies")


@pytest.fixture
async def pending_task(
    task_store: TaskStoreService, applicant: Actor, create_file_draft: TaskDraft
) -> AdminTask:
    return await task_store.create_task(applicant, create_file_draft)


@pytest.fixture
async def processing_task(
    task_store: TaskStoreService,
    owner: Actor,
    processor: Actor,
    pending_task: AdminTask,
) -> AdminTask:
    return await task_store.assign_processor(owner, pending_task.id, processor.id, "Bob")


@pytest.fixture
async def review_task(
    task_store: TaskStoreService, processor: Actor, processing_task: AdminTask
) -> AdminTask:
    return await task_store.submit_for_review(processor, processing_task.id)
