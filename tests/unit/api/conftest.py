"""Fixtures for API route tests.

Routes are served by the real app with the admin desk services replaced by
the stub-backed ones from the root conftest.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies.admin_desk import (
    get_audit_logger_service,
    get_restore_engine_service,
    get_task_store_service,
)
from src.api.main import app
from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.restore_service import RestoreEngine
from src.application.services.task_store_service import TaskStoreService


@pytest.fixture
def client(
    task_store: TaskStoreService,
    audit_logger: AuditLoggerService,
    restore_engine: RestoreEngine,
) -> Generator[TestClient, None, None]:
    """Create test client with the admin desk services overridden."""
    app.dependency_overrides[get_task_store_service] = lambda: task_store
    app.dependency_overrides[get_audit_logger_service] = lambda: audit_logger
    app.dependency_overrides[get_restore_engine_service] = lambda: restore_engine

    client = TestClient(app, raise_server_exceptions=False)
    yield client

    app.dependency_overrides.clear()


def as_actor(actor_id: str, role: str) -> dict[str, str]:
    """Identity headers the upstream provider would forward."""
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


@pytest.fixture
def alice() -> dict[str, str]:
    return as_actor("alice", "STAFF")


@pytest.fixture
def bob() -> dict[str, str]:
    return as_actor("bob", "STAFF")


@pytest.fixture
def olivia() -> dict[str, str]:
    return as_actor("olivia", "OWNER")


@pytest.fixture
def sam() -> dict[str, str]:
    return as_actor("sam", "SUPER_ADMIN")
