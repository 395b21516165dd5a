"""Health check endpoint for the Admin Desk API."""

from fastapi import APIRouter

from src.api.models.health import HealthResponse
from src.bootstrap.admin_desk import get_admin_task_repository
from src.infrastructure.stubs.admin_task_repository_stub import (
    AdminTaskRepositoryStub,
)

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return health status and the storage backend in use.

    Returns:
        Health status with 200 OK.
    """
    repository = get_admin_task_repository()
    backend = "memory" if isinstance(repository, AdminTaskRepositoryStub) else "postgres"
    return HealthResponse(status="healthy", repository=backend)
