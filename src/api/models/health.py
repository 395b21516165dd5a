"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Health status string (e.g., "healthy").
        repository: Storage backend in use ("postgres" or "memory").
    """

    status: str
    repository: str
