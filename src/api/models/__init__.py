"""
API models (Pydantic DTOs) for Admin Desk.

This module contains all Pydantic request/response models
used by API endpoints.
"""

from src.api.models.activity_log import (
    ActivityLogEntryResponse,
    ActivityLogListResponse,
    ActivityStatsResponse,
    RestoreResponse,
)
from src.api.models.admin_task import (
    AdminTaskListResponse,
    AdminTaskResponse,
    AdminTaskStatsResponse,
    ApprovalRequest,
    CreateAdminTaskRequest,
    StatusUpdateRequest,
    UpdateAdminTaskRequest,
)
from src.api.models.health import HealthResponse

__all__: list[str] = [
    "ActivityLogEntryResponse",
    "ActivityLogListResponse",
    "ActivityStatsResponse",
    "AdminTaskListResponse",
    "AdminTaskResponse",
    "AdminTaskStatsResponse",
    "ApprovalRequest",
    "CreateAdminTaskRequest",
    "HealthResponse",
    "RestoreResponse",
    "StatusUpdateRequest",
    "UpdateAdminTaskRequest",
]
