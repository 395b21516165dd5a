"""Admin task API request/response models.

Pydantic models for the admin task endpoints. Task numbers, statuses and
audit actions are exposed as plain strings so clients keep working when
the vocabulary grows.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Custom datetime serializer for ISO 8601 with Z suffix (Pydantic v2)
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class TaskStatusEnum(str, Enum):
    """Admin task status."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PENDING_DOCUMENTS = "PENDING_DOCUMENTS"
    PENDING_REVIEW = "PENDING_REVIEW"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    REVIEWED = "REVIEWED"


class ApprovalRouteEnum(str, Enum):
    """Approval route."""

    V_ROUTE = "V_ROUTE"
    DEFAULT = "DEFAULT"


class ApprovalActionEnum(str, Enum):
    """Approver decision."""

    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"


class CreateAdminTaskRequest(BaseModel):
    """Request body for filing a task."""

    task_type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    payload: dict[str, Any] | None = None
    notes: str | None = None
    applicant_name: str | None = None
    deadline: datetime | None = None
    application_date: datetime | None = None
    approval_route: ApprovalRouteEnum | None = None
    approver_id: str | None = None
    reviewer_id: str | None = None


class UpdateAdminTaskRequest(BaseModel):
    """Request body for editing a task. Only provided fields change."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    task_type: str | None = Field(default=None, min_length=1, max_length=50)
    applicant_name: str | None = None
    processor_name: str | None = None
    deadline: datetime | None = None
    approval_route: ApprovalRouteEnum | None = None
    notes: str | None = None
    payload: dict[str, Any] | None = None
    expected_version: int | None = Field(
        default=None, ge=1, description="Version the edit was based on"
    )


class ApprovalRequest(BaseModel):
    """Request body for an approver decision."""

    action: ApprovalActionEnum
    comment: str | None = None
    expected_version: int | None = Field(default=None, ge=1)


class StatusUpdateRequest(BaseModel):
    """Request body for a status change."""

    status: TaskStatusEnum
    notes: str | None = None
    comment: str | None = None
    expected_version: int | None = Field(default=None, ge=1)


class AssignProcessorRequest(BaseModel):
    """Request body for assigning the processor."""

    processor_id: str = Field(..., min_length=1)
    processor_name: str | None = None
    expected_version: int | None = Field(default=None, ge=1)


class AssignUserRequest(BaseModel):
    """Request body for assigning the approver or reviewer."""

    user_id: str = Field(..., min_length=1)
    expected_version: int | None = Field(default=None, ge=1)


class BulkAssignProcessorRequest(BaseModel):
    """Request body for assigning one processor to many tasks."""

    task_ids: list[int] = Field(..., min_length=1, max_length=100)
    processor_id: str = Field(..., min_length=1)
    processor_name: str | None = None


class AttachmentRequest(BaseModel):
    """Metadata of a file already placed in storage."""

    filename: str = Field(..., min_length=1)
    original_name: str = Field(..., min_length=1)
    mime_type: str
    size: int = Field(..., ge=0)
    path: str
    url: str | None = None


class AttachmentResponse(BaseModel):
    """Attachment metadata."""

    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    path: str
    url: str | None = None
    uploaded_by: str
    created_at: DateTimeWithZ


class ApprovalRecordResponse(BaseModel):
    """One recorded approver decision."""

    id: int
    action: ApprovalActionEnum
    approver_id: str
    comment: str | None = None
    created_at: DateTimeWithZ


class AdminTaskResponse(BaseModel):
    """Full admin task representation."""

    id: int
    task_no: str
    task_type: str
    title: str
    status: TaskStatusEnum
    applicant_id: str
    applicant_name: str | None = None
    processor_id: str | None = None
    processor_name: str | None = None
    approver_id: str | None = None
    reviewer_id: str | None = None
    approval_route: ApprovalRouteEnum
    approval_mark: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None
    deadline: DateTimeWithZ | None = None
    application_date: DateTimeWithZ
    received_at: DateTimeWithZ | None = None
    completed_at: DateTimeWithZ | None = None
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    approval_records: list[ApprovalRecordResponse] = Field(default_factory=list)
    created_at: DateTimeWithZ
    updated_at: DateTimeWithZ
    version: int


class AdminTaskListResponse(BaseModel):
    """One page of tasks."""

    items: list[AdminTaskResponse]
    total: int
    page: int
    page_size: int


class AdminTaskStatsResponse(BaseModel):
    """Task counters."""

    total: int
    by_status: dict[str, int]
    overdue: int


class LegalActionsResponse(BaseModel):
    """Actions the caller can take on a task right now."""

    task_id: int
    status: TaskStatusEnum
    actions: list[str]


class BulkAssignResult(BaseModel):
    """Outcome for one task of a bulk assignment."""

    task_id: int
    success: bool
    error: str | None = None
    task: AdminTaskResponse | None = None


class BulkAssignProcessorResponse(BaseModel):
    """Outcomes of a bulk assignment, in request order."""

    results: list[BulkAssignResult]
    succeeded: int
    failed: int


class DeleteAdminTaskResponse(BaseModel):
    """Deletion receipt. ``log_id`` is the handle for restoring the task."""

    deleted: bool
    log_id: str


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
