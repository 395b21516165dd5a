"""Admin task domain model.

An admin task is an internal request ticket (open a branch, create a file,
update a contract, ...) that moves through a processor/approver chain.

State Machine (see src.domain.services.task_state_machine):
    PENDING -> PROCESSING -> PENDING_REVIEW -> APPROVED -> COMPLETED
    with side paths through PENDING_DOCUMENTS, REVISION_REQUESTED,
    REJECTED and REVIEWED.

Terminal States:
    COMPLETED and REVIEWED are absorbing. REJECTED is a revisable terminal:
    it only allows resubmission back to PENDING.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from src.domain.models.approval_record import ApprovalRecord
from src.domain.models.task_payload import TaskPayload


class TaskStatus(Enum):
    """Lifecycle status of an admin task."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PENDING_DOCUMENTS = "PENDING_DOCUMENTS"
    PENDING_REVIEW = "PENDING_REVIEW"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    REVIEWED = "REVIEWED"

    def is_absorbing(self) -> bool:
        """Check whether no action can leave this status."""
        return self in ABSORBING_STATUSES


ABSORBING_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.REVIEWED}
)

# Statuses a task can be sent back to PENDING from
RESUBMITTABLE_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.REVISION_REQUESTED, TaskStatus.REJECTED}
)

# Statuses still awaiting work; used for overdue counting
OPEN_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.PENDING, TaskStatus.PROCESSING}
)


class ApprovalRoute(Enum):
    """Approval route selecting the compliance mark applied on approval."""

    V_ROUTE = "V_ROUTE"
    DEFAULT = "DEFAULT"


class ApprovalMark(Enum):
    """Compliance mark stamped on a task when it is decided."""

    V = "V"
    DASH = "-"


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TaskAttachment:
    """Metadata of a file attached to a task.

    The blob itself lives in external storage; only metadata is kept here.
    """

    id: int
    task_id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    path: str
    uploaded_by: str
    url: str | None = None
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class AdminTask:
    """An administrative request ticket.

    Attributes:
        id: Storage-assigned identifier. Never reused.
        task_no: Human readable number (AT-YYYYMMDD-NNNN). Immutable.
        task_type: Task type code (e.g. CREATE_FILE).
        title: Short description.
        applicant_id: User who filed the task.
        status: Current lifecycle status.
        approval_route: Route deciding the approval mark.
        approval_mark: Mark set when the task is approved or rejected.
        payload: Typed per-type form data.
        version: Optimistic concurrency counter, bumped on every write.
    """

    id: int
    task_no: str
    task_type: str
    title: str
    applicant_id: str
    status: TaskStatus = TaskStatus.PENDING
    approval_route: ApprovalRoute = ApprovalRoute.V_ROUTE
    approval_mark: ApprovalMark | None = None
    payload: TaskPayload | None = None
    notes: str | None = None
    applicant_name: str | None = None
    processor_id: str | None = None
    processor_name: str | None = None
    approver_id: str | None = None
    reviewer_id: str | None = None
    deadline: datetime | None = None
    application_date: datetime = field(default_factory=_utc_now)
    received_at: datetime | None = None
    completed_at: datetime | None = None
    attachments: tuple[TaskAttachment, ...] = ()
    approval_records: tuple[ApprovalRecord, ...] = ()
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    version: int = 1

    MAX_TITLE_LENGTH: ClassVar[int] = 200

    def __post_init__(self) -> None:
        """Validate task fields."""
        if not self.title or not self.title.strip():
            raise ValueError("Task title must not be empty")
        if len(self.title) > self.MAX_TITLE_LENGTH:
            raise ValueError(
                f"Task title exceeds maximum length of {self.MAX_TITLE_LENGTH} characters"
            )
        if not self.task_no:
            raise ValueError("Task number must be assigned")

    def evolve(self, **changes: Any) -> AdminTask:
        """Return a copy with changes applied, version bumped and updated_at set.

        ``id`` and ``task_no`` are immutable and cannot be changed here.
        """
        if "id" in changes or "task_no" in changes:
            raise ValueError("Task id and task_no are immutable")
        changes.setdefault("updated_at", _utc_now())
        return replace(self, version=self.version + 1, **changes)

    def payload_fields(self) -> dict[str, Any]:
        """Return the payload as a plain JSON object (empty if none)."""
        return self.payload.to_json() if self.payload is not None else {}

    def is_overdue(self, now: datetime) -> bool:
        """Check whether an open task is past its deadline."""
        return (
            self.status in OPEN_STATUSES
            and self.deadline is not None
            and self.deadline < now
        )

    def involves(self, user_id: str) -> bool:
        """Check whether the user is applicant, processor, approver or reviewer."""
        return user_id in (
            self.applicant_id,
            self.processor_id,
            self.approver_id,
            self.reviewer_id,
        )
