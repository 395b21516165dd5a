"""Approval record domain model.

An approval record is appended every time an approver decides on a task.
Records are append-only per task: they are never edited or removed while
the task exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ApprovalAction(Enum):
    """Decision an approver can record."""

    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"


@dataclass(frozen=True)
class ApprovalRecord:
    """One approver decision on a task.

    Attributes:
        id: Record identifier.
        task_id: Task the decision applies to.
        action: The decision.
        approver_id: User who decided.
        comment: Optional free-text comment.
        created_at: When the decision was recorded (UTC).
    """

    id: int
    task_id: int
    action: ApprovalAction
    approver_id: str
    comment: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
