"""Admin task state machine.

Transition table (action: sources -> target):

    create             : -                                        -> PENDING
    assign_processor   : PENDING, PROCESSING                      -> PROCESSING
    submit_for_review  : PROCESSING                               -> PENDING_REVIEW
    pending_documents  : PENDING, PROCESSING, PENDING_REVIEW,
                         REVISION_REQUESTED, APPROVED             -> PENDING_DOCUMENTS
    resume_processing  : PENDING_DOCUMENTS                        -> PROCESSING
    request_revision   : PENDING, PROCESSING, PENDING_REVIEW      -> REVISION_REQUESTED
    resubmit           : REVISION_REQUESTED, REJECTED             -> PENDING
    approve            : PENDING, PROCESSING, PENDING_REVIEW      -> APPROVED
    reject             : PENDING, PROCESSING, PENDING_REVIEW      -> REJECTED
    complete_check     : APPROVED                                 -> COMPLETED
    review_check       : APPROVED                                 -> REVIEWED

COMPLETED and REVIEWED have no outgoing actions. Route-dependent
restrictions (mandatory processor step, reviewer assignment) are layered
on top by the ApprovalRouter; this module only knows the table.
"""

from __future__ import annotations

from enum import Enum

from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.models.admin_task import TaskStatus


class TaskAction(Enum):
    """Actions that move an admin task through its lifecycle."""

    CREATE = "create"
    ASSIGN_PROCESSOR = "assign_processor"
    SUBMIT_FOR_REVIEW = "submit_for_review"
    PENDING_DOCUMENTS = "pending_documents"
    RESUME_PROCESSING = "resume_processing"
    REQUEST_REVISION = "request_revision"
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE_CHECK = "complete_check"
    REVIEW_CHECK = "review_check"


_DECISION_SOURCES = frozenset(
    {TaskStatus.PENDING, TaskStatus.PROCESSING, TaskStatus.PENDING_REVIEW}
)

# Maps each action to (allowed source statuses, target status)
TRANSITION_TABLE: dict[TaskAction, tuple[frozenset[TaskStatus], TaskStatus]] = {
    TaskAction.CREATE: (frozenset(), TaskStatus.PENDING),
    TaskAction.ASSIGN_PROCESSOR: (
        frozenset({TaskStatus.PENDING, TaskStatus.PROCESSING}),
        TaskStatus.PROCESSING,
    ),
    TaskAction.SUBMIT_FOR_REVIEW: (
        frozenset({TaskStatus.PROCESSING}),
        TaskStatus.PENDING_REVIEW,
    ),
    TaskAction.PENDING_DOCUMENTS: (
        frozenset(
            {
                TaskStatus.PENDING,
                TaskStatus.PROCESSING,
                TaskStatus.PENDING_REVIEW,
                TaskStatus.REVISION_REQUESTED,
                TaskStatus.APPROVED,
            }
        ),
        TaskStatus.PENDING_DOCUMENTS,
    ),
    TaskAction.RESUME_PROCESSING: (
        frozenset({TaskStatus.PENDING_DOCUMENTS}),
        TaskStatus.PROCESSING,
    ),
    TaskAction.REQUEST_REVISION: (_DECISION_SOURCES, TaskStatus.REVISION_REQUESTED),
    TaskAction.RESUBMIT: (
        frozenset({TaskStatus.REVISION_REQUESTED, TaskStatus.REJECTED}),
        TaskStatus.PENDING,
    ),
    TaskAction.APPROVE: (_DECISION_SOURCES, TaskStatus.APPROVED),
    TaskAction.REJECT: (_DECISION_SOURCES, TaskStatus.REJECTED),
    TaskAction.COMPLETE_CHECK: (frozenset({TaskStatus.APPROVED}), TaskStatus.COMPLETED),
    TaskAction.REVIEW_CHECK: (frozenset({TaskStatus.APPROVED}), TaskStatus.REVIEWED),
}

# Actions an approver records as an ApprovalRecord
DECISION_ACTIONS: frozenset[TaskAction] = frozenset(
    {TaskAction.APPROVE, TaskAction.REJECT, TaskAction.REQUEST_REVISION}
)


def allowed_actions(status: TaskStatus) -> frozenset[TaskAction]:
    """Return every action the table allows from ``status``."""
    return frozenset(
        action for action, (sources, _) in TRANSITION_TABLE.items() if status in sources
    )


def target_status(action: TaskAction) -> TaskStatus:
    """Return the status an action leads to."""
    return TRANSITION_TABLE[action][1]


def check_transition(
    action: TaskAction,
    status: TaskStatus,
    task_id: int | None = None,
) -> TaskStatus:
    """Validate ``action`` from ``status`` and return the target status.

    Raises:
        InvalidTransitionError: If the table has no such edge.
    """
    sources, target = TRANSITION_TABLE[action]
    if status not in sources:
        raise InvalidTransitionError(
            action=action,
            current_status=status,
            allowed_actions=sorted(allowed_actions(status), key=lambda a: a.value),
            task_id=task_id,
        )
    return target


def actions_reaching(status: TaskStatus, target: TaskStatus) -> list[TaskAction]:
    """Return the actions that lead from ``status`` to ``target``.

    Used to resolve a generic "set status" request into the action it
    stands for. The result is sorted for deterministic choice.
    """
    return sorted(
        (
            action
            for action, (sources, to_status) in TRANSITION_TABLE.items()
            if status in sources and to_status is target
        ),
        key=lambda a: a.value,
    )
