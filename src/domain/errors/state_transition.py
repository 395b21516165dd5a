"""State transition errors for the admin task state machine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.domain.exceptions import AdminDeskError

if TYPE_CHECKING:
    from src.domain.models.admin_task import TaskStatus
    from src.domain.services.task_state_machine import TaskAction


class InvalidTransitionError(AdminDeskError):
    """Raised when an action is not allowed from the task's current status.

    Reported to the caller; never retried automatically.

    Attributes:
        task_id: The task the action targeted (None for pure table lookups).
        action: The attempted action.
        current_status: Status the task was in.
        allowed_actions: Actions that are legal from that status.
    """

    def __init__(
        self,
        action: TaskAction | str,
        current_status: TaskStatus,
        allowed_actions: list[TaskAction] | None = None,
        task_id: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize invalid transition error.

        Args:
            action: The attempted action (an operation name for operations
                that are not table edges, e.g. "update_status").
            current_status: The task's status when the action was attempted.
            allowed_actions: Legal actions from current_status (optional).
            task_id: The task identifier (optional).
            reason: Extra explanation, e.g. a route rule (optional).
        """
        self.task_id = task_id
        self.action = action
        self.current_status = current_status
        self.allowed_actions = allowed_actions or []
        self.reason = reason

        allowed_str = (
            f" Allowed actions: {sorted(a.value for a in self.allowed_actions)}"
            if self.allowed_actions
            else ""
        )
        target = f" on task {task_id}" if task_id is not None else ""
        action_label = action if isinstance(action, str) else action.value
        reason_str = f" ({reason})" if reason else ""
        super().__init__(
            f"Invalid transition{target}: {action_label} from "
            f"{current_status.value}{reason_str}.{allowed_str}"
        )
