"""Authorization errors.

Raised when an actor lacks a capability, or lacks the assignment
(applicant/processor/approver/reviewer) an action requires.
"""

from __future__ import annotations

from src.domain.exceptions import AdminDeskError


class UnauthorizedError(AdminDeskError):
    """Raised when an actor may not perform an operation.

    Attributes:
        actor_id: The actor that was refused.
        permission: The capability that was required, if any.
        reason: Why the actor was refused.
    """

    def __init__(
        self,
        actor_id: str,
        permission: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize unauthorized error.

        Args:
            actor_id: The actor that was refused.
            permission: The capability that was required.
            reason: Optional explanation (e.g. "not the assigned processor").
        """
        self.actor_id = actor_id
        self.permission = permission
        self.reason = reason

        detail = reason or f"missing permission '{permission}'"
        super().__init__(f"Actor {actor_id} is not authorized: {detail}")
