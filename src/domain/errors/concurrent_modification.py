"""Concurrent modification error for optimistic version checks.

Each task write is a compare-and-swap on the task's version. When two
writers race, exactly one wins; the loser gets ConflictError and must
refetch the task and decide whether to retry. The core never overwrites
silently.
"""

from __future__ import annotations

from src.domain.exceptions import AdminDeskError


class ConflictError(AdminDeskError):
    """Raised when a version compare-and-swap fails.

    This is a recoverable error - the caller should re-read the task
    and decide whether to retry or abort.

    Attributes:
        task_id: Task that was being modified.
        expected_version: Version the writer based its change on.
        actual_version: Version found in storage (None if unknown).
        operation: Description of the operation that failed.
    """

    def __init__(
        self,
        task_id: int,
        expected_version: int,
        actual_version: int | None = None,
        operation: str = "transition",
    ) -> None:
        """Initialize conflict error.

        Args:
            task_id: Task being modified.
            expected_version: Version the change was based on.
            actual_version: Version currently stored.
            operation: Description of the failed operation.
        """
        self.task_id = task_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.operation = operation

        found = f", found {actual_version}" if actual_version is not None else ""
        super().__init__(
            f"Concurrent modification detected for task {task_id} during "
            f"{operation}. Expected version {expected_version}{found}. "
            "Refetch the task and retry."
        )
