"""Admin task workflow configuration.

Environment Variables:
- ADMIN_TASK_PAGE_SIZE_MAX: Upper bound for any list page (default: 100)
- ADMIN_TASK_DEFAULT_PAGE_SIZE: Page size when none is given (default: 20)
- ADMIN_TASK_NO_PREFIX: Prefix of generated task numbers (default: AT)
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class WorkflowConfig:
    """Tunables for task listing and numbering.

    Attributes:
        page_size_max: Maximum page size for task and activity log lists.
        default_page_size: Page size used when the caller gives none.
        task_no_prefix: Prefix of task numbers (PREFIX-YYYYMMDD-NNNN).
        top_n_stats: Number of buckets kept in activity stats breakdowns.
    """

    page_size_max: int = 100
    default_page_size: int = 20
    task_no_prefix: str = "AT"
    top_n_stats: int = 10

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.page_size_max < 1:
            raise ValueError(
                f"page_size_max must be positive, got {self.page_size_max}"
            )
        if not 1 <= self.default_page_size <= self.page_size_max:
            raise ValueError(
                f"default_page_size must be between 1 and {self.page_size_max}, "
                f"got {self.default_page_size}"
            )
        if not self.task_no_prefix:
            raise ValueError("task_no_prefix must not be empty")
        if self.top_n_stats < 1:
            raise ValueError(f"top_n_stats must be positive, got {self.top_n_stats}")

    def clamp_page_size(self, page_size: int | None) -> int:
        """Return a usable page size within [1, page_size_max]."""
        if page_size is None:
            return self.default_page_size
        return max(1, min(page_size, self.page_size_max))

    @classmethod
    def from_environment(cls) -> "WorkflowConfig":
        """Create config from environment variables with defaults."""
        return cls(
            page_size_max=_get_int_env("ADMIN_TASK_PAGE_SIZE_MAX", 100),
            default_page_size=_get_int_env("ADMIN_TASK_DEFAULT_PAGE_SIZE", 20),
            task_no_prefix=os.environ.get("ADMIN_TASK_NO_PREFIX", "AT"),
        )


# Default production config
DEFAULT_WORKFLOW_CONFIG = WorkflowConfig()

# Testing config with small pages
TEST_WORKFLOW_CONFIG = WorkflowConfig(page_size_max=10, default_page_size=5)
