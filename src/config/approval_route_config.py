"""Task-type -> approval route configuration.

Adding a task type or changing whether it needs a processor step is a
change to this table only.

Environment Variables:
- ADMIN_TASK_DEFAULT_ASSIGNEES: JSON object of per task type default
  assignees, e.g. {"CREATE_FILE": {"processor": "bob", "approver": "olivia"}}.
  Unknown task types and malformed values are ignored.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import replace

from src.domain.models.admin_task import ApprovalRoute
from src.domain.services.approval_router import (
    ApprovalRouteConfig,
    TaskTypeRouteConfig,
)

DEFAULT_TASK_TYPES: tuple[TaskTypeRouteConfig, ...] = (
    TaskTypeRouteConfig(
        task_type="CREATE_FILE",
        label="Create file",
        requires_processor=True,
    ),
    TaskTypeRouteConfig(
        task_type="UPDATE_FILE",
        label="Update file",
        requires_processor=True,
    ),
    TaskTypeRouteConfig(
        task_type="CONTRACT_REVIEW",
        label="Contract review",
        requires_processor=True,
    ),
    TaskTypeRouteConfig(
        task_type="RECRUITMENT_REQUEST",
        label="Recruitment request",
        requires_processor=False,
        default_route=ApprovalRoute.DEFAULT,
    ),
    TaskTypeRouteConfig(
        task_type="GENERAL",
        label="General",
        requires_processor=False,
        default_route=ApprovalRoute.DEFAULT,
    ),
)

DEFAULT_APPROVAL_ROUTE_CONFIG = ApprovalRouteConfig(
    task_types={t.task_type: t for t in DEFAULT_TASK_TYPES},
)


def _assignee(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def with_default_assignees(
    config: ApprovalRouteConfig, assignees: Mapping[str, object]
) -> ApprovalRouteConfig:
    """Return ``config`` with default processor/approver set per task type.

    Args:
        config: Base routing table.
        assignees: Task type -> {"processor": id, "approver": id}.

    Returns:
        A new config; task types missing from ``config`` are skipped.
    """
    task_types = dict(config.task_types)
    for task_type, slots in assignees.items():
        if task_type not in task_types or not isinstance(slots, Mapping):
            continue
        task_types[task_type] = replace(
            task_types[task_type],
            default_processor_id=_assignee(slots.get("processor")),
            default_approver_id=_assignee(slots.get("approver")),
        )
    return replace(config, task_types=task_types)


def approval_route_config_from_environment() -> ApprovalRouteConfig:
    """Create the routing table with ADMIN_TASK_DEFAULT_ASSIGNEES applied."""
    raw = os.environ.get("ADMIN_TASK_DEFAULT_ASSIGNEES")
    if not raw:
        return DEFAULT_APPROVAL_ROUTE_CONFIG
    try:
        assignees = json.loads(raw)
    except ValueError:
        return DEFAULT_APPROVAL_ROUTE_CONFIG
    if not isinstance(assignees, dict):
        return DEFAULT_APPROVAL_ROUTE_CONFIG
    return with_default_assignees(DEFAULT_APPROVAL_ROUTE_CONFIG, assignees)
