"""Domain services for Admin Desk.

Pure business rules that don't belong to a single model.

Available services:
- task_state_machine: Transition table and legality checks
- AccessGate: Role/permission capability checks
- ApprovalRouter: Route rules and per-action authorization
- audit_diff: Structured update diffs for the audit log
- task_snapshot: Deletion snapshots and rebuilding tasks from them
"""

from src.domain.services.access_gate import AccessGate, Assignment, Permission
from src.domain.services.approval_router import ApprovalRouter
from src.domain.services.audit_diff import synthesize_update_diff
from src.domain.services.task_snapshot import snapshot_task, task_from_snapshot
from src.domain.services.task_state_machine import (
    TaskAction,
    allowed_actions,
    check_transition,
)

__all__: list[str] = [
    "AccessGate",
    "ApprovalRouter",
    "Assignment",
    "Permission",
    "TaskAction",
    "allowed_actions",
    "check_transition",
    "snapshot_task",
    "synthesize_update_diff",
    "task_from_snapshot",
]
