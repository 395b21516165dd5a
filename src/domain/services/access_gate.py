"""Access gate.

Resolves whether an actor may perform an action. Permissions are coarse
capability strings resolved from a role -> permission-set table that is
built once (RolePermissionConfig) and passed in; there is no process-wide
permission state. Beyond the role, the only other authorization signal
is whether the actor is the task's assigned applicant, processor,
approver or reviewer. There is no per-resource ACL.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from src.domain.errors.access import UnauthorizedError
from src.domain.models.actor import Actor, Role
from src.domain.models.admin_task import AdminTask


class Permission:
    """Capability strings checked by the access gate."""

    TASK_CREATE = "task:create"
    TASK_READ = "task:read"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"
    TASK_PROCESS = "task:process"
    TASK_APPROVE = "task:approve"
    TASK_ASSIGN = "task:assign"
    TASK_MANAGE = "task:manage"
    SYSTEM_LOGS = "system:logs"
    AUDIT_RESTORE = "audit:restore"

    ALL: frozenset[str] = frozenset(
        {
            TASK_CREATE,
            TASK_READ,
            TASK_UPDATE,
            TASK_DELETE,
            TASK_PROCESS,
            TASK_APPROVE,
            TASK_ASSIGN,
            TASK_MANAGE,
            SYSTEM_LOGS,
            AUDIT_RESTORE,
        }
    )


class Assignment(Enum):
    """Task assignment slots an actor can hold."""

    APPLICANT = "applicant"
    PROCESSOR = "processor"
    APPROVER = "approver"
    REVIEWER = "reviewer"


@dataclass(frozen=True)
class RolePermissionConfig:
    """Role -> permission-set table.

    Attributes:
        role_permissions: Permissions granted to each role.
        superuser_roles: Roles that hold every permission. Per-user
            revocations still apply to them.
    """

    role_permissions: Mapping[Role, frozenset[str]]
    superuser_roles: frozenset[Role] = field(
        default_factory=lambda: frozenset({Role.SUPER_ADMIN})
    )

    def permissions_for_role(self, role: Role) -> frozenset[str]:
        if role in self.superuser_roles:
            return Permission.ALL
        return self.role_permissions.get(role, frozenset())


class AccessGate:
    """Answers capability and assignment questions for actors.

    Attributes:
        _config: The role -> permission table.
    """

    def __init__(self, config: RolePermissionConfig) -> None:
        self._config = config

    @property
    def config(self) -> RolePermissionConfig:
        return self._config

    def permissions_for(self, actor: Actor) -> frozenset[str]:
        """Effective permissions: role set plus grants, minus revocations."""
        base = self._config.permissions_for_role(actor.role)
        return (base | actor.granted) - actor.revoked

    def capable(self, actor: Actor, permission: str) -> bool:
        """Check whether the actor holds ``permission``."""
        return permission in self.permissions_for(actor)

    def require(self, actor: Actor, permission: str) -> None:
        """Raise UnauthorizedError unless the actor holds ``permission``."""
        if not self.capable(actor, permission):
            raise UnauthorizedError(actor_id=actor.id, permission=permission)

    @staticmethod
    def is_assigned(actor: Actor, task: AdminTask, slot: Assignment) -> bool:
        """Check whether the actor holds the given assignment on the task."""
        holder = {
            Assignment.APPLICANT: task.applicant_id,
            Assignment.PROCESSOR: task.processor_id,
            Assignment.APPROVER: task.approver_id,
            Assignment.REVIEWER: task.reviewer_id,
        }[slot]
        return holder is not None and holder == actor.id

    def can_view_task(self, actor: Actor, task: AdminTask) -> bool:
        """Task managers see everything; others only tasks they take part in."""
        if self.capable(actor, Permission.TASK_MANAGE):
            return True
        return self.capable(actor, Permission.TASK_READ) and task.involves(actor.id)
