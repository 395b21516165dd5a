"""Approval router.

Given a task's type, approval route, current status and assignments,
resolves which actions are legal next and what each requires of the
actor. The task-type -> route mapping is data (ApprovalRouteConfig), so
new task types or routes are additive configuration, not new branches.

Two questions are answered separately:
- is the action legal from the task's state (InvalidTransitionError), and
- may this actor perform it (UnauthorizedError).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from src.domain.errors.access import UnauthorizedError
from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.models.actor import Actor
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskStatus,
)
from src.domain.services.access_gate import AccessGate, Assignment, Permission
from src.domain.services.task_state_machine import (
    TaskAction,
    allowed_actions,
    check_transition,
)


@dataclass(frozen=True)
class TaskTypeRouteConfig:
    """Routing rules for one task type.

    Attributes:
        task_type: Task type code.
        label: Display label.
        requires_processor: When True a processor step is mandatory before
            an approver may decide, so approve/reject are not available
            while the task is still PENDING.
        default_route: Route applied when a task is created without one.
        default_processor_id: Processor placed on every new task of this
            type. The task still starts PENDING; the slot only names who
            handles it.
        default_approver_id: Approver placed on new tasks of this type
            unless the draft names one.
    """

    task_type: str
    label: str
    requires_processor: bool = True
    default_route: ApprovalRoute = ApprovalRoute.V_ROUTE
    default_processor_id: str | None = None
    default_approver_id: str | None = None


@dataclass(frozen=True)
class ActionRule:
    """What an actor needs to perform an action.

    Attributes:
        permission: Capability the actor must hold.
        assignment: Assignment slot the actor must hold, if any. Actors
            with ``task:manage`` are exempt.
        only_if_assigned: Apply the assignment check only when the slot is
            filled on the task (an unassigned approver slot is open to any
            actor holding the permission).
    """

    permission: str
    assignment: Assignment | None = None
    only_if_assigned: bool = False


DEFAULT_ACTION_RULES: dict[TaskAction, ActionRule] = {
    TaskAction.CREATE: ActionRule(Permission.TASK_CREATE),
    TaskAction.ASSIGN_PROCESSOR: ActionRule(Permission.TASK_ASSIGN),
    TaskAction.SUBMIT_FOR_REVIEW: ActionRule(
        Permission.TASK_PROCESS, Assignment.PROCESSOR
    ),
    TaskAction.PENDING_DOCUMENTS: ActionRule(
        Permission.TASK_PROCESS, Assignment.PROCESSOR
    ),
    TaskAction.RESUME_PROCESSING: ActionRule(
        Permission.TASK_PROCESS, Assignment.PROCESSOR
    ),
    TaskAction.REQUEST_REVISION: ActionRule(
        Permission.TASK_APPROVE, Assignment.APPROVER, only_if_assigned=True
    ),
    TaskAction.APPROVE: ActionRule(
        Permission.TASK_APPROVE, Assignment.APPROVER, only_if_assigned=True
    ),
    TaskAction.REJECT: ActionRule(
        Permission.TASK_APPROVE, Assignment.APPROVER, only_if_assigned=True
    ),
    TaskAction.RESUBMIT: ActionRule(Permission.TASK_UPDATE, Assignment.APPLICANT),
    TaskAction.COMPLETE_CHECK: ActionRule(
        Permission.TASK_PROCESS, Assignment.PROCESSOR
    ),
    TaskAction.REVIEW_CHECK: ActionRule(Permission.TASK_APPROVE, Assignment.REVIEWER),
}


@dataclass(frozen=True)
class ApprovalRouteConfig:
    """Task-type -> route configuration.

    Attributes:
        task_types: Known task types by code.
        route_marks: Mark applied on approval for each route.
        fallback: Rules for task types missing from ``task_types``.
        action_rules: Actor requirements per action.
    """

    task_types: Mapping[str, TaskTypeRouteConfig]
    route_marks: Mapping[ApprovalRoute, ApprovalMark] = field(
        default_factory=lambda: {
            ApprovalRoute.V_ROUTE: ApprovalMark.V,
            ApprovalRoute.DEFAULT: ApprovalMark.DASH,
        }
    )
    fallback: TaskTypeRouteConfig = field(
        default_factory=lambda: TaskTypeRouteConfig(
            task_type="GENERAL", label="General", requires_processor=False
        )
    )
    action_rules: Mapping[TaskAction, ActionRule] = field(
        default_factory=lambda: dict(DEFAULT_ACTION_RULES)
    )


class ApprovalRouter:
    """Resolves legal next actions and actor requirements for tasks."""

    def __init__(self, config: ApprovalRouteConfig, access_gate: AccessGate) -> None:
        self._config = config
        self._gate = access_gate

    def config_for(self, task_type: str) -> TaskTypeRouteConfig:
        """Return the routing rules for a task type (fallback if unknown)."""
        return self._config.task_types.get(task_type, self._config.fallback)

    def default_route_for(self, task_type: str) -> ApprovalRoute:
        return self.config_for(task_type).default_route

    def approval_mark_for(self, route: ApprovalRoute) -> ApprovalMark:
        """Mark stamped when a task on ``route`` is approved."""
        return self._config.route_marks.get(route, ApprovalMark.DASH)

    def _route_blocks(self, task: AdminTask, action: TaskAction) -> str | None:
        """Return why the route forbids an action the table allows, if it does."""
        if (
            action in (TaskAction.APPROVE, TaskAction.REJECT)
            and task.status is TaskStatus.PENDING
            and self.config_for(task.task_type).requires_processor
        ):
            return f"task type {task.task_type} requires a processor step first"
        if action is TaskAction.REVIEW_CHECK and task.reviewer_id is None:
            return "no reviewer assigned"
        return None

    def state_actions(self, task: AdminTask) -> frozenset[TaskAction]:
        """Actions legal from the task's state under its route."""
        return frozenset(
            action
            for action in allowed_actions(task.status)
            if self._route_blocks(task, action) is None
        )

    def check_action(self, task: AdminTask, action: TaskAction) -> TaskStatus:
        """Validate ``action`` against state and route; return the target status.

        Raises:
            InvalidTransitionError: If the action is not legal now.
        """
        target = check_transition(action, task.status, task_id=task.id)
        reason = self._route_blocks(task, action)
        if reason is not None:
            raise InvalidTransitionError(
                action=action,
                current_status=task.status,
                allowed_actions=sorted(self.state_actions(task), key=lambda a: a.value),
                task_id=task.id,
                reason=reason,
            )
        return target

    def rule_for(self, action: TaskAction) -> ActionRule:
        return self._config.action_rules[action]

    def is_permitted(self, actor: Actor, task: AdminTask, action: TaskAction) -> bool:
        """Check the actor's capability and assignment for an action."""
        rule = self.rule_for(action)
        if not self._gate.capable(actor, rule.permission):
            return False
        if rule.assignment is None or self._gate.capable(actor, Permission.TASK_MANAGE):
            return True
        if rule.only_if_assigned and not self._slot_filled(task, rule.assignment):
            return True
        return self._gate.is_assigned(actor, task, rule.assignment)

    def authorize(self, actor: Actor, task: AdminTask, action: TaskAction) -> None:
        """Raise UnauthorizedError unless the actor may perform the action."""
        if self.is_permitted(actor, task, action):
            return
        rule = self.rule_for(action)
        if not self._gate.capable(actor, rule.permission):
            raise UnauthorizedError(actor_id=actor.id, permission=rule.permission)
        slot = rule.assignment.value if rule.assignment else "assigned user"
        raise UnauthorizedError(
            actor_id=actor.id,
            permission=rule.permission,
            reason=f"not the assigned {slot} of task {task.id}",
        )

    def legal_actions(self, task: AdminTask, actor: Actor) -> frozenset[TaskAction]:
        """Actions both legal from the task's state and permitted for the actor."""
        return frozenset(
            action
            for action in self.state_actions(task)
            if self.is_permitted(actor, task, action)
        )

    @staticmethod
    def _slot_filled(task: AdminTask, slot: Assignment) -> bool:
        return {
            Assignment.APPLICANT: task.applicant_id,
            Assignment.PROCESSOR: task.processor_id,
            Assignment.APPROVER: task.approver_id,
            Assignment.REVIEWER: task.reviewer_id,
        }[slot] is not None
