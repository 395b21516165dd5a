"""Unit tests for ApprovalRouter."""

from __future__ import annotations

import pytest

from src.domain.errors.access import UnauthorizedError
from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.models.actor import Actor, Role
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskStatus,
)
from src.domain.services.access_gate import AccessGate
from src.domain.services.approval_router import (
    ApprovalRouteConfig,
    ApprovalRouter,
    TaskTypeRouteConfig,
)
from src.domain.services.task_state_machine import TaskAction

OWNER = Actor(id="olivia", role=Role.OWNER)
ADMIN = Actor(id="sam", role=Role.SUPER_ADMIN)
BOB = Actor(id="bob", role=Role.STAFF)
ALICE = Actor(id="alice", role=Role.STAFF)


def make_task(**overrides) -> AdminTask:
    fields = {
        "id": 1,
        "task_no": "AT-20260304-0001",
        "task_type": "CREATE_FILE",
        "title": "Open file",
        "applicant_id": "alice",
    }
    fields.update(overrides)
    return AdminTask(**fields)


class TestRouteConfig:
    """Task type lookups."""

    def test_known_type(self, approval_router: ApprovalRouter) -> None:
        config = approval_router.config_for("CREATE_FILE")
        assert config.requires_processor is True
        assert config.default_route is ApprovalRoute.V_ROUTE

    def test_unknown_type_uses_fallback(self, approval_router: ApprovalRouter) -> None:
        config = approval_router.config_for("SOMETHING_NEW")
        assert config.requires_processor is False

    def test_recruitment_defaults_to_default_route(
        self, approval_router: ApprovalRouter
    ) -> None:
        assert (
            approval_router.default_route_for("RECRUITMENT_REQUEST")
            is ApprovalRoute.DEFAULT
        )

    def test_marks(self, approval_router: ApprovalRouter) -> None:
        assert approval_router.approval_mark_for(ApprovalRoute.V_ROUTE) is ApprovalMark.V
        assert (
            approval_router.approval_mark_for(ApprovalRoute.DEFAULT) is ApprovalMark.DASH
        )

    def test_new_task_type_is_configuration_only(self, access_gate: AccessGate) -> None:
        config = ApprovalRouteConfig(
            task_types={
                "BRANCH_OPENING": TaskTypeRouteConfig(
                    task_type="BRANCH_OPENING",
                    label="Branch opening",
                    requires_processor=False,
                )
            }
        )
        router = ApprovalRouter(config, access_gate)
        task = make_task(task_type="BRANCH_OPENING")
        assert TaskAction.APPROVE in router.state_actions(task)


class TestStateLegality:
    """Route rules layered over the transition table."""

    def test_processor_step_blocks_direct_approval(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task()
        actions = approval_router.state_actions(task)
        assert TaskAction.APPROVE not in actions
        assert TaskAction.REJECT not in actions
        assert TaskAction.REQUEST_REVISION in actions

    def test_general_task_can_be_approved_from_pending(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task(task_type="GENERAL")
        assert TaskAction.APPROVE in approval_router.state_actions(task)

    def test_check_action_explains_route_block(
        self, approval_router: ApprovalRouter
    ) -> None:
        with pytest.raises(InvalidTransitionError, match="processor step"):
            approval_router.check_action(make_task(), TaskAction.APPROVE)

    def test_review_check_needs_reviewer(self, approval_router: ApprovalRouter) -> None:
        approved = make_task(status=TaskStatus.APPROVED)
        assert TaskAction.REVIEW_CHECK not in approval_router.state_actions(approved)

        with_reviewer = make_task(status=TaskStatus.APPROVED, reviewer_id="rita")
        assert TaskAction.REVIEW_CHECK in approval_router.state_actions(with_reviewer)

    def test_check_action_returns_target(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.PROCESSING, processor_id="bob")
        assert (
            approval_router.check_action(task, TaskAction.SUBMIT_FOR_REVIEW)
            is TaskStatus.PENDING_REVIEW
        )


class TestAuthorization:
    """Actor requirements per action."""

    def test_processor_actions_need_the_assigned_processor(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task(status=TaskStatus.PROCESSING, processor_id="bob")
        assert approval_router.is_permitted(BOB, task, TaskAction.SUBMIT_FOR_REVIEW)
        assert not approval_router.is_permitted(ALICE, task, TaskAction.SUBMIT_FOR_REVIEW)

    def test_manager_is_exempt_from_assignment(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task(status=TaskStatus.PROCESSING, processor_id="bob")
        assert approval_router.is_permitted(ADMIN, task, TaskAction.SUBMIT_FOR_REVIEW)

    def test_open_approver_slot_accepts_any_approver(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task(status=TaskStatus.PENDING_REVIEW)
        assert approval_router.is_permitted(OWNER, task, TaskAction.APPROVE)

    def test_assigned_approver_slot_is_enforced(
        self, approval_router: ApprovalRouter
    ) -> None:
        task = make_task(status=TaskStatus.PENDING_REVIEW, approver_id="someone-else")
        with pytest.raises(UnauthorizedError, match="approver"):
            approval_router.authorize(OWNER, task, TaskAction.APPROVE)

    def test_missing_capability(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.PENDING_REVIEW)
        with pytest.raises(UnauthorizedError, match="task:approve"):
            approval_router.authorize(BOB, task, TaskAction.APPROVE)

    def test_resubmit_is_for_the_applicant(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.REJECTED)
        assert approval_router.is_permitted(ALICE, task, TaskAction.RESUBMIT)
        assert not approval_router.is_permitted(BOB, task, TaskAction.RESUBMIT)


class TestLegalActions:
    """Intersection of legality and permission."""

    def test_processor_view(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.PROCESSING, processor_id="bob")
        assert approval_router.legal_actions(task, BOB) == {
            TaskAction.SUBMIT_FOR_REVIEW,
            TaskAction.PENDING_DOCUMENTS,
        }

    def test_owner_view_of_review(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.PENDING_REVIEW, processor_id="bob")
        assert approval_router.legal_actions(task, OWNER) == {
            TaskAction.APPROVE,
            TaskAction.REJECT,
            TaskAction.REQUEST_REVISION,
        }

    def test_closed_task_has_no_actions(self, approval_router: ApprovalRouter) -> None:
        task = make_task(status=TaskStatus.COMPLETED)
        assert approval_router.legal_actions(task, ADMIN) == frozenset()
