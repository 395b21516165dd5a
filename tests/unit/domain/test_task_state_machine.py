"""Unit tests for the admin task transition table."""

from __future__ import annotations

import pytest

from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.models.admin_task import ABSORBING_STATUSES, TaskStatus
from src.domain.services.task_state_machine import (
    DECISION_ACTIONS,
    TRANSITION_TABLE,
    TaskAction,
    actions_reaching,
    allowed_actions,
    check_transition,
    target_status,
)


class TestTransitionTable:
    """The table itself."""

    def test_every_action_has_an_entry(self) -> None:
        assert set(TRANSITION_TABLE) == set(TaskAction)

    def test_create_has_no_source(self) -> None:
        sources, target = TRANSITION_TABLE[TaskAction.CREATE]
        assert sources == frozenset()
        assert target is TaskStatus.PENDING

    @pytest.mark.parametrize("status", sorted(ABSORBING_STATUSES, key=lambda s: s.value))
    def test_absorbing_statuses_have_no_outgoing_actions(self, status: TaskStatus) -> None:
        assert allowed_actions(status) == frozenset()

    def test_rejected_only_allows_resubmit(self) -> None:
        assert allowed_actions(TaskStatus.REJECTED) == {TaskAction.RESUBMIT}

    def test_approved_allows_closing_checks_and_parking(self) -> None:
        assert allowed_actions(TaskStatus.APPROVED) == {
            TaskAction.COMPLETE_CHECK,
            TaskAction.REVIEW_CHECK,
            TaskAction.PENDING_DOCUMENTS,
        }

    def test_pending_documents_from_every_open_status(self) -> None:
        sources, _ = TRANSITION_TABLE[TaskAction.PENDING_DOCUMENTS]
        assert sources == {
            TaskStatus.PENDING,
            TaskStatus.PROCESSING,
            TaskStatus.PENDING_REVIEW,
            TaskStatus.REVISION_REQUESTED,
            TaskStatus.APPROVED,
        }

    def test_decision_actions(self) -> None:
        assert DECISION_ACTIONS == {
            TaskAction.APPROVE,
            TaskAction.REJECT,
            TaskAction.REQUEST_REVISION,
        }

    def test_decisions_allowed_from_pending_processing_and_review(self) -> None:
        for status in (
            TaskStatus.PENDING,
            TaskStatus.PROCESSING,
            TaskStatus.PENDING_REVIEW,
        ):
            assert DECISION_ACTIONS <= allowed_actions(status)

    def test_target_status(self) -> None:
        assert target_status(TaskAction.SUBMIT_FOR_REVIEW) is TaskStatus.PENDING_REVIEW
        assert target_status(TaskAction.RESUBMIT) is TaskStatus.PENDING


class TestCheckTransition:
    """Legality checks against the table."""

    def test_legal_edge_returns_target(self) -> None:
        assert (
            check_transition(TaskAction.ASSIGN_PROCESSOR, TaskStatus.PENDING)
            is TaskStatus.PROCESSING
        )

    def test_reassigning_processor_is_a_self_edge(self) -> None:
        assert (
            check_transition(TaskAction.ASSIGN_PROCESSOR, TaskStatus.PROCESSING)
            is TaskStatus.PROCESSING
        )

    def test_illegal_edge_raises_with_allowed_actions(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(TaskAction.COMPLETE_CHECK, TaskStatus.PENDING, task_id=7)

        error = exc_info.value
        assert error.task_id == 7
        assert error.current_status is TaskStatus.PENDING
        assert TaskAction.ASSIGN_PROCESSOR in error.allowed_actions
        assert "complete_check" in str(error)

    def test_nothing_leaves_completed(self) -> None:
        for action in TaskAction:
            if action is TaskAction.CREATE:
                continue
            with pytest.raises(InvalidTransitionError):
                check_transition(action, TaskStatus.COMPLETED)


class TestActionsReaching:
    """Resolving a target status into actions."""

    def test_pending_to_processing(self) -> None:
        assert actions_reaching(TaskStatus.PENDING, TaskStatus.PROCESSING) == [
            TaskAction.ASSIGN_PROCESSOR
        ]

    def test_pending_documents_to_processing(self) -> None:
        assert actions_reaching(TaskStatus.PENDING_DOCUMENTS, TaskStatus.PROCESSING) == [
            TaskAction.RESUME_PROCESSING
        ]

    def test_no_path(self) -> None:
        assert actions_reaching(TaskStatus.PENDING, TaskStatus.COMPLETED) == []
