"""Unit tests for the task snapshot codec."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction, ApprovalRecord
from src.domain.models.task_payload import TaskPayload
from src.domain.services.task_snapshot import snapshot_task, task_from_snapshot

WHEN = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def decided_task() -> AdminTask:
    return AdminTask(
        id=5,
        task_no="AT-20260301-0002",
        task_type="CREATE_FILE",
        title="Open file",
        applicant_id="alice",
        processor_id="bob",
        processor_name="Bob",
        status=TaskStatus.APPROVED,
        approval_route=ApprovalRoute.V_ROUTE,
        approval_mark=ApprovalMark.V,
        payload=TaskPayload.from_json("CREATE_FILE", {"dept": "Ops", "tags": ["x"]}),
        notes="n",
        received_at=WHEN,
        attachments=(
            TaskAttachment(
                id=1,
                task_id=5,
                filename="scan.pdf",
                original_name="Scan.pdf",
                mime_type="application/pdf",
                size=10,
                path="/files/scan.pdf",
                uploaded_by="alice",
                created_at=WHEN,
            ),
        ),
        approval_records=(
            ApprovalRecord(
                id=3,
                task_id=5,
                action=ApprovalAction.APPROVE,
                approver_id="olivia",
                comment="ok",
                created_at=WHEN,
            ),
        ),
        created_at=WHEN,
        updated_at=WHEN,
        version=4,
    )


class TestSnapshotTask:
    def test_captures_every_field(self, decided_task: AdminTask) -> None:
        snapshot = snapshot_task(decided_task)
        assert snapshot["taskNo"] == "AT-20260301-0002"
        assert snapshot["status"] == "APPROVED"
        assert snapshot["approvalMark"] == "V"
        assert snapshot["payload"] == {"dept": "Ops", "tags": ["x"]}
        assert snapshot["receivedAt"] == WHEN.isoformat()
        assert snapshot["attachments"][0]["filename"] == "scan.pdf"
        assert snapshot["approvalRecords"][0]["approverId"] == "olivia"
        assert snapshot["version"] == 4


class TestTaskFromSnapshot:
    def test_rebuilds_under_new_identity(self, decided_task: AdminTask) -> None:
        restored = task_from_snapshot(
            snapshot_task(decided_task),
            new_id=9,
            new_task_no="AT-20260304-0001",
            fallback_applicant_id="sam",
        )
        assert restored.id == 9
        assert restored.task_no == "AT-20260304-0001"
        assert restored.status is TaskStatus.APPROVED
        assert restored.approval_mark is ApprovalMark.V
        assert restored.processor_name == "Bob"
        assert restored.payload_fields() == {"dept": "Ops", "tags": ["x"]}
        assert restored.received_at == WHEN
        assert restored.created_at == WHEN

    def test_keeps_records_drops_attachments(self, decided_task: AdminTask) -> None:
        restored = task_from_snapshot(
            snapshot_task(decided_task),
            new_id=9,
            new_task_no="AT-20260304-0001",
            fallback_applicant_id="sam",
        )
        assert restored.attachments == ()
        (record,) = restored.approval_records
        assert record.task_id == 9
        assert record.action is ApprovalAction.APPROVE
        assert record.comment == "ok"

    def test_missing_fields_fall_back(self) -> None:
        restored = task_from_snapshot(
            {"title": "Legacy entry"},
            new_id=2,
            new_task_no="AT-20260304-0002",
            fallback_applicant_id="sam",
        )
        assert restored.task_type == "GENERAL"
        assert restored.applicant_id == "sam"
        assert restored.status is TaskStatus.PENDING
        assert restored.approval_route is ApprovalRoute.V_ROUTE

    def test_missing_title_is_invalid(self) -> None:
        with pytest.raises(ValueError):
            task_from_snapshot(
                {"taskType": "GENERAL"},
                new_id=2,
                new_task_no="AT-20260304-0002",
                fallback_applicant_id="sam",
            )
