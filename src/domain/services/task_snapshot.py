"""Snapshot codec for admin tasks.

A snapshot is the full point-in-time copy of a task captured into the
``delete`` audit entry. It is the only persistence of a deleted task, so
it holds every field in plain JSON form (camelCase keys, ISO 8601
datetimes, enum values).

Reading a snapshot back is lenient: entries written by older code may
lack fields, so missing values fall back to defaults supplied by the
caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction, ApprovalRecord
from src.domain.models.task_payload import TaskPayload

DEFAULT_TASK_TYPE = "GENERAL"

# Placeholder identity while a snapshot is validated
UNASSIGNED_TASK_ID = 0
UNASSIGNED_TASK_NO = "UNASSIGNED"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def attachment_to_json(attachment: TaskAttachment) -> dict[str, Any]:
    return {
        "id": attachment.id,
        "filename": attachment.filename,
        "originalName": attachment.original_name,
        "mimeType": attachment.mime_type,
        "size": attachment.size,
        "path": attachment.path,
        "url": attachment.url,
        "uploadedBy": attachment.uploaded_by,
        "createdAt": _iso(attachment.created_at),
    }


def attachment_from_json(task_id: int, data: Mapping[str, Any]) -> TaskAttachment:
    kwargs: dict[str, Any] = {}
    created_at = _parse_dt(data.get("createdAt"))
    if created_at is not None:
        kwargs["created_at"] = created_at
    return TaskAttachment(
        id=int(data["id"]),
        task_id=task_id,
        filename=data["filename"],
        original_name=data.get("originalName") or data["filename"],
        mime_type=data.get("mimeType") or "application/octet-stream",
        size=int(data.get("size") or 0),
        path=data.get("path") or "",
        url=data.get("url"),
        uploaded_by=data.get("uploadedBy") or "",
        **kwargs,
    )


def record_to_json(record: ApprovalRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "action": record.action.value,
        "comment": record.comment,
        "approverId": record.approver_id,
        "createdAt": _iso(record.created_at),
    }


def snapshot_task(task: AdminTask) -> dict[str, Any]:
    """Capture every field of a task as a JSON-compatible mapping."""
    return {
        "id": task.id,
        "taskNo": task.task_no,
        "taskType": task.task_type,
        "title": task.title,
        "applicantId": task.applicant_id,
        "applicantName": task.applicant_name,
        "processorId": task.processor_id,
        "processorName": task.processor_name,
        "approverId": task.approver_id,
        "reviewerId": task.reviewer_id,
        "status": task.status.value,
        "approvalRoute": task.approval_route.value,
        "approvalMark": task.approval_mark.value if task.approval_mark else None,
        "payload": task.payload_fields(),
        "notes": task.notes,
        "deadline": _iso(task.deadline),
        "applicationDate": _iso(task.application_date),
        "receivedAt": _iso(task.received_at),
        "completedAt": _iso(task.completed_at),
        "attachments": [attachment_to_json(a) for a in task.attachments],
        "approvalRecords": [record_to_json(r) for r in task.approval_records],
        "createdAt": _iso(task.created_at),
        "updatedAt": _iso(task.updated_at),
        "version": task.version,
    }


def record_from_json(
    task_id: int, index: int, data: Mapping[str, Any]
) -> ApprovalRecord:
    kwargs: dict[str, Any] = {}
    created_at = _parse_dt(data.get("createdAt"))
    if created_at is not None:
        kwargs["created_at"] = created_at
    return ApprovalRecord(
        id=int(data.get("id", index + 1)),
        task_id=task_id,
        action=ApprovalAction(data["action"]),
        approver_id=data.get("approverId") or "",
        comment=data.get("comment"),
        **kwargs,
    )


def task_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    new_id: int,
    new_task_no: str,
    fallback_applicant_id: str,
) -> AdminTask:
    """Rebuild a task from a deletion snapshot under a new identity.

    The snapshot's id and task number are never reused. Approval records
    are kept (re-keyed to the new task id) because they are part of the
    task's history; attachments are not, since their blobs are external
    and may be gone.

    Args:
        snapshot: The snapshot mapping from a delete entry.
        new_id: Identity assigned to the rebuilt task.
        new_task_no: Task number assigned to the rebuilt task.
        fallback_applicant_id: Applicant to use when the snapshot has none.

    Raises:
        ValueError: If the snapshot lacks a usable title or has invalid values.
    """
    task_type = snapshot.get("taskType") or DEFAULT_TASK_TYPE
    mark = snapshot.get("approvalMark")
    records = tuple(
        record_from_json(new_id, index, r)
        for index, r in enumerate(snapshot.get("approvalRecords") or [])
    )

    optional_dates: dict[str, Any] = {}
    for key, attr in (
        ("applicationDate", "application_date"),
        ("createdAt", "created_at"),
    ):
        parsed = _parse_dt(snapshot.get(key))
        if parsed is not None:
            optional_dates[attr] = parsed

    return AdminTask(
        id=new_id,
        task_no=new_task_no,
        task_type=task_type,
        title=snapshot.get("title") or "",
        applicant_id=snapshot.get("applicantId") or fallback_applicant_id,
        applicant_name=snapshot.get("applicantName"),
        processor_id=snapshot.get("processorId"),
        processor_name=snapshot.get("processorName"),
        approver_id=snapshot.get("approverId"),
        reviewer_id=snapshot.get("reviewerId"),
        status=TaskStatus(snapshot.get("status") or TaskStatus.PENDING.value),
        approval_route=ApprovalRoute(
            snapshot.get("approvalRoute") or ApprovalRoute.V_ROUTE.value
        ),
        approval_mark=ApprovalMark(mark) if mark else None,
        payload=TaskPayload.from_json(task_type, snapshot.get("payload")),
        notes=snapshot.get("notes"),
        deadline=_parse_dt(snapshot.get("deadline")),
        received_at=_parse_dt(snapshot.get("receivedAt")),
        completed_at=_parse_dt(snapshot.get("completedAt")),
        approval_records=records,
        **optional_dates,
    )


def with_identity(task: AdminTask, *, new_id: int, new_task_no: str) -> AdminTask:
    """Move a rebuilt task, and its approval records, to a new identity."""
    records = tuple(replace(record, task_id=new_id) for record in task.approval_records)
    return replace(task, id=new_id, task_no=new_task_no, approval_records=records)
