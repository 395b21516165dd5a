"""Action-keyed audit details.

``AuditLogEntry.details`` is a tagged union discriminated by the entry's
action string. Each action kind has a fixed, self-describing shape so a
reader never has to dereference the (possibly deleted) entity to
understand an entry. Actions this version does not know about parse into
``UnknownActionDetails`` and round-trip unchanged.

Wire form: ``to_dict()`` produces the camelCase JSON object stored in the
log; ``parse_details(action, data)`` reverses it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from src.domain.models.audit_log import AuditAction


@dataclass(frozen=True)
class FieldChange:
    """One changed labelled field in an update diff."""

    field: str
    field_label: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "fieldLabel": self.field_label,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }


@dataclass(frozen=True)
class NotesChange:
    """Before/after pair for the free-text notes field."""

    old_value: str
    new_value: str

    def to_dict(self) -> dict[str, Any]:
        return {"oldValue": self.old_value, "newValue": self.new_value}


@dataclass(frozen=True)
class PayloadChange:
    """One changed top-level payload key."""

    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "oldValue": self.old_value, "newValue": self.new_value}


@dataclass(frozen=True)
class UpdateDiffDetails:
    """Details of an ``update`` entry: three independent diff categories."""

    basic_info_changes: tuple[FieldChange, ...] = ()
    notes_change: NotesChange | None = None
    payload_changes: tuple[PayloadChange, ...] = ()

    def is_empty(self) -> bool:
        return (
            not self.basic_info_changes
            and self.notes_change is None
            and not self.payload_changes
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.basic_info_changes:
            data["basicInfoChanges"] = [c.to_dict() for c in self.basic_info_changes]
        if self.notes_change is not None:
            data["notesChange"] = self.notes_change.to_dict()
        if self.payload_changes:
            data["payloadChanges"] = [c.to_dict() for c in self.payload_changes]
        return data


@dataclass(frozen=True)
class SnapshotDetails:
    """Details of a ``delete`` entry: the full entity at deletion time."""

    snapshot: Mapping[str, Any]
    summary: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**dict(self.summary), "snapshot": dict(self.snapshot)}


@dataclass(frozen=True)
class CreateDetails:
    task_no: str
    task_type: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"taskNo": self.task_no, "taskType": self.task_type, "title": self.title}


@dataclass(frozen=True)
class StatusChangeDetails:
    """Details of an ``update_status`` entry."""

    old_status: str
    new_status: str

    def to_dict(self) -> dict[str, Any]:
        return {"oldStatus": self.old_status, "newStatus": self.new_status}


@dataclass(frozen=True)
class ApprovalDecisionDetails:
    """Details of ``approve``, ``reject`` and ``request_revision`` entries."""

    comment: str | None
    old_status: str
    new_status: str
    approval_mark: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "comment": self.comment,
            "oldStatus": self.old_status,
            "newStatus": self.new_status,
            "approvalMark": self.approval_mark,
        }


@dataclass(frozen=True)
class AssignmentDetails:
    """Details of ``assign_processor``, ``assign_approver`` and ``assign_reviewer``.

    ``old_status``/``new_status`` are only set when the assignment moved
    the task (assigning a processor starts processing).
    """

    assignee_id: str
    assignee_role: str
    old_status: str | None = None
    new_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            f"{self.assignee_role}Id": self.assignee_id,
        }
        if self.new_status is not None:
            data["oldStatus"] = self.old_status
            data["newStatus"] = self.new_status
        return data


@dataclass(frozen=True)
class RestoreDetails:
    """Details of a ``restore`` entry.

    ``source_log_id`` is a plain value link to the delete entry, not an
    enforced reference. ``new_status`` is the status the entity came back
    with; it is the first status-bearing entry of the restored entity.
    Entries written before it was recorded carry None.
    """

    restored_id: str
    source_log_id: str
    entity: str
    original_entity_id: str
    original_task_no: str | None = None
    new_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "restoredId": self.restored_id,
            "sourceLogId": self.source_log_id,
            "entity": self.entity,
            "originalEntityId": self.original_entity_id,
        }
        if self.original_task_no is not None:
            data["originalTaskNo"] = self.original_task_no
        if self.new_status is not None:
            data["newStatus"] = self.new_status
        return data


@dataclass(frozen=True)
class AttachmentDetails:
    """Details of ``attachment_upload`` and ``attachment_delete`` entries."""

    attachment_id: int
    filename: str
    task_id: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "attachmentId": self.attachment_id,
            "filename": self.filename,
            "taskId": self.task_id,
        }


@dataclass(frozen=True)
class EmptyDetails:
    """Details of actions that carry no payload (``login``)."""

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class UnknownActionDetails:
    """Catch-all for actions outside this vocabulary version."""

    raw: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


AuditDetails = Union[
    UpdateDiffDetails,
    SnapshotDetails,
    CreateDetails,
    StatusChangeDetails,
    ApprovalDecisionDetails,
    AssignmentDetails,
    RestoreDetails,
    AttachmentDetails,
    EmptyDetails,
    UnknownActionDetails,
]


def _parse_update(data: Mapping[str, Any]) -> UpdateDiffDetails:
    notes = data.get("notesChange")
    return UpdateDiffDetails(
        basic_info_changes=tuple(
            FieldChange(
                field=c["field"],
                field_label=c.get("fieldLabel", c["field"]),
                old_value=c.get("oldValue"),
                new_value=c.get("newValue"),
            )
            for c in data.get("basicInfoChanges", [])
        ),
        notes_change=(
            NotesChange(old_value=notes["oldValue"], new_value=notes["newValue"])
            if notes
            else None
        ),
        payload_changes=tuple(
            PayloadChange(
                field=c["field"], old_value=c.get("oldValue"), new_value=c.get("newValue")
            )
            for c in data.get("payloadChanges", [])
        ),
    )


def _parse_assignment(role: str, data: Mapping[str, Any]) -> AssignmentDetails:
    return AssignmentDetails(
        assignee_id=data[f"{role}Id"],
        assignee_role=role,
        old_status=data.get("oldStatus"),
        new_status=data.get("newStatus"),
    )


def parse_details(action: str, data: Mapping[str, Any] | None) -> AuditDetails:
    """Parse stored details into the variant for ``action``.

    Unknown actions, and known actions whose stored shape does not match
    (entries written by older code), fall back to UnknownActionDetails.
    """
    data = data or {}
    try:
        kind = AuditAction(action)
    except ValueError:
        return UnknownActionDetails(raw=dict(data))

    try:
        if kind is AuditAction.UPDATE:
            return _parse_update(data)
        if kind is AuditAction.DELETE:
            if "snapshot" not in data:
                return UnknownActionDetails(raw=dict(data))
            summary = {k: v for k, v in data.items() if k != "snapshot"}
            return SnapshotDetails(snapshot=dict(data["snapshot"]), summary=summary)
        if kind is AuditAction.CREATE:
            return CreateDetails(
                task_no=data["taskNo"], task_type=data["taskType"], title=data["title"]
            )
        if kind is AuditAction.UPDATE_STATUS:
            return StatusChangeDetails(
                old_status=data["oldStatus"], new_status=data["newStatus"]
            )
        if kind in (
            AuditAction.APPROVE,
            AuditAction.REJECT,
            AuditAction.REQUEST_REVISION,
        ):
            return ApprovalDecisionDetails(
                comment=data.get("comment"),
                old_status=data["oldStatus"],
                new_status=data["newStatus"],
                approval_mark=data.get("approvalMark"),
            )
        if kind is AuditAction.ASSIGN_PROCESSOR:
            return _parse_assignment("processor", data)
        if kind is AuditAction.ASSIGN_APPROVER:
            return _parse_assignment("approver", data)
        if kind is AuditAction.ASSIGN_REVIEWER:
            return _parse_assignment("reviewer", data)
        if kind is AuditAction.RESTORE:
            return RestoreDetails(
                restored_id=str(data["restoredId"]),
                source_log_id=str(data["sourceLogId"]),
                entity=data["entity"],
                original_entity_id=str(data["originalEntityId"]),
                original_task_no=data.get("originalTaskNo"),
                new_status=data.get("newStatus"),
            )
        if kind in (AuditAction.ATTACHMENT_UPLOAD, AuditAction.ATTACHMENT_DELETE):
            return AttachmentDetails(
                attachment_id=int(data["attachmentId"]),
                filename=data["filename"],
                task_id=int(data["taskId"]),
            )
        if kind is AuditAction.LOGIN:
            return EmptyDetails()
    except (KeyError, TypeError, ValueError):
        return UnknownActionDetails(raw=dict(data))

    return UnknownActionDetails(raw=dict(data))


def status_transition_of(details: AuditDetails) -> tuple[str, str] | None:
    """Return (old_status, new_status) if the details record a status change."""
    if isinstance(details, (StatusChangeDetails, ApprovalDecisionDetails)):
        return details.old_status, details.new_status
    if isinstance(details, AssignmentDetails) and details.new_status is not None:
        return details.old_status or "", details.new_status
    if isinstance(details, RestoreDetails) and details.new_status is not None:
        return "", details.new_status
    return None
