"""Audit log entry domain model.

An audit log entry is the immutable record of one mutating operation. The
log is append-only: entries are never updated or deleted, corrections are
new entries. It is also the only place a deleted entity's state survives.

``entity``/``entity_id`` is a weak reference: plain values that may point
at an entity which no longer exists. Resolving it is an explicit,
best-effort lookup (see AuditLoggerService.resolve_entity).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from src.domain.models.audit_details import AuditDetails

# Bump when an action is added or a details shape changes. The diff
# synthesizer and every downstream formatter dispatch on the action string.
AUDIT_VOCABULARY_VERSION = 2


class AuditAction(Enum):
    """Audit action vocabulary (versioned by AUDIT_VOCABULARY_VERSION)."""

    LOGIN = "login"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"
    UPDATE_STATUS = "update_status"
    ASSIGN_PROCESSOR = "assign_processor"
    ASSIGN_APPROVER = "assign_approver"
    ASSIGN_REVIEWER = "assign_reviewer"
    ATTACHMENT_UPLOAD = "attachment_upload"
    ATTACHMENT_DELETE = "attachment_delete"
    RESTORE = "restore"


class AuditEntity:
    """Entity kind names used in the log."""

    ADMIN_TASK = "admin_task"
    ADMIN_TASK_ATTACHMENT = "admin_task_attachment"
    USER = "user"


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuditLogEntry:
    """One immutable audit log record.

    Attributes:
        id: Entry identifier.
        user_id: Actor who performed the operation.
        action: Action string (AuditAction value, or an unknown future action).
        entity: Entity kind (weak reference part 1).
        entity_id: Entity identifier as a plain string (weak reference part 2).
        details: Action-keyed structured payload.
        ip_address: Request origin, if known.
        user_agent: Request user agent, if known.
        created_at: When the entry was written (UTC).
    """

    id: UUID
    user_id: str
    action: str
    entity: str
    entity_id: str
    details: AuditDetails
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = field(default_factory=_utc_now)

    def details_dict(self) -> dict[str, Any]:
        """Return the stored (wire) form of the details."""
        return self.details.to_dict()

    def has_snapshot(self) -> bool:
        """Check whether this entry carries a deletion snapshot."""
        from src.domain.models.audit_details import SnapshotDetails

        return isinstance(self.details, SnapshotDetails) and bool(self.details.snapshot)
