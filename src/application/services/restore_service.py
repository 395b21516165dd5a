"""Restore engine: recreate deleted entities from audit log snapshots.

A ``delete`` entry keeps a full snapshot of the removed entity. Restoring
it inserts a new entity built from that snapshot, under a new id and a new
task number (numbers are never reused), and commits a ``restore`` entry
with the insert.

Restore is not idempotent: each call yields another entity. It needs the
elevated ``audit:restore`` permission, separate from task permissions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from src.application.ports.admin_task_repository import AdminTaskRepositoryProtocol
from src.application.ports.audit_log_repository import AuditLogRepositoryProtocol
from src.application.ports.workflow_metrics import WorkflowMetricsProtocol
from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.base import LoggingMixin
from src.application.services.task_store_service import TaskStoreService
from src.domain.errors.audit import AuditWriteError
from src.domain.errors.not_found import AuditLogEntryNotFoundError
from src.domain.errors.restore import NotRestorableError
from src.domain.models.actor import Actor
from src.domain.models.audit_details import RestoreDetails, SnapshotDetails
from src.domain.models.audit_log import AuditAction, AuditEntity, AuditLogEntry
from src.domain.services.access_gate import AccessGate, Permission
from src.domain.services.task_snapshot import (
    UNASSIGNED_TASK_ID,
    UNASSIGNED_TASK_NO,
    task_from_snapshot,
    with_identity,
)


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a restore.

    Attributes:
        success: Whether a new entity was created.
        message: Human readable summary.
        restored_id: Id of the new entity.
        restore_log_id: Id of the ``restore`` entry.
    """

    success: bool
    message: str
    restored_id: str | None = None
    restore_log_id: UUID | None = None


Restorer = Callable[[Actor, AuditLogEntry, Mapping[str, Any]], Awaitable[RestoreResult]]


class RestoreEngine(LoggingMixin):
    """Recreates deleted entities from their deletion snapshots.

    Entity kinds are restorable when they have a registered restorer;
    admin tasks are registered by default.
    """

    def __init__(
        self,
        audit_log: AuditLogRepositoryProtocol,
        tasks: AdminTaskRepositoryProtocol,
        task_store: TaskStoreService,
        audit_logger: AuditLoggerService,
        access_gate: AccessGate,
        metrics: WorkflowMetricsProtocol | None = None,
    ) -> None:
        self._audit_log = audit_log
        self._tasks = tasks
        self._task_store = task_store
        self._audit = audit_logger
        self._gate = access_gate
        self._metrics = metrics
        self._restorers: dict[str, Restorer] = {
            AuditEntity.ADMIN_TASK: self._restore_admin_task,
        }
        self._init_logger(component="restore")

    def register(self, entity: str, restorer: Restorer) -> None:
        """Register the restorer for an entity kind."""
        self._restorers[entity] = restorer

    def restorable_entities(self) -> frozenset[str]:
        return frozenset(self._restorers)

    async def restore(self, actor: Actor, log_id: UUID) -> RestoreResult:
        """Recreate the entity deleted by audit entry ``log_id``.

        Raises:
            UnauthorizedError: If the actor lacks ``audit:restore``.
            AuditLogEntryNotFoundError: If no such entry exists.
            NotRestorableError: If the entry is not a delete with a snapshot,
                its entity kind has no restorer, or the snapshot is unusable.
            AuditWriteError: If the restore entry could not be written
                (nothing is restored).
        """
        log = self._log_operation("restore", actor_id=actor.id, log_id=str(log_id))
        self._gate.require(actor, Permission.AUDIT_RESTORE)

        entry = await self._audit_log.get(log_id)
        if entry is None:
            raise AuditLogEntryNotFoundError(log_id)
        if entry.action != AuditAction.DELETE.value:
            raise NotRestorableError(
                log_id, entry.action, "only delete entries can be restored"
            )
        details = entry.details
        if not isinstance(details, SnapshotDetails) or not details.snapshot:
            raise NotRestorableError(log_id, entry.action, "entry carries no snapshot")
        restorer = self._restorers.get(entry.entity)
        if restorer is None:
            raise NotRestorableError(
                log_id, entry.action, f"entity kind '{entry.entity}' cannot be restored"
            )

        try:
            result = await restorer(actor, entry, details.snapshot)
        except (NotRestorableError, AuditWriteError):
            if self._metrics is not None:
                self._metrics.record_restore(entry.entity, success=False)
            log.warning("restore_failed", entity=entry.entity)
            raise
        if self._metrics is not None:
            self._metrics.record_restore(entry.entity, success=True)
        log.info(
            "restore_completed",
            entity=entry.entity,
            original_entity_id=entry.entity_id,
            restored_id=result.restored_id,
        )
        return result

    async def _restore_admin_task(
        self,
        actor: Actor,
        entry: AuditLogEntry,
        snapshot: Mapping[str, Any],
    ) -> RestoreResult:
        try:
            parsed = task_from_snapshot(
                snapshot,
                new_id=UNASSIGNED_TASK_ID,
                new_task_no=UNASSIGNED_TASK_NO,
                fallback_applicant_id=actor.id,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise NotRestorableError(
                entry.id, entry.action, f"snapshot is unusable: {exc}"
            ) from exc
        # Numbers are only drawn once the snapshot is known to be usable
        task = with_identity(
            parsed,
            new_id=await self._tasks.next_task_id(),
            new_task_no=await self._task_store.next_task_no(),
        )

        original_task_no = snapshot.get("taskNo")
        restore_entry = self._audit.build_entry(
            actor,
            AuditAction.RESTORE,
            entry.entity,
            str(task.id),
            RestoreDetails(
                restored_id=str(task.id),
                source_log_id=str(entry.id),
                entity=entry.entity,
                original_entity_id=entry.entity_id,
                original_task_no=original_task_no,
                new_status=task.status.value,
            ),
        )
        await self._tasks.insert(task, restore_entry)
        self._audit.committed(restore_entry)
        return RestoreResult(
            success=True,
            message=(
                f"Restored admin task {original_task_no or entry.entity_id} "
                f"as {task.task_no}"
            ),
            restored_id=str(task.id),
            restore_log_id=restore_entry.id,
        )
