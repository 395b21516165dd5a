"""Unit tests for RestoreEngine."""

from __future__ import annotations

from uuid import uuid4

import pytest

from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.restore_service import RestoreEngine, RestoreResult
from src.application.services.task_store_service import TaskDraft, TaskStoreService
from src.domain.errors import (
    AuditLogEntryNotFoundError,
    AuditWriteError,
    NotRestorableError,
    UnauthorizedError,
)
from src.domain.models.actor import Actor
from src.domain.models.admin_task import AdminTask, TaskStatus
from src.domain.models.approval_record import ApprovalAction
from src.domain.models.audit_details import (
    RestoreDetails,
    SnapshotDetails,
    status_transition_of,
)
from src.domain.models.audit_log import AuditAction, AuditEntity
from src.infrastructure.stubs.audit_log_repository_stub import AuditLogRepositoryStub


@pytest.fixture
async def rejected_task(
    task_store: TaskStoreService, owner: Actor, review_task: AdminTask
) -> AdminTask:
    return await task_store.review_action(
        owner, review_task.id, ApprovalAction.REJECT, comment="Wrong department"
    )


class TestRestore:
    """Restoring deleted admin tasks."""

    async def test_restores_under_new_identity(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        super_admin: Actor,
        rejected_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, rejected_task.id)

        result = await restore_engine.restore(super_admin, delete_entry.id)

        assert result.success is True
        assert result.restored_id is not None
        restored = await task_store.get_task(super_admin, int(result.restored_id))
        assert restored.id != rejected_task.id
        assert restored.task_no == "AT-20260304-0002"
        assert restored.status is TaskStatus.REJECTED
        assert restored.title == rejected_task.title
        assert restored.payload_fields() == rejected_task.payload_fields()
        assert [r.comment for r in restored.approval_records] == ["Wrong department"]
        assert rejected_task.task_no in result.message

    async def test_restore_entry_links_back(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
        pending_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, pending_task.id)
        result = await restore_engine.restore(super_admin, delete_entry.id)

        restore_entry = await audit_log_stub.get(result.restore_log_id)
        assert restore_entry is not None
        assert restore_entry.action == "restore"
        assert restore_entry.entity_id == result.restored_id
        assert restore_entry.details == RestoreDetails(
            restored_id=result.restored_id,
            source_log_id=str(delete_entry.id),
            entity=AuditEntity.ADMIN_TASK,
            original_entity_id=str(pending_task.id),
            original_task_no=pending_task.task_no,
            new_status="PENDING",
        )

    async def test_restore_is_not_idempotent(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        super_admin: Actor,
        pending_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, pending_task.id)
        first = await restore_engine.restore(super_admin, delete_entry.id)
        second = await restore_engine.restore(super_admin, delete_entry.id)
        assert first.restored_id != second.restored_id

        page = await task_store.list_tasks(super_admin)
        assert page.total == 2

    async def test_owner_cannot_restore(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        super_admin: Actor,
        owner: Actor,
        pending_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, pending_task.id)
        with pytest.raises(UnauthorizedError, match="audit:restore"):
            await restore_engine.restore(owner, delete_entry.id)

    async def test_unknown_entry(
        self, restore_engine: RestoreEngine, super_admin: Actor
    ) -> None:
        with pytest.raises(AuditLogEntryNotFoundError):
            await restore_engine.restore(super_admin, uuid4())

    async def test_only_delete_entries(
        self,
        restore_engine: RestoreEngine,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
        pending_task: AdminTask,
    ) -> None:
        create_entry = audit_log_stub.all_entries()[0]
        with pytest.raises(NotRestorableError, match="only delete"):
            await restore_engine.restore(super_admin, create_entry.id)

    async def test_unregistered_entity_kind(
        self,
        restore_engine: RestoreEngine,
        audit_logger: AuditLoggerService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
    ) -> None:
        entry = audit_logger.build_entry(
            super_admin,
            AuditAction.DELETE,
            AuditEntity.USER,
            "u-1",
            SnapshotDetails(snapshot={"name": "Former user"}),
        )
        await audit_log_stub.append(entry)
        with pytest.raises(NotRestorableError, match="cannot be restored"):
            await restore_engine.restore(super_admin, entry.id)

    async def test_unusable_snapshot(
        self,
        restore_engine: RestoreEngine,
        audit_logger: AuditLoggerService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
    ) -> None:
        entry = audit_logger.build_entry(
            super_admin,
            AuditAction.DELETE,
            AuditEntity.ADMIN_TASK,
            "77",
            SnapshotDetails(snapshot={"taskType": "GENERAL", "status": "NOT_A_STATUS"}),
        )
        await audit_log_stub.append(entry)
        with pytest.raises(NotRestorableError, match="unusable"):
            await restore_engine.restore(super_admin, entry.id)

    async def test_unusable_snapshot_draws_no_task_number(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        audit_logger: AuditLoggerService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
        applicant: Actor,
        general_draft: TaskDraft,
    ) -> None:
        entry = audit_logger.build_entry(
            super_admin,
            AuditAction.DELETE,
            AuditEntity.ADMIN_TASK,
            "78",
            SnapshotDetails(snapshot={"taskNo": "AT-20260101-0001", "title": ""}),
        )
        await audit_log_stub.append(entry)
        with pytest.raises(NotRestorableError):
            await restore_engine.restore(super_admin, entry.id)

        task = await task_store.create_task(applicant, general_draft)
        assert task.task_no == "AT-20260304-0001"

    async def test_restored_status_is_journalled(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        audit_logger: AuditLoggerService,
        super_admin: Actor,
        rejected_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, rejected_task.id)
        result = await restore_engine.restore(super_admin, delete_entry.id)

        (entry,) = await audit_logger.history(AuditEntity.ADMIN_TASK, result.restored_id)
        assert status_transition_of(entry.details) == ("", "REJECTED")

    async def test_audit_failure_restores_nothing(
        self,
        restore_engine: RestoreEngine,
        task_store: TaskStoreService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
        pending_task: AdminTask,
    ) -> None:
        delete_entry = await task_store.delete_task(super_admin, pending_task.id)
        audit_log_stub.fail_next_append()
        with pytest.raises(AuditWriteError):
            await restore_engine.restore(super_admin, delete_entry.id)
        assert (await task_store.list_tasks(super_admin)).total == 0

    async def test_custom_restorer(
        self,
        restore_engine: RestoreEngine,
        audit_logger: AuditLoggerService,
        audit_log_stub: AuditLogRepositoryStub,
        super_admin: Actor,
    ) -> None:
        restored: list[dict] = []

        async def restore_user(actor, entry, snapshot):
            restored.append(dict(snapshot))
            return RestoreResult(success=True, message="ok", restored_id="u-2")

        restore_engine.register(AuditEntity.USER, restore_user)
        entry = audit_logger.build_entry(
            super_admin,
            AuditAction.DELETE,
            AuditEntity.USER,
            "u-1",
            SnapshotDetails(snapshot={"name": "Former user"}),
        )
        await audit_log_stub.append(entry)

        result = await restore_engine.restore(super_admin, entry.id)
        assert result.restored_id == "u-2"
        assert restored == [{"name": "Former user"}]
        assert AuditEntity.USER in restore_engine.restorable_entities()
