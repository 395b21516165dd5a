"""Task store service: the admin task approval workflow.

Every mutation follows the same path:

    AccessGate / ApprovalRouter authorization  -> UnauthorizedError
    ApprovalRouter state legality              -> InvalidTransitionError
    build the new task and its audit entry
    repository compare-and-swap + audit append -> ConflictError / AuditWriteError

The repository applies the task change and its audit entry together, so a
task's status never moves without a matching entry. Every status change
is journalled either as ``update_status`` or as an action-specific entry
carrying ``oldStatus``/``newStatus``.

Task numbers have the form PREFIX-YYYYMMDD-NNNN with a per-day sequence
that never reissues a number, even after the task is deleted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from src.application.ports.admin_task_repository import (
    AdminTaskRepositoryProtocol,
    TaskListFilters,
)
from src.application.ports.workflow_metrics import WorkflowMetricsProtocol
from src.application.services.audit_logger_service import AuditLoggerService
from src.application.services.base import LoggingMixin
from src.config.workflow_config import DEFAULT_WORKFLOW_CONFIG, WorkflowConfig
from src.domain.errors.access import UnauthorizedError
from src.domain.errors.audit import AuditWriteError
from src.domain.errors.concurrent_modification import ConflictError
from src.domain.errors.not_found import AttachmentNotFoundError, TaskNotFoundError
from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.exceptions import AdminDeskError
from src.domain.models.actor import Actor
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalMark,
    ApprovalRoute,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction, ApprovalRecord
from src.domain.models.audit_details import (
    ApprovalDecisionDetails,
    AssignmentDetails,
    AttachmentDetails,
    AuditDetails,
    CreateDetails,
    SnapshotDetails,
    StatusChangeDetails,
)
from src.domain.models.audit_log import AuditAction, AuditEntity, AuditLogEntry
from src.domain.models.task_payload import TaskPayload
from src.domain.services.access_gate import AccessGate, Assignment, Permission
from src.domain.services.approval_router import ApprovalRouter
from src.domain.services.audit_diff import synthesize_update_diff
from src.domain.services.task_snapshot import snapshot_task
from src.domain.services.task_state_machine import (
    DECISION_ACTIONS,
    TaskAction,
    actions_reaching,
)

# Fields a task edit may change; status moves only through actions
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "task_type",
        "applicant_name",
        "processor_name",
        "deadline",
        "approval_route",
        "notes",
        "payload",
    }
)


@dataclass(frozen=True)
class TaskDraft:
    """Input for creating a task.

    Attributes:
        task_type: Task type code.
        title: Short description.
        payload: Per-type form data as plain JSON.
        approval_route: Route; the task type's default when None.
        approver_id: Approver to assign up front.
        reviewer_id: Reviewer to assign up front.
    """

    task_type: str
    title: str
    payload: Mapping[str, Any] | None = None
    notes: str | None = None
    applicant_name: str | None = None
    deadline: datetime | None = None
    application_date: datetime | None = None
    approval_route: ApprovalRoute | None = None
    approver_id: str | None = None
    reviewer_id: str | None = None


@dataclass(frozen=True)
class AttachmentUpload:
    """Metadata of an uploaded file. The blob is already in external storage."""

    filename: str
    original_name: str
    mime_type: str
    size: int
    path: str
    url: str | None = None


@dataclass(frozen=True)
class TaskPage:
    """One page of tasks."""

    items: list[AdminTask]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True)
class TaskStats:
    """Task counters.

    Attributes:
        total: All tasks.
        by_status: Task count per status (every status present).
        overdue: PENDING/PROCESSING tasks past their deadline.
    """

    total: int
    by_status: dict[TaskStatus, int]
    overdue: int


@dataclass(frozen=True)
class BulkAssignOutcome:
    """Result of one task within a bulk assignment."""

    task_id: int
    success: bool
    task: AdminTask | None = None
    error: str | None = None


# my_tasks role filters
MY_TASK_ROLES = ("applicant", "processor", "approver", "any")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStoreService(LoggingMixin):
    """Owns admin task lifecycles: creation, edits, transitions, deletion.

    Attributes:
        _tasks: Task repository (commits task changes with audit entries).
        _gate: Access gate for plain capability checks.
        _router: Approval router for legality and action requirements.
        _audit: Audit logger used to compose entries.
    """

    def __init__(
        self,
        tasks: AdminTaskRepositoryProtocol,
        access_gate: AccessGate,
        router: ApprovalRouter,
        audit_logger: AuditLoggerService,
        config: WorkflowConfig = DEFAULT_WORKFLOW_CONFIG,
        metrics: WorkflowMetricsProtocol | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._tasks = tasks
        self._gate = access_gate
        self._router = router
        self._audit = audit_logger
        self._config = config
        self._metrics = metrics
        self._clock = clock
        self._init_logger(component="task_store")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_task(self, task_id: int) -> AdminTask:
        task = await self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @staticmethod
    def _check_version(task: AdminTask, expected_version: int | None, op: str) -> None:
        if expected_version is not None and expected_version != task.version:
            raise ConflictError(
                task_id=task.id,
                expected_version=expected_version,
                actual_version=task.version,
                operation=op,
            )

    def _require_not_absorbing(self, task: AdminTask, operation: str) -> None:
        if task.status.is_absorbing():
            raise InvalidTransitionError(
                action=operation,
                current_status=task.status,
                task_id=task.id,
                reason="task is closed",
            )

    async def next_task_no(self, now: datetime | None = None) -> str:
        """Allocate the next task number for the day of ``now``."""
        date_key = (now or self._clock()).strftime("%Y%m%d")
        sequence = await self._tasks.allocate_task_no_sequence(date_key)
        return f"{self._config.task_no_prefix}-{date_key}-{sequence:04d}"

    async def _commit(
        self,
        task: AdminTask,
        updated: AdminTask,
        action: AuditAction,
        details: AuditDetails,
        actor: Actor,
        log: Any,
    ) -> AdminTask:
        entry = self._audit.build_entry(
            actor,
            action,
            AuditEntity.ADMIN_TASK,
            str(task.id),
            details,
            created_at=updated.updated_at,
        )
        try:
            committed = await self._tasks.commit(updated, task.version, entry)
        except ConflictError as exc:
            if self._metrics is not None:
                self._metrics.record_conflict(action.value)
            log.warning(
                "task_write_conflict",
                expected_version=exc.expected_version,
                actual_version=exc.actual_version,
            )
            raise
        except AuditWriteError:
            log.error("task_write_rolled_back", reason="audit_write_failed")
            raise
        self._audit.committed(entry)
        return committed

    # ------------------------------------------------------------------
    # Create / edit / delete
    # ------------------------------------------------------------------

    async def create_task(self, actor: Actor, draft: TaskDraft) -> AdminTask:
        """File a new task in PENDING.

        The task type's default processor and approver fill the empty
        slots; an approver named on the draft wins.

        Raises:
            UnauthorizedError: If the actor lacks ``task:create``.
            ValueError: If the title is empty or too long.
        """
        log = self._log_operation(
            "create_task", actor_id=actor.id, task_type=draft.task_type
        )
        self._gate.require(actor, Permission.TASK_CREATE)

        now = self._clock()
        routing = self._router.config_for(draft.task_type)
        task = AdminTask(
            id=await self._tasks.next_task_id(),
            task_no=await self.next_task_no(now),
            task_type=draft.task_type,
            title=draft.title,
            applicant_id=actor.id,
            applicant_name=draft.applicant_name,
            approval_route=draft.approval_route or routing.default_route,
            payload=TaskPayload.from_json(draft.task_type, draft.payload),
            notes=draft.notes,
            deadline=draft.deadline,
            processor_id=routing.default_processor_id,
            approver_id=draft.approver_id or routing.default_approver_id,
            reviewer_id=draft.reviewer_id,
            application_date=draft.application_date or now,
            created_at=now,
            updated_at=now,
        )
        entry = self._audit.build_entry(
            actor,
            AuditAction.CREATE,
            AuditEntity.ADMIN_TASK,
            str(task.id),
            CreateDetails(
                task_no=task.task_no, task_type=task.task_type, title=task.title
            ),
            created_at=now,
        )
        try:
            created = await self._tasks.insert(task, entry)
        except AuditWriteError:
            log.error("task_create_rolled_back", reason="audit_write_failed")
            raise
        self._audit.committed(entry)
        if self._metrics is not None:
            self._metrics.record_transition(
                TaskAction.CREATE.value, "", TaskStatus.PENDING.value
            )
        log.info(
            "task_created",
            task_id=created.id,
            task_no=created.task_no,
            processor_id=created.processor_id,
            approver_id=created.approver_id,
        )
        return created

    async def update_task(
        self,
        actor: Actor,
        task_id: int,
        changes: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> AdminTask:
        """Edit task fields and journal a structured diff.

        Only EDITABLE_FIELDS may change. An edit that changes nothing
        writes nothing and returns the task as stored.

        Raises:
            ValueError: If ``changes`` names a field that is not editable.
            UnauthorizedError: Unless the actor is the applicant (with
                ``task:update``) or holds ``task:manage``.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not editable: {sorted(unknown)}")

        log = self._log_operation("update_task", actor_id=actor.id, task_id=task_id)
        task = await self._require_task(task_id)
        self._gate.require(actor, Permission.TASK_UPDATE)
        if not (
            self._gate.is_assigned(actor, task, Assignment.APPLICANT)
            or self._gate.capable(actor, Permission.TASK_MANAGE)
        ):
            raise UnauthorizedError(
                actor_id=actor.id,
                permission=Permission.TASK_UPDATE,
                reason=f"not the applicant of task {task.id}",
            )
        self._check_version(task, expected_version, "update")

        fields = dict(changes)
        task_type = fields.get("task_type", task.task_type)
        if "payload" in fields:
            fields["payload"] = TaskPayload.from_json(task_type, fields["payload"])
        elif "task_type" in fields and task.payload is not None:
            fields["payload"] = TaskPayload(task_type, task.payload.fields)
        if isinstance(fields.get("approval_route"), str):
            fields["approval_route"] = ApprovalRoute(fields["approval_route"])

        updated = task.evolve(updated_at=self._clock(), **fields)
        diff = synthesize_update_diff(task, updated)
        if diff.is_empty():
            log.debug("task_update_skipped", reason="no_changes")
            return task

        committed = await self._commit(task, updated, AuditAction.UPDATE, diff, actor, log)
        log.info(
            "task_updated",
            basic_info_changes=len(diff.basic_info_changes),
            payload_changes=len(diff.payload_changes),
            notes_changed=diff.notes_change is not None,
        )
        return committed

    async def delete_task(
        self,
        actor: Actor,
        task_id: int,
        expected_version: int | None = None,
    ) -> AuditLogEntry:
        """Hard-delete a task, keeping a full snapshot in its ``delete`` entry.

        Returns:
            The committed ``delete`` entry (its id is the restore handle).

        Raises:
            UnauthorizedError: If the actor lacks ``task:delete``.
        """
        log = self._log_operation("delete_task", actor_id=actor.id, task_id=task_id)
        task = await self._require_task(task_id)
        self._gate.require(actor, Permission.TASK_DELETE)
        self._check_version(task, expected_version, "delete")

        entry = self._audit.build_entry(
            actor,
            AuditAction.DELETE,
            AuditEntity.ADMIN_TASK,
            str(task.id),
            SnapshotDetails(
                snapshot=snapshot_task(task),
                summary={"taskNo": task.task_no, "title": task.title},
            ),
        )
        try:
            await self._tasks.delete(task.id, task.version, entry)
        except ConflictError:
            if self._metrics is not None:
                self._metrics.record_conflict(AuditAction.DELETE.value)
            log.warning("task_write_conflict")
            raise
        except AuditWriteError:
            log.error("task_delete_rolled_back", reason="audit_write_failed")
            raise
        self._audit.committed(entry)
        log.info("task_deleted", task_no=task.task_no, log_id=str(entry.id))
        return entry

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        actor: Actor,
        task_id: int,
        action: TaskAction,
        expected_version: int | None = None,
        comment: str | None = None,
        authorize: bool = True,
        **changes: Any,
    ) -> AdminTask:
        """Run one state machine action end to end."""
        log = self._log_operation(action.value, actor_id=actor.id, task_id=task_id)
        task = await self._require_task(task_id)
        if authorize:
            self._router.authorize(actor, task, action)
        target = self._router.check_action(task, action)
        self._check_version(task, expected_version, action.value)

        now = self._clock()
        fields: dict[str, Any] = dict(changes)
        fields["status"] = target

        if action is TaskAction.ASSIGN_PROCESSOR and task.received_at is None:
            fields["received_at"] = now
        elif action is TaskAction.COMPLETE_CHECK:
            fields["completed_at"] = now
        elif action is TaskAction.APPROVE:
            fields["approval_mark"] = self._router.approval_mark_for(task.approval_route)
        elif action is TaskAction.REJECT:
            fields["approval_mark"] = ApprovalMark.DASH
        elif action is TaskAction.RESUBMIT:
            fields["approval_mark"] = None

        if action in DECISION_ACTIONS:
            record = ApprovalRecord(
                id=await self._tasks.next_record_id(),
                task_id=task.id,
                action=ApprovalAction(action.value),
                approver_id=actor.id,
                comment=comment,
                created_at=now,
            )
            fields["approval_records"] = task.approval_records + (record,)
            if task.approver_id is None:
                fields["approver_id"] = actor.id

        updated = task.evolve(updated_at=now, **fields)
        audit_action, details = self._transition_details(action, task, updated, comment)
        committed = await self._commit(task, updated, audit_action, details, actor, log)

        if self._metrics is not None:
            self._metrics.record_transition(
                action.value, task.status.value, target.value
            )
        log.info(
            "transition_committed",
            old_status=task.status.value,
            new_status=target.value,
            version=committed.version,
        )
        return committed

    @staticmethod
    def _transition_details(
        action: TaskAction,
        before: AdminTask,
        after: AdminTask,
        comment: str | None,
    ) -> tuple[AuditAction, AuditDetails]:
        old, new = before.status.value, after.status.value
        if action is TaskAction.ASSIGN_PROCESSOR:
            return AuditAction.ASSIGN_PROCESSOR, AssignmentDetails(
                assignee_id=after.processor_id or "",
                assignee_role="processor",
                old_status=old,
                new_status=new,
            )
        if action in DECISION_ACTIONS:
            return AuditAction(action.value), ApprovalDecisionDetails(
                comment=comment,
                old_status=old,
                new_status=new,
                approval_mark=after.approval_mark.value if after.approval_mark else None,
            )
        return AuditAction.UPDATE_STATUS, StatusChangeDetails(
            old_status=old, new_status=new
        )

    async def assign_processor(
        self,
        actor: Actor,
        task_id: int,
        processor_id: str,
        processor_name: str | None = None,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Assign (or reassign) the processor; the task moves to PROCESSING."""
        return await self._transition(
            actor,
            task_id,
            TaskAction.ASSIGN_PROCESSOR,
            expected_version=expected_version,
            processor_id=processor_id,
            processor_name=processor_name,
        )

    async def submit_for_review(
        self, actor: Actor, task_id: int, expected_version: int | None = None
    ) -> AdminTask:
        return await self._transition(
            actor, task_id, TaskAction.SUBMIT_FOR_REVIEW, expected_version
        )

    async def mark_pending_documents(
        self,
        actor: Actor,
        task_id: int,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Park the task until the applicant supplies missing documents."""
        changes = {"notes": notes} if notes is not None else {}
        return await self._transition(
            actor,
            task_id,
            TaskAction.PENDING_DOCUMENTS,
            expected_version,
            **changes,
        )

    async def resume_processing(
        self, actor: Actor, task_id: int, expected_version: int | None = None
    ) -> AdminTask:
        return await self._transition(
            actor, task_id, TaskAction.RESUME_PROCESSING, expected_version
        )

    async def review_action(
        self,
        actor: Actor,
        task_id: int,
        action: ApprovalAction,
        comment: str | None = None,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Record an approver decision: approve, reject or request revision.

        Appends exactly one ApprovalRecord and sets the approval mark.
        """
        return await self._transition(
            actor,
            task_id,
            TaskAction(action.value),
            expected_version,
            comment=comment,
        )

    async def resubmit(
        self, actor: Actor, task_id: int, expected_version: int | None = None
    ) -> AdminTask:
        """Send a rejected or revision-requested task back to PENDING."""
        return await self._transition(
            actor, task_id, TaskAction.RESUBMIT, expected_version
        )

    async def complete_check(
        self, actor: Actor, task_id: int, expected_version: int | None = None
    ) -> AdminTask:
        return await self._transition(
            actor, task_id, TaskAction.COMPLETE_CHECK, expected_version
        )

    async def review_check(
        self, actor: Actor, task_id: int, expected_version: int | None = None
    ) -> AdminTask:
        return await self._transition(
            actor, task_id, TaskAction.REVIEW_CHECK, expected_version
        )

    async def update_status(
        self,
        actor: Actor,
        task_id: int,
        new_status: TaskStatus,
        notes: str | None = None,
        comment: str | None = None,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Move a task to ``new_status`` through the action that leads there.

        Moving PENDING -> PROCESSING is the assigned processor receiving the
        task; with no processor yet, the actor takes the task on.

        Raises:
            InvalidTransitionError: If no legal action leads to ``new_status``.
        """
        task = await self._require_task(task_id)
        candidates = [
            action
            for action in actions_reaching(task.status, new_status)
            if action in self._router.state_actions(task)
        ]
        if not candidates:
            raise InvalidTransitionError(
                action="update_status",
                current_status=task.status,
                allowed_actions=sorted(
                    self._router.state_actions(task), key=lambda a: a.value
                ),
                task_id=task.id,
                reason=f"no action leads to {new_status.value}",
            )
        action = candidates[0]

        changes: dict[str, Any] = {}
        if notes is not None:
            changes["notes"] = notes
        authorize = True
        if action is TaskAction.ASSIGN_PROCESSOR:
            changes["processor_id"] = task.processor_id or actor.id
            receiving = changes["processor_id"] == actor.id and self._gate.capable(
                actor, Permission.TASK_PROCESS
            )
            if not receiving:
                self._router.authorize(actor, task, action)
            authorize = False

        return await self._transition(
            actor,
            task_id,
            action,
            expected_version if expected_version is not None else task.version,
            comment=comment if action in DECISION_ACTIONS else None,
            authorize=authorize,
            **changes,
        )

    async def bulk_assign_processor(
        self,
        actor: Actor,
        task_ids: Sequence[int],
        processor_id: str,
        processor_name: str | None = None,
    ) -> list[BulkAssignOutcome]:
        """Assign one processor to many tasks, each as its own transition.

        A failure on one task does not affect the others.
        """
        log = self._log_operation(
            "bulk_assign_processor", actor_id=actor.id, count=len(task_ids)
        )
        outcomes: list[BulkAssignOutcome] = []
        for task_id in task_ids:
            try:
                task = await self.assign_processor(
                    actor, task_id, processor_id, processor_name
                )
            except AdminDeskError as exc:
                outcomes.append(
                    BulkAssignOutcome(task_id=task_id, success=False, error=str(exc))
                )
            else:
                outcomes.append(BulkAssignOutcome(task_id=task_id, success=True, task=task))
        log.info(
            "bulk_assign_completed",
            succeeded=sum(1 for o in outcomes if o.success),
            failed=sum(1 for o in outcomes if not o.success),
        )
        return outcomes

    async def _assign_slot(
        self,
        actor: Actor,
        task_id: int,
        slot: Assignment,
        user_id: str,
        expected_version: int | None,
    ) -> AdminTask:
        audit_action = {
            Assignment.APPROVER: AuditAction.ASSIGN_APPROVER,
            Assignment.REVIEWER: AuditAction.ASSIGN_REVIEWER,
        }[slot]
        log = self._log_operation(
            audit_action.value, actor_id=actor.id, task_id=task_id
        )
        task = await self._require_task(task_id)
        self._gate.require(actor, Permission.TASK_ASSIGN)
        self._require_not_absorbing(task, audit_action.value)
        self._check_version(task, expected_version, audit_action.value)

        updated = task.evolve(updated_at=self._clock(), **{f"{slot.value}_id": user_id})
        details = AssignmentDetails(assignee_id=user_id, assignee_role=slot.value)
        committed = await self._commit(task, updated, audit_action, details, actor, log)
        log.info("assignment_committed", assignee_id=user_id)
        return committed

    async def assign_approver(
        self,
        actor: Actor,
        task_id: int,
        approver_id: str,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Assign the approver. No status change."""
        return await self._assign_slot(
            actor, task_id, Assignment.APPROVER, approver_id, expected_version
        )

    async def assign_reviewer(
        self,
        actor: Actor,
        task_id: int,
        reviewer_id: str,
        expected_version: int | None = None,
    ) -> AdminTask:
        """Assign the reviewer. No status change."""
        return await self._assign_slot(
            actor, task_id, Assignment.REVIEWER, reviewer_id, expected_version
        )

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def _require_attachment_access(self, actor: Actor, task: AdminTask) -> None:
        self._gate.require(actor, Permission.TASK_UPDATE)
        if not (
            task.involves(actor.id) or self._gate.capable(actor, Permission.TASK_MANAGE)
        ):
            raise UnauthorizedError(
                actor_id=actor.id,
                permission=Permission.TASK_UPDATE,
                reason=f"not assigned to task {task.id}",
            )

    async def add_attachment(
        self, actor: Actor, task_id: int, upload: AttachmentUpload
    ) -> TaskAttachment:
        """Attach uploaded file metadata to a task."""
        log = self._log_operation("add_attachment", actor_id=actor.id, task_id=task_id)
        task = await self._require_task(task_id)
        self._require_attachment_access(actor, task)

        now = self._clock()
        attachment = TaskAttachment(
            id=await self._tasks.next_attachment_id(),
            task_id=task.id,
            filename=upload.filename,
            original_name=upload.original_name,
            mime_type=upload.mime_type,
            size=upload.size,
            path=upload.path,
            url=upload.url,
            uploaded_by=actor.id,
            created_at=now,
        )
        updated = task.evolve(
            updated_at=now, attachments=task.attachments + (attachment,)
        )
        details = AttachmentDetails(
            attachment_id=attachment.id, filename=attachment.filename, task_id=task.id
        )
        await self._commit(
            task, updated, AuditAction.ATTACHMENT_UPLOAD, details, actor, log
        )
        log.info("attachment_added", attachment_id=attachment.id)
        return attachment

    async def remove_attachment(
        self, actor: Actor, task_id: int, attachment_id: int
    ) -> AdminTask:
        """Detach a file from a task. The blob itself is not touched."""
        log = self._log_operation(
            "remove_attachment", actor_id=actor.id, task_id=task_id
        )
        task = await self._require_task(task_id)
        self._require_attachment_access(actor, task)

        attachment = next((a for a in task.attachments if a.id == attachment_id), None)
        if attachment is None:
            raise AttachmentNotFoundError(attachment_id)
        updated = task.evolve(
            updated_at=self._clock(),
            attachments=tuple(a for a in task.attachments if a.id != attachment_id),
        )
        details = AttachmentDetails(
            attachment_id=attachment.id, filename=attachment.filename, task_id=task.id
        )
        committed = await self._commit(
            task, updated, AuditAction.ATTACHMENT_DELETE, details, actor, log
        )
        log.info("attachment_removed", attachment_id=attachment_id)
        return committed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_task(self, actor: Actor, task_id: int) -> AdminTask:
        """Return a task the actor may see.

        Raises:
            TaskNotFoundError: If the task does not exist.
            UnauthorizedError: If the actor may not view it.
        """
        task = await self._require_task(task_id)
        if not self._gate.can_view_task(actor, task):
            raise UnauthorizedError(
                actor_id=actor.id,
                permission=Permission.TASK_READ,
                reason=f"not involved in task {task.id}",
            )
        return task

    async def list_tasks(
        self,
        actor: Actor,
        filters: TaskListFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> TaskPage:
        """List tasks. Without ``task:manage`` only the actor's own tasks are seen."""
        self._gate.require(actor, Permission.TASK_READ)
        filters = filters or TaskListFilters()
        if not self._gate.capable(actor, Permission.TASK_MANAGE):
            filters = replace(filters, involves_user_id=actor.id)
        page = max(page, 1)
        size = self._config.clamp_page_size(page_size)
        items, total = await self._tasks.list(
            filters, limit=size, offset=(page - 1) * size
        )
        return TaskPage(items=items, total=total, page=page, page_size=size)

    async def my_tasks(
        self,
        actor: Actor,
        role: str = "any",
        status: TaskStatus | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> TaskPage:
        """List tasks where the actor is applicant, processor, approver or any."""
        if role not in MY_TASK_ROLES:
            raise ValueError(f"role must be one of {MY_TASK_ROLES}, got {role!r}")
        self._gate.require(actor, Permission.TASK_READ)
        filters = TaskListFilters(
            status=status,
            applicant_id=actor.id if role == "applicant" else None,
            processor_id=actor.id if role == "processor" else None,
            approver_id=actor.id if role == "approver" else None,
            involves_user_id=actor.id if role == "any" else None,
        )
        size = self._config.clamp_page_size(page_size)
        page = max(page, 1)
        items, total = await self._tasks.list(
            filters, limit=size, offset=(page - 1) * size
        )
        return TaskPage(items=items, total=total, page=page, page_size=size)

    async def task_stats(self, actor: Actor, now: datetime | None = None) -> TaskStats:
        """Count tasks per status and overdue open tasks."""
        self._gate.require(actor, Permission.TASK_READ)
        counts = await self._tasks.count_by_status()
        by_status = {status: counts.get(status, 0) for status in TaskStatus}
        return TaskStats(
            total=sum(by_status.values()),
            by_status=by_status,
            overdue=await self._tasks.count_overdue(now or self._clock()),
        )

    async def legal_actions(self, actor: Actor, task_id: int) -> list[TaskAction]:
        """Actions the actor could take on the task right now, sorted by name."""
        task = await self.get_task(actor, task_id)
        return sorted(self._router.legal_actions(task, actor), key=lambda a: a.value)
