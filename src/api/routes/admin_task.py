"""Admin task API routes.

Endpoints for filing, editing, routing and deciding admin tasks. Every
mutating call goes through the TaskStoreService, which authorizes the
caller, checks the state machine and commits the change with its audit
entry. Domain errors are mapped to HTTP statuses in routes.errors.

Optimistic concurrency: mutating bodies accept ``expected_version``. A
stale version answers 409 and the client should re-read the task.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.api.auth.actor_auth import get_actor
from src.api.dependencies.admin_desk import get_task_store_service
from src.api.models.admin_task import (
    AdminTaskListResponse,
    AdminTaskResponse,
    AdminTaskStatsResponse,
    ApprovalRecordResponse,
    ApprovalRequest,
    AssignProcessorRequest,
    AssignUserRequest,
    AttachmentRequest,
    AttachmentResponse,
    BulkAssignProcessorRequest,
    BulkAssignProcessorResponse,
    BulkAssignResult,
    CreateAdminTaskRequest,
    DeleteAdminTaskResponse,
    ErrorResponse,
    LegalActionsResponse,
    StatusUpdateRequest,
    TaskStatusEnum,
    UpdateAdminTaskRequest,
)
from src.api.routes.errors import domain_error_to_http, validation_error_to_http
from src.application.ports.admin_task_repository import TaskListFilters, TaskSortField
from src.application.services.task_store_service import (
    AttachmentUpload,
    TaskDraft,
    TaskPage,
    TaskStoreService,
)
from src.domain.exceptions import AdminDeskError
from src.domain.models.actor import Actor
from src.domain.models.admin_task import (
    AdminTask,
    ApprovalRoute,
    TaskAttachment,
    TaskStatus,
)
from src.domain.models.approval_record import ApprovalAction

router = APIRouter(prefix="/v1/admin-tasks", tags=["admin-tasks"])

ActorDep = Annotated[Actor, Depends(get_actor)]
TaskStoreDep = Annotated[TaskStoreService, Depends(get_task_store_service)]

_ERROR_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Not permitted"},
    404: {"model": ErrorResponse, "description": "Task not found"},
    409: {"description": "Task changed since it was read"},
    422: {"description": "Action not legal from the current status"},
}


def _attachment_to_response(attachment: TaskAttachment) -> AttachmentResponse:
    return AttachmentResponse(
        id=attachment.id,
        filename=attachment.filename,
        original_name=attachment.original_name,
        mime_type=attachment.mime_type,
        size=attachment.size,
        path=attachment.path,
        url=attachment.url,
        uploaded_by=attachment.uploaded_by,
        created_at=attachment.created_at,
    )


def _task_to_response(task: AdminTask) -> AdminTaskResponse:
    return AdminTaskResponse(
        id=task.id,
        task_no=task.task_no,
        task_type=task.task_type,
        title=task.title,
        status=TaskStatusEnum(task.status.value),
        applicant_id=task.applicant_id,
        applicant_name=task.applicant_name,
        processor_id=task.processor_id,
        processor_name=task.processor_name,
        approver_id=task.approver_id,
        reviewer_id=task.reviewer_id,
        approval_route=task.approval_route.value,
        approval_mark=task.approval_mark.value if task.approval_mark else None,
        payload=task.payload_fields(),
        notes=task.notes,
        deadline=task.deadline,
        application_date=task.application_date,
        received_at=task.received_at,
        completed_at=task.completed_at,
        attachments=[_attachment_to_response(a) for a in task.attachments],
        approval_records=[
            ApprovalRecordResponse(
                id=record.id,
                action=record.action.value,
                approver_id=record.approver_id,
                comment=record.comment,
                created_at=record.created_at,
            )
            for record in task.approval_records
        ],
        created_at=task.created_at,
        updated_at=task.updated_at,
        version=task.version,
    )


def _page_to_response(page: TaskPage) -> AdminTaskListResponse:
    return AdminTaskListResponse(
        items=[_task_to_response(t) for t in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
    )


@router.post(
    "",
    response_model=AdminTaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: _ERROR_RESPONSES[403], 422: {"description": "Invalid task"}},
)
async def create_admin_task(
    request: Request,
    request_data: CreateAdminTaskRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """File a new task. It starts in PENDING with a fresh task number."""
    draft = TaskDraft(
        task_type=request_data.task_type,
        title=request_data.title,
        payload=request_data.payload,
        notes=request_data.notes,
        applicant_name=request_data.applicant_name,
        deadline=request_data.deadline,
        application_date=request_data.application_date,
        approval_route=(
            ApprovalRoute(request_data.approval_route.value)
            if request_data.approval_route
            else None
        ),
        approver_id=request_data.approver_id,
        reviewer_id=request_data.reviewer_id,
    )
    try:
        task = await store.create_task(actor, draft)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    except ValueError as e:
        raise validation_error_to_http(e) from None
    return _task_to_response(task)


@router.get("", response_model=AdminTaskListResponse, responses={403: _ERROR_RESPONSES[403]})
async def list_admin_tasks(
    request: Request,
    actor: ActorDep,
    store: TaskStoreDep,
    status_filter: Annotated[TaskStatusEnum | None, Query(alias="status")] = None,
    task_type: str | None = None,
    applicant_id: str | None = None,
    processor_id: str | None = None,
    approver_id: str | None = None,
    search: str | None = None,
    sort_by: TaskSortField = TaskSortField.CREATED_AT,
    descending: bool = True,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
) -> AdminTaskListResponse:
    """List tasks. Callers without task:manage only see tasks they are part of."""
    filters = TaskListFilters(
        status=TaskStatus(status_filter.value) if status_filter else None,
        task_type=task_type,
        applicant_id=applicant_id,
        processor_id=processor_id,
        approver_id=approver_id,
        search=search,
        sort_by=sort_by,
        descending=descending,
    )
    try:
        result = await store.list_tasks(actor, filters, page=page, page_size=page_size)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _page_to_response(result)


@router.get("/stats", response_model=AdminTaskStatsResponse)
async def get_admin_task_stats(
    request: Request, actor: ActorDep, store: TaskStoreDep
) -> AdminTaskStatsResponse:
    """Count tasks per status and open tasks past their deadline."""
    try:
        stats = await store.task_stats(actor)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return AdminTaskStatsResponse(
        total=stats.total,
        by_status={s.value: count for s, count in stats.by_status.items()},
        overdue=stats.overdue,
    )


@router.get("/mine", response_model=AdminTaskListResponse)
async def list_my_admin_tasks(
    request: Request,
    actor: ActorDep,
    store: TaskStoreDep,
    role: Annotated[str, Query(pattern="^(applicant|processor|approver|any)$")] = "any",
    status_filter: Annotated[TaskStatusEnum | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
) -> AdminTaskListResponse:
    """List the caller's tasks by the part they play in them."""
    try:
        result = await store.my_tasks(
            actor,
            role=role,
            status=TaskStatus(status_filter.value) if status_filter else None,
            page=page,
            page_size=page_size,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    except ValueError as e:
        raise validation_error_to_http(e) from None
    return _page_to_response(result)


@router.post("/bulk-processor", response_model=BulkAssignProcessorResponse)
async def bulk_assign_processor(
    request_data: BulkAssignProcessorRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> BulkAssignProcessorResponse:
    """Assign one processor to many tasks. Each task succeeds or fails on its own."""
    outcomes = await store.bulk_assign_processor(
        actor,
        request_data.task_ids,
        request_data.processor_id,
        request_data.processor_name,
    )
    results = [
        BulkAssignResult(
            task_id=o.task_id,
            success=o.success,
            error=o.error,
            task=_task_to_response(o.task) if o.task is not None else None,
        )
        for o in outcomes
    ]
    succeeded = sum(1 for r in results if r.success)
    return BulkAssignProcessorResponse(
        results=results, succeeded=succeeded, failed=len(results) - succeeded
    )


@router.get(
    "/{task_id}",
    response_model=AdminTaskResponse,
    responses={403: _ERROR_RESPONSES[403], 404: _ERROR_RESPONSES[404]},
)
async def get_admin_task(
    task_id: int, request: Request, actor: ActorDep, store: TaskStoreDep
) -> AdminTaskResponse:
    """Return one task with its attachments and approval records."""
    try:
        task = await store.get_task(actor, task_id)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.patch("/{task_id}", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def update_admin_task(
    task_id: int,
    request: Request,
    request_data: UpdateAdminTaskRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Edit task fields. The change is journalled as a field-level diff."""
    changes = request_data.model_dump(
        exclude_unset=True, exclude={"expected_version"}, mode="python"
    )
    if "approval_route" in changes and changes["approval_route"] is not None:
        changes["approval_route"] = ApprovalRoute(changes["approval_route"].value)
    try:
        task = await store.update_task(
            actor, task_id, changes, expected_version=request_data.expected_version
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    except ValueError as e:
        raise validation_error_to_http(e) from None
    return _task_to_response(task)


@router.delete(
    "/{task_id}", response_model=DeleteAdminTaskResponse, responses=_ERROR_RESPONSES
)
async def delete_admin_task(
    task_id: int,
    request: Request,
    actor: ActorDep,
    store: TaskStoreDep,
    expected_version: Annotated[int | None, Query(ge=1)] = None,
) -> DeleteAdminTaskResponse:
    """Hard-delete a task. The returned log id can be used to restore it."""
    try:
        entry = await store.delete_task(actor, task_id, expected_version)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return DeleteAdminTaskResponse(deleted=True, log_id=str(entry.id))


@router.post("/{task_id}/approval", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def decide_admin_task(
    task_id: int,
    request: Request,
    request_data: ApprovalRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Record an approver decision: approve, reject or request revision."""
    try:
        task = await store.review_action(
            actor,
            task_id,
            ApprovalAction(request_data.action.value),
            comment=request_data.comment,
            expected_version=request_data.expected_version,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.post("/{task_id}/status", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def update_admin_task_status(
    task_id: int,
    request: Request,
    request_data: StatusUpdateRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Move a task to a new status through the action that leads there."""
    try:
        task = await store.update_status(
            actor,
            task_id,
            TaskStatus(request_data.status.value),
            notes=request_data.notes,
            comment=request_data.comment,
            expected_version=request_data.expected_version,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.post("/{task_id}/processor", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def assign_admin_task_processor(
    task_id: int,
    request: Request,
    request_data: AssignProcessorRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Assign (or reassign) the processor. The task moves to PROCESSING."""
    try:
        task = await store.assign_processor(
            actor,
            task_id,
            request_data.processor_id,
            request_data.processor_name,
            expected_version=request_data.expected_version,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.post("/{task_id}/approver", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def assign_admin_task_approver(
    task_id: int,
    request: Request,
    request_data: AssignUserRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Assign the approver."""
    try:
        task = await store.assign_approver(
            actor,
            task_id,
            request_data.user_id,
            expected_version=request_data.expected_version,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.post("/{task_id}/reviewer", response_model=AdminTaskResponse, responses=_ERROR_RESPONSES)
async def assign_admin_task_reviewer(
    task_id: int,
    request: Request,
    request_data: AssignUserRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Assign the reviewer."""
    try:
        task = await store.assign_reviewer(
            actor,
            task_id,
            request_data.user_id,
            expected_version=request_data.expected_version,
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)


@router.get("/{task_id}/legal-actions", response_model=LegalActionsResponse, responses=_ERROR_RESPONSES)
async def get_admin_task_legal_actions(
    task_id: int, request: Request, actor: ActorDep, store: TaskStoreDep
) -> LegalActionsResponse:
    """List the actions the caller could take on the task right now."""
    try:
        task = await store.get_task(actor, task_id)
        actions = await store.legal_actions(actor, task_id)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return LegalActionsResponse(
        task_id=task.id,
        status=TaskStatusEnum(task.status.value),
        actions=[a.value for a in actions],
    )


@router.post(
    "/{task_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def add_admin_task_attachment(
    task_id: int,
    request: Request,
    request_data: AttachmentRequest,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AttachmentResponse:
    """Attach metadata of a file already uploaded to storage."""
    upload = AttachmentUpload(
        filename=request_data.filename,
        original_name=request_data.original_name,
        mime_type=request_data.mime_type,
        size=request_data.size,
        path=request_data.path,
        url=request_data.url,
    )
    try:
        attachment = await store.add_attachment(actor, task_id, upload)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _attachment_to_response(attachment)


@router.delete(
    "/{task_id}/attachments/{attachment_id}",
    response_model=AdminTaskResponse,
    responses=_ERROR_RESPONSES,
)
async def remove_admin_task_attachment(
    task_id: int,
    attachment_id: int,
    request: Request,
    actor: ActorDep,
    store: TaskStoreDep,
) -> AdminTaskResponse:
    """Detach a file from the task."""
    try:
        task = await store.remove_attachment(actor, task_id, attachment_id)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return _task_to_response(task)
