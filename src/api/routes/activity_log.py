"""Activity log API routes.

Read access to the audit journal plus the restore endpoint. Listing and
stats need ``system:logs``; restore needs ``audit:restore``.
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from src.api.auth.actor_auth import get_actor
from src.api.dependencies.admin_desk import (
    get_audit_logger_service,
    get_restore_engine_service,
)
from src.api.models.activity_log import (
    ActivityLogEntryResponse,
    ActivityLogListResponse,
    ActivityStatsResponse,
    CountEntry,
    RestoreResponse,
)
from src.api.models.admin_task import ErrorResponse
from src.api.routes.errors import domain_error_to_http
from src.application.services.audit_logger_service import (
    ActivityLogQuery,
    AuditLoggerService,
)
from src.application.services.restore_service import RestoreEngine
from src.domain.exceptions import AdminDeskError
from src.domain.models.actor import Actor
from src.domain.models.audit_log import AuditAction, AuditEntity, AuditLogEntry

router = APIRouter(prefix="/v1/activity-logs", tags=["activity-logs"])

ActorDep = Annotated[Actor, Depends(get_actor)]
AuditLoggerDep = Annotated[AuditLoggerService, Depends(get_audit_logger_service)]
RestoreEngineDep = Annotated[RestoreEngine, Depends(get_restore_engine_service)]


def _entry_to_response(
    entry: AuditLogEntry, entity_exists: bool | None = None
) -> ActivityLogEntryResponse:
    return ActivityLogEntryResponse(
        id=str(entry.id),
        user_id=entry.user_id,
        action=entry.action,
        entity=entry.entity,
        entity_id=entry.entity_id,
        details=entry.details_dict(),
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        created_at=entry.created_at,
        restorable=entry.action == AuditAction.DELETE.value and entry.has_snapshot(),
        entity_exists=entity_exists,
    )


@router.get(
    "",
    response_model=ActivityLogListResponse,
    responses={403: {"model": ErrorResponse, "description": "Needs system:logs"}},
)
async def list_activity_logs(
    request: Request,
    actor: ActorDep,
    audit_logger: AuditLoggerDep,
    user_id: str | None = None,
    action: str | None = None,
    entity: str | None = None,
    entity_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
    resolve: Annotated[
        bool, Query(description="Check whether referenced tasks still exist")
    ] = False,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
) -> ActivityLogListResponse:
    """List audit entries, newest first. ``end_date`` includes the whole day."""
    query = ActivityLogQuery(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    try:
        result = await audit_logger.activity_logs(
            actor, query, page=page, page_size=page_size
        )
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None

    items = []
    for entry in result.items:
        exists = None
        if resolve and entry.entity == AuditEntity.ADMIN_TASK:
            exists = await audit_logger.resolve_entity(entry) is not None
        items.append(_entry_to_response(entry, exists))
    return ActivityLogListResponse(
        items=items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/stats", response_model=ActivityStatsResponse)
async def get_activity_stats(
    request: Request, actor: ActorDep, audit_logger: AuditLoggerDep
) -> ActivityStatsResponse:
    """Entry counts for today, this week and this month, plus top actions and entities."""
    try:
        stats = await audit_logger.activity_stats(actor)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return ActivityStatsResponse(
        total_today=stats.total_today,
        total_this_week=stats.total_this_week,
        total_this_month=stats.total_this_month,
        by_action=[CountEntry(name=n, count=c) for n, c in stats.by_action],
        by_entity=[CountEntry(name=n, count=c) for n, c in stats.by_entity],
    )


@router.post(
    "/{log_id}/restore",
    response_model=RestoreResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Needs audit:restore"},
        404: {"model": ErrorResponse, "description": "Log entry not found"},
        422: {"model": ErrorResponse, "description": "Entry cannot be restored"},
    },
)
async def restore_from_activity_log(
    log_id: UUID,
    request: Request,
    actor: ActorDep,
    restore_engine: RestoreEngineDep,
) -> RestoreResponse:
    """Recreate the entity deleted by a ``delete`` entry under a new id."""
    try:
        result = await restore_engine.restore(actor, log_id)
    except AdminDeskError as e:
        raise domain_error_to_http(e, request) from None
    return RestoreResponse(
        success=result.success,
        message=result.message,
        restored_id=result.restored_id,
        restore_log_id=str(result.restore_log_id) if result.restore_log_id else None,
    )
