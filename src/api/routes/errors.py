"""Domain error to HTTP error mapping for admin desk routes.

Status codes:
- UnauthorizedError -> 403
- NotFoundError (task, attachment, audit entry) -> 404
- ConflictError, DuplicateTaskNoError -> 409 (re-read and retry)
- InvalidTransitionError, NotRestorableError -> 422
- AuditWriteError -> 503 (nothing was changed; safe to retry later)
"""

import structlog
from fastapi import HTTPException, Request, status

from src.domain.errors.access import UnauthorizedError
from src.domain.errors.audit import AuditWriteError, DuplicateTaskNoError
from src.domain.errors.concurrent_modification import ConflictError
from src.domain.errors.not_found import NotFoundError
from src.domain.errors.restore import NotRestorableError
from src.domain.errors.state_transition import InvalidTransitionError
from src.domain.exceptions import AdminDeskError

logger = structlog.get_logger(__name__)


def domain_error_to_http(exc: AdminDeskError, request: Request) -> HTTPException:
    """Build the HTTPException for a domain error raised by a service."""
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "title": "Concurrent Modification",
                "detail": str(exc),
                "instance": str(request.url),
                "expected_version": exc.expected_version,
                "actual_version": exc.actual_version,
            },
        )
    if isinstance(exc, DuplicateTaskNoError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "title": "Invalid Transition",
                "detail": str(exc),
                "instance": str(request.url),
                "current_status": exc.current_status.value,
                "allowed_actions": [a.value for a in exc.allowed_actions],
            },
        )
    if isinstance(exc, NotRestorableError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    if isinstance(exc, AuditWriteError):
        logger.error("audit_write_failed", path=request.url.path, error=str(exc))
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit log unavailable; no change was made",
        )
    logger.error(
        "unmapped_domain_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    )


def validation_error_to_http(exc: ValueError) -> HTTPException:
    """Build the HTTPException for input rejected by a service or model."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
    )
