"""Request logging middleware.

Binds the correlation id (X-Correlation-ID, generated when absent) and the
acting user (X-Actor-Id) into the request context, logs one
``request_completed`` line per request, and echoes the correlation id back.

    app.add_middleware(LoggingMiddleware)
"""

import time
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.infrastructure.observability.correlation import (
    bind_request_context,
    generate_correlation_id,
    reset_request_context,
)

CORRELATION_HEADER = "X-Correlation-ID"
ACTOR_HEADER = "X-Actor-Id"

logger = structlog.get_logger()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Per-request context binding and access logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        tokens = bind_request_context(correlation_id, request.headers.get(ACTOR_HEADER))
        log = logger.bind(
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                log.exception(
                    "request_failed",
                    duration_ms=_elapsed_ms(started),
                    error_type=type(exc).__name__,
                )
                raise

            status = response.status_code
            level = "error" if status >= 500 else "warning" if status >= 400 else "info"
            getattr(log, level)(
                "request_completed", status_code=status, duration_ms=_elapsed_ms(started)
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            reset_request_context(tokens)
