"""Structured logging and per-request context for the admin desk."""

from src.infrastructure.observability.correlation import (
    RequestContextTokens,
    bind_request_context,
    correlation_id_processor,
    generate_correlation_id,
    get_actor_id,
    get_correlation_id,
    reset_request_context,
    set_correlation_id,
)
from src.infrastructure.observability.logging import configure_structlog

__all__: list[str] = [
    "RequestContextTokens",
    "bind_request_context",
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_actor_id",
    "get_correlation_id",
    "reset_request_context",
    "set_correlation_id",
]
