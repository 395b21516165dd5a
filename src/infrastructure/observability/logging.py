"""structlog setup for the admin desk.

ENVIRONMENT picks the renderer (JSON lines in production, colored console
elsewhere) unless LOG_FORMAT forces one of "json" or "console". LOG_LEVEL
sets the threshold for both structlog and the standard library loggers
used by uvicorn and SQLAlchemy.

A production line looks like:
    {"event": "transition_committed", "level": "info",
     "timestamp": "2026-03-04T10:30:00.000000Z", "service": "TaskStoreService",
     "correlation_id": "...", "actor_id": "alice", "task_id": 7}
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from src.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_FORMAT_ENV = "LOG_FORMAT"

# Chatty libraries kept at WARNING unless LOG_LEVEL is DEBUG
_QUIET_LOGGERS = ("sqlalchemy.engine", "asyncpg", "uvicorn.access")


def resolve_log_level(default: str = "INFO") -> int:
    name = os.getenv(LOG_LEVEL_ENV, default).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def wants_json(environment: str) -> bool:
    forced = os.getenv(LOG_FORMAT_ENV, "").lower()
    if forced in ("json", "console"):
        return forced == "json"
    return environment == "production"


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog and the stdlib root logger once at startup."""
    level = resolve_log_level()
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        cast(Processor, correlation_id_processor),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if wants_json(environment):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
