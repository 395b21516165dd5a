"""Startup and shutdown hooks for the Admin Desk API.

Startup:
1. Configure structured logging from ENVIRONMENT
2. Resolve the repository pair (PostgreSQL when DATABASE_URL is set)
3. Create the schema when ADMIN_DESK_CREATE_SCHEMA is set

Shutdown disposes of the database engine.

Usage in FastAPI:
    app = FastAPI(lifespan=lifespan)
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from structlog import get_logger

from src.bootstrap.admin_desk import get_admin_task_repository
from src.infrastructure.observability import configure_structlog

ENVIRONMENT_VAR = "ENVIRONMENT"
DEFAULT_ENVIRONMENT = "development"

logger = get_logger()


def configure_logging() -> None:
    """Configure structlog for the current environment."""
    environment = os.getenv(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)
    configure_structlog(environment=environment)
    logger.bind(component="startup").info(
        "structured_logging_configured", environment=environment
    )


async def prepare_storage() -> None:
    """Wire the repositories and, for PostgreSQL, ensure the schema."""
    log = logger.bind(component="startup")
    repository = get_admin_task_repository()
    if not os.environ.get("DATABASE_URL"):
        log.info("storage_ready", repository=type(repository).__name__)
        return

    from src.bootstrap.database import ensure_schema

    created = await ensure_schema()
    log.info(
        "storage_ready",
        repository=type(repository).__name__,
        schema_created=created,
    )


async def shutdown_storage() -> None:
    """Release database connections if PostgreSQL was used."""
    if not os.environ.get("DATABASE_URL"):
        return

    from src.bootstrap.database import close_database_engine

    await close_database_engine()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup hooks, serve, then shut down."""
    await prepare_storage()
    yield
    await shutdown_storage()
