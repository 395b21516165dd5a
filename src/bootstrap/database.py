"""Database bootstrap for the PostgreSQL repositories.

The admin task and activity log repositories share one engine and one
session factory, so a task write and its audit entry run in the same
transaction.

Environment Variables:
- DATABASE_URL: PostgreSQL connection string. Plain ``postgresql://`` and
  ``postgres://`` URLs are rewritten to the asyncpg driver.
- DATABASE_POOL_SIZE / DATABASE_MAX_OVERFLOW: connection pool sizing.
- SQLALCHEMY_ECHO: log every statement when truthy.
- ADMIN_DESK_CREATE_SCHEMA: create tables and sequences at startup when truthy.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

from src.infrastructure.adapters.persistence.schema import create_schema

logger = get_logger()

ASYNC_SCHEME = "postgresql+asyncpg://"
_TRUTHY = ("1", "true", "yes")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def normalize_database_url(url: str) -> str:
    """Point a PostgreSQL URL at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return ASYNC_SCHEME + url[len(prefix) :]
    if url.startswith(ASYNC_SCHEME):
        return url
    return ASYNC_SCHEME + url


def mask_database_url(url: str) -> str:
    """Hide the password of a connection URL for logging."""
    if "@" not in url:
        return url
    credentials, _, host = url.rpartition("@")
    scheme, sep, userinfo = credentials.rpartition("//")
    if ":" not in userinfo:
        return url
    user = userinfo.split(":", 1)[0]
    return f"{scheme}{sep}{user}:***@{host}"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("invalid_database_setting", name=name, value=raw, default=default)
        return default


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the PostgreSQL repositories.

    Attributes:
        url: asyncpg connection URL.
        pool_size: Connections kept open in the pool.
        max_overflow: Extra connections allowed under load.
        echo: Log every SQL statement.
        create_schema: Create tables and sequences at startup.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False
    create_schema: bool = False

    def __post_init__(self) -> None:
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be positive, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow must be >= 0, got {self.max_overflow}")

    @classmethod
    def from_environment(cls) -> DatabaseSettings:
        """Read settings from the environment.

        Raises:
            ValueError: If DATABASE_URL is not set.
        """
        url = os.environ.get("DATABASE_URL")
        if not url:
            raise ValueError(
                "DATABASE_URL environment variable not set. "
                "Required for PostgreSQL repositories."
            )
        return cls(
            url=normalize_database_url(url),
            pool_size=_env_int("DATABASE_POOL_SIZE", 5),
            max_overflow=_env_int("DATABASE_MAX_OVERFLOW", 10),
            echo=os.environ.get("SQLALCHEMY_ECHO", "").lower() in _TRUTHY,
            create_schema=os.environ.get("ADMIN_DESK_CREATE_SCHEMA", "").lower()
            in _TRUTHY,
        )


def get_session_factory(
    settings: DatabaseSettings | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory, creating the engine on first call.

    Raises:
        ValueError: If no settings are given and DATABASE_URL is not set.
    """
    global _engine, _session_factory

    if _session_factory is None:
        settings = settings or DatabaseSettings.from_environment()
        log = logger.bind(component="database_bootstrap")
        log.info(
            "creating_database_engine",
            url=mask_database_url(settings.url),
            pool_size=settings.pool_size,
        )
        _engine = create_async_engine(
            settings.url,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def ensure_schema(settings: DatabaseSettings | None = None) -> bool:
    """Create the admin desk tables if configured to.

    Returns:
        True if the schema statements were run.
    """
    settings = settings or DatabaseSettings.from_environment()
    if not settings.create_schema:
        return False
    await create_schema(get_session_factory(settings))
    logger.info("database_schema_ensured")
    return True


async def close_database_engine() -> None:
    """Dispose of the engine (graceful shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_engine_disposed")
    _engine = None
    _session_factory = None


def reset_database_bootstrap() -> None:
    """Forget the engine and factory without disposing (testing only)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
