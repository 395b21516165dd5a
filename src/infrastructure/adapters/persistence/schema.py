"""PostgreSQL schema for admin tasks and the activity log.

Attachments and approval records are stored as JSONB on the task row so
that a task and everything hanging off it change in one version-checked
UPDATE. The activity log has no foreign key to admin_tasks: its
(entity, entity_id) pair is a weak reference that may dangle.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS admin_tasks (
        id BIGINT PRIMARY KEY,
        task_no TEXT NOT NULL UNIQUE,
        task_type TEXT NOT NULL,
        title TEXT NOT NULL,
        applicant_id TEXT NOT NULL,
        applicant_name TEXT,
        processor_id TEXT,
        processor_name TEXT,
        approver_id TEXT,
        reviewer_id TEXT,
        status TEXT NOT NULL,
        approval_route TEXT NOT NULL,
        approval_mark TEXT,
        payload JSONB NOT NULL DEFAULT '{}'::jsonb,
        notes TEXT,
        deadline TIMESTAMPTZ,
        application_date TIMESTAMPTZ NOT NULL,
        received_at TIMESTAMPTZ,
        completed_at TIMESTAMPTZ,
        attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
        approval_records JSONB NOT NULL DEFAULT '[]'::jsonb,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        version INTEGER NOT NULL
    )
    """,
    "CREATE SEQUENCE IF NOT EXISTS admin_tasks_id_seq",
    "CREATE SEQUENCE IF NOT EXISTS admin_task_approval_records_id_seq",
    "CREATE SEQUENCE IF NOT EXISTS admin_task_attachments_id_seq",
    """
    CREATE TABLE IF NOT EXISTS admin_task_no_sequences (
        date_key TEXT PRIMARY KEY,
        last_sequence INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
        id UUID PRIMARY KEY,
        user_id TEXT NOT NULL,
        action TEXT NOT NULL,
        entity TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        details JSONB NOT NULL DEFAULT '{}'::jsonb,
        ip_address TEXT,
        user_agent TEXT,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_activity_logs_created_at ON activity_logs (created_at DESC)",
    "CREATE INDEX IF NOT EXISTS ix_activity_logs_entity ON activity_logs (entity, entity_id)",
    "CREATE INDEX IF NOT EXISTS ix_admin_tasks_status ON admin_tasks (status)",
)


async def create_schema(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create tables, sequences and indexes if they do not exist."""
    async with session_factory() as session:
        async with session.begin():
            for statement in SCHEMA_STATEMENTS:
                await session.execute(text(statement))
