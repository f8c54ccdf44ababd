"""
Constraints migration for databases created before the membership release

Adds the seat map position column, the seat hold consistency check and the one-active-membership-per-user
partial unique index. Each statement is idempotent.
"""

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from app.config import settings
from app.core.logging import setup_logging

logger = logging.getLogger("app.migrations")

UPGRADE_SQL = [
    """
    ALTER TABLE seats ADD COLUMN IF NOT EXISTS map_position INTEGER NOT NULL DEFAULT 0
    """,
    """
    ALTER TABLE seats DROP CONSTRAINT IF EXISTS ck_seat_hold_consistency
    """,
    """
    ALTER TABLE seats
    ADD CONSTRAINT ck_seat_hold_consistency CHECK (
        (status = 'available' AND holder_id IS NULL AND hold_expiry IS NULL)
        OR (status = 'reserved' AND holder_id IS NOT NULL AND hold_expiry IS NOT NULL)
        OR (status = 'booked' AND holder_id IS NOT NULL AND hold_expiry IS NULL)
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS uq_membership_active_user
    ON memberships (user_id) WHERE status = 'active'
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_memberships_status_end_date
    ON memberships (status, end_date)
    """,
]

DOWNGRADE_SQL = [
    "DROP INDEX IF EXISTS ix_memberships_status_end_date",
    "DROP INDEX IF EXISTS uq_membership_active_user",
    "ALTER TABLE seats DROP CONSTRAINT IF EXISTS ck_seat_hold_consistency",
    "ALTER TABLE seats DROP COLUMN IF EXISTS map_position",
]


async def run(statements):
    engine = create_async_engine(settings.DATABASE_URL)
    try:
        async with engine.begin() as conn:
            for statement in statements:
                await conn.execute(text(statement))
                logger.info(f"Applied: {' '.join(statement.split())[:80]}")
    finally:
        await engine.dispose()


async def upgrade():
    await run(UPGRADE_SQL)


async def downgrade():
    await run(DOWNGRADE_SQL)


if __name__ == "__main__":
    import sys

    setup_logging()
    asyncio.run(downgrade() if "--downgrade" in sys.argv else upgrade())
