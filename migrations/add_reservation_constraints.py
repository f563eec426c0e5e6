"""
Reservation overlap constraints migration
Installs the database-level guard against double-booking a seat: no two
active reservations on the same seat may overlap in time with conflicting slots
"""

import asyncio
import logging
import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from studyspace.config import settings
from studyspace.core.logging import setup_logging

logger = logging.getLogger("studyspace.migrations")


async def upgrade():
    """Add the exclusion constraint and supporting function"""

    constraints_sql = [
        "CREATE EXTENSION IF NOT EXISTS btree_gist",

        # Slots as ranges: day and night are disjoint, full covers both
        """
        CREATE OR REPLACE FUNCTION reservation_slot_range(s slot)
        RETURNS int4range AS $$
            SELECT CASE s
                WHEN 'day' THEN int4range(0, 1)
                WHEN 'night' THEN int4range(1, 2)
                ELSE int4range(0, 2)
            END
        $$ LANGUAGE sql IMMUTABLE
        """,

        "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS excl_reservations_seat_overlap",

        """
        ALTER TABLE reservations
        ADD CONSTRAINT excl_reservations_seat_overlap
        EXCLUDE USING gist (
            seat_id WITH =,
            tstzrange(start_time, end_time, '[)') WITH &&,
            reservation_slot_range(slot) WITH &&
        )
        WHERE (seat_id IS NOT NULL AND status IN ('pending', 'confirmed'))
        """,

        # Timeout job scans
        """
        CREATE INDEX IF NOT EXISTS ix_reservations_pending_created
        ON reservations (created_at)
        WHERE status = 'pending' AND payment_status = 'pending'
        """,
    ]

    engine = create_async_engine(settings.DATABASE_URL)
    try:
        async with engine.begin() as conn:
            for sql in constraints_sql:
                await conn.execute(text(sql.strip()))
                logger.info(f"Applied: {sql.strip().splitlines()[0][:60]}")
    finally:
        await engine.dispose()

    logger.info("Reservation constraints installed")


async def downgrade():
    """Remove the constraint, index and function"""

    rollback_sql = [
        "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS excl_reservations_seat_overlap",
        "DROP INDEX IF EXISTS ix_reservations_pending_created",
        "DROP FUNCTION IF EXISTS reservation_slot_range(slot)",
    ]

    engine = create_async_engine(settings.DATABASE_URL)
    try:
        async with engine.begin() as conn:
            for sql in rollback_sql:
                await conn.execute(text(sql))
                logger.info(f"Rolled back: {sql}")
    finally:
        await engine.dispose()

    logger.info("Reservation constraints removed")


if __name__ == "__main__":
    setup_logging()

    if len(sys.argv) > 1 and sys.argv[1] == "downgrade":
        asyncio.run(downgrade())
    else:
        asyncio.run(upgrade())
