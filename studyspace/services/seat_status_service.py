"""
Seats-status read model

Rewrites one ``seats_status`` row per seat from the live grid so seat-plan
pages can render without recomputing availability.
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import DatabaseManager, db_manager
from studyspace.models.seat_status import SeatStatusSnapshot
from studyspace.services.grid_service import load_grid
from studyspace.services.intervals import Slot


class SeatStatusService:

    def __init__(self, database: DatabaseManager = None):
        self.db_manager = database or db_manager
        self.logger = logging.getLogger(__name__)

    async def resync(
        self,
        session: AsyncSession,
        as_of: Optional[datetime] = None,
        slot: Slot = Slot.FULL
    ) -> List[SeatStatusSnapshot]:
        """
        Upsert every seat's row to match ``compute_grid_status`` at ``as_of``.
        Running it twice at the same instant leaves the rows unchanged.
        """
        grid = await load_grid(session, as_of=as_of, slot=slot)

        async with self.db_manager.transaction(session):
            result = await session.execute(select(SeatStatusSnapshot))
            rows = {row.seat_id: row for row in result.scalars().all()}

            changed = 0
            for status in grid:
                row = rows.get(status.seat_id)
                if row is None:
                    row = SeatStatusSnapshot(seat_id=status.seat_id, seat_number=status.seat_number)
                    session.add(row)
                    rows[status.seat_id] = row

                values = {
                    "status": status.status,
                    "reservation_id": status.reservation_id,
                    "occupant_name": status.occupant_name,
                    "waitlist_count": status.waitlist_count,
                }
                if any(getattr(row, key) != value for key, value in values.items()):
                    changed += 1
                    for key, value in values.items():
                        setattr(row, key, value)

        self.logger.info(f"Seats status resynced: {changed} of {len(grid)} rows changed")
        return sorted(rows.values(), key=lambda row: row.seat_number)

    async def snapshot(self, session: AsyncSession) -> List[SeatStatusSnapshot]:
        async def _fetch():
            result = await session.execute(
                select(SeatStatusSnapshot).order_by(SeatStatusSnapshot.seat_number)
            )
            return list(result.scalars().all())

        return await self.db_manager.read_with_retry("seats status", _fetch)


seat_status_service = SeatStatusService()
