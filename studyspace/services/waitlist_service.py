"""
Waitlist manager

Claims are inserted unconditionally and only ever removed by an
administrator; nothing promotes a waitlisted user automatically.
"""

from typing import List
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import db_manager
from studyspace.core.exceptions import NotFoundError
from studyspace.models.waitlist import WaitlistEntry
from studyspace.services.intervals import Slot, parse_slot


class WaitlistManager:
    """
    Waitlist operations. Writes only flush; callers own the transaction.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def enqueue(self, session: AsyncSession, seat_id, user_id, slot: Slot) -> WaitlistEntry:
        entry = WaitlistEntry(seat_id=seat_id, user_id=user_id, slot=parse_slot(slot))
        session.add(entry)
        await session.flush()
        self.logger.info(f"Waitlisted user {user_id} for seat {seat_id} ({entry.slot.value})")
        return entry

    async def count_for_seat(self, session: AsyncSession, seat_id) -> int:
        async def _count():
            result = await session.execute(
                select(func.count(WaitlistEntry.id)).where(WaitlistEntry.seat_id == seat_id)
            )
            return result.scalar_one()

        return await db_manager.read_with_retry("waitlist count", _count)

    async def list_for_seat(self, session: AsyncSession, seat_id) -> List[WaitlistEntry]:
        async def _list():
            result = await session.execute(
                select(WaitlistEntry)
                .where(WaitlistEntry.seat_id == seat_id)
                .order_by(WaitlistEntry.created_at)
            )
            return list(result.scalars().all())

        return await db_manager.read_with_retry("waitlist list", _list)

    async def dequeue(self, session: AsyncSession, entry_id) -> None:
        entry = await session.get(WaitlistEntry, entry_id)
        if entry is None:
            raise NotFoundError("Waitlist entry", entry_id)
        await session.delete(entry)
        await session.flush()
        self.logger.info(f"Removed waitlist entry {entry_id} for seat {entry.seat_id}")


waitlist_manager = WaitlistManager()
