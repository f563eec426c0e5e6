"""
Seat catalog
"""

from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.config import settings
from studyspace.core.database import db_manager
from studyspace.core.exceptions import NotFoundError, ValidationError
from studyspace.models.seat import Seat, SeatPool

logger = logging.getLogger(__name__)


async def list_seats(session: AsyncSession, pool: Optional[SeatPool] = None) -> List[Seat]:
    stmt = select(Seat).order_by(Seat.seat_number)
    if pool is not None:
        if SeatPool(pool) is SeatPool.FULL_DAY:
            stmt = stmt.where(Seat.seat_number <= settings.FULL_DAY_SEAT_MAX)
        else:
            stmt = stmt.where(Seat.seat_number > settings.FULL_DAY_SEAT_MAX)

    async def _fetch():
        result = await session.execute(stmt)
        return list(result.scalars().all())

    return await db_manager.read_with_retry("list seats", _fetch)


async def get_seat(session: AsyncSession, seat_id) -> Seat:
    seat = await session.get(Seat, seat_id)
    if seat is None:
        raise NotFoundError("Seat", seat_id)
    return seat


async def get_seat_by_number(session: AsyncSession, seat_number: int) -> Seat:
    result = await session.execute(select(Seat).where(Seat.seat_number == seat_number))
    seat = result.scalar_one_or_none()
    if seat is None:
        raise NotFoundError("Seat", seat_number)
    return seat


async def provision_seats(session: AsyncSession, count: int = None) -> int:
    """
    Create seats ``1..count`` that do not exist yet. Returns how many were added.
    Caller owns the transaction.
    """
    count = settings.SEAT_COUNT if count is None else count
    if count < 1:
        raise ValidationError("Seat count must be positive", field="count")

    result = await session.execute(select(Seat.seat_number))
    existing = set(result.scalars().all())

    missing = [number for number in range(1, count + 1) if number not in existing]
    for number in missing:
        session.add(Seat(seat_number=number))
    if missing:
        await session.flush()
        logger.info(f"Provisioned {len(missing)} seats")
    return len(missing)
