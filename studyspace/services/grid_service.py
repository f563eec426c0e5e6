"""
Availability query service

Paints the whole seat grid in one pass: reservations and waitlist entries are
fetched once, indexed by seat, and each seat is resolved against its own
bucket with the same conflict rules the booking flows use.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo
import logging

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from studyspace.config import settings
from studyspace.core.database import db_manager
from studyspace.core.metrics import metrics_collector
from studyspace.models.reservation import ACTIVE_STATUSES, Reservation
from studyspace.models.seat import Seat
from studyspace.models.seat_status import SeatState
from studyspace.models.waitlist import WaitlistEntry
from studyspace.services.conflict_resolver import check_availability
from studyspace.services.intervals import Interval, Slot, as_utc, slot_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatGridStatus:
    seat_id: UUID
    seat_number: int
    status: SeatState
    available: bool
    occupied: bool
    waitlisted: bool
    waitlist_count: int = 0
    occupant_name: Optional[str] = None
    reservation_id: Optional[UUID] = None


def local_timezone() -> tzinfo:
    return ZoneInfo(settings.TIMEZONE)


def current_slot_window(slot: Slot, as_of: datetime, tz: tzinfo = None) -> Interval:
    """
    The slot window that ``as_of`` falls in (or the one starting later that
    local day). A night slot observed before the day slot starts belongs to
    the night that began on the previous calendar day.
    """
    tz = tz or local_timezone()
    local = as_utc(as_of).astimezone(tz)
    day = local.date()
    if Slot(slot) is Slot.NIGHT and local.hour < settings.DAY_SLOT_START_HOUR:
        day = day - timedelta(days=1)
    return slot_window(
        slot, day, tz,
        day_start_hour=settings.DAY_SLOT_START_HOUR,
        night_start_hour=settings.NIGHT_SLOT_START_HOUR,
    )


def index_by_seat(reservations: Iterable) -> Dict[UUID, List]:
    buckets: Dict[UUID, List] = defaultdict(list)
    for reservation in reservations:
        if reservation.seat_id is not None and reservation.status in ACTIVE_STATUSES:
            buckets[reservation.seat_id].append(reservation)
    return buckets


def count_waitlist_by_seat(waitlist_entries: Iterable) -> Dict[UUID, int]:
    counts: Dict[UUID, int] = defaultdict(int)
    for entry in waitlist_entries:
        counts[entry.seat_id] += 1
    return counts


def compute_grid_status(
    all_seats: Iterable,
    all_active_reservations: Iterable,
    waitlist_entries: Iterable,
    as_of_instant: datetime,
    slot: Slot = Slot.FULL,
    window: Optional[Interval] = None,
    tz: tzinfo = None,
) -> Dict[UUID, SeatGridStatus]:
    """
    Map every seat id to its grid status for ``slot`` within ``window``
    (default: the current slot window at ``as_of_instant``).

    A seat with a conflicting reservation is occupied; otherwise it is
    waitlisted if any claims are queued on it, else available.
    """
    slot = Slot(slot)
    window = window or current_slot_window(slot, as_of_instant, tz)
    reservations_by_seat = index_by_seat(all_active_reservations)
    waitlist_counts = count_waitlist_by_seat(waitlist_entries)

    grid: Dict[UUID, SeatGridStatus] = {}
    for seat in all_seats:
        verdict = check_availability(seat.id, window, slot, reservations_by_seat.get(seat.id, ()))
        waitlist_count = waitlist_counts.get(seat.id, 0)
        conflict = verdict.conflicting_reservation

        if conflict is not None:
            state = SeatState.OCCUPIED
        elif waitlist_count:
            state = SeatState.WAITLISTED
        else:
            state = SeatState.AVAILABLE

        grid[seat.id] = SeatGridStatus(
            seat_id=seat.id,
            seat_number=seat.seat_number,
            status=state,
            available=verdict.available,
            occupied=not verdict.available,
            waitlisted=waitlist_count > 0,
            waitlist_count=waitlist_count,
            occupant_name=getattr(conflict, "occupant_name", None) if conflict is not None else None,
            reservation_id=conflict.id if conflict is not None else None,
        )

    return grid


async def load_grid(
    session: AsyncSession,
    as_of: Optional[datetime] = None,
    slot: Slot = Slot.FULL,
    window: Optional[Interval] = None,
) -> List[SeatGridStatus]:
    """
    Fetch seats, overlapping active reservations and waitlist entries in
    three queries and compute the grid, ordered by seat number
    """
    as_of = as_of or datetime.now(timezone.utc)
    window = window or current_slot_window(slot, as_of)

    async def _fetch():
        seats = (await session.execute(select(Seat).order_by(Seat.seat_number))).scalars().all()
        reservations = (await session.execute(
            select(Reservation)
            .options(joinedload(Reservation.user))
            .where(
                and_(
                    Reservation.seat_id.is_not(None),
                    Reservation.status.in_(ACTIVE_STATUSES),
                    Reservation.start_time < window.end,
                    Reservation.end_time > window.start,
                )
            )
        )).scalars().all()
        waitlist = (await session.execute(select(WaitlistEntry))).scalars().all()
        return seats, reservations, waitlist

    async with metrics_collector.track_operation("grid"):
        seats, reservations, waitlist = await db_manager.read_with_retry("grid", _fetch)
        grid = compute_grid_status(seats, reservations, waitlist, as_of, slot=slot, window=window)

    logger.debug(f"Computed grid for {len(seats)} seats against {len(reservations)} reservations")
    return sorted(grid.values(), key=lambda status: status.seat_number)
