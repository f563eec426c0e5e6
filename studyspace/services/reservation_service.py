"""
Reservation workflow

Both booking flows re-read the seat's reservations and insert while holding
the seat lock and inside one transaction, so two requests for the same seat
cannot both observe it free. On Postgres the exclusion constraint on
``reservations`` is the final guard; a violation surfaces as
SeatUnavailableError.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
import logging

from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from studyspace.config import settings
from studyspace.core.database import DatabaseManager, db_manager
from studyspace.core.exceptions import (
    InvalidTransitionError, NotFoundError, SeatUnavailableError, ValidationError
)
from studyspace.core.locks import SeatLockManager, create_seat_lock_manager
from studyspace.core.metrics import metrics_collector
from studyspace.models.reservation import (
    ACTIVE_STATUSES, PaymentStatus, Reservation, ReservationStatus, SeatCategory
)
from studyspace.models.seat import Seat
from studyspace.models.user import User
from studyspace.models.waitlist import WaitlistEntry
from studyspace.services import seat_catalog
from studyspace.services.conflict_resolver import AvailabilityResult, check_availability, validate_candidate
from studyspace.services.intervals import Interval, Slot, parse_slot
from studyspace.services.membership_service import monthly_rate, parse_category
from studyspace.services.next_available import (
    NextAvailability, earliest_start_date, local_today, membership_interval, membership_period,
    next_available_date, validate_duration
)
from studyspace.services.waitlist_service import WaitlistManager, waitlist_manager

# Installed by migrations/add_reservation_constraints.py
SEAT_OVERLAP_CONSTRAINT = "excl_reservations_seat_overlap"
EXCLUSION_VIOLATION = "23P01"


def is_seat_overlap(error: IntegrityError) -> bool:
    """True when the store rejected the row for overlapping another reservation"""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == EXCLUSION_VIOLATION or SEAT_OVERLAP_CONSTRAINT in str(orig)


class BookingOutcome(str, enum.Enum):
    RESERVED = "reserved"
    WAITLISTED = "waitlisted"
    DEFERRED = "deferred"


@dataclass
class BookingResult:
    outcome: BookingOutcome
    reservation: Optional[Reservation] = None
    waitlist_entry: Optional[WaitlistEntry] = None
    conflicting_reservation: Optional[Reservation] = None
    requested_start_date: Optional[date] = None


class ReservationService:
    """
    Booking requests, admin transitions and the pending-timeout job
    """

    def __init__(
        self,
        locks: SeatLockManager = None,
        waitlist: WaitlistManager = None,
        database: DatabaseManager = None
    ):
        self.locks = locks or create_seat_lock_manager()
        self.waitlist = waitlist or waitlist_manager
        self.db_manager = database or db_manager
        self.logger = logging.getLogger(__name__)

    async def _lock_seat_row(self, session: AsyncSession, seat_id) -> Seat:
        result = await session.execute(
            select(Seat).where(Seat.id == seat_id).with_for_update()
        )
        seat = result.scalar_one_or_none()
        if seat is None:
            raise NotFoundError("Seat", seat_id)
        return seat

    async def _require_user(self, session: AsyncSession, user_id):
        result = await session.execute(select(User.id).where(User.id == user_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("User", user_id)

    async def active_reservations(
        self,
        session: AsyncSession,
        seat_id,
        interval: Interval
    ) -> List[Reservation]:
        result = await session.execute(
            select(Reservation).where(
                and_(
                    Reservation.seat_id == seat_id,
                    Reservation.status.in_(ACTIVE_STATUSES),
                    Reservation.start_time < interval.end,
                    Reservation.end_time > interval.start,
                )
            )
        )
        return list(result.scalars().all())

    async def _insert(self, session: AsyncSession, reservation: Reservation) -> Reservation:
        session.add(reservation)
        try:
            await session.flush()
        except IntegrityError as e:
            if is_seat_overlap(e):
                self.logger.warning(f"Reservation insert rejected by overlap constraint on seat {reservation.seat_id}")
                raise SeatUnavailableError(reservation.seat_id, slot=reservation.slot.value) from e
            self.logger.warning(f"Reservation insert rejected by store constraint: {e.orig}")
            raise ValidationError("Reservation references an unknown user or seat") from e
        return reservation

    async def request_booking(
        self,
        session: AsyncSession,
        user_id,
        seat_id,
        start_time: datetime,
        end_time: datetime,
        slot: Slot
    ) -> BookingResult:
        """
        Ad-hoc booking: reserve the seat if free, otherwise queue the user
        on the seat's waitlist
        """
        interval = Interval(start_time, end_time)
        slot = validate_candidate(interval, slot)

        async with metrics_collector.track_operation("request_booking"):
            async with self.locks.hold(seat_id):
                async with self.db_manager.transaction(session):
                    await self._lock_seat_row(session, seat_id)
                    await self._require_user(session, user_id)
                    active = await self.active_reservations(session, seat_id, interval)
                    verdict = check_availability(seat_id, interval, slot, active)

                    if verdict.available:
                        reservation = await self._insert(session, Reservation(
                            user_id=user_id,
                            seat_id=seat_id,
                            category=SeatCategory.FIXED,
                            slot=slot,
                            start_time=interval.start,
                            end_time=interval.end,
                            status=ReservationStatus.PENDING,
                            payment_status=PaymentStatus.PENDING,
                        ))
                        result = BookingResult(BookingOutcome.RESERVED, reservation=reservation)
                    else:
                        entry = await self.waitlist.enqueue(session, seat_id, user_id, slot)
                        result = BookingResult(
                            BookingOutcome.WAITLISTED,
                            waitlist_entry=entry,
                            conflicting_reservation=verdict.conflicting_reservation,
                        )

        metrics_collector.record_decision("adhoc", result.outcome.value)
        self.logger.info(f"Booking request for seat {seat_id} ({slot.value}) by {user_id}: {result.outcome.value}")
        return result

    async def request_membership(
        self,
        session: AsyncSession,
        user_id,
        category,
        duration_months: int,
        seat_number: Optional[int] = None,
        slot: Slot = Slot.FULL,
        start: Optional[date] = None
    ) -> BookingResult:
        """
        Membership booking. Floating memberships start immediately with no
        seat; fixed memberships start on the earliest date the seat is clear
        for the whole period, which may be later than requested.
        """
        category = parse_category(category)
        months = validate_duration(duration_months)
        slot = parse_slot(slot)
        requested = start or local_today()

        if category is SeatCategory.FLOATING:
            period = membership_period(requested, months)
            async with self.db_manager.transaction(session):
                await self._require_user(session, user_id)
                reservation = await self._insert(session, self._membership(
                    user_id, None, category, slot, period, months
                ))
            metrics_collector.record_decision("membership", BookingOutcome.RESERVED.value)
            self.logger.info(f"Floating membership requested by {user_id} for {months} months")
            return BookingResult(BookingOutcome.RESERVED, reservation=reservation, requested_start_date=requested)

        if seat_number is None:
            raise ValidationError("Fixed memberships require a seat number", field="seat_number")
        seat = await seat_catalog.get_seat_by_number(session, seat_number)
        seat_id = seat.id

        async with metrics_collector.track_operation("request_membership"):
            async with self.locks.hold(seat_id):
                async with self.db_manager.transaction(session):
                    await self._lock_seat_row(session, seat_id)
                    await self._require_user(session, user_id)
                    memberships = await self._active_memberships(session, seat_id, requested)
                    begin = earliest_start_date(seat_id, months, memberships, start=requested, slot=slot)

                    # Ad-hoc bookings inside the period still block it
                    period = membership_period(begin, months)
                    interval = membership_interval(period)
                    active = await self.active_reservations(session, seat_id, interval)
                    verdict = check_availability(seat_id, interval, slot, active)
                    if not verdict.available:
                        raise SeatUnavailableError(seat_id, slot=slot.value)

                    reservation = await self._insert(session, self._membership(
                        user_id, seat_id, category, slot, period, months
                    ))

        outcome = BookingOutcome.RESERVED if begin == requested else BookingOutcome.DEFERRED
        metrics_collector.record_decision("membership", outcome.value)
        self.logger.info(
            f"Fixed membership on seat {seat_number} ({slot.value}) by {user_id}: "
            f"{outcome.value}, starts {begin.isoformat()}"
        )
        return BookingResult(outcome, reservation=reservation, requested_start_date=requested)

    async def _active_memberships(self, session: AsyncSession, seat_id, since: date) -> List[Reservation]:
        result = await session.execute(
            select(Reservation).where(
                and_(
                    Reservation.seat_id == seat_id,
                    Reservation.category == SeatCategory.FIXED,
                    Reservation.status.in_(ACTIVE_STATUSES),
                    Reservation.membership_end_date >= since,
                )
            )
        )
        return list(result.scalars().all())

    def _membership(self, user_id, seat_id, category, slot, period, months) -> Reservation:
        interval = membership_interval(period)
        return Reservation(
            user_id=user_id,
            seat_id=seat_id,
            category=category,
            slot=slot,
            start_time=interval.start,
            end_time=interval.end,
            membership_start_date=period.start,
            membership_end_date=period.end,
            duration_months=months,
            monthly_cost=monthly_rate(category),
            status=ReservationStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )

    async def check(
        self,
        session: AsyncSession,
        seat_id,
        start_time: datetime,
        end_time: datetime,
        slot: Slot
    ) -> AvailabilityResult:
        """Read-only availability check; takes no locks"""
        interval = Interval(start_time, end_time)
        slot = validate_candidate(interval, slot)
        await seat_catalog.get_seat(session, seat_id)

        active = await self.db_manager.read_with_retry(
            "availability check",
            lambda: self.active_reservations(session, seat_id, interval)
        )
        verdict = check_availability(seat_id, interval, slot, active)
        metrics_collector.record_decision("check", "available" if verdict.available else "conflict")
        return verdict

    async def next_available(
        self,
        session: AsyncSession,
        seat_number: int,
        duration_months: int,
        slot: Slot = Slot.FULL,
        start: Optional[date] = None
    ) -> NextAvailability:
        months = validate_duration(duration_months)
        slot = parse_slot(slot)
        start = start or local_today()
        seat = await seat_catalog.get_seat_by_number(session, seat_number)

        memberships = await self.db_manager.read_with_retry(
            "next available",
            lambda: self._active_memberships(session, seat.id, start)
        )
        return next_available_date(seat.id, months, memberships, start=start, slot=slot)

    async def get(self, session: AsyncSession, reservation_id) -> Reservation:
        async def _fetch():
            result = await session.execute(
                select(Reservation)
                .options(joinedload(Reservation.user), joinedload(Reservation.seat))
                .where(Reservation.id == reservation_id)
            )
            return result.scalar_one_or_none()

        reservation = await self.db_manager.read_with_retry("get reservation", _fetch)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    async def _transition(
        self,
        session: AsyncSession,
        reservation_id,
        to_status: ReservationStatus,
        payment_status: PaymentStatus,
        notes: Optional[str] = None
    ) -> Reservation:
        async with self.db_manager.transaction(session):
            result = await session.execute(
                select(Reservation).where(Reservation.id == reservation_id).with_for_update()
            )
            reservation = result.scalar_one_or_none()
            if reservation is None:
                raise NotFoundError("Reservation", reservation_id)
            if reservation.status != ReservationStatus.PENDING:
                raise InvalidTransitionError(reservation_id, reservation.status.value, to_status.value)

            now = datetime.now(timezone.utc)
            reservation.status = to_status
            reservation.payment_status = payment_status
            if to_status is ReservationStatus.CONFIRMED:
                reservation.confirmed_at = now
            else:
                reservation.cancelled_at = now
            if notes:
                reservation.admin_notes = notes

        metrics_collector.record_transition(to_status.value)
        self.logger.info(f"Reservation {reservation_id}: pending -> {to_status.value}")
        return reservation

    async def approve(self, session: AsyncSession, reservation_id) -> Reservation:
        """Admin marks the payment received"""
        return await self._transition(
            session, reservation_id, ReservationStatus.CONFIRMED, PaymentStatus.PAID
        )

    async def reject(self, session: AsyncSession, reservation_id, notes: Optional[str] = None) -> Reservation:
        """Admin rejects the payment"""
        return await self._transition(
            session, reservation_id, ReservationStatus.CANCELLED, PaymentStatus.FAILED, notes=notes
        )

    async def timeout_pending(self, session: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Demote unpaid pending reservations older than the grace period.

        One guarded UPDATE; rows already demoted no longer match, so running
        it again changes nothing.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=settings.PENDING_TIMEOUT_MINUTES)

        try:
            async with self.db_manager.transaction(session):
                result = await session.execute(
                    update(Reservation)
                    .where(
                        and_(
                            Reservation.status == ReservationStatus.PENDING,
                            Reservation.payment_status == PaymentStatus.PENDING,
                            Reservation.created_at < cutoff,
                        )
                    )
                    .values(
                        status=ReservationStatus.TIMED_OUT,
                        payment_status=PaymentStatus.TIMED_OUT,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
                count = result.rowcount or 0
        except Exception as e:
            self.logger.error(f"Pending timeout job failed: {e}")
            raise

        metrics_collector.record_timeouts(count)
        if count:
            self.logger.info(f"Timed out {count} pending reservations older than {cutoff.isoformat()}")
        return count


reservation_service = ReservationService()
