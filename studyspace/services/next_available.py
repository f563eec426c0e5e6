"""
Next-available-date calculator for fixed-seat memberships
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from studyspace.config import settings
from studyspace.core.exceptions import SeatUnavailableError, ValidationError
from studyspace.models.reservation import ACTIVE_STATUSES, SeatCategory
from studyspace.services.intervals import DatePeriod, Interval, Slot, parse_slot, periods_overlap, slots_conflict


@dataclass(frozen=True)
class NextAvailability:
    is_available_now: bool
    next_available_date: Optional[date] = None
    conflicting_reservation_end: Optional[date] = None


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic, clamped to the last day of the target month"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def local_today() -> date:
    return datetime.now(timezone.utc).astimezone(ZoneInfo(settings.TIMEZONE)).date()


def validate_duration(months: int) -> int:
    if not isinstance(months, int) or isinstance(months, bool):
        raise ValidationError("Duration must be a whole number of months", field="duration_months")
    if months < settings.MIN_MEMBERSHIP_MONTHS or months > settings.MAX_MEMBERSHIP_MONTHS:
        raise ValidationError(
            f"Duration must be between {settings.MIN_MEMBERSHIP_MONTHS} and "
            f"{settings.MAX_MEMBERSHIP_MONTHS} months",
            field="duration_months"
        )
    return months


def membership_period(start: date, months: int) -> DatePeriod:
    return DatePeriod(start, add_months(start, months))


def membership_interval(period: DatePeriod, tz=None) -> Interval:
    """Instants covered by an inclusive membership period, local midnight to midnight"""
    tz = tz or ZoneInfo(settings.TIMEZONE)
    return Interval(
        datetime.combine(period.start, datetime.min.time(), tzinfo=tz),
        datetime.combine(period.end + timedelta(days=1), datetime.min.time(), tzinfo=tz),
    )


def _blocking_memberships(seat_id, window: DatePeriod, slot: Slot, reservations: Iterable) -> List:
    blocking = []
    for reservation in reservations:
        if reservation.seat_id != seat_id or reservation.status not in ACTIVE_STATUSES:
            continue
        if reservation.category != SeatCategory.FIXED:
            continue
        period = reservation.membership_period
        if period is None:
            continue
        if periods_overlap(window, period) and slots_conflict(slot, reservation.slot):
            blocking.append(reservation)
    return blocking


def next_available_date(
    seat_id,
    requested_duration_months: int,
    active_membership_reservations: Iterable,
    start: Optional[date] = None,
    slot: Slot = Slot.FULL,
) -> NextAvailability:
    """
    Compute when a fixed membership of the requested length could start on
    the seat.

    The candidate window is ``[start, start + months]`` (start defaults to
    today in the service timezone). Among memberships that overlap it with a
    conflicting slot, the latest end date wins; the seat frees the day after.
    """
    months = validate_duration(requested_duration_months)
    slot = parse_slot(slot)
    start = start or local_today()
    window = membership_period(start, months)

    blocking = _blocking_memberships(seat_id, window, slot, active_membership_reservations)
    if not blocking:
        return NextAvailability(is_available_now=True)

    latest_end = max(reservation.membership_end_date for reservation in blocking)
    return NextAvailability(
        is_available_now=False,
        next_available_date=latest_end + timedelta(days=1),
        conflicting_reservation_end=latest_end,
    )


def earliest_start_date(
    seat_id,
    requested_duration_months: int,
    active_membership_reservations: Iterable,
    start: Optional[date] = None,
    slot: Slot = Slot.FULL,
    max_steps: int = 24,
) -> date:
    """
    First start date from which the whole membership window is clear.

    A deferred start can run into a later membership, so the calculation is
    repeated from each suggested date.
    """
    reservations = list(active_membership_reservations)
    candidate = start or local_today()
    for _ in range(max_steps):
        result = next_available_date(
            seat_id, requested_duration_months, reservations, start=candidate, slot=slot
        )
        if result.is_available_now:
            return candidate
        candidate = result.next_available_date
    raise SeatUnavailableError(seat_id, slot=Slot(slot).value)
