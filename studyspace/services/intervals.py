"""
Interval and slot value model

Pure value logic shared by every availability decision. Instants use
half-open intervals ``[start, end)``; membership periods are day-granular
and inclusive on both ends.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from studyspace.core.exceptions import ValidationError


class Slot(str, enum.Enum):
    DAY = "day"
    NIGHT = "night"
    FULL = "full"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Interval:
    """Half-open time interval ``[start, end)``"""
    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    @property
    def duration(self) -> timedelta:
        return max(self.end - self.start, timedelta(0))


@dataclass(frozen=True)
class DatePeriod:
    """Inclusive date range ``[start, end]``"""
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.end < self.start


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """
    True iff the intervals share at least one instant.

    Touching endpoints do not overlap, and an empty interval overlaps nothing.
    """
    if a.is_empty or b.is_empty:
        return False
    return a.start < b.end and b.start < a.end


def periods_overlap(a: DatePeriod, b: DatePeriod) -> bool:
    """Inclusive date-range overlap"""
    if a.is_empty or b.is_empty:
        return False
    return a.start <= b.end and b.start <= a.end


# Slot pairs that may share a seat at the same time
_COMPATIBLE_SLOTS = frozenset({(Slot.DAY, Slot.NIGHT), (Slot.NIGHT, Slot.DAY)})


def slots_conflict(a: Slot, b: Slot) -> bool:
    """
    Two slots conflict if either is full or both are the same.
    Day and night never conflict.
    """
    a, b = Slot(a), Slot(b)
    return (a, b) not in _COMPATIBLE_SLOTS


def reservations_conflict(r1, r2) -> bool:
    """
    Objects exposing ``interval`` and ``slot`` conflict when their intervals
    overlap and their slots are incompatible
    """
    return intervals_overlap(r1.interval, r2.interval) and slots_conflict(r1.slot, r2.slot)


def slot_window(slot: Slot, day: date, tz: tzinfo, day_start_hour: int = 9, night_start_hour: int = 21) -> Interval:
    """
    Concrete instants a slot covers on the local calendar ``day``.

    day:   day_start_hour .. night_start_hour
    night: night_start_hour .. day_start_hour on the next day
    full:  midnight .. next midnight
    """
    slot = Slot(slot)
    if slot is Slot.DAY:
        start = datetime.combine(day, time(day_start_hour), tzinfo=tz)
        end = datetime.combine(day, time(night_start_hour), tzinfo=tz)
    elif slot is Slot.NIGHT:
        start = datetime.combine(day, time(night_start_hour), tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time(day_start_hour), tzinfo=tz)
    else:
        start = datetime.combine(day, time(0), tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
    return Interval(start, end)


def parse_slot(value: Optional[str]) -> Slot:
    """Closed-enum parse; unknown slot names are a validation error for callers"""
    try:
        return Slot(value)
    except ValueError:
        raise ValidationError(f"Unknown slot '{value}'", field="slot")
