"""
Conflict resolver

The single availability check every booking surface goes through.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from studyspace.core.exceptions import ValidationError
from studyspace.models.reservation import ACTIVE_STATUSES
from studyspace.services.intervals import Interval, Slot, intervals_overlap, parse_slot, slots_conflict


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicting_reservation: Optional[Any] = None


def validate_candidate(candidate_interval: Interval, candidate_slot) -> Slot:
    """Reject malformed requests before any conflict check"""
    if candidate_interval.end <= candidate_interval.start:
        raise ValidationError("End time must be after start time", field="end_time")
    return parse_slot(candidate_slot)


def is_occupying(reservation) -> bool:
    """Pending reservations are soft holds and occupy the seat like confirmed ones"""
    return reservation.status in ACTIVE_STATUSES


def check_availability(
    seat_id,
    candidate_interval: Interval,
    candidate_slot,
    active_reservations: Iterable,
) -> AvailabilityResult:
    """
    Decide whether ``seat_id`` is free for the candidate interval and slot.

    ``active_reservations`` may contain reservations for other seats or in
    inactive statuses; those are ignored. Returns the first conflicting
    reservation found. Pure: the same inputs always give the same verdict.
    """
    slot = validate_candidate(candidate_interval, candidate_slot)

    for reservation in active_reservations:
        if reservation.seat_id != seat_id or not is_occupying(reservation):
            continue
        if intervals_overlap(candidate_interval, reservation.interval) and slots_conflict(slot, reservation.slot):
            return AvailabilityResult(available=False, conflicting_reservation=reservation)

    return AvailabilityResult(available=True)
