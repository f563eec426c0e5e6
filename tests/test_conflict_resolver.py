"""
Unit tests for the conflict resolver
"""

import pytest
from uuid import uuid4

from studyspace.core.exceptions import ValidationError
from studyspace.models.reservation import Reservation, ReservationStatus, PaymentStatus, SeatCategory
from studyspace.services.conflict_resolver import check_availability
from studyspace.services.intervals import Interval, Slot

from conftest import utc


def reservation(seat_id, start, end, slot, status=ReservationStatus.CONFIRMED):
    return Reservation(
        id=uuid4(),
        user_id=uuid4(),
        seat_id=seat_id,
        category=SeatCategory.FIXED,
        slot=slot,
        start_time=start,
        end_time=end,
        status=status,
        payment_status=PaymentStatus.PAID if status == ReservationStatus.CONFIRMED else PaymentStatus.PENDING,
    )


JANUARY = Interval(utc(2025, 1, 1), utc(2025, 2, 1))


@pytest.mark.unit
class TestCheckAvailability:

    def test_empty_reservation_set_is_available(self):
        result = check_availability(uuid4(), JANUARY, Slot.FULL, [])
        assert result.available
        assert result.conflicting_reservation is None

    def test_day_booking_leaves_night_free(self):
        seat_id = uuid4()
        existing = [reservation(seat_id, utc(2025, 1, 1), utc(2025, 2, 1), Slot.DAY)]

        night = check_availability(seat_id, JANUARY, Slot.NIGHT, existing)
        full = check_availability(seat_id, JANUARY, Slot.FULL, existing)

        assert night.available
        assert not full.available
        assert full.conflicting_reservation is existing[0]

    def test_pending_reservation_is_a_soft_hold(self):
        seat_id = uuid4()
        existing = [reservation(seat_id, utc(2025, 1, 1), utc(2025, 2, 1), Slot.FULL, ReservationStatus.PENDING)]

        result = check_availability(seat_id, JANUARY, Slot.DAY, existing)
        assert not result.available

    @pytest.mark.parametrize("status", [ReservationStatus.CANCELLED, ReservationStatus.TIMED_OUT])
    def test_inactive_reservations_never_conflict(self, status):
        seat_id = uuid4()
        existing = [reservation(seat_id, utc(2025, 1, 1), utc(2025, 2, 1), Slot.FULL, status)]

        assert check_availability(seat_id, JANUARY, Slot.FULL, existing).available

    def test_other_seats_are_ignored(self):
        existing = [reservation(uuid4(), utc(2025, 1, 1), utc(2025, 2, 1), Slot.FULL)]
        assert check_availability(uuid4(), JANUARY, Slot.FULL, existing).available

    def test_returns_first_conflict(self):
        seat_id = uuid4()
        first = reservation(seat_id, utc(2025, 1, 1), utc(2025, 1, 10), Slot.DAY)
        second = reservation(seat_id, utc(2025, 1, 5), utc(2025, 1, 20), Slot.FULL)

        result = check_availability(seat_id, JANUARY, Slot.DAY, [first, second])
        assert result.conflicting_reservation is first

    def test_deterministic(self):
        seat_id = uuid4()
        existing = [reservation(seat_id, utc(2025, 1, 1), utc(2025, 1, 10), Slot.NIGHT)]
        results = {check_availability(seat_id, JANUARY, Slot.FULL, existing) for _ in range(5)}
        assert len(results) == 1

    def test_inverted_interval_rejected_before_checking(self):
        with pytest.raises(ValidationError) as exc_info:
            check_availability(uuid4(), Interval(utc(2025, 2, 1), utc(2025, 1, 1)), Slot.FULL, [])
        assert exc_info.value.details == {"field": "end_time"}

    def test_zero_length_interval_rejected(self):
        instant = utc(2025, 1, 1, 9)
        with pytest.raises(ValidationError):
            check_availability(uuid4(), Interval(instant, instant), Slot.DAY, [])

    def test_unknown_slot_rejected(self):
        with pytest.raises(ValidationError):
            check_availability(uuid4(), JANUARY, "evening", [])
