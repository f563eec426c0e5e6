"""
Tests for membership pricing and expiry reporting
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from studyspace.core.exceptions import ValidationError
from studyspace.models.reservation import ReservationStatus, PaymentStatus, SeatCategory
from studyspace.services.membership_service import (
    expiring_memberships, membership_cost, monthly_rate, urgency_band
)

TODAY = date(2025, 6, 1)


@pytest.mark.unit
class TestPricing:

    def test_monthly_rates(self):
        assert monthly_rate(SeatCategory.FIXED) == Decimal(3300)
        assert monthly_rate("floating") == Decimal(2200)

    def test_membership_cost(self):
        assert membership_cost(SeatCategory.FIXED, 3) == Decimal(9900)
        assert membership_cost(SeatCategory.FLOATING, 12) == Decimal(26400)

    def test_invalid_inputs(self):
        with pytest.raises(ValidationError):
            membership_cost("corner", 1)
        with pytest.raises(ValidationError):
            membership_cost(SeatCategory.FIXED, 13)

    @pytest.mark.parametrize("days,band", [
        (0, "critical"), (3, "critical"), (4, "soon"), (7, "soon"),
        (8, "upcoming"), (15, "upcoming"), (16, "later"), (30, "later"),
    ])
    def test_urgency_bands(self, days, band):
        assert urgency_band(days) == band


@pytest.mark.integration
@pytest.mark.asyncio
class TestExpiringMemberships:

    async def test_report(self, db_session, seats, test_user, make_reservation):
        async def ending_in(seat, days, **kwargs):
            end = TODAY + timedelta(days=days)
            return await make_reservation(test_user, seat, membership=(end - timedelta(days=30), end), **kwargs)

        critical = await ending_in(seats[0], 2)
        soon = await ending_in(seats[1], 6)
        upcoming = await ending_in(seats[2], 10)
        later = await ending_in(seats[3], 20)
        await ending_in(seats[4], 45)
        await ending_in(seats[5], -1)
        await ending_in(seats[6], 5, status=ReservationStatus.PENDING)
        await ending_in(
            seats[7], 5, status=ReservationStatus.CONFIRMED, payment_status=PaymentStatus.PENDING
        )

        report = await expiring_memberships(db_session, within_days=30, today=TODAY)

        assert [item.reservation.id for item in report] == [critical.id, soon.id, upcoming.id, later.id]
        assert [item.band for item in report] == ["critical", "soon", "upcoming", "later"]
        assert [item.days_left for item in report] == [2, 6, 10, 20]
        assert report[0].reservation.occupant_name == "Asha Verma"

    async def test_window_is_configurable(self, db_session, seats, test_user, make_reservation):
        end = TODAY + timedelta(days=10)
        await make_reservation(test_user, seats[0], membership=(TODAY - timedelta(days=20), end))

        assert len(await expiring_memberships(db_session, within_days=7, today=TODAY)) == 0
        assert len(await expiring_memberships(db_session, within_days=10, today=TODAY)) == 1

    async def test_negative_window_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await expiring_memberships(db_session, within_days=-1, today=TODAY)
