"""
Membership pricing and expiry reporting
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from studyspace.config import settings
from studyspace.core.database import db_manager
from studyspace.core.exceptions import ValidationError
from studyspace.models.reservation import PaymentStatus, Reservation, ReservationStatus, SeatCategory
from studyspace.services.next_available import local_today, validate_duration


def parse_category(value) -> SeatCategory:
    try:
        return SeatCategory(value)
    except ValueError:
        raise ValidationError(f"Unknown seat category '{value}'", field="category")


def monthly_rate(category) -> Decimal:
    if parse_category(category) is SeatCategory.FIXED:
        return Decimal(settings.FIXED_MONTHLY_COST)
    return Decimal(settings.FLOATING_MONTHLY_COST)


def membership_cost(category, months: int) -> Decimal:
    return monthly_rate(category) * validate_duration(months)


def urgency_band(days_left: int) -> str:
    if days_left <= 3:
        return "critical"
    if days_left <= 7:
        return "soon"
    if days_left <= 15:
        return "upcoming"
    return "later"


@dataclass(frozen=True)
class ExpiringMembership:
    reservation: Reservation
    days_left: int
    band: str


async def expiring_memberships(
    session: AsyncSession,
    within_days: Optional[int] = None,
    today: Optional[date] = None
) -> List[ExpiringMembership]:
    """
    Confirmed, paid memberships ending within ``within_days`` of today,
    soonest first
    """
    within_days = settings.EXPIRING_WINDOW_DAYS if within_days is None else within_days
    if within_days < 0:
        raise ValidationError("within_days must not be negative", field="within_days")
    today = today or local_today()
    horizon = today + timedelta(days=within_days)

    async def _fetch():
        result = await session.execute(
            select(Reservation)
            .options(joinedload(Reservation.user), joinedload(Reservation.seat))
            .where(
                and_(
                    Reservation.status == ReservationStatus.CONFIRMED,
                    Reservation.payment_status == PaymentStatus.PAID,
                    Reservation.duration_months.is_not(None),
                    Reservation.membership_end_date >= today,
                    Reservation.membership_end_date <= horizon,
                )
            )
            .order_by(Reservation.membership_end_date)
        )
        return list(result.scalars().all())

    reservations = await db_manager.read_with_retry("expiring memberships", _fetch)
    report = []
    for reservation in reservations:
        days_left = (reservation.membership_end_date - today).days
        report.append(ExpiringMembership(reservation, days_left, urgency_band(days_left)))
    return report
