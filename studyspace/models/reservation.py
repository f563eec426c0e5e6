"""
Reservation model
"""

from sqlalchemy import (
    Column, String, Integer, Numeric, Date, DateTime, Text, Uuid,
    ForeignKey, Enum, CheckConstraint, Index, inspect
)
from sqlalchemy.orm import relationship
import enum

from studyspace.models.base import BaseModel, enum_values
from studyspace.services.intervals import DatePeriod, Interval, Slot


class SeatCategory(str, enum.Enum):
    FIXED = "fixed"
    FLOATING = "floating"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timedOut"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    TIMED_OUT = "timedOut"


# Statuses that occupy a seat; cancelled and timed-out reservations never conflict
ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class Reservation(BaseModel):
    """
    Ad-hoc booking or membership period for a seat.

    Never deleted; only status-transitioned. ``start_time``/``end_time`` is
    the half-open occupied interval. Memberships additionally carry the
    inclusive ``membership_start_date``/``membership_end_date``.
    """
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint(
            "(category = 'floating' AND seat_id IS NULL) OR "
            "(category = 'fixed' AND seat_id IS NOT NULL)",
            name="chk_reservations_category_seat"
        ),
        CheckConstraint("end_time > start_time", name="chk_reservations_valid_time_range"),
        CheckConstraint(
            "duration_months IS NULL OR (duration_months >= 1 AND duration_months <= 12)",
            name="chk_reservations_duration_months"
        ),
        Index("ix_reservations_seat_status", "seat_id", "status"),
        Index("ix_reservations_membership_dates", "membership_start_date", "membership_end_date"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    seat_id = Column(Uuid(as_uuid=True), ForeignKey("seats.id"), nullable=True, index=True)
    category = Column(
        Enum(SeatCategory, name="seat_category", values_callable=enum_values),
        nullable=False,
        default=SeatCategory.FIXED
    )
    slot = Column(
        Enum(Slot, name="slot", values_callable=enum_values),
        nullable=False,
        default=Slot.FULL
    )
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    membership_start_date = Column(Date)
    membership_end_date = Column(Date)
    duration_months = Column(Integer)
    monthly_cost = Column(Numeric(10, 2))
    status = Column(
        Enum(ReservationStatus, name="reservation_status", values_callable=enum_values),
        default=ReservationStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True
    )
    admin_notes = Column(Text)
    payment_reference = Column(String(255))
    confirmed_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="reservations")
    seat = relationship("Seat", back_populates="reservations")

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)

    @property
    def membership_period(self):
        if self.membership_start_date is None or self.membership_end_date is None:
            return None
        return DatePeriod(self.membership_start_date, self.membership_end_date)

    @property
    def occupant_name(self):
        # Never trigger a lazy load; callers eager-load ``user`` when they need names
        if "user" in inspect(self).unloaded or self.user is None:
            return None
        return self.user.full_name

    def __repr__(self):
        return (
            f"<Reservation(id={self.id}, seat_id={self.seat_id}, slot={self.slot}, "
            f"status={self.status}, payment_status={self.payment_status})>"
        )
