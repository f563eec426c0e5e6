"""
Seat model
"""

from sqlalchemy import Column, Integer, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from studyspace.config import settings
from studyspace.models.base import BaseModel


class SeatPool(str, enum.Enum):
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"


class Seat(BaseModel):
    """
    Bookable seat, immutable after provisioning
    """
    __tablename__ = "seats"
    __table_args__ = (
        CheckConstraint("seat_number >= 1", name="chk_seats_number_positive"),
    )

    seat_number = Column(Integer, unique=True, nullable=False, index=True)

    # Relationships
    reservations = relationship("Reservation", back_populates="seat")
    waitlist_entries = relationship("WaitlistEntry", back_populates="seat")

    @property
    def pool(self) -> SeatPool:
        if self.seat_number <= settings.FULL_DAY_SEAT_MAX:
            return SeatPool.FULL_DAY
        return SeatPool.HALF_DAY

    def __repr__(self):
        return f"<Seat(id={self.id}, seat_number={self.seat_number})>"
