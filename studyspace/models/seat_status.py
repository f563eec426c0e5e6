"""
Denormalised seats-status read model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Uuid
import enum

from studyspace.models.base import BaseModel, enum_values


class SeatState(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    WAITLISTED = "waitlisted"


class SeatStatusSnapshot(BaseModel):
    """
    One row per seat, rewritten by the resync job for fast grid rendering
    """
    __tablename__ = "seats_status"

    seat_id = Column(Uuid(as_uuid=True), ForeignKey("seats.id"), nullable=False, unique=True)
    seat_number = Column(Integer, nullable=False, unique=True, index=True)
    status = Column(
        Enum(SeatState, name="seat_state", values_callable=enum_values),
        default=SeatState.AVAILABLE,
        nullable=False
    )
    reservation_id = Column(Uuid(as_uuid=True), ForeignKey("reservations.id"), nullable=True)
    occupant_name = Column(String(255))
    waitlist_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<SeatStatusSnapshot(seat_number={self.seat_number}, status={self.status})>"
