"""
Database models
"""

from studyspace.models.user import User, UserRole
from studyspace.models.seat import Seat, SeatPool
from studyspace.models.reservation import (
    Reservation,
    ReservationStatus,
    PaymentStatus,
    SeatCategory,
    ACTIVE_STATUSES,
)
from studyspace.models.waitlist import WaitlistEntry
from studyspace.models.seat_status import SeatStatusSnapshot, SeatState

__all__ = [
    "User",
    "UserRole",
    "Seat",
    "SeatPool",
    "Reservation",
    "ReservationStatus",
    "PaymentStatus",
    "SeatCategory",
    "ACTIVE_STATUSES",
    "WaitlistEntry",
    "SeatStatusSnapshot",
    "SeatState",
]
