"""
Seat schemas for catalog and grid responses
"""

from typing import Optional
from datetime import datetime
from uuid import UUID

from studyspace.models.seat import SeatPool
from studyspace.models.seat_status import SeatState
from studyspace.schemas.base import BaseSchema, IDSchema


class SeatResponse(IDSchema):
    seat_number: int
    pool: SeatPool


class SeatGridResponse(BaseSchema):
    seat_id: UUID
    seat_number: int
    status: SeatState
    available: bool
    occupied: bool
    waitlisted: bool
    waitlist_count: int = 0
    occupant_name: Optional[str] = None
    reservation_id: Optional[UUID] = None


class SeatStatusResponse(BaseSchema):
    seat_id: UUID
    seat_number: int
    status: SeatState
    reservation_id: Optional[UUID] = None
    occupant_name: Optional[str] = None
    waitlist_count: int = 0
    updated_at: Optional[datetime] = None
