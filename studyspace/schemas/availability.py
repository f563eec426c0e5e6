"""
Availability schemas
"""

from typing import Optional
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel

from studyspace.schemas.base import BaseSchema
from studyspace.schemas.reservation import ReservationSummary
from studyspace.services.intervals import Slot


class AvailabilityCheckRequest(BaseModel):
    seat_id: UUID
    start_time: datetime
    end_time: datetime
    slot: Slot = Slot.FULL


class AvailabilityCheckResponse(BaseSchema):
    seat_id: UUID
    available: bool
    conflicting_reservation: Optional[ReservationSummary] = None


class NextAvailabilityResponse(BaseSchema):
    seat_number: int
    duration_months: int
    is_available_now: bool
    next_available_date: Optional[date] = None
    conflicting_reservation_end: Optional[date] = None
