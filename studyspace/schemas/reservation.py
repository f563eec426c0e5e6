"""
Reservation schemas for request/response models
"""

from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field

from studyspace.models.reservation import PaymentStatus, ReservationStatus, SeatCategory
from studyspace.schemas.base import BaseSchema, IDSchema
from studyspace.services.intervals import Slot
from studyspace.services.reservation_service import BookingOutcome


class BookingRequest(BaseModel):
    seat_id: UUID
    start_time: datetime
    end_time: datetime
    slot: Slot = Slot.FULL


class MembershipRequest(BaseModel):
    category: SeatCategory
    duration_months: int
    seat_number: Optional[int] = Field(None, ge=1)
    slot: Slot = Slot.FULL
    start_date: Optional[date] = None


class RejectRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class ReservationResponse(IDSchema):
    user_id: UUID
    seat_id: Optional[UUID] = None
    category: SeatCategory
    slot: Slot
    start_time: datetime
    end_time: datetime
    membership_start_date: Optional[date] = None
    membership_end_date: Optional[date] = None
    duration_months: Optional[int] = None
    monthly_cost: Optional[Decimal] = None
    status: ReservationStatus
    payment_status: PaymentStatus
    admin_notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime


class ReservationSummary(BaseSchema):
    id: UUID
    seat_id: Optional[UUID] = None
    slot: Slot
    start_time: datetime
    end_time: datetime
    membership_end_date: Optional[date] = None
    status: ReservationStatus


class BookingResultResponse(BaseSchema):
    outcome: BookingOutcome
    reservation: Optional[ReservationResponse] = None
    waitlist_entry_id: Optional[UUID] = None
    conflicting_reservation: Optional[ReservationSummary] = None
    requested_start_date: Optional[date] = None


class ExpiringMembershipResponse(BaseSchema):
    reservation_id: UUID
    seat_number: Optional[int] = None
    occupant_name: Optional[str] = None
    category: SeatCategory
    membership_end_date: date
    days_left: int
    band: str
