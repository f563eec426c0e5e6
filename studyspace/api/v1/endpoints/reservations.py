"""
Reservation endpoints
"""

from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import get_session
from studyspace.core.exceptions import NotFoundError
from studyspace.core.security import CurrentUser, get_current_user
from studyspace.schemas.reservation import (
    BookingRequest, BookingResultResponse, MembershipRequest, ReservationResponse
)
from studyspace.services.reservation_service import BookingResult, reservation_service

router = APIRouter()


def booking_response(result: BookingResult) -> BookingResultResponse:
    return BookingResultResponse(
        outcome=result.outcome,
        reservation=result.reservation,
        waitlist_entry_id=result.waitlist_entry.id if result.waitlist_entry is not None else None,
        conflicting_reservation=result.conflicting_reservation,
        requested_start_date=result.requested_start_date,
    )


@router.post("/", response_model=BookingResultResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    Request an ad-hoc booking. An unavailable seat puts the caller on its
    waitlist instead.
    """
    result = await reservation_service.request_booking(
        db,
        user_id=current_user.id,
        seat_id=request.seat_id,
        start_time=request.start_time,
        end_time=request.end_time,
        slot=request.slot,
    )
    return booking_response(result)


@router.post("/memberships", response_model=BookingResultResponse, status_code=status.HTTP_201_CREATED)
async def create_membership(
    request: MembershipRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    Request a monthly membership. A fixed seat that is taken defers the
    start to the next available date.
    """
    result = await reservation_service.request_membership(
        db,
        user_id=current_user.id,
        category=request.category,
        duration_months=request.duration_months,
        seat_number=request.seat_number,
        slot=request.slot,
        start=request.start_date,
    )
    return booking_response(result)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    reservation = await reservation_service.get(db, reservation_id)
    if reservation.user_id != current_user.id and not current_user.is_admin:
        raise NotFoundError("Reservation", reservation_id)
    return reservation
