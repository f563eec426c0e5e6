"""
Availability endpoints used by the booking wizards
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import get_session
from studyspace.core.security import CurrentUser, get_current_user
from studyspace.schemas.availability import (
    AvailabilityCheckRequest, AvailabilityCheckResponse, NextAvailabilityResponse
)
from studyspace.services.intervals import parse_slot
from studyspace.services.reservation_service import reservation_service

router = APIRouter()


@router.post("/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    request: AvailabilityCheckRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    verdict = await reservation_service.check(
        db, request.seat_id, request.start_time, request.end_time, request.slot
    )
    return AvailabilityCheckResponse(
        seat_id=request.seat_id,
        available=verdict.available,
        conflicting_reservation=verdict.conflicting_reservation,
    )


@router.get("/next", response_model=NextAvailabilityResponse)
async def next_available(
    seat_number: int = Query(..., ge=1),
    duration_months: int = Query(...),
    slot: str = Query("full"),
    start: Optional[date] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    When a fixed membership of the given length could start on the seat
    """
    result = await reservation_service.next_available(
        db, seat_number, duration_months, slot=parse_slot(slot), start=start
    )
    return NextAvailabilityResponse(
        seat_number=seat_number,
        duration_months=duration_months,
        is_available_now=result.is_available_now,
        next_available_date=result.next_available_date,
        conflicting_reservation_end=result.conflicting_reservation_end,
    )
