"""
Admin endpoints
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import db_manager, get_session
from studyspace.core.security import CurrentUser, require_admin
from studyspace.schemas.reservation import (
    ExpiringMembershipResponse, RejectRequest, ReservationResponse
)
from studyspace.schemas.seat import SeatStatusResponse
from studyspace.services.membership_service import expiring_memberships
from studyspace.services.reservation_service import reservation_service
from studyspace.services.seat_status_service import seat_status_service
from studyspace.services.waitlist_service import waitlist_manager

router = APIRouter()


@router.post("/reservations/{reservation_id}/approve", response_model=ReservationResponse)
async def approve_reservation(
    reservation_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    """
    Mark the payment received and confirm the reservation
    """
    return await reservation_service.approve(db, reservation_id)


@router.post("/reservations/{reservation_id}/reject", response_model=ReservationResponse)
async def reject_reservation(
    reservation_id: UUID,
    request: Optional[RejectRequest] = None,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    notes = request.notes if request is not None else None
    return await reservation_service.reject(db, reservation_id, notes=notes)


@router.post("/jobs/timeout-pending")
async def timeout_pending(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    """
    Pending-payment timeout, triggered by an external scheduler
    """
    count = await reservation_service.timeout_pending(db)
    return {"timed_out": count}


@router.post("/seats/status/sync", response_model=List[SeatStatusResponse])
async def sync_seats_status(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    return await seat_status_service.resync(db)


@router.delete("/waitlist/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_waitlist_entry(
    entry_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    async with db_manager.transaction(db):
        await waitlist_manager.dequeue(db, entry_id)


@router.get("/memberships/expiring", response_model=List[ExpiringMembershipResponse])
async def list_expiring_memberships(
    within_days: Optional[int] = Query(None, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
):
    """
    Confirmed memberships ending soon, with urgency bands
    """
    report = await expiring_memberships(db, within_days=within_days)
    return [
        ExpiringMembershipResponse(
            reservation_id=item.reservation.id,
            seat_number=item.reservation.seat.seat_number if item.reservation.seat is not None else None,
            occupant_name=item.reservation.occupant_name,
            category=item.reservation.category,
            membership_end_date=item.reservation.membership_end_date,
            days_left=item.days_left,
            band=item.band,
        )
        for item in report
    ]
