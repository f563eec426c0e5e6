"""
Seat catalog and grid endpoints
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import get_session
from studyspace.core.exceptions import ValidationError
from studyspace.core.security import CurrentUser, get_current_user
from studyspace.models.seat import SeatPool
from studyspace.schemas.seat import SeatGridResponse, SeatResponse, SeatStatusResponse
from studyspace.services import seat_catalog
from studyspace.services.grid_service import load_grid
from studyspace.services.intervals import Interval, parse_slot
from studyspace.services.seat_status_service import seat_status_service

router = APIRouter()


@router.get("/", response_model=List[SeatResponse])
async def list_seats(
    pool: Optional[SeatPool] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    List seats, optionally restricted to the 24-hour or 12-hour pool
    """
    return await seat_catalog.list_seats(db, pool=pool)


@router.get("/grid", response_model=List[SeatGridResponse])
async def seat_grid(
    as_of: Optional[datetime] = None,
    slot: str = Query("full"),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    Occupied / waitlisted / available status of every seat for a slot.

    Defaults to the slot's current window; ``start`` and ``end`` select an
    explicit window instead.
    """
    window = None
    if start is not None or end is not None:
        if start is None or end is None:
            raise ValidationError("start and end must be given together", field="start")
        window = Interval(start, end)
        if window.is_empty:
            raise ValidationError("End time must be after start time", field="end")

    return await load_grid(db, as_of=as_of, slot=parse_slot(slot), window=window)


@router.get("/status", response_model=List[SeatStatusResponse])
async def seats_status(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    """
    Last synchronised seats-status read model
    """
    return await seat_status_service.snapshot(db)
