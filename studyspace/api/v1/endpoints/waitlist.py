"""
Waitlist endpoints
"""

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.database import db_manager, get_session
from studyspace.core.security import CurrentUser, get_current_user
from studyspace.schemas.waitlist import WaitlistEntryResponse, WaitlistRequest
from studyspace.services import seat_catalog
from studyspace.services.waitlist_service import waitlist_manager

router = APIRouter()


@router.post("/", response_model=WaitlistEntryResponse, status_code=status.HTTP_201_CREATED)
async def join_waitlist(
    request: WaitlistRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    await seat_catalog.get_seat(db, request.seat_id)
    async with db_manager.transaction(db):
        entry = await waitlist_manager.enqueue(db, request.seat_id, current_user.id, request.slot)
    return entry


@router.get("/", response_model=List[WaitlistEntryResponse])
async def list_waitlist(
    seat_id: UUID = Query(...),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
):
    return await waitlist_manager.list_for_seat(db, seat_id)
