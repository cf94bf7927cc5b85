"""Trainer API router — public trainer list, availability slots and slot bookings."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_current_user, get_db
from gymapp.models.user import User
from gymapp.schemas.auth import MessageResponse
from gymapp.schemas.catalog import (
    AvailabilityResponse,
    SlotResponse,
    TrainerResponse,
    TrainersListResponse,
)
from gymapp.services import booking_service, catalog_service
from gymapp.services.booking_service import TRAINER_SLOTS

router = APIRouter(prefix="/api/trainers", tags=["trainers"])


@router.get("/public", response_model=TrainersListResponse)
async def list_trainers(db: AsyncSession = Depends(get_db)) -> TrainersListResponse:
    """List active trainers (public — no auth required)."""
    trainers = await catalog_service.list_active_trainers(db)
    return TrainersListResponse(trainers=[TrainerResponse.model_validate(t) for t in trainers])


@router.get("/availability", response_model=AvailabilityResponse)
async def list_availability(
    starts_from: datetime | None = Query(None, alias="from", description="Slots starting at or after"),
    starts_to: datetime | None = Query(None, alias="to", description="Slots starting at or before"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AvailabilityResponse:
    """List trainer slots in the window with seats taken and the caller's own booking state."""
    items = await catalog_service.list_instances(
        db, TRAINER_SLOTS, current_user.id, starts_from=starts_from, starts_to=starts_to
    )
    return AvailabilityResponse(availability=[SlotResponse(**item) for item in items])


@router.post("/availability/{slot_id}/book", response_model=MessageResponse)
async def book_slot(
    slot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    await booking_service.book(db, TRAINER_SLOTS, current_user.id, slot_id)
    return MessageResponse(message="Booked trainer slot")


@router.post("/availability/{slot_id}/cancel", response_model=MessageResponse)
async def cancel_slot(
    slot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    await booking_service.cancel(db, TRAINER_SLOTS, current_user.id, slot_id)
    return MessageResponse(message="Canceled trainer slot")
