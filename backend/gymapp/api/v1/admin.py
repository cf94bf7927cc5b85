"""Admin API router — group class management and scheduling of bookable instances.

Every route requires the caller to currently hold the admin flag.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_db, require_admin
from gymapp.schemas.auth import MessageResponse
from gymapp.schemas.catalog import (
    GroupClassEnvelope,
    GroupClassListResponse,
    GroupClassResponse,
    GroupClassWrite,
    InstanceCreate,
    InstanceCreatedResponse,
)
from gymapp.services import catalog_service

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Group classes
# ---------------------------------------------------------------------------


@router.get("/classes", response_model=GroupClassListResponse)
async def list_classes(db: AsyncSession = Depends(get_db)) -> GroupClassListResponse:
    classes = await catalog_service.list_group_classes(db)
    return GroupClassListResponse(classes=[GroupClassResponse.model_validate(c) for c in classes])


@router.post("/classes", response_model=GroupClassEnvelope, status_code=status.HTTP_201_CREATED)
async def create_class(body: GroupClassWrite, db: AsyncSession = Depends(get_db)) -> GroupClassEnvelope:
    group_class = await catalog_service.create_group_class(db, body.title, body.blurb)
    return GroupClassEnvelope(group_class=GroupClassResponse.model_validate(group_class))


@router.put("/classes/{class_id}", response_model=GroupClassEnvelope)
async def update_class(
    class_id: uuid.UUID,
    body: GroupClassWrite,
    db: AsyncSession = Depends(get_db),
) -> GroupClassEnvelope:
    group_class = await catalog_service.update_group_class(db, class_id, body.title, body.blurb)
    return GroupClassEnvelope(group_class=GroupClassResponse.model_validate(group_class))


@router.delete("/classes/{class_id}", response_model=MessageResponse)
async def delete_class(class_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> MessageResponse:
    """Delete a class. Refused while any session of it is still scheduled."""
    await catalog_service.delete_group_class(db, class_id)
    return MessageResponse(message="Class deleted successfully")


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


@router.post(
    "/classes/{class_id}/sessions",
    response_model=InstanceCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    class_id: uuid.UUID,
    body: InstanceCreate,
    db: AsyncSession = Depends(get_db),
) -> InstanceCreatedResponse:
    """Schedule a session of a class."""
    session = await catalog_service.schedule_session(
        db, class_id, body.starts_at, body.duration_min, body.capacity
    )
    return InstanceCreatedResponse.model_validate(session)


@router.post(
    "/trainers/{trainer_id}/availability",
    response_model=InstanceCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_availability(
    trainer_id: uuid.UUID,
    body: InstanceCreate,
    db: AsyncSession = Depends(get_db),
) -> InstanceCreatedResponse:
    """Open a bookable slot for a trainer."""
    slot = await catalog_service.schedule_trainer_slot(
        db, trainer_id, body.starts_at, body.duration_min, body.capacity
    )
    return InstanceCreatedResponse.model_validate(slot)
