"""Member API router — profile, class schedule and bookings, plan selection, history.

Everything here acts on the caller's own records only.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_current_user, get_db
from gymapp.billing.status import grants_access
from gymapp.config import settings
from gymapp.models.user import User
from gymapp.schemas.auth import MessageResponse, ProfileUpdate, UserResponse
from gymapp.schemas.booking import BookingsResponse
from gymapp.schemas.catalog import ScheduleResponse, SessionResponse
from gymapp.schemas.membership import (
    MeResponse,
    MembershipEventResponse,
    MembershipHistoryResponse,
    PlanSelection,
    PlanSummary,
    SubscribePlanResponse,
)
from gymapp.services import booking_service, catalog_service, membership_service
from gymapp.services.booking_service import CLASS_SESSIONS

router = APIRouter(prefix="/api/protected", tags=["members"])


def _me(user: User) -> MeResponse:
    return MeResponse(
        user=UserResponse.model_validate(user),
        plan=PlanSummary.model_validate(user.plan) if user.plan else None,
        membership_active=grants_access(user.membership_status),
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the caller's profile and current plan."""
    return _me(current_user)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MeResponse:
    """Update profile fields. Only fields present in the body are changed."""
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    await db.flush()
    await db.refresh(current_user)
    return _me(current_user)


# ---------------------------------------------------------------------------
# Class schedule and bookings
# ---------------------------------------------------------------------------


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(
    starts_from: datetime | None = Query(None, alias="from", description="Sessions starting at or after"),
    starts_to: datetime | None = Query(None, alias="to", description="Sessions starting at or before"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ScheduleResponse:
    """List class sessions in the window with seats taken and the caller's own booking state."""
    items = await catalog_service.list_instances(
        db, CLASS_SESSIONS, current_user.id, starts_from=starts_from, starts_to=starts_to
    )
    return ScheduleResponse(sessions=[SessionResponse(**item) for item in items])


@router.post("/sessions/{session_id}/book", response_model=MessageResponse)
async def book_session(
    session_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    await booking_service.book(db, CLASS_SESSIONS, current_user.id, session_id)
    return MessageResponse(message="Booked session")


@router.post("/sessions/{session_id}/cancel", response_model=MessageResponse)
async def cancel_session(
    session_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    await booking_service.cancel(db, CLASS_SESSIONS, current_user.id, session_id)
    return MessageResponse(message="Canceled session")


@router.get("/bookings", response_model=BookingsResponse)
async def list_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> BookingsResponse:
    """Return the caller's active class and trainer bookings."""
    bookings = await booking_service.list_user_bookings(db, current_user.id)
    return BookingsResponse(**bookings)


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


@router.post("/subscribe-plan", response_model=SubscribePlanResponse)
async def subscribe_plan(
    body: PlanSelection,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SubscribePlanResponse:
    """Select a plan directly, without payment. The membership becomes active."""
    plan = await membership_service.resolve_plan(db, plan_id=body.plan_id, plan_name=body.plan_name)
    await membership_service.assign_plan(db, current_user, plan)
    return SubscribePlanResponse(message="Subscribed", plan=PlanSummary.model_validate(plan))


@router.get("/membership/history", response_model=MembershipHistoryResponse)
async def membership_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MembershipHistoryResponse:
    """Most recent membership events, newest first."""
    events = await membership_service.list_history(
        db, current_user.id, limit=settings.membership_history_limit
    )
    return MembershipHistoryResponse(events=[MembershipEventResponse.model_validate(e) for e in events])
