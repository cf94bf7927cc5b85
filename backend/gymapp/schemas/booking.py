"""Pydantic v2 schemas for a member's bookings."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ClassBookingResponse(BaseModel):
    """An active class booking with its session and class details."""

    id: uuid.UUID
    session_id: uuid.UUID
    status: str
    created_at: datetime
    starts_at: datetime
    duration_min: int
    class_title: str
    class_blurb: str | None = None


class TrainerBookingResponse(BaseModel):
    """An active trainer booking with its slot and trainer details."""

    id: uuid.UUID
    availability_id: uuid.UUID
    status: str
    created_at: datetime
    starts_at: datetime
    duration_min: int
    trainer_name: str
    trainer_bio: str | None = None


class BookingsResponse(BaseModel):
    """Both kinds of active bookings, each ordered by start time."""

    class_bookings: list[ClassBookingResponse] = Field(serialization_alias="classBookings")
    trainer_bookings: list[TrainerBookingResponse] = Field(serialization_alias="trainerBookings")
