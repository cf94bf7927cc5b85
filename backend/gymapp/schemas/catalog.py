"""Pydantic v2 schemas for plans, classes, trainers and their bookable instances."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Public listings
# ---------------------------------------------------------------------------


class PlanResponse(BaseModel):
    id: uuid.UUID
    name: str
    price: Decimal
    currency: str
    description: str | None = None
    features: list[str] = []
    highlighted: bool = False

    model_config = ConfigDict(from_attributes=True)

    @field_validator("features", mode="before")
    @classmethod
    def _none_as_empty(cls, value: list[str] | None) -> list[str]:
        return value or []


class PlansListResponse(BaseModel):
    plans: list[PlanResponse]


class GroupClassResponse(BaseModel):
    id: uuid.UUID
    title: str
    blurb: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicClassResponse(BaseModel):
    title: str
    blurb: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicClassesListResponse(BaseModel):
    classes: list[PublicClassResponse]


class TrainerResponse(BaseModel):
    id: uuid.UUID
    name: str
    bio: str | None = None
    max_clients: int | None = None

    model_config = ConfigDict(from_attributes=True)


class TrainersListResponse(BaseModel):
    trainers: list[TrainerResponse]


# ---------------------------------------------------------------------------
# Schedule (instances annotated with occupancy)
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """A class session with its occupancy as seen by the caller."""

    id: uuid.UUID
    class_id: uuid.UUID
    starts_at: datetime
    duration_min: int
    capacity: int
    class_title: str
    class_blurb: str | None = None
    booked_count: int
    user_has_booking: int


class ScheduleResponse(BaseModel):
    sessions: list[SessionResponse]


class SlotResponse(BaseModel):
    """A trainer availability slot with its occupancy as seen by the caller."""

    id: uuid.UUID
    trainer_id: uuid.UUID
    starts_at: datetime
    duration_min: int
    capacity: int
    trainer_name: str
    trainer_bio: str | None = None
    booked_count: int
    user_has_booking: int


class AvailabilityResponse(BaseModel):
    availability: list[SlotResponse]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class GroupClassWrite(BaseModel):
    """Create/replace body for a group class."""

    title: str = Field(..., max_length=255)
    blurb: str | None = None

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("blurb")
    @classmethod
    def _blank_blurb_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class GroupClassEnvelope(BaseModel):
    group_class: GroupClassResponse = Field(serialization_alias="class")


class GroupClassListResponse(BaseModel):
    classes: list[GroupClassResponse]


class InstanceCreate(BaseModel):
    """Body for scheduling a session or trainer slot. Capacity is fixed from here on."""

    starts_at: datetime
    duration_min: int = Field(60, ge=1, le=24 * 60)
    capacity: int = Field(..., ge=1)


class InstanceCreatedResponse(BaseModel):
    id: uuid.UUID
    starts_at: datetime
    duration_min: int
    capacity: int

    model_config = ConfigDict(from_attributes=True)
