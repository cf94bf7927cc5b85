"""Pydantic v2 schemas for membership, plan selection and billing endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gymapp.schemas.auth import UserResponse

# --- Request schemas ---


class PlanSelection(BaseModel):
    """A plan chosen by id or by name (``{planId}`` or ``{planName}``)."""

    plan_id: uuid.UUID | None = Field(None, alias="planId")
    plan_name: str | None = Field(None, alias="planName")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _one_of(self) -> "PlanSelection":
        if self.plan_id is None and not self.plan_name:
            raise ValueError("planId or planName is required")
        return self


class CancelSubscriptionRequest(BaseModel):
    mode: Literal["immediate", "period_end"] = "period_end"


# --- Response schemas ---


class PlanSummary(BaseModel):
    id: uuid.UUID
    name: str
    price: Decimal
    currency: str

    model_config = ConfigDict(from_attributes=True)


class MeResponse(BaseModel):
    """The caller's profile, plan, and whether their membership is in good standing."""

    user: UserResponse
    plan: PlanSummary | None = None
    membership_active: bool


class SubscribePlanResponse(BaseModel):
    message: str
    plan: PlanSummary


class CheckoutResponse(BaseModel):
    """Stripe Checkout URL the frontend redirects to."""

    url: str


class CancelSubscriptionResponse(BaseModel):
    message: str
    status: str
    mode: str


class MembershipEventResponse(BaseModel):
    id: uuid.UUID
    event_type: str
    status: str
    stripe_object_id: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipHistoryResponse(BaseModel):
    events: list[MembershipEventResponse]


class WebhookAck(BaseModel):
    received: bool = True
