"""Pydantic v2 request/response schemas for authentication and profile endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from gymapp.auth.passwords import password_policy_errors

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProfileFields(BaseModel):
    """Profile attributes a member may set on registration or later."""

    full_name: str | None = Field(None, max_length=255)
    gender: str | None = Field(None, max_length=50)
    date_of_birth: date | None = None
    height_cm: Decimal | None = Field(None, gt=0, lt=400)
    weight_kg: Decimal | None = Field(None, gt=0, lt=1000)
    goal: str | None = Field(None, max_length=255)


class RegisterRequest(ProfileFields):
    """Schema for user registration."""

    email: EmailStr
    password: str = Field(..., max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        errors = password_policy_errors(value)
        if errors:
            raise ValueError(", ".join(errors))
        return value


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class ProfileUpdate(ProfileFields):
    """Partial profile update; only fields present in the body are applied."""


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public user profile (never includes the password hash)."""

    id: uuid.UUID
    email: str
    full_name: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None
    height_cm: Decimal | None = None
    weight_kg: Decimal | None = None
    goal: str | None = None
    membership_status: str
    is_admin: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Token plus user returned on register/login."""

    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
