"""Auth API router — register, login, logout."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import TokenClaims, get_db, get_token_claims
from gymapp.auth.jwt import issue_token, token_expiry
from gymapp.auth.passwords import hash_password, verify_password
from gymapp.auth.revocation import revoke_token
from gymapp.errors import Conflict, Unauthorized
from gymapp.models.user import User
from gymapp.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Register a new member with email, password and optional profile fields."""
    result = await db.execute(select(User).where(User.email == body.email))
    if result.scalar_one_or_none() is not None:
        raise Conflict("Email already registered")

    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        **body.model_dump(exclude={"email", "password"}),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same address
        raise Conflict("Email already registered") from None
    await db.refresh(user)
    logger.info("Registered user %s", user.id)

    return AuthResponse(token=issue_token(user.id), user=UserResponse.model_validate(user))


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Authenticate with email and password."""
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.hashed_password):
        raise Unauthorized("Invalid credentials")

    return AuthResponse(token=issue_token(user.id), user=UserResponse.model_validate(user))


# ---------------------------------------------------------------------------
# POST /logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
async def logout(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Revoke the presented token until its natural expiry."""
    if claims.jti:
        await revoke_token(db, claims.jti, token_expiry(claims.payload))
    return MessageResponse(message="Logged out")
