"""FastAPI authentication dependencies for route protection."""

import uuid
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.auth.jwt import decode_token
from gymapp.auth.revocation import is_token_revoked
from gymapp.database import get_db
from gymapp.errors import Forbidden, Unauthorized
from gymapp.models.user import User

# Missing credentials are reported by get_token_claims as 401, not by HTTPBearer as 403
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    """The verified bearer token of the current request."""

    token: str
    payload: dict

    @property
    def jti(self) -> str | None:
        return self.payload.get("jti")


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> TokenClaims:
    """Verify the Bearer token's signature, expiry, type and revocation status.

    Raises:
        Unauthorized: If the header is missing or the token is invalid, expired,
            of the wrong type, or revoked.
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized("Missing or invalid Authorization header")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise Unauthorized("Invalid or expired token") from None

    if payload.get("type") != "access":
        raise Unauthorized("Invalid token type")

    jti = payload.get("jti")
    if jti and await is_token_revoked(db, jti):
        raise Unauthorized("Token revoked")

    return TokenClaims(token=credentials.credentials, payload=payload)


async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the user named by the token's ``sub`` claim, freshly loaded from the database."""
    sub: str | None = claims.payload.get("sub")
    if sub is None:
        raise Unauthorized("Invalid token")

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise Unauthorized("Invalid token") from None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthorized("Invalid token")
    return user


async def require_admin(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Allow the request only if the caller is currently an admin.

    The flag is re-read on every call rather than trusted from the token, so
    revoking admin rights takes effect on the next request.
    """
    result = await db.execute(select(User.is_admin).where(User.id == user.id))
    if not result.scalar_one_or_none():
        raise Forbidden("Admin access required")
    return user
