"""JWT access token creation and verification.

Every token carries a random ``jti`` so that a single token can be revoked on
logout without invalidating the user's other sessions.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from gymapp.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed access token.

    Args:
        data: Payload data. Must include ``sub`` (user UUID as string).
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    to_encode.setdefault("jti", uuid.uuid4().hex)
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def token_expiry(payload: dict) -> datetime:
    """Return the ``exp`` claim of a decoded payload as naive UTC."""
    return datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc).replace(tzinfo=None)


def issue_token(user_id: uuid.UUID) -> str:
    """Issue a fresh access token for a user."""
    return create_access_token({"sub": str(user_id)})
