"""Token revocation store backed by the ``jwt_blacklist`` table."""

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.database import utcnow
from gymapp.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)


async def revoke_token(db: AsyncSession, jti: str, expires_at: datetime) -> None:
    """Record ``jti`` as revoked until ``expires_at``. Revoking twice is a no-op."""
    if await db.get(RevokedToken, jti) is not None:
        return
    db.add(RevokedToken(jti=jti, expires_at=expires_at))
    await db.flush()
    logger.info("Revoked token %s (expires %s)", jti, expires_at.isoformat())


async def is_token_revoked(db: AsyncSession, jti: str) -> bool:
    result = await db.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti))
    return result.scalar_one_or_none() is not None


async def purge_expired_revocations(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete revocations whose token has expired anyway. Returns the number removed."""
    cutoff = now or utcnow()
    result = await db.execute(delete(RevokedToken).where(RevokedToken.expires_at < cutoff))
    await db.flush()
    removed = result.rowcount or 0
    logger.info("Purged %d expired token revocation(s)", removed)
    return removed
