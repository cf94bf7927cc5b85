"""Revoked JWTs — a denylist keyed by the token's ``jti`` claim."""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gymapp.database import Base


class RevokedToken(Base):
    """A token invalidated by logout before its natural expiry.

    Rows are useless once ``expires_at`` has passed and may be purged.
    """

    __tablename__ = "jwt_blacklist"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<RevokedToken(jti={self.jti!r}, expires_at={self.expires_at})>"
