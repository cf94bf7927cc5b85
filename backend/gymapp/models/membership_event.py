"""Membership event log — append-only billing history per user."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from gymapp.database import Base, UUIDPrimaryKeyMixin, utcnow


class MembershipEvent(UUIDPrimaryKeyMixin, Base):
    """One billing-state transition, as reported by Stripe or by the app itself."""

    __tablename__ = "membership_events"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    stripe_object_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    raw: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now())

    __table_args__ = (Index("ix_membership_events_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<MembershipEvent(id={self.id}, user_id={self.user_id}, type={self.event_type!r}, status={self.status})>"
