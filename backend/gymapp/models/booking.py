"""Booking ledger models — who holds a seat in which instance.

Rows are never deleted. A (user, instance) pair owns at most one row, which
moves between ``booked`` and ``canceled``; only ``booked`` occupies a seat.
"""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gymapp.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

BOOKED = "booked"
CANCELED = "canceled"


class ClassBooking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A member's seat in a class session."""

    __tablename__ = "bookings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("class_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BOOKED)

    session: Mapped["ClassSession"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        UniqueConstraint("user_id", "session_id", name="uq_bookings_user_session"),
        CheckConstraint("status IN ('booked', 'canceled')", name="ck_bookings_status"),
        Index("ix_bookings_session_status", "session_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<ClassBooking(id={self.id}, user_id={self.user_id}, session_id={self.session_id}, status={self.status})>"


class TrainerBooking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A member's seat in a trainer availability slot."""

    __tablename__ = "trainer_bookings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    availability_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("trainer_availability.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BOOKED)

    slot: Mapped["TrainerSlot"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        UniqueConstraint("user_id", "availability_id", name="uq_trainer_bookings_user_slot"),
        CheckConstraint("status IN ('booked', 'canceled')", name="ck_trainer_bookings_status"),
        Index("ix_trainer_bookings_slot_status", "availability_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<TrainerBooking(id={self.id}, user_id={self.user_id}, "
            f"availability_id={self.availability_id}, status={self.status})>"
        )
