"""Bookable resources: group classes with their sessions, trainers with their slots.

An instance's ``capacity`` is fixed when it is scheduled. Booking activity never
touches it; occupancy is always counted from the booking tables.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gymapp.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class GroupClass(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class type offered by the gym (e.g. Spin, Yoga)."""

    __tablename__ = "group_classes"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    blurb: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<GroupClass(id={self.id}, title={self.title!r})>"


class ClassSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A scheduled, seat-limited occurrence of a group class."""

    __tablename__ = "class_sessions"

    class_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("group_classes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    group_class: Mapped[GroupClass] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_class_sessions_capacity_positive"),
        Index("ix_class_sessions_starts_at", "starts_at"),
    )

    def __repr__(self) -> str:
        return f"<ClassSession(id={self.id}, class_id={self.class_id}, starts_at={self.starts_at})>"


class Trainer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A personal trainer."""

    __tablename__ = "trainers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_clients: Mapped[int | None] = mapped_column(Integer, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)

    def __repr__(self) -> str:
        return f"<Trainer(id={self.id}, name={self.name!r})>"


class TrainerSlot(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A block of a trainer's time that members can book."""

    __tablename__ = "trainer_availability"

    trainer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("trainers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    trainer: Mapped[Trainer] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_trainer_availability_capacity_positive"),
        Index("ix_trainer_availability_starts_at", "starts_at"),
    )

    def __repr__(self) -> str:
        return f"<TrainerSlot(id={self.id}, trainer_id={self.trainer_id}, starts_at={self.starts_at})>"
