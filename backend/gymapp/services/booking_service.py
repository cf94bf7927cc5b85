"""Booking ledger — seat-limited booking of class sessions and trainer slots.

Both resource kinds share one implementation, parameterised by a ``BookingKind``.
A (user, instance) pair owns at most one booking row; cancel flips it to
``canceled`` and a later rebook flips the same row back.

Capacity is enforced by the write itself: the instance row is locked
(``SELECT ... FOR UPDATE``, a no-op on SQLite), and the insert/reactivation is a
single conditional statement that only affects a row while the booked count is
below capacity. The earlier count check only produces the friendly error.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Uuid, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from gymapp.database import utcnow
from gymapp.errors import Conflict, InvalidState, NotFound
from gymapp.models.booking import BOOKED, CANCELED, ClassBooking, TrainerBooking
from gymapp.models.catalog import ClassSession, TrainerSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingKind:
    """Describes one bookable resource kind and its booking table."""

    label: str
    instance_model: type
    booking_model: type
    instance_fk: str
    parent_fk: str
    describe_parent: Callable[[object], dict]

    @property
    def noun(self) -> str:
        return self.label.lower()

    @property
    def booking_instance_col(self):
        return getattr(self.booking_model, self.instance_fk)


CLASS_SESSIONS = BookingKind(
    label="Session",
    instance_model=ClassSession,
    booking_model=ClassBooking,
    instance_fk="session_id",
    parent_fk="class_id",
    describe_parent=lambda s: {"class_title": s.group_class.title, "class_blurb": s.group_class.blurb},
)

TRAINER_SLOTS = BookingKind(
    label="Slot",
    instance_model=TrainerSlot,
    booking_model=TrainerBooking,
    instance_fk="availability_id",
    parent_fk="trainer_id",
    describe_parent=lambda s: {"trainer_name": s.trainer.name, "trainer_bio": s.trainer.bio},
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _booked_count_subquery(kind: BookingKind, instance_id: uuid.UUID):
    # Aliased so it never correlates with an UPDATE of the same table.
    held = aliased(kind.booking_model)
    return (
        select(func.count())
        .select_from(held)
        .where(getattr(held, kind.instance_fk) == instance_id, held.status == BOOKED)
        .scalar_subquery()
    )


async def _booked_count(db: AsyncSession, kind: BookingKind, instance_id: uuid.UUID) -> int:
    """Seats currently held on an instance."""
    result = await db.execute(select(_booked_count_subquery(kind, instance_id)))
    return result.scalar_one()


async def _load_instance(db: AsyncSession, kind: BookingKind, instance_id: uuid.UUID, lock: bool = False):
    query = select(kind.instance_model).where(kind.instance_model.id == instance_id)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    instance = result.scalar_one_or_none()
    if instance is None:
        raise NotFound(f"{kind.label} not found")
    return instance


async def _get_user_booking(db: AsyncSession, kind: BookingKind, user_id: uuid.UUID, instance_id: uuid.UUID):
    booking = kind.booking_model
    result = await db.execute(
        select(booking).where(booking.user_id == user_id, kind.booking_instance_col == instance_id)
    )
    return result.scalar_one_or_none()


async def _insert_if_seat_free(db: AsyncSession, kind: BookingKind, user_id: uuid.UUID, instance_id: uuid.UUID) -> int:
    """INSERT ... SELECT that yields no row once the instance is full."""
    booking = kind.booking_model
    instance = kind.instance_model
    seat_free = (
        select(
            literal(uuid.uuid4(), Uuid()),
            literal(user_id, Uuid()),
            instance.id,
            literal(BOOKED),
        )
        .where(instance.id == instance_id, _booked_count_subquery(kind, instance_id) < instance.capacity)
    )
    stmt = insert(booking).from_select(["id", "user_id", kind.instance_fk, "status"], seat_free)
    result = await db.execute(stmt)
    return result.rowcount


async def _reactivate_if_seat_free(db: AsyncSession, kind: BookingKind, booking_id: uuid.UUID, instance_id: uuid.UUID) -> int:
    """Flip a canceled row back to booked, only while a seat is free."""
    booking = kind.booking_model
    capacity = (
        select(kind.instance_model.capacity)
        .where(kind.instance_model.id == instance_id)
        .scalar_subquery()
    )
    stmt = (
        update(booking)
        .where(
            booking.id == booking_id,
            booking.status == CANCELED,
            _booked_count_subquery(kind, instance_id) < capacity,
        )
        .values(status=BOOKED)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def book(
    db: AsyncSession,
    kind: BookingKind,
    user_id: uuid.UUID,
    instance_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """Take a seat on an instance for the user.

    Raises:
        NotFound: The instance does not exist.
        InvalidState: The instance has already started.
        Conflict: The instance is full, or the user already holds a seat.
    """
    now = now or utcnow()
    instance = await _load_instance(db, kind, instance_id, lock=True)
    if instance.starts_at <= now:
        raise InvalidState(f"Cannot book past {kind.noun}")

    if await _booked_count(db, kind, instance_id) >= instance.capacity:
        raise Conflict(f"{kind.label} full")

    existing = await _get_user_booking(db, kind, user_id, instance_id)
    if existing is not None and existing.status == BOOKED:
        raise Conflict("Already booked")

    try:
        if existing is not None:
            written = await _reactivate_if_seat_free(db, kind, existing.id, instance_id)
        else:
            written = await _insert_if_seat_free(db, kind, user_id, instance_id)
    except IntegrityError as e:
        # A concurrent request by the same user inserted first.
        raise Conflict("Already booked") from e

    if not written:
        raise Conflict(f"{kind.label} full")

    if existing is not None:
        await db.refresh(existing)
        logger.info("User %s rebooked %s %s", user_id, kind.noun, instance_id)
    else:
        logger.info("User %s booked %s %s", user_id, kind.noun, instance_id)


async def cancel(
    db: AsyncSession,
    kind: BookingKind,
    user_id: uuid.UUID,
    instance_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """Release the user's seat. Cancelling without a booking is a no-op."""
    now = now or utcnow()
    instance = await _load_instance(db, kind, instance_id)
    if instance.starts_at <= now:
        raise InvalidState(f"Cannot cancel past {kind.noun}")

    booking = kind.booking_model
    result = await db.execute(
        update(booking)
        .where(
            booking.user_id == user_id,
            kind.booking_instance_col == instance_id,
            booking.status == BOOKED,
        )
        .values(status=CANCELED)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount:
        logger.info("User %s canceled %s %s", user_id, kind.noun, instance_id)


async def _list_booked(db: AsyncSession, kind: BookingKind, user_id: uuid.UUID) -> list[dict]:
    booking = kind.booking_model
    instance = kind.instance_model
    result = await db.execute(
        select(booking, instance)
        .join(instance, kind.booking_instance_col == instance.id)
        .where(booking.user_id == user_id, booking.status == BOOKED)
        .order_by(instance.starts_at.asc())
    )
    items = []
    for row, inst in result.all():
        item = {
            "id": row.id,
            kind.instance_fk: inst.id,
            "status": row.status,
            "created_at": row.created_at,
            "starts_at": inst.starts_at,
            "duration_min": inst.duration_min,
        }
        item.update(kind.describe_parent(inst))
        items.append(item)
    return items


async def list_user_bookings(db: AsyncSession, user_id: uuid.UUID) -> dict[str, list[dict]]:
    """All of a member's active bookings of both kinds, each ordered by start time."""
    return {
        "class_bookings": await _list_booked(db, CLASS_SESSIONS, user_id),
        "trainer_bookings": await _list_booked(db, TRAINER_SLOTS, user_id),
    }
