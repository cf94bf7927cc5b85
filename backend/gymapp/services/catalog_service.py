"""Resource catalog — plans, group classes, trainers, and scheduling of their instances."""

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.database import to_naive_utc
from gymapp.errors import InvalidState, NotFound
from gymapp.models.booking import BOOKED
from gymapp.models.catalog import ClassSession, GroupClass, Trainer, TrainerSlot
from gymapp.models.plan import Plan
from gymapp.services.booking_service import BookingKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public listings
# ---------------------------------------------------------------------------


async def list_plans(db: AsyncSession) -> list[Plan]:
    result = await db.execute(select(Plan).order_by(Plan.price.asc()))
    return list(result.scalars().all())


async def list_group_classes(db: AsyncSession) -> list[GroupClass]:
    result = await db.execute(select(GroupClass).order_by(GroupClass.title.asc()))
    return list(result.scalars().all())


async def list_active_trainers(db: AsyncSession) -> list[Trainer]:
    result = await db.execute(select(Trainer).where(Trainer.active.is_(True)).order_by(Trainer.name.asc()))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Schedule views
# ---------------------------------------------------------------------------


async def list_instances(
    db: AsyncSession,
    kind: BookingKind,
    user_id: uuid.UUID,
    starts_from: datetime | None = None,
    starts_to: datetime | None = None,
) -> list[dict]:
    """Instances starting within ``[starts_from, starts_to]``, ascending, with occupancy.

    Each entry carries ``booked_count`` and ``user_has_booking`` (0 or 1 for the
    caller) alongside the instance columns and its parent's details.
    """
    instance = kind.instance_model
    booking = kind.booking_model
    booked_count = (
        select(func.count())
        .select_from(booking)
        .where(kind.booking_instance_col == instance.id, booking.status == BOOKED)
        .scalar_subquery()
    )
    user_has_booking = (
        select(func.count())
        .select_from(booking)
        .where(
            kind.booking_instance_col == instance.id,
            booking.status == BOOKED,
            booking.user_id == user_id,
        )
        .scalar_subquery()
    )
    query = select(instance, booked_count.label("booked_count"), user_has_booking.label("user_has_booking"))
    if starts_from is not None:
        query = query.where(instance.starts_at >= to_naive_utc(starts_from))
    if starts_to is not None:
        query = query.where(instance.starts_at <= to_naive_utc(starts_to))
    query = query.order_by(instance.starts_at.asc())

    result = await db.execute(query)
    items = []
    for row, count, mine in result.all():
        item = {
            "id": row.id,
            "starts_at": row.starts_at,
            "duration_min": row.duration_min,
            "capacity": row.capacity,
            "booked_count": count,
            "user_has_booking": mine,
            kind.parent_fk: getattr(row, kind.parent_fk),
        }
        item.update(kind.describe_parent(row))
        items.append(item)
    return items


# ---------------------------------------------------------------------------
# Group class administration
# ---------------------------------------------------------------------------


async def get_group_class(db: AsyncSession, class_id: uuid.UUID) -> GroupClass:
    group_class = await db.get(GroupClass, class_id)
    if group_class is None:
        raise NotFound("Class not found")
    return group_class


async def create_group_class(db: AsyncSession, title: str, blurb: str | None) -> GroupClass:
    group_class = GroupClass(title=title, blurb=blurb)
    db.add(group_class)
    await db.flush()
    await db.refresh(group_class)
    logger.info("Created class %s (%s)", group_class.id, title)
    return group_class


async def update_group_class(db: AsyncSession, class_id: uuid.UUID, title: str, blurb: str | None) -> GroupClass:
    group_class = await get_group_class(db, class_id)
    group_class.title = title
    group_class.blurb = blurb
    await db.flush()
    await db.refresh(group_class)
    return group_class


async def delete_group_class(db: AsyncSession, class_id: uuid.UUID) -> None:
    """Delete a class that has no scheduled sessions."""
    group_class = await get_group_class(db, class_id)
    result = await db.execute(
        select(func.count()).select_from(ClassSession).where(ClassSession.class_id == class_id)
    )
    session_count = result.scalar_one()
    if session_count:
        raise InvalidState(
            f"Cannot delete class with {session_count} scheduled session(s). Delete sessions first."
        )
    await db.delete(group_class)
    await db.flush()
    logger.info("Deleted class %s", class_id)


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


async def schedule_session(
    db: AsyncSession,
    class_id: uuid.UUID,
    starts_at: datetime,
    duration_min: int,
    capacity: int,
) -> ClassSession:
    """Add a session of a class. Capacity is fixed from here on."""
    await get_group_class(db, class_id)
    session = ClassSession(
        class_id=class_id,
        starts_at=to_naive_utc(starts_at),
        duration_min=duration_min,
        capacity=capacity,
    )
    db.add(session)
    await db.flush()
    logger.info("Scheduled session %s of class %s at %s (capacity %d)", session.id, class_id, session.starts_at, capacity)
    return session


async def schedule_trainer_slot(
    db: AsyncSession,
    trainer_id: uuid.UUID,
    starts_at: datetime,
    duration_min: int,
    capacity: int,
) -> TrainerSlot:
    """Open a bookable block of a trainer's time."""
    trainer = await db.get(Trainer, trainer_id)
    if trainer is None:
        raise NotFound("Trainer not found")
    slot = TrainerSlot(
        trainer_id=trainer_id,
        starts_at=to_naive_utc(starts_at),
        duration_min=duration_min,
        capacity=capacity,
    )
    db.add(slot)
    await db.flush()
    logger.info("Opened slot %s for trainer %s at %s (capacity %d)", slot.id, trainer_id, slot.starts_at, capacity)
    return slot
