"""Service-level tests for the booking ledger (class sessions and trainer slots)."""

import asyncio
import os
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gymapp.auth.passwords import hash_password
from gymapp.database import utcnow
from gymapp.errors import Conflict, InvalidState, NotFound
from gymapp.models.booking import BOOKED, CANCELED, ClassBooking, TrainerBooking
from gymapp.models.catalog import ClassSession, GroupClass, TrainerSlot
from gymapp.models.user import User
from gymapp.services import booking_service
from gymapp.services.booking_service import CLASS_SESSIONS, TRAINER_SLOTS


async def _rows(db: AsyncSession, model, **filters) -> list:
    result = await db.execute(select(model).filter_by(**filters))
    return list(result.scalars().all())


class TestBook:
    async def test_book_creates_row(self, db_session: AsyncSession, test_user: User, class_session: ClassSession):
        await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)

        (booking,) = await _rows(db_session, ClassBooking, session_id=class_session.id)
        assert booking.user_id == test_user.id
        assert booking.status == BOOKED

    async def test_instance_start_is_the_cutoff(
        self, db_session: AsyncSession, test_user: User, class_session: ClassSession
    ):
        with pytest.raises(InvalidState, match="Cannot book past session"):
            await booking_service.book(
                db_session, CLASS_SESSIONS, test_user.id, class_session.id, now=class_session.starts_at
            )

        # One second before the start is still bookable
        await booking_service.book(
            db_session,
            CLASS_SESSIONS,
            test_user.id,
            class_session.id,
            now=class_session.starts_at - timedelta(seconds=1),
        )

    async def test_unknown_instance(self, db_session: AsyncSession, test_user: User, class_session: ClassSession):
        with pytest.raises(NotFound, match="Slot not found"):
            await booking_service.book(db_session, TRAINER_SLOTS, test_user.id, class_session.id)

    async def test_double_booking_rejected(
        self, db_session: AsyncSession, test_user: User, class_session: ClassSession
    ):
        await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        with pytest.raises(Conflict, match="Already booked"):
            await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)

    async def test_full_instance(self, db_session: AsyncSession, make_user, class_session: ClassSession):
        for _ in range(class_session.capacity):
            user = await make_user()
            await booking_service.book(db_session, CLASS_SESSIONS, user.id, class_session.id)

        late = await make_user(prefix="late")
        with pytest.raises(Conflict, match="Session full"):
            await booking_service.book(db_session, CLASS_SESSIONS, late.id, class_session.id)
        assert await booking_service._booked_count(db_session, CLASS_SESSIONS, class_session.id) == 2

    async def test_write_guard_holds_when_count_check_is_stale(
        self, db_session: AsyncSession, make_user, trainer_slot: TrainerSlot
    ):
        """The conditional insert refuses a seat even if the pre-check saw a free one."""
        first = await make_user()
        await booking_service.book(db_session, TRAINER_SLOTS, first.id, trainer_slot.id)

        second = await make_user()
        with patch.object(booking_service, "_booked_count", AsyncMock(return_value=0)):
            with pytest.raises(Conflict, match="Slot full"):
                await booking_service.book(db_session, TRAINER_SLOTS, second.id, trainer_slot.id)

        rows = await _rows(db_session, TrainerBooking, availability_id=trainer_slot.id)
        assert [r.user_id for r in rows] == [first.id]

    async def test_reactivation_guarded_when_count_check_is_stale(
        self, db_session: AsyncSession, make_user, trainer_slot: TrainerSlot
    ):
        member = await make_user()
        await booking_service.book(db_session, TRAINER_SLOTS, member.id, trainer_slot.id)
        await booking_service.cancel(db_session, TRAINER_SLOTS, member.id, trainer_slot.id)

        rival = await make_user()
        await booking_service.book(db_session, TRAINER_SLOTS, rival.id, trainer_slot.id)

        with patch.object(booking_service, "_booked_count", AsyncMock(return_value=0)):
            with pytest.raises(Conflict, match="Slot full"):
                await booking_service.book(db_session, TRAINER_SLOTS, member.id, trainer_slot.id)

        (mine,) = await _rows(db_session, TrainerBooking, availability_id=trainer_slot.id, user_id=member.id)
        await db_session.refresh(mine)
        assert mine.status == CANCELED


class TestCancelAndRebook:
    async def test_cancel_frees_seat_and_rebook_reuses_row(
        self, db_session: AsyncSession, test_user: User, class_session: ClassSession
    ):
        await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        (original,) = await _rows(db_session, ClassBooking, session_id=class_session.id)

        await booking_service.cancel(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        assert await booking_service._booked_count(db_session, CLASS_SESSIONS, class_session.id) == 0
        await db_session.refresh(original)
        assert original.status == CANCELED

        await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        rows = await _rows(db_session, ClassBooking, session_id=class_session.id)
        assert [r.id for r in rows] == [original.id]
        assert rows[0].status == BOOKED

    async def test_cancel_without_booking_is_noop(
        self, db_session: AsyncSession, test_user: User, class_session: ClassSession
    ):
        await booking_service.cancel(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        assert await _rows(db_session, ClassBooking, session_id=class_session.id) == []

    async def test_cancel_twice_is_noop(self, db_session: AsyncSession, test_user: User, trainer_slot: TrainerSlot):
        await booking_service.book(db_session, TRAINER_SLOTS, test_user.id, trainer_slot.id)
        await booking_service.cancel(db_session, TRAINER_SLOTS, test_user.id, trainer_slot.id)
        await booking_service.cancel(db_session, TRAINER_SLOTS, test_user.id, trainer_slot.id)

        (row,) = await _rows(db_session, TrainerBooking, availability_id=trainer_slot.id)
        assert row.status == CANCELED

    async def test_cannot_cancel_started_instance(
        self, db_session: AsyncSession, test_user: User, class_session: ClassSession
    ):
        await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, class_session.id)
        with pytest.raises(InvalidState, match="Cannot cancel past session"):
            await booking_service.cancel(
                db_session,
                CLASS_SESSIONS,
                test_user.id,
                class_session.id,
                now=class_session.starts_at + timedelta(minutes=1),
            )


class TestListUserBookings:
    async def test_only_active_bookings_of_both_kinds(
        self,
        db_session: AsyncSession,
        test_user: User,
        make_session,
        trainer_slot: TrainerSlot,
    ):
        kept = await make_session(starts_in=timedelta(days=2))
        dropped = await make_session(starts_in=timedelta(days=1))
        for session in (kept, dropped):
            await booking_service.book(db_session, CLASS_SESSIONS, test_user.id, session.id)
        await booking_service.cancel(db_session, CLASS_SESSIONS, test_user.id, dropped.id)
        await booking_service.book(db_session, TRAINER_SLOTS, test_user.id, trainer_slot.id)

        bookings = await booking_service.list_user_bookings(db_session, test_user.id)
        assert [b["session_id"] for b in bookings["class_bookings"]] == [kept.id]
        assert bookings["class_bookings"][0]["class_title"] == "Yoga Flow"
        (slot_booking,) = bookings["trainer_bookings"]
        assert slot_booking["availability_id"] == trainer_slot.id
        assert slot_booking["trainer_name"] == "Priya Nair"


@pytest.mark.skipif(
    not os.getenv("TEST_DATABASE_URL", "").startswith("postgresql"),
    reason="needs PostgreSQL row locks (set TEST_DATABASE_URL)",
)
async def test_concurrent_bookings_never_exceed_capacity(test_engine):
    """Many members race for a two-seat session on separate connections."""
    session_factory = async_sessionmaker(test_engine, expire_on_commit=False)

    async with session_factory() as db:
        group_class = GroupClass(title="Spin")
        instance = ClassSession(group_class=group_class, starts_at=utcnow() + timedelta(days=1), capacity=2)
        users = [
            User(email=f"racer-{i}@test.com", hashed_password=hash_password("Racer123!x"))
            for i in range(8)
        ]
        db.add_all([instance, *users])
        await db.commit()

    async def attempt(user_id) -> bool:
        async with session_factory() as db:
            try:
                await booking_service.book(db, CLASS_SESSIONS, user_id, instance.id)
                await db.commit()
                return True
            except Conflict:
                await db.rollback()
                return False

    outcomes = await asyncio.gather(*(attempt(u.id) for u in users))
    assert sum(outcomes) == 2

    async with session_factory() as db:
        result = await db.execute(
            select(func.count()).select_from(ClassBooking).where(
                ClassBooking.session_id == instance.id, ClassBooking.status == BOOKED
            )
        )
        assert result.scalar_one() == 2


async def test_last_seat_race_has_one_winner(test_engine):
    """With one seat left, two members booking at once get one success and one Conflict."""
    session_factory = async_sessionmaker(test_engine, expire_on_commit=False)

    async with session_factory() as db:
        instance = ClassSession(
            group_class=GroupClass(title="Pilates"), starts_at=utcnow() + timedelta(days=1), capacity=2
        )
        holder, first, second = (
            User(email=f"{name}@test.com", hashed_password=hash_password("Seat123!x"))
            for name in ("holder", "first", "second")
        )
        db.add_all([instance, holder, first, second])
        await db.commit()
        await booking_service.book(db, CLASS_SESSIONS, holder.id, instance.id)
        await db.commit()

    async def attempt(user_id) -> str:
        async with session_factory() as db:
            try:
                await booking_service.book(db, CLASS_SESSIONS, user_id, instance.id)
                await db.commit()
                return "ok"
            except Conflict:
                await db.rollback()
                return "conflict"

    outcomes = await asyncio.gather(attempt(first.id), attempt(second.id))
    assert sorted(outcomes) == ["conflict", "ok"]

    async with session_factory() as db:
        assert await booking_service._booked_count(db, CLASS_SESSIONS, instance.id) == 2
