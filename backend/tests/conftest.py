"""Shared test configuration and fixtures.

Uses a fresh database per test plus a transactional rollback strategy:
- Tables are created in a throwaway SQLite file (aiosqlite), or in the
  PostgreSQL database named by ``TEST_DATABASE_URL`` when it is set.
- Each test gets one session wrapped in a transaction that always rolls back.
  The app shares that session through an override of ``get_db``, so rows added
  by fixtures are visible to requests without committing.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import timedelta
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from gymapp.auth.jwt import issue_token
from gymapp.auth.passwords import hash_password
from gymapp.database import Base, get_db, utcnow
from gymapp.main import app
from gymapp.models import ClassSession, GroupClass, Plan, Trainer, TrainerSlot, User

TEST_PASSWORD = "Testpass123!"


def _test_db_url(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'gym_test.db'}"


# ---------------------------------------------------------------------------
# Per-test engine and schema
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create an engine with all tables; drop them afterwards."""
    engine = create_async_engine(_test_db_url(tmp_path), echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


# ---------------------------------------------------------------------------
# Per-test: transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            if transaction.is_active:
                await transaction.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def _create_user(
    db_session: AsyncSession,
    prefix: str = "member",
    is_admin: bool = False,
    **fields,
) -> User:
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=f"{prefix}-{unique}@test.com",
        hashed_password=hash_password(TEST_PASSWORD),
        full_name=f"{prefix.title()} User",
        is_admin=is_admin,
        **fields,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user.id)}"}


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory: insert a user with the shared test password (extra columns via kwargs)."""

    async def _make(prefix: str = "member", is_admin: bool = False, **fields) -> User:
        return await _create_user(db_session, prefix=prefix, is_admin=is_admin, **fields)

    return _make


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A regular member with no plan."""
    return await _create_user(db_session)


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Return Authorization headers for the test member."""
    return _bearer(test_user)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, prefix="admin", is_admin=True)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return _bearer(admin_user)


# ---------------------------------------------------------------------------
# Catalog: plans, classes, sessions, trainers, slots
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def plans(db_session: AsyncSession) -> dict[str, Plan]:
    """Basic (free path only), Plus and Pro (purchasable through Stripe)."""
    rows = [
        Plan(name="Basic", price=Decimal("19.00"), currency="USD", features=["Gym floor access"]),
        Plan(name="Plus", price=Decimal("39.00"), currency="USD", highlighted=True, stripe_price_id="price_plus"),
        Plan(name="Pro", price=Decimal("59.00"), currency="USD", stripe_price_id="price_pro"),
    ]
    db_session.add_all(rows)
    await db_session.flush()
    return {plan.name: plan for plan in rows}


@pytest_asyncio.fixture
async def group_class(db_session: AsyncSession) -> GroupClass:
    group_class = GroupClass(title="Yoga Flow", blurb="Breathwork and dynamic poses.")
    db_session.add(group_class)
    await db_session.flush()
    return group_class


async def _create_session(
    db_session: AsyncSession,
    group_class: GroupClass,
    starts_in: timedelta = timedelta(days=1),
    capacity: int = 2,
) -> ClassSession:
    session = ClassSession(
        group_class=group_class,
        starts_at=utcnow() + starts_in,
        duration_min=60,
        capacity=capacity,
    )
    db_session.add(session)
    await db_session.flush()
    return session


@pytest_asyncio.fixture
async def class_session(db_session: AsyncSession, group_class: GroupClass) -> ClassSession:
    """A session tomorrow with two seats."""
    return await _create_session(db_session, group_class)


@pytest_asyncio.fixture
async def past_session(db_session: AsyncSession, group_class: GroupClass) -> ClassSession:
    return await _create_session(db_session, group_class, starts_in=timedelta(hours=-1))


@pytest_asyncio.fixture
async def trainer(db_session: AsyncSession) -> Trainer:
    trainer = Trainer(name="Priya Nair", bio="Mobility specialist.", max_clients=10)
    db_session.add(trainer)
    await db_session.flush()
    return trainer


@pytest_asyncio.fixture
async def trainer_slot(db_session: AsyncSession, trainer: Trainer) -> TrainerSlot:
    """A one-seat slot tomorrow."""
    slot = TrainerSlot(
        trainer=trainer,
        starts_at=utcnow() + timedelta(days=1),
        duration_min=60,
        capacity=1,
    )
    db_session.add(slot)
    await db_session.flush()
    return slot


@pytest_asyncio.fixture
async def make_session(db_session: AsyncSession, group_class: GroupClass):
    """Factory: schedule another session of ``group_class``."""

    async def _make(starts_in: timedelta = timedelta(days=1), capacity: int = 2) -> ClassSession:
        return await _create_session(db_session, group_class, starts_in=starts_in, capacity=capacity)

    return _make
