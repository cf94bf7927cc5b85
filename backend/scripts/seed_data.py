"""Seed the database with plans, classes, trainers and a week of bookable instances.

Creates the tables if they do not exist, then inserts reference data. Plans,
classes and trainers are matched by name, so re-running only adds what is
missing; sessions and slots are added only when none are scheduled yet. Stripe
prices are attached afterwards by ``gymapp.billing.scripts.create_stripe_products``.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import func, select

from gymapp.auth.passwords import hash_password
from gymapp.database import Base, async_session_factory, engine, utcnow
from gymapp.models import ClassSession, GroupClass, Plan, Trainer, TrainerSlot, User

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_USER = {
    "email": "demo@gym.local",
    "password": "Demo1234!",
    "full_name": "Demo Member",
}

ADMIN_USER = {
    "email": "admin@gym.local",
    "password": "Admin1234!",
    "full_name": "Gym Admin",
}

PLANS = [
    {
        "name": "Basic",
        "price": Decimal("19.00"),
        "currency": "USD",
        "description": "Essential access to gym equipment and facilities. Perfect for beginners or those on a budget.",
        "features": ["Gym floor access", "Locker rooms", "Open 6am - 10pm"],
        "highlighted": False,
    },
    {
        "name": "Plus",
        "price": Decimal("39.00"),
        "currency": "USD",
        "description": "Everything in Basic plus group classes and extended hours. Ideal for regulars who enjoy variety.",
        "features": ["All Basic features", "Unlimited group classes", "Open 24/7", "1 free PT intro session"],
        "highlighted": True,
    },
    {
        "name": "Pro",
        "price": Decimal("59.00"),
        "currency": "USD",
        "description": "For dedicated athletes. Includes personal coaching credits and advanced recovery amenities.",
        "features": ["All Plus features", "2 PT sessions/month", "Sauna & recovery tools", "Priority support"],
        "highlighted": False,
    },
]

GROUP_CLASSES = [
    {
        "title": "HIIT Blast",
        "blurb": "Fast-paced, high-intensity intervals designed to burn calories and build endurance in under 45 minutes.",
    },
    {
        "title": "Strength Circuit",
        "blurb": "Coach-led circuits focused on compound movements to increase strength, mobility, and confidence.",
    },
    {
        "title": "Yoga Flow",
        "blurb": "A mindful session combining breathwork and dynamic poses to improve flexibility and reduce stress.",
    },
    {
        "title": "Ride & Rhythm",
        "blurb": "Indoor cycling with music-driven intervals to power cardio fitness and have fun while you sweat.",
    },
]

TRAINERS = [
    {"name": "Alex Rivera", "bio": "Strength and conditioning coach, powerlifting background.", "max_clients": 12},
    {"name": "Priya Nair", "bio": "Mobility, yoga and injury-recovery specialist.", "max_clients": 10},
    {"name": "Sam Okafor", "bio": "Endurance and HIIT programming for busy schedules.", "max_clients": 15},
]

# (hour of day, class title, duration, capacity) repeated for each of the next 7 days
DAILY_SESSIONS = [
    (7, "HIIT Blast", 45, 16),
    (12, "Yoga Flow", 60, 20),
    (18, "Strength Circuit", 60, 12),
    (19, "Ride & Rhythm", 45, 18),
]

# Trainer slot start hours for each of the next 7 days
TRAINER_SLOT_HOURS = [9, 15]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


async def _get_or_create(session, model, lookup: dict, values: dict):
    result = await session.execute(select(model).filter_by(**lookup))
    instance = result.scalar_one_or_none()
    if instance is not None:
        return instance, False
    instance = model(**lookup, **values)
    session.add(instance)
    await session.flush()
    return instance, True


async def seed() -> None:
    """Create tables and populate reference data and demo accounts."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        # ------------------------------------------------------------------
        # 1. Plans
        # ------------------------------------------------------------------
        for plan_data in PLANS:
            values = {k: v for k, v in plan_data.items() if k != "name"}
            plan, created = await _get_or_create(session, Plan, {"name": plan_data["name"]}, values)
            if created:
                print(f"   💳 {plan.name} — {plan.currency} {plan.price}/month")

        # ------------------------------------------------------------------
        # 2. Classes and trainers
        # ------------------------------------------------------------------
        classes: dict[str, GroupClass] = {}
        for class_data in GROUP_CLASSES:
            group_class, _ = await _get_or_create(
                session, GroupClass, {"title": class_data["title"]}, {"blurb": class_data["blurb"]}
            )
            classes[group_class.title] = group_class

        trainers: list[Trainer] = []
        for trainer_data in TRAINERS:
            values = {k: v for k, v in trainer_data.items() if k != "name"}
            trainer, _ = await _get_or_create(session, Trainer, {"name": trainer_data["name"]}, values)
            trainers.append(trainer)

        print(f"✅ {len(classes)} classes, {len(trainers)} trainers")

        # ------------------------------------------------------------------
        # 3. A week of sessions and trainer slots
        # ------------------------------------------------------------------
        tomorrow = (utcnow() + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)

        session_count = (await session.execute(select(func.count()).select_from(ClassSession))).scalar_one()
        if session_count == 0:
            for day in range(7):
                for hour, title, duration, capacity in DAILY_SESSIONS:
                    session.add(
                        ClassSession(
                            class_id=classes[title].id,
                            starts_at=tomorrow + timedelta(days=day, hours=hour),
                            duration_min=duration,
                            capacity=capacity,
                        )
                    )
            session_count = 7 * len(DAILY_SESSIONS)

        slot_count = (await session.execute(select(func.count()).select_from(TrainerSlot))).scalar_one()
        if slot_count == 0:
            for day in range(7):
                for index, trainer in enumerate(trainers):
                    for hour in TRAINER_SLOT_HOURS:
                        session.add(
                            TrainerSlot(
                                trainer_id=trainer.id,
                                starts_at=tomorrow + timedelta(days=day, hours=hour + index),
                                duration_min=60,
                                capacity=1,
                            )
                        )
            slot_count = 7 * len(trainers) * len(TRAINER_SLOT_HOURS)

        await session.flush()
        print(f"✅ {session_count} class sessions, {slot_count} trainer slots")

        # ------------------------------------------------------------------
        # 4. Demo member and admin
        # ------------------------------------------------------------------
        for account, is_admin in ((DEMO_USER, False), (ADMIN_USER, True)):
            _, created = await _get_or_create(
                session,
                User,
                {"email": account["email"]},
                {
                    "hashed_password": hash_password(account["password"]),
                    "full_name": account["full_name"],
                    "is_admin": is_admin,
                },
            )
            if created:
                print(f"✅ Created {'admin' if is_admin else 'member'}: {account['email']} / {account['password']}")

        await session.commit()

    print("🎉 Done! You can now log in at /api/auth/login")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
