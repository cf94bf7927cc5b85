"""Membership state — plan assignment, status transitions, and the event log.

This module is the only writer of ``User.membership_status``, ``User.plan_id``,
the Stripe identifiers on ``User``, and ``MembershipEvent`` rows. Billing
webhooks and the billing router call into it rather than updating users directly.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.billing.status import ACTIVE, CANCELED, map_provider_status
from gymapp.billing.stripe_client import (
    cancel_subscription_at_period_end,
    cancel_subscription_now,
    create_customer,
    snapshot,
)
from gymapp.errors import InvalidState, NotFound, ValidationFailed
from gymapp.models.membership_event import MembershipEvent
from gymapp.models.plan import Plan
from gymapp.models.user import User

logger = logging.getLogger(__name__)

CANCEL_IMMEDIATE_EVENT = "app.subscription.cancelled_immediate"
CANCEL_REQUESTED_EVENT = "app.subscription.cancel_requested"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def resolve_plan(
    db: AsyncSession,
    plan_id: uuid.UUID | None = None,
    plan_name: str | None = None,
) -> Plan:
    """Find a plan by id, or by name when no id is given."""
    if plan_id is not None:
        query = select(Plan).where(Plan.id == plan_id)
    elif plan_name:
        query = select(Plan).where(Plan.name == plan_name)
    else:
        raise ValidationFailed("planId or planName is required")

    result = await db.execute(query)
    plan = result.scalar_one_or_none()
    if plan is None:
        raise NotFound("Plan not found")
    return plan


async def get_user_by_stripe_customer(db: AsyncSession, stripe_customer_id: str | None) -> User | None:
    """Look up the member linked to a Stripe customer (used by webhooks)."""
    if not stripe_customer_id:
        return None
    result = await db.execute(select(User).where(User.stripe_customer_id == stripe_customer_id))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def assign_plan(db: AsyncSession, user: User, plan: Plan) -> User:
    """Self-service plan selection: set the plan and mark the membership active.

    No payment is taken on this path.
    """
    user.plan = plan
    user.membership_status = ACTIVE
    await db.flush()
    logger.info("User %s self-assigned plan %s; status=active", user.id, plan.name)
    return user


async def set_status(
    db: AsyncSession,
    user: User,
    status: str,
    stripe_subscription_id: str | None = None,
) -> User:
    """Store a new membership status (and subscription id, when given)."""
    previous = user.membership_status
    user.membership_status = status
    if stripe_subscription_id is not None:
        user.stripe_subscription_id = stripe_subscription_id
    await db.flush()
    if previous != status:
        logger.info("User %s membership %s -> %s", user.id, previous, status)
    return user


async def activate_from_checkout(
    db: AsyncSession,
    user: User,
    stripe_customer_id: str,
    stripe_subscription_id: str | None,
    plan_id: uuid.UUID | None,
) -> User:
    """Apply a completed Checkout: link the customer, subscription and plan, then activate.

    An already-linked customer id is kept; subscription and plan only overwrite
    when present.
    """
    if not user.stripe_customer_id:
        user.stripe_customer_id = stripe_customer_id
    if stripe_subscription_id:
        user.stripe_subscription_id = stripe_subscription_id
    if plan_id is not None:
        plan = await db.get(Plan, plan_id)
        if plan is None:
            logger.warning("Checkout for user %s names unknown plan %s, plan left unchanged", user.id, plan_id)
        else:
            user.plan = plan
    return await set_status(db, user, ACTIVE)


async def apply_provider_status(
    db: AsyncSession,
    user: User,
    provider_status: str,
    stripe_subscription_id: str | None = None,
) -> str:
    """Store the membership status derived from a Stripe subscription status."""
    mapped = map_provider_status(provider_status)
    await set_status(db, user, mapped, stripe_subscription_id=stripe_subscription_id)
    return mapped


async def ensure_stripe_customer(db: AsyncSession, user: User) -> str:
    """Ensure the user has a Stripe customer ID. Create one if missing.

    A new link is committed at once: the customer exists at Stripe whether or
    not the rest of the request succeeds.
    """
    if user.stripe_customer_id:
        return user.stripe_customer_id

    customer = await create_customer(email=user.email, name=user.full_name, user_id=str(user.id))
    user.stripe_customer_id = customer.id
    await db.commit()
    logger.info("Linked Stripe customer %s to user %s", customer.id, user.id)
    return customer.id


async def cancel_subscription(db: AsyncSession, user: User, mode: str) -> tuple[str, object]:
    """Cancel the member's Stripe subscription now or at the end of the period.

    ``immediate`` stores ``canceled`` right away. ``period_end`` stores whatever
    Stripe reports (normally still active); a later webhook finishes the job.

    Returns:
        The stored status and the updated Stripe subscription.
    """
    if not user.stripe_subscription_id:
        raise InvalidState("No active subscription to cancel")

    if mode == "immediate":
        updated = await cancel_subscription_now(user.stripe_subscription_id)
        new_status = CANCELED
        event_type = CANCEL_IMMEDIATE_EVENT
    else:
        updated = await cancel_subscription_at_period_end(user.stripe_subscription_id)
        new_status = map_provider_status(updated.status)
        event_type = CANCEL_REQUESTED_EVENT

    await set_status(db, user, new_status)
    await record_event(
        db,
        user_id=user.id,
        event_type=event_type,
        status=new_status,
        stripe_object_id=updated.id,
        raw=snapshot(updated),
    )
    return new_status, updated


# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------


async def record_event(
    db: AsyncSession,
    user_id: uuid.UUID,
    event_type: str,
    status: str,
    stripe_object_id: str | None = None,
    amount: Decimal | None = None,
    currency: str | None = None,
    raw: dict | None = None,
) -> MembershipEvent:
    """Append one row to the membership event log."""
    event = MembershipEvent(
        user_id=user_id,
        event_type=event_type,
        status=status,
        stripe_object_id=stripe_object_id,
        amount=amount,
        currency=currency,
        raw=raw,
    )
    db.add(event)
    await db.flush()
    return event


async def list_history(db: AsyncSession, user_id: uuid.UUID, limit: int = 200) -> list[MembershipEvent]:
    """Most recent membership events for a user, newest first."""
    result = await db.execute(
        select(MembershipEvent)
        .where(MembershipEvent.user_id == user_id)
        .order_by(MembershipEvent.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
