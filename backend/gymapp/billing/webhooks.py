"""Stripe webhook event handlers — keep membership status in step with Stripe.

Every handler finds the member by Stripe customer id (checkout uses the
``userId`` metadata instead), stores the derived status, and appends one
membership event. Events for customers we do not know are logged and dropped.
"""

import logging
import uuid
from decimal import Decimal

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.billing.status import ACTIVE, CANCELED, PAST_DUE
from gymapp.billing.stripe_client import snapshot
from gymapp.models.user import User
from gymapp.services.membership_service import (
    activate_from_checkout,
    apply_provider_status,
    get_user_by_stripe_customer,
    record_event,
    set_status,
)

logger = logging.getLogger(__name__)


def _field(obj, name: str, default=None):
    """Read a field from a Stripe object, a plain dict, or any attribute bag."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _customer_id(obj) -> str | None:
    """The customer reference may be an id string or an expanded Customer."""
    customer = _field(obj, "customer")
    if customer is None or isinstance(customer, str):
        return customer
    return _field(customer, "id")


def _amount(cents: int | None) -> Decimal | None:
    """Stripe amounts are integer minor units."""
    if not cents:
        return None
    return Decimal(cents) / 100


def _currency(obj) -> str | None:
    currency = _field(obj, "currency")
    return currency.upper() if currency else None


def _parse_uuid(value: str | None) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def _find_member(db: AsyncSession, customer_id: str | None, event: stripe.Event) -> User | None:
    user = await get_user_by_stripe_customer(db, customer_id)
    if user is None:
        logger.warning(
            "No member found for Stripe customer %s (%s %s), ignoring",
            customer_id,
            event.type,
            event.id,
        )
    return user


async def handle_checkout_session_completed(db: AsyncSession, event: stripe.Event) -> None:
    """Handle checkout.session.completed — link customer and plan, activate membership."""
    session = event.data.object
    customer_id = _customer_id(session)
    subscription_id = _field(session, "subscription")
    if subscription_id is not None and not isinstance(subscription_id, str):
        subscription_id = _field(subscription_id, "id")

    metadata = _field(session, "metadata") or {}
    user_id = _parse_uuid(_field(metadata, "userId"))
    plan_id = _parse_uuid(_field(metadata, "planId"))

    if user_id is None or not customer_id:
        logger.warning("Checkout session %s is missing userId metadata or customer, skipping", session.id)
        return

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Checkout session %s references unknown user %s", session.id, user_id)
        return

    await activate_from_checkout(
        db,
        user,
        stripe_customer_id=customer_id,
        stripe_subscription_id=subscription_id,
        plan_id=plan_id,
    )
    await record_event(
        db,
        user_id=user.id,
        event_type=event.type,
        status=ACTIVE,
        stripe_object_id=subscription_id or session.id,
        amount=_amount(_field(session, "amount_total")),
        currency=_currency(session),
        raw=snapshot(session),
    )
    logger.info("Checkout completed: user %s active on subscription %s", user.id, subscription_id)


async def handle_subscription_updated(db: AsyncSession, event: stripe.Event) -> None:
    """Handle customer.subscription.created/updated — store the mapped status."""
    stripe_sub = event.data.object
    user = await _find_member(db, _customer_id(stripe_sub), event)
    if user is None:
        return

    mapped = await apply_provider_status(
        db,
        user,
        stripe_sub.status,
        stripe_subscription_id=stripe_sub.id,
    )
    await record_event(
        db,
        user_id=user.id,
        event_type=event.type,
        status=mapped,
        stripe_object_id=stripe_sub.id,
        raw=snapshot(stripe_sub),
    )
    logger.info("Subscription %s for user %s: %s -> %s", stripe_sub.id, user.id, stripe_sub.status, mapped)


async def handle_subscription_deleted(db: AsyncSession, event: stripe.Event) -> None:
    """Handle customer.subscription.deleted — membership is canceled."""
    stripe_sub = event.data.object
    user = await _find_member(db, _customer_id(stripe_sub), event)
    if user is None:
        return

    await set_status(db, user, CANCELED)
    await record_event(
        db,
        user_id=user.id,
        event_type=event.type,
        status=CANCELED,
        stripe_object_id=stripe_sub.id,
        raw=snapshot(stripe_sub),
    )
    logger.info("Subscription %s deleted: user %s canceled", stripe_sub.id, user.id)


async def handle_invoice_payment_failed(db: AsyncSession, event: stripe.Event) -> None:
    """Handle invoice.payment_failed — mark the membership past_due."""
    invoice = event.data.object
    user = await _find_member(db, _customer_id(invoice), event)
    if user is None:
        return

    await set_status(db, user, PAST_DUE)
    await record_event(
        db,
        user_id=user.id,
        event_type=event.type,
        status=PAST_DUE,
        stripe_object_id=invoice.id,
        amount=_amount(_field(invoice, "total")),
        currency=_currency(invoice),
        raw=snapshot(invoice),
    )
    logger.info("Payment failed: invoice %s, user %s marked past_due", invoice.id, user.id)


async def handle_invoice_payment_succeeded(db: AsyncSession, event: stripe.Event) -> None:
    """Handle invoice.payment_succeeded — log the payment; status is left alone."""
    invoice = event.data.object
    user = await _find_member(db, _customer_id(invoice), event)
    if user is None:
        return

    await record_event(
        db,
        user_id=user.id,
        event_type=event.type,
        status=ACTIVE,
        stripe_object_id=invoice.id,
        amount=_amount(_field(invoice, "total")),
        currency=_currency(invoice),
        raw=snapshot(invoice),
    )
    logger.info("Payment succeeded: invoice %s for user %s", invoice.id, user.id)


# Map event types to handler functions; anything else is acknowledged and ignored.
EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.created": handle_subscription_updated,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "invoice.payment_succeeded": handle_invoice_payment_succeeded,
}
