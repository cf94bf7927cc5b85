"""Async Stripe API wrapper."""

import logging

import stripe
from stripe import StripeClient

from gymapp.config import settings
from gymapp.errors import Unavailable

logger = logging.getLogger(__name__)


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    if not settings.stripe_configured:
        raise Unavailable("Stripe not configured")
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


async def create_customer(email: str, name: str | None, user_id: str) -> stripe.Customer:
    """Create a Stripe customer linked to a gym member."""
    client = get_stripe_client()
    logger.info("Creating Stripe customer for user %s", user_id)
    params: dict = {"email": email, "metadata": {"userId": user_id}}
    if name:
        params["name"] = name
    customer = await client.v1.customers.create_async(params=params)
    logger.info("Created Stripe customer %s for user %s", customer.id, user_id)
    return customer


async def create_checkout_session(
    customer_id: str,
    price_id: str,
    success_url: str,
    cancel_url: str,
    metadata: dict[str, str],
) -> stripe.checkout.Session:
    """Create a subscription-mode Checkout Session.

    ``metadata`` travels back on the ``checkout.session.completed`` webhook and is
    how that event finds the local user and plan.
    """
    client = get_stripe_client()
    logger.info("Creating checkout session for customer %s, price %s", customer_id, price_id)
    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "subscription",
            "customer": customer_id,
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "allow_promotion_codes": True,
            "metadata": metadata,
        }
    )


async def cancel_subscription_now(subscription_id: str) -> stripe.Subscription:
    """Cancel a subscription immediately."""
    client = get_stripe_client()
    logger.info("Canceling Stripe subscription %s immediately", subscription_id)
    return await client.v1.subscriptions.cancel_async(subscription_id)


async def cancel_subscription_at_period_end(subscription_id: str) -> stripe.Subscription:
    """Schedule a subscription to end with its current billing period."""
    client = get_stripe_client()
    logger.info("Scheduling Stripe subscription %s to cancel at period end", subscription_id)
    return await client.v1.subscriptions.update_async(
        subscription_id,
        params={"cancel_at_period_end": True},
    )


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify the signature and parse a webhook payload (synchronous).

    Raises:
        stripe.SignatureVerificationError: If the signature does not match.
        ValueError: If the payload is not valid JSON.
    """
    if not settings.stripe_webhook_secret:
        raise Unavailable("Webhook not configured")
    return stripe.Webhook.construct_event(payload, sig_header, settings.stripe_webhook_secret)


def snapshot(stripe_obj: object) -> dict | None:
    """JSON-safe copy of a Stripe object, stored as a membership event's raw payload."""
    to_dict = getattr(stripe_obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(stripe_obj, dict):
        return dict(stripe_obj)
    object_id = getattr(stripe_obj, "id", None)
    return {"id": object_id} if object_id else None
