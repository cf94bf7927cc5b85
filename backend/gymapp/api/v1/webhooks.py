"""Stripe webhook endpoint — receives and processes Stripe events."""

import logging

import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_db
from gymapp.billing.stripe_client import construct_webhook_event
from gymapp.billing.webhooks import EVENT_HANDLERS
from gymapp.errors import Internal, WebhookSignatureError
from gymapp.schemas.membership import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> WebhookAck:
    """Receive and process Stripe webhook events.

    Changes made by a handler are committed with the request; a handler failure
    rolls them back and answers 500 so that Stripe retries.
    """
    # Raw bytes are required for signature verification
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise WebhookSignatureError("Webhook signature verification failed") from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise WebhookSignatureError("Invalid webhook payload") from e

    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug("Unhandled webhook event type: %s", event.type)
        return WebhookAck()

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)
    try:
        await handler(db, event)
    except Exception as e:
        logger.exception("Error processing webhook event %s", event.id)
        raise Internal("Webhook processing failed") from e

    return WebhookAck()
