"""Billing API endpoints — Stripe Checkout and subscription cancellation."""

import logging

import stripe
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_current_user, get_db
from gymapp.billing.stripe_client import create_checkout_session
from gymapp.config import settings
from gymapp.errors import Internal, ValidationFailed
from gymapp.models.user import User
from gymapp.schemas.membership import (
    CancelSubscriptionRequest,
    CancelSubscriptionResponse,
    CheckoutResponse,
    PlanSelection,
)
from gymapp.services.membership_service import (
    cancel_subscription,
    ensure_stripe_customer,
    resolve_plan,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout(
    body: PlanSelection,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CheckoutResponse:
    """Create a Stripe Checkout session for a paid plan."""
    plan = await resolve_plan(db, plan_id=body.plan_id, plan_name=body.plan_name)
    if not plan.stripe_price_id:
        raise ValidationFailed("Plan is not configured for Stripe (missing price id)")

    base_url = settings.frontend_url.rstrip("/")
    try:
        customer_id = await ensure_stripe_customer(db, current_user)
        session = await create_checkout_session(
            customer_id=customer_id,
            price_id=plan.stripe_price_id,
            success_url=f"{base_url}/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/billing/cancel",
            metadata={"userId": str(current_user.id), "planId": str(plan.id)},
        )
    except stripe.StripeError as e:
        logger.exception("Stripe checkout failed for user %s", current_user.id)
        raise Internal("Failed to create checkout session") from e

    logger.info("Checkout session %s created for user %s, plan %s", session.id, current_user.id, plan.name)
    return CheckoutResponse(url=session.url)


@router.post("/cancel-subscription", response_model=CancelSubscriptionResponse)
async def cancel(
    body: CancelSubscriptionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CancelSubscriptionResponse:
    """Cancel the caller's subscription now (``immediate``) or at period end (default)."""
    mode = body.mode if body is not None else "period_end"
    try:
        new_status, _ = await cancel_subscription(db, current_user, mode)
    except stripe.StripeError as e:
        logger.exception("Stripe cancellation failed for user %s", current_user.id)
        raise Internal("Failed to cancel subscription") from e

    return CancelSubscriptionResponse(message="Cancellation processed", status=new_status, mode=mode)
