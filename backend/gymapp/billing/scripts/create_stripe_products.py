"""Create a Stripe product and monthly price for every plan that lacks one.

Run once after seeding, inside the backend container:
    python -m gymapp.billing.scripts.create_stripe_products

The new price ids are stored on the plans, which makes them purchasable
through Checkout.
"""

import asyncio

from sqlalchemy import select

from gymapp.billing.stripe_client import get_stripe_client
from gymapp.config import settings
from gymapp.database import async_session_factory, engine
from gymapp.models.plan import Plan


async def main() -> None:
    if not settings.stripe_configured:
        print("ERROR: STRIPE_SECRET_KEY is not set in .env")
        return

    client = get_stripe_client()

    async with async_session_factory() as session:
        result = await session.execute(
            select(Plan).where(Plan.stripe_price_id.is_(None)).order_by(Plan.price.asc())
        )
        plans = list(result.scalars().all())
        if not plans:
            print("Every plan already has a Stripe price.")

        for plan in plans:
            product = await client.v1.products.create_async(
                params={
                    "name": f"Gym {plan.name}",
                    "description": plan.description or f"{plan.name} membership",
                    "metadata": {"planId": str(plan.id)},
                }
            )
            price = await client.v1.prices.create_async(
                params={
                    "product": product.id,
                    "unit_amount": int(plan.price * 100),
                    "currency": plan.currency.lower(),
                    "recurring": {"interval": "month"},
                }
            )
            plan.stripe_price_id = price.id
            print(f"Created product: {product.name} ({product.id})")
            print(f"  Price: {plan.currency} {plan.price}/mo ({price.id})")

        await session.commit()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
