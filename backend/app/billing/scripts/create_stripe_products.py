"""Create the SnipVault Pro product and its monthly price in Stripe test mode.

Run once inside the backend container:
    python -m app.billing.scripts.create_stripe_products

Outputs the price ID to set in .env:
    STRIPE_PRO_PRICE_ID=price_xxx
"""

import asyncio

from app.billing.plans import PLANS, PlanType
from app.billing.stripe_client import get_stripe_client
from app.config import settings


async def main() -> None:
    if not settings.stripe_secret_key:
        print("ERROR: STRIPE_SECRET_KEY is not set in .env")
        return

    client = get_stripe_client()
    pro = PLANS[PlanType.PRO]

    # --- SnipVault Pro ---
    product = await client.v1.products.create_async(
        params={
            "name": f"SnipVault {pro.name}",
            "description": ", ".join(pro.features),
            "metadata": {"plan_type": PlanType.PRO.value},
        }
    )
    price = await client.v1.prices.create_async(
        params={
            "product": product.id,
            "unit_amount": pro.price_monthly_usd * 100,
            "currency": "usd",
            "recurring": {"interval": "month"},
        }
    )
    print(f"Created product: {product.name} ({product.id})")
    print(f"  Price: ${pro.price_monthly_usd:.2f}/mo ({price.id})")

    print("\n--- Add this to your .env ---")
    print(f"STRIPE_PRO_PRICE_ID={price.id}")


if __name__ == "__main__":
    asyncio.run(main())
