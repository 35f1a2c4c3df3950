"""Optional Stripe integration tests — hit real Stripe test mode API.

These tests are auto-skipped when STRIPE_SECRET_KEY is not set (e.g., in CI).
"""

import os

import pytest
import stripe

from app.billing.stripe_client import (
    construct_webhook_event,
    create_checkout_session,
    create_customer,
)

SKIP_REASON = "STRIPE_SECRET_KEY not set — skipping real Stripe integration tests"
pytestmark = [
    pytest.mark.asyncio,
    pytest.mark.skipif(not os.getenv("STRIPE_SECRET_KEY"), reason=SKIP_REASON),
]


class TestStripeIntegration:
    """Real Stripe API tests — only run when STRIPE_SECRET_KEY is available."""

    async def test_create_real_customer(self):
        customer = await create_customer(
            email="integration-test@snipvault.test",
            name="Integration Test User",
            user_id="user_integration",
        )
        assert customer.id.startswith("cus_")
        assert customer.email == "integration-test@snipvault.test"
        assert customer.metadata["userId"] == "user_integration"

    async def test_create_checkout_session_returns_url(self):
        from app.config import settings

        if not settings.stripe_pro_price_id:
            pytest.skip("STRIPE_PRO_PRICE_ID not configured")

        customer = await create_customer(
            email="checkout-test@snipvault.test",
            name="Checkout Test User",
            user_id="user_checkout",
        )
        session = await create_checkout_session(
            customer_id=customer.id,
            price_id=settings.stripe_pro_price_id,
            user_id="user_checkout",
            success_url="https://example.com/success",
            cancel_url="https://example.com/cancel",
        )
        assert session.id.startswith("cs_")
        assert session.url is not None
        assert session.metadata["userId"] == "user_checkout"

    async def test_bad_webhook_signature_rejected(self):
        with pytest.raises(stripe.SignatureVerificationError):
            construct_webhook_event(b'{"id": "evt_1"}', "t=1,v1=invalid")
