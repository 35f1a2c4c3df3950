"""Stripe webhook endpoint — receives Stripe events and reconciles subscriptions."""

import logging
from typing import Any

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.stripe_client import construct_webhook_event, get_subscription
from app.billing.webhooks import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    SUBSCRIPTION_CREATED,
    SUBSCRIPTION_DELETED,
    SUBSCRIPTION_LINK,
    SUBSCRIPTION_UPDATED,
    get_field,
    handle_billing_event,
)
from app.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])

# Stripe event type -> reconciliation event type
SUBSCRIPTION_EVENTS = {
    "customer.subscription.created": SUBSCRIPTION_CREATED,
    "customer.subscription.updated": SUBSCRIPTION_UPDATED,
    "customer.subscription.deleted": SUBSCRIPTION_DELETED,
}
INVOICE_EVENTS = {
    "invoice.payment_succeeded": PAYMENT_SUCCEEDED,
    "invoice.payment_failed": PAYMENT_FAILED,
}


async def _checkout_completed(db: AsyncSession, session: Any) -> None:
    """Link the new subscription to the user from the session metadata, then sync it."""
    user_id = get_field(get_field(session, "metadata"), "userId")
    customer_id = get_field(session, "customer")
    subscription_id = get_field(session, "subscription")
    if not (user_id and customer_id and subscription_id):
        logger.warning("Checkout session %s is missing userId/customer/subscription", get_field(session, "id"))
        return

    await handle_billing_event(db, SUBSCRIPTION_LINK, subscription_id, customer_id, {"userId": user_id})
    stripe_sub = await get_subscription(subscription_id)
    await handle_billing_event(db, SUBSCRIPTION_CREATED, subscription_id, customer_id, stripe_sub)


async def dispatch_stripe_event(db: AsyncSession, event_type: str, obj: Any) -> bool:
    """Route one verified Stripe event to reconciliation. Returns False if ignored."""
    if event_type == "checkout.session.completed":
        await _checkout_completed(db, obj)
        return True

    if event_type in SUBSCRIPTION_EVENTS:
        await handle_billing_event(
            db, SUBSCRIPTION_EVENTS[event_type], get_field(obj, "id"), get_field(obj, "customer"), obj
        )
        return True

    if event_type in INVOICE_EVENTS:
        subscription_id = get_field(obj, "subscription")
        if not isinstance(subscription_id, str) or not subscription_id:
            logger.debug("Invoice %s has no subscription, skipping", get_field(obj, "id"))
            return False
        await handle_billing_event(
            db, INVOICE_EVENTS[event_type], subscription_id, get_field(obj, "customer"), obj
        )
        return True

    logger.info("Unhandled webhook event type: %s", event_type)
    return False


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    """Receive and process Stripe webhook events."""
    # 1. Read raw body (MUST be raw bytes for signature verification)
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    # 2. Verify signature
    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        ) from e

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)

    # 3. Dispatch and commit in the request session
    try:
        await dispatch_stripe_event(db, event.type, event.data.object)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Error processing webhook event %s", event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    return {"received": True}
