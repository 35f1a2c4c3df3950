"""Billing event reconciliation — map payment-provider events onto ``user_subscriptions``.

``handle_billing_event`` is the single entry point. Callers (the Stripe webhook
route) must verify the event signature before calling it. Events that cannot
be matched to a local subscription are logged and dropped; nothing is raised
to the caller for them.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.plans import plan_type_for_price
from app.models.subscription import UserSubscription
from app.models.user import User
from app.services.subscription_service import (
    cancel_subscription,
    get_or_create_subscription,
    get_subscription_by_stripe_customer,
    get_subscription_by_stripe_subscription,
    update_subscription_from_stripe,
)

logger = logging.getLogger(__name__)

SUBSCRIPTION_LINK = "subscription.link"
SUBSCRIPTION_CREATED = "subscription.created"
SUBSCRIPTION_UPDATED = "subscription.updated"
SUBSCRIPTION_DELETED = "subscription.deleted"
PAYMENT_SUCCEEDED = "payment.succeeded"
PAYMENT_FAILED = "payment.failed"

SUBSCRIPTION_STATUSES = {"active", "canceled", "past_due", "unpaid", "incomplete"}

# Stripe statuses that have no local equivalent
_STATUS_ALIASES = {
    "trialing": "active",
    "incomplete_expired": "canceled",
    "paused": "past_due",
}


def get_field(obj: Any, key: str) -> Any:
    """Read ``key`` from a Stripe object, a plain dict, or an attribute bag."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    # Bracket access first: ``items`` collides with dict.items on Stripe objects
    try:
        return obj[key]
    except (KeyError, TypeError, AttributeError):
        return getattr(obj, key, None)


def _ts_to_naive(ts: int | None) -> datetime | None:
    """Convert Stripe Unix timestamp to naive UTC datetime."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def normalize_status(stripe_status: str | None) -> str:
    """Map a Stripe subscription status onto the local status set."""
    if stripe_status in SUBSCRIPTION_STATUSES:
        return stripe_status
    return _STATUS_ALIASES.get(stripe_status or "", "incomplete")


def _get_first_item(stripe_sub: Any) -> Any:
    """Get the first subscription item (``items`` needs bracket access on Stripe objects)."""
    items = get_field(stripe_sub, "items")
    data = get_field(items, "data")
    if data:
        return data[0]
    return None


def get_price_id(stripe_sub: Any) -> str | None:
    """Extract the first price ID from a Stripe subscription's items."""
    item = _get_first_item(stripe_sub)
    return get_field(get_field(item, "price"), "id")


def _get_period(stripe_sub: Any) -> tuple[datetime | None, datetime | None]:
    """Extract current period start/end.

    Newer Stripe API versions report the period on the subscription item;
    older ones on the subscription itself.
    """
    item = _get_first_item(stripe_sub)
    start = get_field(item, "current_period_start") or get_field(stripe_sub, "current_period_start")
    end = get_field(item, "current_period_end") or get_field(stripe_sub, "current_period_end")
    return _ts_to_naive(start), _ts_to_naive(end)


async def _link(
    db: AsyncSession, subscription_id: str, customer_id: str, payload: Any
) -> None:
    """Checkout completed: attach Stripe ids to the subscription row of ``payload.userId``."""
    user_id = get_field(payload, "userId")
    if not user_id:
        logger.error("Link event for subscription %s has no userId, dropping", subscription_id)
        return

    user = await db.scalar(select(User).where(User.id == user_id))
    if user is None:
        logger.error(
            "Link event for subscription %s references unknown user %s, dropping",
            subscription_id,
            user_id,
        )
        return

    subscription = await get_or_create_subscription(db, user_id)
    subscription.stripe_customer_id = customer_id
    subscription.stripe_subscription_id = subscription_id
    await db.flush()
    logger.info(
        "Linked Stripe customer %s / subscription %s to user %s",
        customer_id,
        subscription_id,
        user_id,
    )


async def _resolve(
    db: AsyncSession, subscription_id: str | None, customer_id: str | None
) -> UserSubscription | None:
    """Find the local row by customer id, falling back to subscription id."""
    subscription = None
    if customer_id:
        subscription = await get_subscription_by_stripe_customer(db, customer_id)
    if subscription is None and subscription_id:
        subscription = await get_subscription_by_stripe_subscription(db, subscription_id)
    return subscription


async def _upsert(
    db: AsyncSession, subscription_id: str, customer_id: str, payload: Any
) -> None:
    """Subscription created/updated: sync plan, status, and period."""
    subscription = await _resolve(db, subscription_id, customer_id)
    if subscription is None:
        logger.error(
            "No local subscription found for Stripe subscription %s (customer %s), dropping event",
            subscription_id,
            customer_id,
        )
        return

    price_id = get_price_id(payload)
    plan_type = plan_type_for_price(price_id)
    period_start, period_end = _get_period(payload)
    await update_subscription_from_stripe(
        db,
        subscription=subscription,
        stripe_subscription_id=subscription_id,
        stripe_customer_id=customer_id,
        plan_type=plan_type,
        status=normalize_status(get_field(payload, "status")),
        current_period_start=period_start,
        current_period_end=period_end,
        cancel_at_period_end=bool(get_field(payload, "cancel_at_period_end")),
    )


async def _deleted(
    db: AsyncSession, subscription_id: str, customer_id: str, payload: Any
) -> None:
    """Subscription deleted: canceled + FREE, row kept."""
    subscription = await get_subscription_by_stripe_subscription(db, subscription_id)
    if subscription is None:
        logger.error(
            "No local subscription found for Stripe subscription %s (delete event)",
            subscription_id,
        )
        return
    await cancel_subscription(db, subscription)


async def _set_status(db: AsyncSession, subscription_id: str, status: str) -> None:
    subscription = await get_subscription_by_stripe_subscription(db, subscription_id)
    if subscription is None:
        logger.error(
            "No local subscription found for Stripe subscription %s (status -> %s)",
            subscription_id,
            status,
        )
        return
    subscription.status = status
    await db.flush()
    logger.info("Subscription %s marked as %s", subscription_id, status)


async def _payment_succeeded(
    db: AsyncSession, subscription_id: str, customer_id: str, payload: Any
) -> None:
    await _set_status(db, subscription_id, "active")


async def _payment_failed(
    db: AsyncSession, subscription_id: str, customer_id: str, payload: Any
) -> None:
    await _set_status(db, subscription_id, "past_due")


_Handler = Callable[[AsyncSession, str, str, Any], Awaitable[None]]

EVENT_HANDLERS: dict[str, _Handler] = {
    SUBSCRIPTION_LINK: _link,
    SUBSCRIPTION_CREATED: _upsert,
    SUBSCRIPTION_UPDATED: _upsert,
    SUBSCRIPTION_DELETED: _deleted,
    PAYMENT_SUCCEEDED: _payment_succeeded,
    PAYMENT_FAILED: _payment_failed,
}


async def handle_billing_event(
    db: AsyncSession,
    event_type: str,
    subscription_id: str,
    customer_id: str,
    payload: Any = None,
) -> None:
    """Apply one billing event to the local subscription state.

    Created/updated/deleted and payment events are plain sets, so redelivery
    of the same event is harmless.
    """
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("Ignoring unrecognized billing event type: %s", event_type)
        return
    logger.info(
        "Reconciling billing event %s (subscription=%s, customer=%s)",
        event_type,
        subscription_id,
        customer_id,
    )
    await handler(db, subscription_id, customer_id, payload)
