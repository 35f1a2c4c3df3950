"""Billing API endpoints — plans, subscription status, and Stripe Checkout."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db
from app.billing.plans import PLANS, PlanLimits, PlanType, get_plan
from app.billing.stripe_client import create_checkout_session
from app.config import settings
from app.models.user import User
from app.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    PlanResponse,
    PlansListResponse,
    SubscriptionRecord,
    SubscriptionResponse,
    UsageResponse,
)
from app.services.subscription_service import (
    ensure_stripe_customer,
    get_or_create_subscription,
    get_user_plan,
    get_user_subscription,
    get_user_usage,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


def _plan_response(plan_type: PlanType, plan: PlanLimits) -> PlanResponse:
    return PlanResponse(
        plan_type=plan_type.value,
        id=plan.id,
        name=plan.name,
        description=plan.description,
        price_monthly_usd=plan.price_monthly_usd,
        max_projects=plan.max_projects,
        max_snippets_per_project=plan.max_snippets_per_project,
        private_snippets=plan.private_snippets,
        features=list(plan.features),
    )


@router.get("/plans", response_model=PlansListResponse)
async def list_plans() -> PlansListResponse:
    """List available plans (public — no auth required)."""
    return PlansListResponse(plans=[_plan_response(t, p) for t, p in PLANS.items()])


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionResponse:
    """Get the stored subscription, the effective plan and current usage."""
    subscription = await get_user_subscription(db, current_user.id)
    plan_type = await get_user_plan(db, current_user.id)
    usage = await get_user_usage(db, current_user.id)

    return SubscriptionResponse(
        subscription=SubscriptionRecord.model_validate(subscription) if subscription else None,
        plan=plan_type.value,
        plan_details=_plan_response(plan_type, get_plan(plan_type)),
        usage=UsageResponse(
            projects=usage.projects,
            snippets_per_project=usage.snippets_per_project,
            total_snippets=usage.total_snippets,
        ),
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> CheckoutResponse:
    """Create a Stripe Checkout session for the Pro upgrade."""
    if not body.price_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Price ID is required",
        )

    subscription = await get_or_create_subscription(db, current_user.id)
    if subscription.status == "active" and subscription.plan_type == PlanType.PRO.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already has an active Pro subscription",
        )

    # Build URLs
    success_url = (
        body.success_url
        or f"{settings.frontend_url}/dashboard/settings?session_id={{CHECKOUT_SESSION_ID}}&success=true"
    )
    cancel_url = body.cancel_url or f"{settings.frontend_url}/dashboard/settings?canceled=true"

    try:
        customer_id = await ensure_stripe_customer(db, current_user, subscription)
        session = await create_checkout_session(
            customer_id=customer_id,
            price_id=body.price_id,
            user_id=current_user.id,
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except stripe.StripeError as e:
        logger.error("Stripe checkout error for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from e

    await db.commit()

    return CheckoutResponse(url=session.url, session_id=session.id)
