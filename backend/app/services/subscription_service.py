"""Subscription service — subscription rows, usage counting, and quota decisions."""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.plans import PLANS, UNLIMITED, PlanLimits, PlanType, get_plan, parse_plan_type
from app.billing.stripe_client import create_customer
from app.models.project import Project
from app.models.snippet import Snippet
from app.models.subscription import UserSubscription
from app.models.user import User

logger = logging.getLogger(__name__)

NO_PROJECT_BUCKET = "no-project"


@dataclass
class UsageStats:
    """Current usage of a user, computed on demand."""

    projects: int = 0
    snippets_per_project: dict[str, int] = field(default_factory=dict)
    total_snippets: int = 0


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a quota check. ``reason`` is set only when denied."""

    allowed: bool
    reason: str | None = None
    limit: int | None = None
    current: int | None = None
    plan: PlanType | None = None


# ---------------------------------------------------------------------------
# Subscription rows
# ---------------------------------------------------------------------------


async def get_user_subscription(db: AsyncSession, user_id: str) -> UserSubscription | None:
    """Return the user's subscription row, if one exists."""
    result = await db.execute(
        select(UserSubscription).where(UserSubscription.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_subscription(db: AsyncSession, user_id: str) -> UserSubscription:
    """Get existing subscription or create a free-tier one for the user."""
    subscription = await get_user_subscription(db, user_id)
    if subscription is not None:
        return subscription

    logger.info("Creating free-tier subscription for user %s", user_id)
    subscription = UserSubscription(
        user_id=user_id,
        plan_type=PlanType.FREE.value,
        status="active",
    )
    db.add(subscription)
    await db.flush()
    return subscription


async def get_user_plan(db: AsyncSession, user_id: str) -> PlanType:
    """Return the user's current plan; users without a row are FREE."""
    subscription = await get_user_subscription(db, user_id)
    if subscription is None:
        return PlanType.FREE
    return parse_plan_type(subscription.plan_type)


async def get_subscription_by_stripe_customer(
    db: AsyncSession, stripe_customer_id: str
) -> UserSubscription | None:
    """Look up subscription by Stripe customer ID (used by webhooks)."""
    result = await db.execute(
        select(UserSubscription).where(
            UserSubscription.stripe_customer_id == stripe_customer_id
        )
    )
    return result.scalar_one_or_none()


async def get_subscription_by_stripe_subscription(
    db: AsyncSession, stripe_subscription_id: str
) -> UserSubscription | None:
    """Look up subscription by Stripe subscription ID (used by webhooks)."""
    result = await db.execute(
        select(UserSubscription).where(
            UserSubscription.stripe_subscription_id == stripe_subscription_id
        )
    )
    return result.scalar_one_or_none()


async def ensure_stripe_customer(
    db: AsyncSession, user: User, subscription: UserSubscription
) -> str:
    """Ensure the user has a Stripe customer ID. Create one if missing."""
    if subscription.stripe_customer_id:
        return subscription.stripe_customer_id

    customer = await create_customer(
        email=user.email,
        name=user.name or user.email,
        user_id=user.id,
    )
    subscription.stripe_customer_id = customer.id
    await db.flush()
    logger.info("Linked Stripe customer %s to user %s", customer.id, user.id)
    return customer.id


async def update_subscription_from_stripe(
    db: AsyncSession,
    subscription: UserSubscription,
    stripe_subscription_id: str,
    plan_type: PlanType,
    status: str,
    current_period_start: datetime | None = None,
    current_period_end: datetime | None = None,
    cancel_at_period_end: bool = False,
    stripe_customer_id: str | None = None,
) -> UserSubscription:
    """Update local subscription record from Stripe webhook data."""
    if stripe_customer_id and not subscription.stripe_customer_id:
        subscription.stripe_customer_id = stripe_customer_id
    subscription.stripe_subscription_id = stripe_subscription_id
    subscription.plan_type = plan_type.value
    subscription.status = status
    subscription.current_period_start = current_period_start
    subscription.current_period_end = current_period_end
    subscription.cancel_at_period_end = cancel_at_period_end
    await db.flush()

    logger.info(
        "Updated subscription %s: plan=%s (%s), status=%s",
        subscription.id,
        plan_type.value,
        get_plan(plan_type).name,
        status,
    )
    return subscription


async def cancel_subscription(
    db: AsyncSession, subscription: UserSubscription
) -> UserSubscription:
    """Mark a subscription canceled and drop the user to the free tier.

    The row and its Stripe identifiers are kept for history.
    """
    subscription.status = "canceled"
    subscription.plan_type = PlanType.FREE.value
    subscription.cancel_at_period_end = False
    await db.flush()

    logger.info(
        "Canceled subscription %s (user %s), now on free tier",
        subscription.id,
        subscription.user_id,
    )
    return subscription


# ---------------------------------------------------------------------------
# Usage and quota decisions
# ---------------------------------------------------------------------------


async def get_user_usage(db: AsyncSession, user_id: str) -> UsageStats:
    """Count the user's projects and snippets per project.

    Snippets without a project share the ``"no-project"`` bucket.
    """
    project_count = (
        await db.execute(
            select(func.count()).select_from(Project).where(Project.user_id == user_id)
        )
    ).scalar_one()

    rows = await db.execute(
        select(Snippet.project_id, func.count())
        .where(Snippet.user_id == user_id)
        .group_by(Snippet.project_id)
    )

    usage = UsageStats(projects=project_count)
    for project_id, count in rows.all():
        usage.snippets_per_project[_bucket(project_id)] = count
        usage.total_snippets += count
    return usage


def _bucket(project_id: uuid.UUID | str | None) -> str:
    return str(project_id) if project_id else NO_PROJECT_BUCKET


async def can_create_project(
    db: AsyncSession,
    user_id: str,
    plans: Mapping[PlanType, PlanLimits] = PLANS,
) -> QuotaDecision:
    """Check whether the user may create another project under their plan."""
    plan_type = await get_user_plan(db, user_id)
    limits = plans[plan_type]

    if limits.max_projects == UNLIMITED:
        return QuotaDecision(allowed=True, plan=plan_type)

    usage = await get_user_usage(db, user_id)
    if usage.projects >= limits.max_projects:
        return QuotaDecision(
            allowed=False,
            reason=(
                f"You've reached the maximum of {limits.max_projects} projects on the "
                f"{limits.name}. Upgrade to Pro for unlimited projects."
            ),
            limit=limits.max_projects,
            current=usage.projects,
            plan=plan_type,
        )
    return QuotaDecision(allowed=True, limit=limits.max_projects, current=usage.projects, plan=plan_type)


async def can_create_snippet(
    db: AsyncSession,
    user_id: str,
    project_id: uuid.UUID | str | None = None,
    plans: Mapping[PlanType, PlanLimits] = PLANS,
) -> QuotaDecision:
    """Check whether the user may add a snippet to ``project_id`` (or to no project)."""
    plan_type = await get_user_plan(db, user_id)
    limits = plans[plan_type]

    if limits.max_snippets_per_project == UNLIMITED:
        return QuotaDecision(allowed=True, plan=plan_type)

    usage = await get_user_usage(db, user_id)
    current = usage.snippets_per_project.get(_bucket(project_id), 0)
    if current >= limits.max_snippets_per_project:
        return QuotaDecision(
            allowed=False,
            reason=(
                f"You've reached the maximum of {limits.max_snippets_per_project} snippets per project "
                f"on the {limits.name}. Upgrade to Pro for unlimited snippets."
            ),
            limit=limits.max_snippets_per_project,
            current=current,
            plan=plan_type,
        )
    return QuotaDecision(
        allowed=True, limit=limits.max_snippets_per_project, current=current, plan=plan_type
    )


async def can_create_private_snippets(db: AsyncSession, user_id: str) -> bool:
    """Private snippets are a plan feature (PRO only by default)."""
    plan_type = await get_user_plan(db, user_id)
    return get_plan(plan_type).private_snippets
