"""Plan gating dependencies — enforce usage limits based on subscription plan."""

import logging
import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_active_user
from app.billing.plans import PlanLimits, get_plan
from app.database import get_db
from app.models.user import User
from app.services.subscription_service import (
    QuotaDecision,
    can_create_private_snippets,
    can_create_project,
    can_create_snippet,
    get_user_plan,
)

logger = logging.getLogger(__name__)

UPGRADE_URL = "/api/v1/billing/checkout"


def _payment_required(decision: QuotaDecision) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        detail={
            "message": decision.reason,
            "limit": decision.limit,
            "current": decision.current,
            "plan": decision.plan.value if decision.plan else None,
            "upgrade_url": UPGRADE_URL,
        },
    )


async def get_plan_limits(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> PlanLimits:
    """Return the current user's plan limits."""
    return get_plan(await get_user_plan(db, user.id))


async def check_project_limit(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> None:
    """Raise 402 if the user has reached their plan's project limit."""
    decision = await can_create_project(db, user.id)
    if not decision.allowed:
        logger.info("Project quota reached for user %s (%s)", user.id, decision.current)
        raise _payment_required(decision)


async def ensure_can_create_snippet(
    db: AsyncSession, user: User, project_id: uuid.UUID | None
) -> None:
    """Raise 402 if ``project_id``'s bucket is full under the user's plan.

    Not a FastAPI dependency: the project id comes from the request body.
    """
    decision = await can_create_snippet(db, user.id, project_id)
    if not decision.allowed:
        logger.info(
            "Snippet quota reached for user %s in project %s (%s)",
            user.id,
            project_id,
            decision.current,
        )
        raise _payment_required(decision)


async def ensure_private_snippets_allowed(db: AsyncSession, user: User) -> None:
    """Raise 402 if the user's plan does not include private snippets."""
    if not await can_create_private_snippets(db, user.id):
        plan_type = await get_user_plan(db, user.id)
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": "Private snippets are only available for PRO users. Upgrade your plan to make snippets private.",
                "plan": plan_type.value,
                "upgrade_url": UPGRADE_URL,
            },
        )
