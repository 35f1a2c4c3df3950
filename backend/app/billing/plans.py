"""Plan definitions — pricing tiers and usage limits."""

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from app.config import settings

UNLIMITED = -1


class PlanType(str, enum.Enum):
    """Subscription tiers stored in ``user_subscriptions.plan_type``."""

    FREE = "FREE"
    PRO = "PRO"


@dataclass(frozen=True)
class PlanLimits:
    """Usage limits for a subscription plan."""

    id: str
    name: str
    description: str
    price_monthly_usd: int
    max_projects: int  # UNLIMITED (-1) = no ceiling
    max_snippets_per_project: int  # UNLIMITED (-1) = no ceiling
    private_snippets: bool
    features: tuple[str, ...]


PLANS: Mapping[PlanType, PlanLimits] = MappingProxyType(
    {
        PlanType.FREE: PlanLimits(
            id="free",
            name="Free Plan",
            description="Perfect for getting started",
            price_monthly_usd=0,
            max_projects=3,
            max_snippets_per_project=10,
            private_snippets=False,
            features=(
                "Up to 3 projects",
                "10 snippets per project",
                "Basic search functionality",
                "Tag organization",
            ),
        ),
        PlanType.PRO: PlanLimits(
            id="pro",
            name="Pro Plan",
            description="For power users and teams",
            price_monthly_usd=10,
            max_projects=UNLIMITED,
            max_snippets_per_project=UNLIMITED,
            private_snippets=True,
            features=(
                "Unlimited projects",
                "Unlimited snippets",
                "Private snippets",
                "Advanced search & filtering",
                "Export/Import capabilities",
            ),
        ),
    }
)


def parse_plan_type(value: str | None) -> PlanType:
    """Map a stored plan value to ``PlanType``. Unknown values fall back to FREE."""
    try:
        return PlanType(value)
    except ValueError:
        return PlanType.FREE


def get_plan(
    plan_type: PlanType | str | None, plans: Mapping[PlanType, PlanLimits] = PLANS
) -> PlanLimits:
    """Get plan limits by type. Defaults to free if unknown."""
    return plans[parse_plan_type(plan_type)]


def plan_type_for_price(price_id: str | None) -> PlanType:
    """Derive the plan from a Stripe price ID: the configured Pro price is PRO, anything else FREE."""
    if price_id and settings.stripe_pro_price_id and price_id == settings.stripe_pro_price_id:
        return PlanType.PRO
    return PlanType.FREE
