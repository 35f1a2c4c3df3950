"""Pydantic v2 request/response schemas for billing endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# --- Request schemas ---


class CheckoutRequest(BaseModel):
    """Request to create a Stripe Checkout session."""

    model_config = ConfigDict(populate_by_name=True)

    price_id: str | None = Field(None, alias="priceId")
    success_url: str | None = Field(None, alias="successUrl")
    cancel_url: str | None = Field(None, alias="cancelUrl")


# --- Response schemas ---


class PlanResponse(BaseModel):
    """Plan details for display."""

    plan_type: str
    id: str
    name: str
    description: str
    price_monthly_usd: int
    max_projects: int  # -1 = unlimited
    max_snippets_per_project: int  # -1 = unlimited
    private_snippets: bool
    features: list[str]


class UsageResponse(BaseModel):
    """Current usage computed on demand."""

    projects: int
    snippets_per_project: dict[str, int]
    total_snippets: int


class SubscriptionRecord(BaseModel):
    """The stored ``user_subscriptions`` row."""

    user_id: str
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    plan_type: str
    status: str
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool

    model_config = ConfigDict(from_attributes=True)


class SubscriptionResponse(BaseModel):
    """Subscription row, effective plan, plan details and usage for the current user."""

    subscription: SubscriptionRecord | None
    plan: str
    plan_details: PlanResponse
    usage: UsageResponse


class CheckoutResponse(BaseModel):
    """Stripe Checkout session URL returned to frontend."""

    url: str
    session_id: str


class PlansListResponse(BaseModel):
    """All available plans."""

    plans: list[PlanResponse]
