"""Subscription model — Stripe billing state per user."""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, false
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class UserSubscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Tracks a user's Stripe subscription and plan tier."""

    __tablename__ = "user_subscriptions"

    # One subscription per user (UNIQUE enforces one-to-one)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    # Stripe identifiers
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    # Plan & status
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False, default="FREE", server_default="FREE")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default="active"
    )  # active, canceled, past_due, unpaid, incomplete

    # Billing period
    current_period_start: Mapped[datetime | None] = mapped_column(nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return (
            f"<UserSubscription(id={self.id}, user_id={self.user_id!r}, "
            f"plan_type={self.plan_type}, status={self.status})>"
        )
