"""User service — mirror identity-provider users into the local ``users`` table."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.subscription_service import get_or_create_subscription

logger = logging.getLogger(__name__)


def _display_name(claims: dict) -> str | None:
    name = claims.get("name")
    if name:
        return name
    parts = [claims.get("given_name"), claims.get("family_name")]
    joined = " ".join(p for p in parts if p)
    return joined or None


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def sync_user_from_claims(db: AsyncSession, user_id: str, claims: dict) -> User:
    """Create the local user on first sign-in, refresh profile fields afterwards.

    New users also get a FREE subscription row.
    """
    email = claims.get("email")
    name = _display_name(claims)
    avatar_url = claims.get("picture")

    user = await get_user(db, user_id)
    if user is None:
        user = User(
            id=user_id,
            email=email or "",
            name=name or "User",
            avatar_url=avatar_url,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await get_or_create_subscription(db, user_id)
        logger.info("Created local user %s (%s)", user_id, user.email)
        return user

    changed = False
    if email and email != user.email:
        user.email = email
        changed = True
    if name and name != user.name:
        user.name = name
        changed = True
    if avatar_url and avatar_url != user.avatar_url:
        user.avatar_url = avatar_url
        changed = True
    if changed:
        await db.flush()
        logger.info("Updated profile of user %s from identity claims", user_id)
    return user
