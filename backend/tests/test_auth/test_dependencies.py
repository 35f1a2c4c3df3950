"""Tests for bearer-token authentication and local user sync."""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import create_access_token
from app.services.subscription_service import get_user_subscription
from app.services.user_service import get_user, sync_user_from_claims

pytestmark = pytest.mark.asyncio


def _headers(claims: dict, expires_delta: timedelta | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(claims, expires_delta)}"}


class TestGetCurrentUser:
    """Test GET /api/v1/users/me through the auth dependency."""

    async def test_missing_token_returns_401(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_invalid_token_returns_401(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/users/me", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    async def test_expired_token_returns_401(self, client: AsyncClient):
        headers = _headers({"sub": "user_expired"}, timedelta(seconds=-5))
        response = await client.get("/api/v1/users/me", headers=headers)
        assert response.status_code == 401

    async def test_token_without_sub_returns_401(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me", headers=_headers({"email": "x@y.test"}))
        assert response.status_code == 401

    async def test_first_request_creates_user_and_free_subscription(
        self, db_session: AsyncSession, client: AsyncClient
    ):
        user_id = f"user_{uuid.uuid4().hex[:8]}"
        headers = _headers({"sub": user_id, "email": "new@test.com", "name": "New Person"})

        response = await client.get("/api/v1/users/me", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == user_id
        assert data["email"] == "new@test.com"
        assert data["name"] == "New Person"

        subscription = await get_user_subscription(db_session, user_id)
        assert subscription is not None
        assert subscription.plan_type == "FREE"
        assert subscription.status == "active"

    async def test_profile_refreshed_from_claims(
        self, db_session: AsyncSession, client: AsyncClient, free_user
    ):
        user, _ = free_user
        headers = _headers({"sub": user.id, "email": "changed@test.com", "name": "Renamed"})

        response = await client.get("/api/v1/users/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        refreshed = await get_user(db_session, user.id)
        assert refreshed.email == "changed@test.com"

    async def test_inactive_user_rejected(
        self, db_session: AsyncSession, client: AsyncClient, free_user
    ):
        user, headers = free_user
        user.is_active = False
        await db_session.flush()

        response = await client.get("/api/v1/users/me", headers=headers)
        assert response.status_code == 401


class TestSyncUserFromClaims:
    """Test the user mirror directly."""

    async def test_given_and_family_name_joined(self, db_session: AsyncSession):
        user_id = f"user_{uuid.uuid4().hex[:8]}"
        user = await sync_user_from_claims(
            db_session, user_id, {"email": "g@test.com", "given_name": "Grace", "family_name": "Hopper"}
        )
        assert user.name == "Grace Hopper"

    async def test_missing_name_defaults(self, db_session: AsyncSession):
        user_id = f"user_{uuid.uuid4().hex[:8]}"
        user = await sync_user_from_claims(db_session, user_id, {})
        assert user.name == "User"
        assert user.email == ""

    async def test_second_sync_does_not_duplicate_subscription(self, db_session: AsyncSession):
        user_id = f"user_{uuid.uuid4().hex[:8]}"
        await sync_user_from_claims(db_session, user_id, {"email": "a@test.com"})
        first = await get_user_subscription(db_session, user_id)
        await sync_user_from_claims(db_session, user_id, {"email": "a@test.com"})
        second = await get_user_subscription(db_session, user_id)
        assert first.id == second.id
