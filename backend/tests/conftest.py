"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets its own outer transaction that rolls back after the test.
- ``TEST_DATABASE_URL`` selects the database; by default an in-memory SQLite
  database (aiosqlite) is used, so no server is needed.
"""

import os
import uuid
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.billing.plans import PlanType
from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services.subscription_service import get_or_create_subscription
from app.services.user_service import sync_user_from_claims

# ---------------------------------------------------------------------------
# Test database engine
# ---------------------------------------------------------------------------

_test_db_url = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_engine():
    if _test_db_url.startswith("sqlite"):
        return create_async_engine(
            _test_db_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(_test_db_url, echo=False, pool_pre_ping=True)


# ---------------------------------------------------------------------------
# Session-scoped: create / drop all tables once per test session
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def test_engine():
    """Create a session-scoped engine tied to the session event loop."""
    engine = _make_engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def setup_test_db(test_engine):
    """Create all tables at the start of the session and drop them at the end."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ---------------------------------------------------------------------------
# Per-test: transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(test_engine, setup_test_db) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            if transaction.is_active:
                await transaction.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: users with a plan, and bearer tokens for them
# ---------------------------------------------------------------------------


def make_auth_headers(user_id: str, email: str = "", name: str | None = None) -> dict[str, str]:
    """Issue an identity-provider style token for ``user_id``."""
    claims = {"sub": user_id, "email": email}
    if name:
        claims["name"] = name
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


async def create_user_with_plan(
    db_session: AsyncSession,
    plan: PlanType = PlanType.FREE,
    name: str = "Test User",
) -> tuple[User, dict[str, str]]:
    """Create a user (and subscription row on ``plan``); return (user, auth_headers)."""
    unique = uuid.uuid4().hex[:8]
    user_id = f"user_{unique}"
    email = f"user-{unique}@test.com"
    user = await sync_user_from_claims(db_session, user_id, {"email": email, "name": name})

    subscription = await get_or_create_subscription(db_session, user_id)
    subscription.plan_type = plan.value
    subscription.status = "active"
    await db_session.flush()

    return user, make_auth_headers(user_id, email, name)


# ---------------------------------------------------------------------------
# Convenience fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def free_user(db_session: AsyncSession) -> tuple[User, dict[str, str]]:
    """A FREE-plan user and its auth headers."""
    return await create_user_with_plan(db_session, PlanType.FREE, name="Free User")


@pytest_asyncio.fixture
async def pro_user(db_session: AsyncSession) -> tuple[User, dict[str, str]]:
    """A PRO-plan user and its auth headers."""
    return await create_user_with_plan(db_session, PlanType.PRO, name="Pro User")


@pytest_asyncio.fixture
async def test_project(client: AsyncClient, pro_user) -> dict:
    """Create and return a project for the PRO user via the API."""
    _, headers = pro_user
    response = await client.post(
        "/api/v1/projects",
        json={"name": "Test Project", "description": "Project for automated tests."},
        headers=headers,
    )
    assert response.status_code == 201, f"Failed to create test project: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory fixture: ``await make_user(PlanType.PRO)`` -> (user, auth_headers)."""

    async def _make(plan: PlanType = PlanType.FREE, name: str = "Test User"):
        return await create_user_with_plan(db_session, plan, name=name)

    return _make
