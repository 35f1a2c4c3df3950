"""Tests for the check_limits operator script."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.billing.scripts import check_limits
from app.models.project import Project

pytestmark = pytest.mark.asyncio


@pytest.fixture
def script_session(db_session: AsyncSession):
    """Point the script at the test session and keep the test engine alive."""

    @asynccontextmanager
    async def _factory():
        yield db_session

    engine = MagicMock()
    engine.dispose = AsyncMock()
    with (
        patch.object(check_limits, "async_session_factory", _factory),
        patch.object(check_limits, "engine", engine),
    ):
        yield engine


async def test_free_user_at_project_limit(db_session: AsyncSession, free_user, script_session, capsys):
    user, _ = free_user
    db_session.add_all([Project(user_id=user.id, name=f"P{i}") for i in range(3)])
    await db_session.flush()

    await check_limits.main(user.id)

    out = capsys.readouterr().out
    assert "Plan: FREE (Free Plan)" in out
    assert "Projects: 3" in out
    assert "Can create project: False" in out
    assert "maximum of 3 projects" in out
    assert "Private snippets: False" in out
    script_session.dispose.assert_awaited_once()


async def test_pro_user(pro_user, script_session, capsys):
    user, _ = pro_user
    await check_limits.main(user.id)

    out = capsys.readouterr().out
    assert "Plan: PRO (Pro Plan)" in out
    assert "Can create project: True" in out
    assert "Private snippets: True" in out
