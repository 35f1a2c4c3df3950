"""Project service — CRUD for projects, scoped to their owner."""

import logging
import random
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.community import CommunityPost
from app.models.project import Project
from app.models.snippet import Snippet
from app.services.subscription_service import get_user_usage

logger = logging.getLogger(__name__)

PROJECT_COLORS = (
    "#3B82F6",  # blue
    "#10B981",  # green
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#8B5CF6",  # violet
    "#F97316",  # orange
    "#06B6D4",  # cyan
    "#84CC16",  # lime
    "#EC4899",  # pink
    "#6B7280",  # gray
)


def random_project_color() -> str:
    return random.choice(PROJECT_COLORS)


async def get_project(db: AsyncSession, project_id: uuid.UUID, user_id: str) -> Project | None:
    """Return the project if it exists and belongs to ``user_id``."""
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_project(
    db: AsyncSession,
    user_id: str,
    name: str,
    description: str | None = None,
    color: str | None = None,
) -> Project:
    """Insert a project. Quota is checked by the caller."""
    project = Project(
        user_id=user_id,
        name=name,
        description=description,
        color=color or random_project_color(),
    )
    db.add(project)
    await db.flush()
    logger.info("Created project %s for user %s", project.id, user_id)
    return project


async def list_projects(db: AsyncSession, user_id: str) -> list[tuple[Project, int]]:
    """Return the user's projects, newest first, each with its snippet count."""
    counts = (
        select(Snippet.project_id, func.count().label("snippet_count"))
        .where(Snippet.user_id == user_id, Snippet.project_id.is_not(None))
        .group_by(Snippet.project_id)
        .subquery()
    )
    result = await db.execute(
        select(Project, func.coalesce(counts.c.snippet_count, 0))
        .outerjoin(counts, counts.c.project_id == Project.id)
        .where(Project.user_id == user_id)
        .order_by(Project.created_at.desc())
    )
    return [(project, count) for project, count in result.all()]


async def count_project_snippets(db: AsyncSession, project_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(Snippet).where(Snippet.project_id == project_id)
    )
    return result.scalar_one()


async def update_project(db: AsyncSession, project: Project, changes: dict) -> Project:
    for field, value in changes.items():
        setattr(project, field, value)
    await db.flush()
    return project


async def delete_project(db: AsyncSession, project: Project) -> None:
    """Delete a project, keeping its snippets.

    Snippets and their community copies are detached (``project_id = NULL``)
    explicitly as well as through the ``SET NULL`` foreign key, since SQLite
    does not enforce foreign keys by default.
    """
    await db.execute(
        update(Snippet)
        .where(Snippet.project_id == project.id)
        .values(project_id=None)
    )
    await db.execute(
        update(CommunityPost)
        .where(CommunityPost.project_id == project.id)
        .values(project_id=None)
    )
    await db.delete(project)
    await db.flush()
    logger.info("Deleted project %s of user %s", project.id, project.user_id)


async def get_project_stats(db: AsyncSession, user_id: str) -> dict:
    """Project count and snippet count per project id (``"no-project"`` for loose snippets)."""
    usage = await get_user_usage(db, user_id)
    return {
        "total_projects": usage.projects,
        "snippets_per_project": dict(usage.snippets_per_project),
    }
