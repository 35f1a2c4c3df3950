"""Snippet service — CRUD, search, and tag statistics for a user's snippets."""

import logging
import uuid
from collections import Counter

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.snippet import Snippet
from app.services.community_service import (
    publish_snippet,
    search_filter,
    tag_filter,
    unpublish_snippet,
)

logger = logging.getLogger(__name__)


async def get_snippet(db: AsyncSession, snippet_id: uuid.UUID, user_id: str) -> Snippet | None:
    """Return the snippet if it exists and belongs to ``user_id``."""
    result = await db.execute(
        select(Snippet).where(Snippet.id == snippet_id, Snippet.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_snippet(
    db: AsyncSession,
    user_id: str,
    *,
    title: str,
    code: str,
    language: str,
    tags: list[str] | None = None,
    description: str | None = None,
    project_id: uuid.UUID | None = None,
    is_public: bool = False,
) -> Snippet:
    """Insert a snippet; a public one is published to the community feed too.

    Project ownership and quota are checked by the caller.
    """
    snippet = Snippet(
        user_id=user_id,
        project_id=project_id,
        title=title,
        code=code,
        language=language,
        tags=list(tags or []),
        description=description,
        is_public=is_public,
    )
    db.add(snippet)
    await db.flush()
    if is_public:
        await publish_snippet(db, snippet)
    logger.info("Created snippet %s for user %s (public=%s)", snippet.id, user_id, is_public)
    return snippet


def _filters(
    user_id: str,
    q: str | None = None,
    tag: str | None = None,
    language: str | None = None,
    project_id: uuid.UUID | None = None,
) -> list:
    filters = [Snippet.user_id == user_id]
    if q:
        filters.append(
            or_(
                search_filter(q, Snippet.title, Snippet.code, Snippet.description),
                tag_filter(Snippet.tags, q),
            )
        )
    if tag:
        filters.append(tag_filter(Snippet.tags, tag))
    if language:
        filters.append(Snippet.language == language)
    if project_id is not None:
        filters.append(Snippet.project_id == project_id)
    return filters


async def list_snippets(
    db: AsyncSession,
    user_id: str,
    q: str | None = None,
    tag: str | None = None,
    language: str | None = None,
    project_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Snippet], int]:
    """Return a page of the user's snippets (newest first) and the filtered total."""
    filters = _filters(user_id, q=q, tag=tag, language=language, project_id=project_id)

    total = (
        await db.execute(select(func.count()).select_from(Snippet).where(*filters))
    ).scalar_one()

    result = await db.execute(
        select(Snippet)
        .where(*filters)
        .order_by(Snippet.created_at.desc(), Snippet.id)
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def list_all_snippets(db: AsyncSession, user_id: str) -> list[Snippet]:
    """Every snippet of the user, newest first (used by export)."""
    result = await db.execute(
        select(Snippet).where(Snippet.user_id == user_id).order_by(Snippet.created_at.desc())
    )
    return list(result.scalars().all())


async def update_snippet(db: AsyncSession, snippet: Snippet, changes: dict) -> Snippet:
    """Apply a partial update. The community copy, if any, is left as published."""
    for field, value in changes.items():
        setattr(snippet, field, value)
    await db.flush()
    return snippet


async def delete_snippet(db: AsyncSession, snippet: Snippet) -> None:
    """Delete a snippet together with its community copy and that copy's likes."""
    await unpublish_snippet(db, snippet.id)
    await db.delete(snippet)
    await db.flush()
    logger.info("Deleted snippet %s of user %s", snippet.id, snippet.user_id)


async def get_tag_counts(db: AsyncSession, user_id: str) -> list[tuple[str, int]]:
    """Count tag usage across the user's snippets, most used first then alphabetical."""
    result = await db.execute(select(Snippet.tags).where(Snippet.user_id == user_id))
    counter: Counter[str] = Counter()
    for tags in result.scalars().all():
        counter.update(tags or [])
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))
