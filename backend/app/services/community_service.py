"""Community service — snippet publication sync, feed queries, and engagement counters."""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import String, case, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.community import CommunityLike, CommunityPost
from app.models.snippet import Snippet

logger = logging.getLogger(__name__)

SortField = Literal["created_at", "likes_count", "views_count"]
SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class LikeResult:
    """Outcome of ``toggle_like``."""

    success: bool
    liked: bool = False
    likes_count: int = 0


@dataclass(frozen=True)
class CommunityStats:
    total_snippets: int
    total_likes: int
    total_views: int


# ---------------------------------------------------------------------------
# Visibility sync
# ---------------------------------------------------------------------------


async def publish_snippet(db: AsyncSession, snippet: Snippet) -> CommunityPost:
    """Copy ``snippet`` into the community table unless it is already there."""
    existing = await db.scalar(
        select(CommunityPost).where(CommunityPost.snippet_id == snippet.id)
    )
    if existing is not None:
        return existing

    post = CommunityPost(
        snippet_id=snippet.id,
        user_id=snippet.user_id,
        project_id=snippet.project_id,
        title=snippet.title,
        code=snippet.code,
        language=snippet.language,
        tags=list(snippet.tags or []),
        description=snippet.description,
        likes_count=0,
        views_count=0,
        created_at=snippet.created_at,
        updated_at=utcnow(),
    )
    db.add(post)
    await db.flush()
    logger.info("Published snippet %s as community post %s", snippet.id, post.id)
    return post


async def unpublish_snippet(db: AsyncSession, snippet_id: uuid.UUID) -> int:
    """Delete the community copies of a snippet together with their likes."""
    post_ids = select(CommunityPost.id).where(CommunityPost.snippet_id == snippet_id)
    await db.execute(delete(CommunityLike).where(CommunityLike.community_id.in_(post_ids)))
    result = await db.execute(delete(CommunityPost).where(CommunityPost.snippet_id == snippet_id))
    if result.rowcount:
        logger.info("Removed snippet %s from the community feed", snippet_id)
    return result.rowcount or 0


async def set_snippet_public(
    db: AsyncSession, snippet_id: uuid.UUID, is_public: bool, user_id: str
) -> bool:
    """Set a snippet's visibility and mirror it into the community table.

    Only the owner's snippet is touched. The flag update and the community
    sync share the caller's transaction; on a data-store error the session is
    rolled back and ``False`` is returned.
    """
    try:
        snippet = await db.scalar(
            select(Snippet).where(Snippet.id == snippet_id, Snippet.user_id == user_id)
        )
        if snippet is None:
            logger.warning("Visibility change for unknown snippet %s by user %s", snippet_id, user_id)
            return False

        snippet.is_public = is_public
        snippet.updated_at = utcnow()
        await db.flush()

        if is_public:
            await publish_snippet(db, snippet)
        else:
            await unpublish_snippet(db, snippet.id)
        return True
    except SQLAlchemyError:
        logger.exception("Error setting snippet %s public=%s", snippet_id, is_public)
        await db.rollback()
        return False


# ---------------------------------------------------------------------------
# Feed queries
# ---------------------------------------------------------------------------


def tag_filter(column, tag: str):
    """Match one exact tag inside a JSON list column (works on PostgreSQL and SQLite).

    The column text is the same ``json.dumps`` rendering the tag gets here, so
    non-ASCII escapes line up. ``%`` and ``_`` in the tag are matched literally.
    """
    return column.cast(String).contains(json.dumps(tag), autoescape=True)


def search_filter(q: str, *columns):
    """Case-insensitive substring match of ``q`` against any of ``columns``."""
    return or_(*(col.icontains(q, autoescape=True) for col in columns))


async def list_community_posts(
    db: AsyncSession,
    limit: int = 20,
    offset: int = 0,
    search: str | None = None,
    language: str | None = None,
    tags: list[str] | None = None,
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "desc",
) -> list[CommunityPost]:
    """Return a page of community posts, filtered and sorted."""
    query = select(CommunityPost)

    if search:
        query = query.where(
            search_filter(search, CommunityPost.title, CommunityPost.code, CommunityPost.description)
        )
    if language:
        query = query.where(CommunityPost.language == language)
    for tag in tags or []:
        query = query.where(tag_filter(CommunityPost.tags, tag))

    column = getattr(CommunityPost, sort_by)
    order = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(order, CommunityPost.id).offset(offset).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_newest_posts(db: AsyncSession, limit: int = 2) -> list[CommunityPost]:
    return await list_community_posts(db, limit=limit, sort_by="created_at", sort_order="desc")


async def get_community_post(db: AsyncSession, community_id: uuid.UUID) -> CommunityPost | None:
    return await db.scalar(select(CommunityPost).where(CommunityPost.id == community_id))


async def get_user_likes(
    db: AsyncSession, user_id: str, community_ids: list[uuid.UUID]
) -> list[uuid.UUID]:
    """Return which of ``community_ids`` the user has liked."""
    if not community_ids:
        return []
    result = await db.execute(
        select(CommunityLike.community_id).where(
            CommunityLike.user_id == user_id,
            CommunityLike.community_id.in_(community_ids),
        )
    )
    return list(result.scalars().all())


async def get_community_stats(db: AsyncSession) -> CommunityStats:
    total_snippets = await db.scalar(select(func.count()).select_from(CommunityPost))
    total_likes = await db.scalar(select(func.count()).select_from(CommunityLike))
    total_views = await db.scalar(select(func.coalesce(func.sum(CommunityPost.views_count), 0)))
    return CommunityStats(
        total_snippets=total_snippets or 0,
        total_likes=total_likes or 0,
        total_views=int(total_views or 0),
    )


# ---------------------------------------------------------------------------
# Engagement counters
# ---------------------------------------------------------------------------


async def record_view(db: AsyncSession, community_id: uuid.UUID) -> bool:
    """Increment a post's view counter in a single UPDATE."""
    try:
        result = await db.execute(
            update(CommunityPost)
            .where(CommunityPost.id == community_id)
            .values(views_count=CommunityPost.views_count + 1, updated_at=utcnow())
        )
        if not result.rowcount:
            logger.warning("View recorded for unknown community post %s", community_id)
            return False
        return True
    except SQLAlchemyError:
        logger.exception("Error incrementing view count for %s", community_id)
        await db.rollback()
        return False


async def toggle_like(db: AsyncSession, community_id: uuid.UUID, user_id: str) -> LikeResult:
    """Like the post if the user has not yet, otherwise remove the like.

    The counter is adjusted in SQL (``likes_count + delta``) and never drops
    below zero; the fresh value is read back for the response.
    """
    try:
        exists = await db.scalar(
            select(func.count()).select_from(CommunityPost).where(CommunityPost.id == community_id)
        )
        if not exists:
            logger.warning("Like toggled on unknown community post %s", community_id)
            return LikeResult(success=False)

        existing = await db.scalar(
            select(CommunityLike).where(
                CommunityLike.community_id == community_id,
                CommunityLike.user_id == user_id,
            )
        )
        if existing is not None:
            await db.delete(existing)
            liked, delta = False, -1
        else:
            db.add(CommunityLike(community_id=community_id, user_id=user_id))
            liked, delta = True, 1
        await db.flush()

        new_count = CommunityPost.likes_count + delta
        await db.execute(
            update(CommunityPost)
            .where(CommunityPost.id == community_id)
            .values(likes_count=case((new_count < 0, 0), else_=new_count), updated_at=utcnow())
        )
        likes_count = await db.scalar(
            select(CommunityPost.likes_count).where(CommunityPost.id == community_id)
        )
        return LikeResult(success=True, liked=liked, likes_count=likes_count or 0)
    except SQLAlchemyError:
        logger.exception("Error toggling like on %s for user %s", community_id, user_id)
        await db.rollback()
        return LikeResult(success=False)
