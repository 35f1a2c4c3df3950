"""Community feed API routes — public snippets, views and likes."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db, get_optional_user
from app.models.community import CommunityPost
from app.models.user import User
from app.schemas.community import (
    CommunityListResponse,
    CommunityPostResponse,
    CommunityStatsResponse,
    LikeResponse,
    UserLikesResponse,
    ViewResponse,
)
from app.services import community_service
from app.services.community_service import SortField, SortOrder

router = APIRouter(prefix="/api/v1/community", tags=["community"])


def _to_response(post: CommunityPost, liked_ids: set[uuid.UUID] | None = None) -> CommunityPostResponse:
    response = CommunityPostResponse.model_validate(post)
    if post.author is not None:
        response.author_name = post.author.name
        response.author_avatar = post.author.avatar_url
    response.user_liked = post.id in (liked_ids or set())
    return response


async def _with_likes(
    db: AsyncSession, posts: list[CommunityPost], user: User | None
) -> CommunityListResponse:
    liked: set[uuid.UUID] = set()
    if user is not None:
        liked = set(await community_service.get_user_likes(db, user.id, [p.id for p in posts]))
    return CommunityListResponse(items=[_to_response(p, liked) for p in posts])


async def _get_post_or_404(db: AsyncSession, community_id: uuid.UUID) -> CommunityPost:
    post = await community_service.get_community_post(db, community_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community snippet not found",
        )
    return post


@router.get("", response_model=CommunityListResponse, summary="Browse the community feed")
async def list_community(
    q: str | None = Query(None, description="Search title, code or description"),
    language: str | None = Query(None),
    tags: list[str] | None = Query(None),
    sort_by: SortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> CommunityListResponse:
    """Public feed. Signed-in callers also see which posts they liked."""
    posts = await community_service.list_community_posts(
        db,
        limit=limit,
        offset=offset,
        search=q,
        language=language,
        tags=tags,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await _with_likes(db, posts, current_user)


@router.get("/newest", response_model=CommunityListResponse, summary="Newest community snippets")
async def newest_community(
    limit: int = Query(2, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> CommunityListResponse:
    posts = await community_service.get_newest_posts(db, limit=limit)
    return await _with_likes(db, posts, current_user)


@router.get("/stats", response_model=CommunityStatsResponse, summary="Community totals")
async def community_stats(
    db: AsyncSession = Depends(get_db),
) -> CommunityStatsResponse:
    stats = await community_service.get_community_stats(db)
    return CommunityStatsResponse(
        total_snippets=stats.total_snippets,
        total_likes=stats.total_likes,
        total_views=stats.total_views,
    )


@router.get("/likes", response_model=UserLikesResponse, summary="Which of these posts I liked")
async def my_likes(
    ids: list[uuid.UUID] | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UserLikesResponse:
    liked = await community_service.get_user_likes(db, current_user.id, ids or [])
    return UserLikesResponse(community_ids=liked)


@router.get("/{community_id}", response_model=CommunityPostResponse, summary="Get a community snippet")
async def get_community_snippet(
    community_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> CommunityPostResponse:
    post = await _get_post_or_404(db, community_id)
    liked: set[uuid.UUID] = set()
    if current_user is not None:
        liked = set(await community_service.get_user_likes(db, current_user.id, [post.id]))
    return _to_response(post, liked)


@router.post("/{community_id}/view", response_model=ViewResponse, summary="Record a view")
async def record_view(
    community_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ViewResponse:
    """Count one view. Anonymous callers are counted too."""
    await _get_post_or_404(db, community_id)
    if not await community_service.record_view(db, community_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record view",
        )
    return ViewResponse(recorded=True)


@router.post("/{community_id}/like", response_model=LikeResponse, summary="Like or unlike")
async def toggle_like(
    community_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> LikeResponse:
    """Toggle the caller's like and return the new state and count."""
    await _get_post_or_404(db, community_id)
    result = await community_service.toggle_like(db, community_id, current_user.id)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle like",
        )
    return LikeResponse(liked=result.liked, likes_count=result.likes_count)
