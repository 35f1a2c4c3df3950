"""Pydantic v2 request/response schemas for community endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CommunityPostResponse(BaseModel):
    """A published snippet in the community feed."""

    id: uuid.UUID
    snippet_id: uuid.UUID
    user_id: str
    title: str
    code: str
    language: str
    tags: list[str]
    description: str | None = None
    likes_count: int
    views_count: int
    author_name: str | None = None
    author_avatar: str | None = None
    user_liked: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommunityListResponse(BaseModel):
    items: list[CommunityPostResponse]


class LikeResponse(BaseModel):
    """Result of toggling a like."""

    liked: bool
    likes_count: int


class ViewResponse(BaseModel):
    recorded: bool


class CommunityStatsResponse(BaseModel):
    total_snippets: int
    total_likes: int
    total_views: int


class UserLikesResponse(BaseModel):
    """IDs (among those asked about) that the current user has liked."""

    community_ids: list[uuid.UUID]
