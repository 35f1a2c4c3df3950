"""Pydantic v2 request/response schemas for project endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

_HEX_COLOR = "^#[0-9A-Fa-f]{6}$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    """Schema for creating a new project. A color is picked when omitted."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(None, pattern=_HEX_COLOR)


class ProjectUpdate(BaseModel):
    """Schema for partially updating a project. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(None, pattern=_HEX_COLOR)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ProjectResponse(BaseModel):
    """Project as returned from the API."""

    id: uuid.UUID
    user_id: str
    name: str
    description: str | None = None
    color: str
    snippet_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
    """All projects of the current user."""

    items: list[ProjectResponse]
    total: int


class ProjectStatsResponse(BaseModel):
    """Project count and snippets per project."""

    total_projects: int
    snippets_per_project: dict[str, int]
