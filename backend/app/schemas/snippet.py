"""Pydantic v2 request/response schemas for snippet endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_tags(value: list[str] | None) -> list[str] | None:
    """Strip whitespace, drop empties and duplicates, keep order."""
    if value is None:
        return None
    seen: list[str] = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class SnippetCreate(BaseModel):
    """Schema for creating a snippet.

    ``is_public`` defaults by plan when omitted: plans without private
    snippets publish new snippets to the community feed.
    """

    title: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1, max_length=50)
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    project_id: uuid.UUID | None = None
    is_public: bool | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)


class SnippetUpdate(BaseModel):
    """Schema for partially updating a snippet. Visibility has its own endpoint."""

    title: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1)
    language: str | None = Field(None, min_length=1, max_length=50)
    tags: list[str] | None = None
    description: str | None = None
    project_id: uuid.UUID | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)


class VisibilityUpdate(BaseModel):
    """Publish (true) or unpublish (false) a snippet."""

    is_public: bool


class CodeRequest(BaseModel):
    """Code plus language for the validate/format helpers."""

    code: str
    language: str


class SnippetImportRequest(BaseModel):
    """Raw import payload: our export format or a bare list of snippets."""

    project_id: uuid.UUID | None = None
    data: dict | list


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SnippetResponse(BaseModel):
    """Snippet as returned from the API."""

    id: uuid.UUID
    user_id: str
    project_id: uuid.UUID | None = None
    title: str
    code: str
    language: str
    tags: list[str]
    description: str | None = None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SnippetListResponse(BaseModel):
    """Paginated list of snippets."""

    items: list[SnippetResponse]
    total: int


class TagCount(BaseModel):
    tag: str
    count: int


class ValidationIssue(BaseModel):
    line: int
    column: int
    message: str
    severity: str  # error, warning, info


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue]
    suggestions: list[str]


class FormatResponse(BaseModel):
    formatted_code: str
    changed: bool


class SnippetImportResponse(BaseModel):
    imported: int
    items: list[SnippetResponse]
