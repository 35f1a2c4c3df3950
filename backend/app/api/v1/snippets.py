"""Snippets API routes — ownership-scoped CRUD, visibility, tags, export/import and code tools."""

import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    ensure_can_create_snippet,
    ensure_private_snippets_allowed,
    get_current_active_user,
    get_db,
)
from app.billing.plans import get_plan
from app.models.snippet import Snippet
from app.models.user import User
from app.schemas.snippet import (
    CodeRequest,
    FormatResponse,
    SnippetCreate,
    SnippetImportRequest,
    SnippetImportResponse,
    SnippetListResponse,
    SnippetResponse,
    SnippetUpdate,
    TagCount,
    ValidationIssue,
    ValidationResponse,
    VisibilityUpdate,
)
from app.schemas.user import MessageResponse
from app.services import code_validator, export_service, project_service, snippet_service
from app.services.community_service import set_snippet_public
from app.services.subscription_service import get_user_plan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/snippets", tags=["snippets"])

# Fields that may not be cleared with an explicit null
_REQUIRED_FIELDS = ("title", "code", "language", "tags")


async def _get_owned_snippet(db: AsyncSession, snippet_id: uuid.UUID, user: User) -> Snippet:
    snippet = await snippet_service.get_snippet(db, snippet_id, user.id)
    if snippet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Snippet not found",
        )
    return snippet


async def _ensure_project_owned(db: AsyncSession, project_id: uuid.UUID | None, user: User) -> None:
    if project_id is None:
        return
    if await project_service.get_project(db, project_id, user.id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )


async def _resolve_visibility(db: AsyncSession, user: User, requested: bool | None) -> bool:
    """Plans without private snippets publish by default and may not go private."""
    if requested is None:
        plan = get_plan(await get_user_plan(db, user.id))
        return not plan.private_snippets
    if not requested:
        await ensure_private_snippets_allowed(db, user)
    return requested


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new snippet",
)
async def create_snippet(
    body: SnippetCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetResponse:
    """Create a snippet, optionally inside one of the user's projects."""
    await _ensure_project_owned(db, body.project_id, current_user)
    await ensure_can_create_snippet(db, current_user, body.project_id)
    is_public = await _resolve_visibility(db, current_user, body.is_public)

    snippet = await snippet_service.create_snippet(
        db,
        current_user.id,
        title=body.title,
        code=body.code,
        language=body.language,
        tags=body.tags,
        description=body.description,
        project_id=body.project_id,
        is_public=is_public,
    )
    return SnippetResponse.model_validate(snippet)


@router.get(
    "",
    response_model=SnippetListResponse,
    summary="List snippets owned by the current user",
)
async def list_snippets(
    q: str | None = Query(None, description="Search title, code, description or tag"),
    tag: str | None = Query(None),
    language: str | None = Query(None),
    project_id: uuid.UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetListResponse:
    """Return paginated snippets belonging to the current user, newest first."""
    items, total = await snippet_service.list_snippets(
        db,
        current_user.id,
        q=q,
        tag=tag,
        language=language,
        project_id=project_id,
        skip=skip,
        limit=limit,
    )
    return SnippetListResponse(
        items=[SnippetResponse.model_validate(s) for s in items],
        total=total,
    )


@router.get("/tags", response_model=list[TagCount], summary="Tag usage counts")
async def list_tags(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[TagCount]:
    counts = await snippet_service.get_tag_counts(db, current_user.id)
    return [TagCount(tag=tag, count=count) for tag, count in counts]


@router.get("/export", summary="Export all snippets")
async def export_snippets(
    export_format: Literal["json", "markdown", "txt"] = Query("json", alias="format"),
    include_metadata: bool = Query(False),
    group_by_language: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    """Download the user's snippets as JSON, Markdown or plain text."""
    snippets = await snippet_service.list_all_snippets(db, current_user.id)
    content = export_service.export_snippets(
        snippets,
        export_format,
        include_metadata=include_metadata,
        group_by_language=group_by_language,
    )
    filename = f"snippets-export.{export_service.FILE_EXTENSIONS[export_format]}"
    return Response(
        content=content,
        media_type=export_service.MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=SnippetImportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import snippets",
)
async def import_snippets(
    body: SnippetImportRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetImportResponse:
    """Import snippets from an export file; each one counts against the plan quota."""
    try:
        entries = export_service.parse_import_payload(body.data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    await _ensure_project_owned(db, body.project_id, current_user)
    is_public = await _resolve_visibility(db, current_user, None)

    created = []
    for entry in entries:
        await ensure_can_create_snippet(db, current_user, body.project_id)
        snippet = await snippet_service.create_snippet(
            db,
            current_user.id,
            title=entry.title,
            code=entry.code,
            language=entry.language,
            tags=entry.tags,
            description=entry.description,
            project_id=body.project_id,
            is_public=is_public,
        )
        created.append(snippet)

    logger.info("Imported %d snippets for user %s", len(created), current_user.id)
    return SnippetImportResponse(
        imported=len(created),
        items=[SnippetResponse.model_validate(s) for s in created],
    )


@router.post("/validate", response_model=ValidationResponse, summary="Check code for common issues")
async def validate_code(
    body: CodeRequest,
    current_user: User = Depends(get_current_active_user),
) -> ValidationResponse:
    result = code_validator.validate_syntax(body.code, body.language)
    return ValidationResponse(
        is_valid=result.is_valid,
        errors=[
            ValidationIssue(
                line=issue.line,
                column=issue.column,
                message=issue.message,
                severity=issue.severity,
            )
            for issue in result.errors
        ],
        suggestions=result.suggestions,
    )


@router.post("/format", response_model=FormatResponse, summary="Re-indent code")
async def format_code(
    body: CodeRequest,
    current_user: User = Depends(get_current_active_user),
) -> FormatResponse:
    result = code_validator.format_code(body.code, body.language)
    return FormatResponse(formatted_code=result.formatted_code, changed=result.changed)


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Get a snippet by ID",
)
async def get_snippet(
    snippet_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetResponse:
    """Retrieve a single snippet. Returns 404 if not found or not owned."""
    snippet = await _get_owned_snippet(db, snippet_id, current_user)
    return SnippetResponse.model_validate(snippet)


@router.put(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Update a snippet",
)
async def update_snippet(
    snippet_id: uuid.UUID,
    body: SnippetUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetResponse:
    """Partially update a snippet. Moving it to another project re-checks that project's quota."""
    snippet = await _get_owned_snippet(db, snippet_id, current_user)

    changes = body.model_dump(exclude_unset=True)
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]

    if "project_id" in changes and changes["project_id"] != snippet.project_id:
        await _ensure_project_owned(db, changes["project_id"], current_user)
        await ensure_can_create_snippet(db, current_user, changes["project_id"])

    snippet = await snippet_service.update_snippet(db, snippet, changes)
    return SnippetResponse.model_validate(snippet)


@router.patch(
    "/{snippet_id}/visibility",
    response_model=SnippetResponse,
    summary="Publish or unpublish a snippet",
)
async def update_visibility(
    snippet_id: uuid.UUID,
    body: VisibilityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SnippetResponse:
    """Make a snippet public (copied to the community feed) or private (removed from it)."""
    await _get_owned_snippet(db, snippet_id, current_user)
    if not body.is_public:
        await ensure_private_snippets_allowed(db, current_user)

    if not await set_snippet_public(db, snippet_id, body.is_public, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update snippet visibility",
        )

    snippet = await _get_owned_snippet(db, snippet_id, current_user)
    return SnippetResponse.model_validate(snippet)


@router.delete(
    "/{snippet_id}",
    response_model=MessageResponse,
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a snippet and remove it from the community feed."""
    snippet = await _get_owned_snippet(db, snippet_id, current_user)
    await snippet_service.delete_snippet(db, snippet)
    return MessageResponse(message="Snippet deleted")
