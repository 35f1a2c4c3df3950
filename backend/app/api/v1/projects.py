"""Projects CRUD API routes — ownership-scoped and plan gated."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import check_project_limit, get_current_active_user, get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.project import (
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatsResponse,
    ProjectUpdate,
)
from app.schemas.user import MessageResponse
from app.services import project_service

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


def _to_response(project: Project, snippet_count: int = 0) -> ProjectResponse:
    response = ProjectResponse.model_validate(project)
    response.snippet_count = snippet_count
    return response


async def _get_owned_project(db: AsyncSession, project_id: uuid.UUID, user: User) -> Project:
    project = await project_service.get_project(db, project_id, user.id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found",
        )
    return project


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
)
async def create_project(
    body: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    _limit_check: None = Depends(check_project_limit),  # Plan gating
) -> ProjectResponse:
    """Create a project owned by the authenticated user."""
    project = await project_service.create_project(
        db,
        user_id=current_user.id,
        name=body.name,
        description=body.description,
        color=body.color,
    )
    return _to_response(project)


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="List projects owned by the current user",
)
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ProjectListResponse:
    """Return all of the user's projects with their snippet counts."""
    rows = await project_service.list_projects(db, current_user.id)
    return ProjectListResponse(
        items=[_to_response(project, count) for project, count in rows],
        total=len(rows),
    )


@router.get(
    "/stats",
    response_model=ProjectStatsResponse,
    summary="Project and snippet counts",
)
async def get_project_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ProjectStatsResponse:
    stats = await project_service.get_project_stats(db, current_user.id)
    return ProjectStatsResponse(**stats)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get a project by ID",
)
async def get_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ProjectResponse:
    """Retrieve a single project. Returns 404 if not found or not owned."""
    project = await _get_owned_project(db, project_id, current_user)
    count = await project_service.count_project_snippets(db, project.id)
    return _to_response(project, count)


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Update a project",
)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ProjectResponse:
    """Partially update a project. Only explicitly set fields are changed."""
    project = await _get_owned_project(db, project_id, current_user)
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        del changes["name"]
    if "color" in changes and changes["color"] is None:
        del changes["color"]
    project = await project_service.update_project(db, project, changes)
    count = await project_service.count_project_snippets(db, project.id)
    return _to_response(project, count)


@router.delete(
    "/{project_id}",
    response_model=MessageResponse,
    summary="Delete a project",
)
async def delete_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a project. Its snippets are kept and moved out of the project."""
    project = await _get_owned_project(db, project_id, current_user)
    await project_service.delete_project(db, project)
    return MessageResponse(message="Project deleted")
