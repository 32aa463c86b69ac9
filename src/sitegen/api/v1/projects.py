"""Project endpoints - tenant-scoped CRUD."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from src.sitegen.api.dependencies import CurrentIdentity, ProjectServiceDep
from src.sitegen.core.config import get_settings
from src.sitegen.schemas.pagination import PaginatedResponse
from src.sitegen.schemas.project import ProjectCreate, ProjectRead

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects",
    description="List all projects in the current tenant with cursor-based pagination.",
    responses={
        200: {"description": "Paginated list of projects"},
    },
)
async def list_projects(
    service: ProjectServiceDep,
    _identity: CurrentIdentity,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Max items to return")] = None,
) -> PaginatedResponse[ProjectRead]:
    """List all projects of the tenant with cursor-based pagination."""
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    projects, next_cursor, has_more = await service.list_projects(cursor=cursor, limit=limit)
    return PaginatedResponse(
        items=[ProjectRead.model_validate(p) for p in projects],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses={
        200: {"description": "Project details"},
        404: {"description": "Project not found"},
    },
)
async def get_project(
    project_id: UUID,
    service: ProjectServiceDep,
    _identity: CurrentIdentity,
) -> ProjectRead:
    """Get a project by ID."""
    return ProjectRead.model_validate(await service.get_project(project_id))


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description="Create a DRAFT project in the current tenant.",
    responses={
        201: {"description": "Project created"},
        409: {"description": "Project with this name already exists"},
    },
)
async def create_project(
    request: ProjectCreate,
    service: ProjectServiceDep,
    _identity: CurrentIdentity,
) -> ProjectRead:
    """Create a new project."""
    try:
        project = await service.create_project(request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description="Delete a project together with its executions and company profile.",
    responses={
        204: {"description": "Project deleted"},
        400: {"description": "A workflow is still running"},
        404: {"description": "Project not found"},
    },
)
async def delete_project(
    project_id: UUID,
    service: ProjectServiceDep,
    _identity: CurrentIdentity,
) -> None:
    """Delete a project."""
    await service.delete_project(project_id)
