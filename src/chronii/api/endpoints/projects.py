"""Project endpoints.

Projects are names carried by entries; renaming or deleting one applies to
all of its entries. ``/none`` addresses entries without a project.
"""

from fastapi import APIRouter, Depends, status  # type: ignore[import-untyped]

from chronii.api.dependencies import get_tracker
from chronii.api.models import (
    CreateProjectRequest,
    ProjectCountResponse,
    ProjectResponse,
    RenameProjectRequest,
)
from chronii.core.tracker import TimeTracker

router = APIRouter()


@router.get("/", response_model=list[ProjectResponse])
async def list_projects(tracker: TimeTracker = Depends(get_tracker)) -> list[ProjectResponse]:
    """List all projects with entry counts.

    Example:
        >>> GET /api/v1/projects
        [{"name": "chronii", "entry_count": 12}]
    """
    return [
        ProjectResponse(name=name, entry_count=tracker.count_by_project(name))
        for name in tracker.list_projects()
    ]


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> ProjectResponse:
    """Declare a project."""
    name = tracker.create_project(request.name)
    return ProjectResponse(name=name, entry_count=tracker.count_by_project(name))


@router.get("/none/count", response_model=ProjectCountResponse)
async def count_without_project(tracker: TimeTracker = Depends(get_tracker)) -> ProjectCountResponse:
    """Count entries without a project."""
    return ProjectCountResponse(project=None, count=tracker.count_by_project(None))


@router.delete("/none", response_model=ProjectCountResponse)
async def delete_without_project(tracker: TimeTracker = Depends(get_tracker)) -> ProjectCountResponse:
    """Delete every entry without a project."""
    return ProjectCountResponse(project=None, count=tracker.delete_project(None))


@router.get("/{name}/count", response_model=ProjectCountResponse)
async def count_project(name: str, tracker: TimeTracker = Depends(get_tracker)) -> ProjectCountResponse:
    """Count entries in a project."""
    return ProjectCountResponse(project=name, count=tracker.count_by_project(name))


@router.post("/{name}/rename", response_model=ProjectCountResponse)
async def rename_project(
    name: str,
    request: RenameProjectRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> ProjectCountResponse:
    """Rename a project on all of its entries.

    Returns the new name and the number of entries moved.
    """
    count = tracker.rename_project(name, request.new_name)
    return ProjectCountResponse(project=request.new_name.strip(), count=count)


@router.delete("/{name}", response_model=ProjectCountResponse)
async def delete_project(name: str, tracker: TimeTracker = Depends(get_tracker)) -> ProjectCountResponse:
    """Delete a project and all of its entries.

    Returns the number of entries deleted.
    """
    return ProjectCountResponse(project=name, count=tracker.delete_project(name))
