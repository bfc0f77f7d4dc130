"""Entry endpoints: CRUD plus bulk delete and bulk logged.

Errors raised by the tracker are mapped to status codes by the handler in
``chronii.api.middleware``.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status  # type: ignore[import-untyped]

from chronii.api.dependencies import get_storage, get_tracker, project_filter
from chronii.api.models import (
    BulkLoggedRequest,
    BulkRequest,
    BulkResponse,
    CreateEntryRequest,
    EntryResponse,
    UpdateEntryRequest,
)
from chronii.core.errors import NotFoundError
from chronii.core.models import now_ms
from chronii.core.storage import StorageManager
from chronii.core.tracker import TimeTracker

router = APIRouter()


@router.get("/", response_model=list[EntryResponse])
async def list_entries(
    skip: int = Query(0, ge=0, description="Number of entries to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of entries to return"),
    project: Any = Depends(project_filter),
    storage: StorageManager = Depends(get_storage),
) -> list[EntryResponse]:
    """List entries, most recent first.

    Example:
        >>> GET /api/v1/entries?skip=0&limit=10&project=chronii
    """
    entries = storage.list_entries(limit, skip, project)
    now = now_ms()
    return [EntryResponse.from_entry(e, now) for e in entries]


@router.post("/", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: CreateEntryRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> EntryResponse:
    """Add a finished entry.

    Example:
        >>> POST /api/v1/entries
        {
            "task_name": "Past task",
            "start_time": 1760000000000,
            "end_time": 1760003600000,
            "project": "chronii"
        }
    """
    entry = tracker.add_entry(request.task_name, request.start_time, request.end_time, request.project)
    return EntryResponse.from_entry(entry, tracker.time_source())


@router.post("/bulk-delete", response_model=BulkResponse)
async def bulk_delete(
    request: BulkRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> BulkResponse:
    """Delete several entries; failures are reported per id."""
    return BulkResponse.from_result(tracker.delete_many(request.ids))


@router.post("/bulk-logged", response_model=BulkResponse)
async def bulk_logged(
    request: BulkLoggedRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> BulkResponse:
    """Set the logged flag on several entries; failures are reported per id."""
    return BulkResponse.from_result(tracker.set_logged_many(request.ids, request.logged))


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: int,
    storage: StorageManager = Depends(get_storage),
) -> EntryResponse:
    """Get a specific entry by id."""
    entry = storage.get_entry(entry_id)
    if entry is None:
        raise NotFoundError(entry_id)
    return EntryResponse.from_entry(entry, now_ms())


@router.patch("/{entry_id}", response_model=EntryResponse)
async def update_entry(
    entry_id: int,
    request: UpdateEntryRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> EntryResponse:
    """Edit an entry. Only fields present in the body change.

    Example:
        >>> PATCH /api/v1/entries/42
        {"project": null, "end_time": 1760003600000}
    """
    changes = request.model_dump(exclude_unset=True)
    for field in ("task_name", "start_time", "logged"):
        if field in changes and changes[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} must not be null",
            )

    entry = tracker.edit(entry_id, **changes)
    return EntryResponse.from_entry(entry, tracker.time_source())


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: int,
    tracker: TimeTracker = Depends(get_tracker),
) -> None:
    """Delete an entry, stopping it first if it is running."""
    tracker.delete(entry_id)
