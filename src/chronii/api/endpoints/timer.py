"""Timer endpoints: start, stop and the running entry."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status  # type: ignore[import-untyped]

from chronii.api.dependencies import get_tracker
from chronii.api.models import EntryResponse, StartTimerRequest, StopTimerRequest, TimerResponse
from chronii.core.tracker import TimeTracker

router = APIRouter()


@router.get("/active", response_model=Optional[EntryResponse])
async def get_active(tracker: TimeTracker = Depends(get_tracker)) -> Optional[EntryResponse]:
    """Get the running entry, or null.

    Example:
        >>> GET /api/v1/timer/active
    """
    entry = tracker.status()
    if entry is None:
        return None
    return EntryResponse.from_entry(entry, tracker.time_source())


@router.post("/start", response_model=TimerResponse, status_code=status.HTTP_201_CREATED)
async def start_timer(
    request: StartTimerRequest,
    tracker: TimeTracker = Depends(get_tracker),
) -> TimerResponse:
    """Start a timer, stopping the running one.

    Example:
        >>> POST /api/v1/timer/start
        {
            "task_name": "Development",
            "project": "chronii"
        }
    """
    stopped, entry = tracker.start(request.task_name, request.project)
    now = tracker.time_source()
    return TimerResponse(
        started=EntryResponse.from_entry(entry, now),
        stopped=EntryResponse.from_entry(stopped, now) if stopped else None,
    )


@router.post("/stop", response_model=EntryResponse)
async def stop_timer(
    request: Optional[StopTimerRequest] = None,
    tracker: TimeTracker = Depends(get_tracker),
) -> EntryResponse:
    """Stop the running timer, or the entry named in the body.

    Raises:
        HTTPException: 409 if no id is given and nothing is running

    Example:
        >>> POST /api/v1/timer/stop
        {"entry_id": 42}
    """
    entry_id = request.entry_id if request else None
    entry = tracker.stop_active() if entry_id is None else tracker.stop(entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No entry is currently running",
        )
    return EntryResponse.from_entry(entry, tracker.time_source())
