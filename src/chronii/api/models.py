"""Pydantic models for API requests and responses.

Instants are epoch milliseconds and durations are milliseconds, the same
units the core uses.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]

from chronii.core.aggregation import DaySummary, HistoryView, SummaryTotals, WeekSummary
from chronii.core.models import TimeEntry
from chronii.core.tracker import BulkResult

# ============================================================================
# Response Models
# ============================================================================


class EntryResponse(BaseModel):
    """Response model for time entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_name: str
    start_time: int
    end_time: Optional[int] = None
    duration_ms: int = Field(..., description="Duration; open entries measured to request time")
    project: Optional[str] = None
    logged: bool = False
    running: bool = False

    @classmethod
    def from_entry(cls, entry: TimeEntry, now: int) -> "EntryResponse":
        """Create response from a core entry, measuring open entries to ``now``."""
        return cls(
            id=entry.id,
            task_name=entry.task_name,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration_ms=max(0, entry.duration(now)),
            project=entry.project,
            logged=entry.logged,
            running=entry.is_running,
        )


class TimerResponse(BaseModel):
    """Response model for starting a timer."""

    started: EntryResponse
    stopped: Optional[EntryResponse] = None


class DayResponse(BaseModel):
    """One day of the grouped history."""

    date: str = Field(..., description='Label such as "Today" or "Oct 5"')
    day: dt.date
    total_ms: int
    entries: list[EntryResponse]

    @classmethod
    def from_summary(cls, summary: DaySummary, now: int) -> "DayResponse":
        return cls(
            date=summary.day.date,
            day=summary.day.day,
            total_ms=summary.total,
            entries=[EntryResponse.from_entry(e, now) for e in summary.day.entries],
        )


class WeekResponse(BaseModel):
    """One Sunday-to-Saturday week of the grouped history."""

    week_label: str
    week_start: int
    week_end: int
    total_ms: int
    days: list[DayResponse]

    @classmethod
    def from_summary(cls, summary: WeekSummary, now: int) -> "WeekResponse":
        return cls(
            week_label=summary.week.week_label,
            week_start=summary.week.week_start,
            week_end=summary.week.week_end,
            total_ms=summary.total,
            days=[DayResponse.from_summary(day, now) for day in summary.days],
        )


class HistoryResponse(BaseModel):
    """Grouped history with totals computed at ``now``."""

    now: int
    total_ms: int
    weeks: list[WeekResponse]

    @classmethod
    def from_view(cls, view: HistoryView) -> "HistoryResponse":
        return cls(
            now=view.now,
            total_ms=view.total,
            weeks=[WeekResponse.from_summary(week, view.now) for week in view.weeks],
        )


class SummaryResponse(BaseModel):
    """Totals for the current day, week and month."""

    now: int
    today_ms: int
    week_ms: int
    month_ms: int

    @classmethod
    def from_totals(cls, totals: SummaryTotals, now: int) -> "SummaryResponse":
        return cls(now=now, today_ms=totals.today, week_ms=totals.week, month_ms=totals.month)


class BulkResponse(BaseModel):
    """Per-id outcome of a bulk operation."""

    succeeded: list[int]
    failed: dict[int, str] = Field(default_factory=dict, description="Error message per failed id")

    @classmethod
    def from_result(cls, result: BulkResult) -> "BulkResponse":
        return cls(
            succeeded=result.succeeded,
            failed={entry_id: str(error) for entry_id, error in result.failed.items()},
        )


class ProjectResponse(BaseModel):
    """Response model for project."""

    name: str
    entry_count: int = 0


class ProjectCountResponse(BaseModel):
    """Number of entries affected by a project operation."""

    project: Optional[str] = None
    count: int


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Health status (healthy, degraded)")
    timestamp: dt.datetime = Field(..., description="Current server time")
    version: str = Field(..., description="API version")
    storage: str = Field("ok", description="Storage status")


class StatusResponse(BaseModel):
    """System status response model."""

    active_entry: Optional[EntryResponse] = None
    project_count: int
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")


# ============================================================================
# Request Models
# ============================================================================


class StartTimerRequest(BaseModel):
    """Request model for starting a timer."""

    task_name: str = Field("", max_length=500, description="Task name")
    project: Optional[str] = Field(None, max_length=100, description="Project name")


class StopTimerRequest(BaseModel):
    """Request model for stopping a timer (the running one when no id is given)."""

    entry_id: Optional[int] = None


class CreateEntryRequest(BaseModel):
    """Request model for creating a finished entry."""

    task_name: str = Field("", max_length=500)
    start_time: int = Field(..., description="Epoch milliseconds")
    end_time: int = Field(..., description="Epoch milliseconds")
    project: Optional[str] = Field(None, max_length=100)


class UpdateEntryRequest(BaseModel):
    """Request model for editing an entry.

    Only fields present in the request body change. An explicit ``null``
    clears ``project`` or reopens the entry (``end_time``).
    """

    task_name: Optional[str] = Field(None, max_length=500)
    project: Optional[str] = Field(None, max_length=100)
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    logged: Optional[bool] = None


class BulkRequest(BaseModel):
    """Request model naming several entries."""

    ids: list[int] = Field(..., min_length=1)


class BulkLoggedRequest(BulkRequest):
    """Request model for setting the logged flag on several entries."""

    logged: bool = True


class CreateProjectRequest(BaseModel):
    """Request model for declaring a project."""

    name: str = Field(..., min_length=1, max_length=100)


class RenameProjectRequest(BaseModel):
    """Request model for renaming a project."""

    new_name: str = Field(..., min_length=1, max_length=100)
