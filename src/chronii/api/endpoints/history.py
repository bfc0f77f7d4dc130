"""History endpoints: the grouped week/day view and period totals."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query  # type: ignore[import-untyped]

from chronii.api.dependencies import get_session, project_filter
from chronii.api.models import HistoryResponse, SummaryResponse
from chronii.core.aggregation import summary_totals
from chronii.core.session import TrackerSession

router = APIRouter()

# Five weeks back always covers the current month
_SUMMARY_WINDOW_MS = 35 * 24 * 3600 * 1000


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    limit: Optional[int] = Query(None, ge=1, le=10000, description="Entries to group (default: history.page_size)"),
    project: Any = Depends(project_filter),
    session: TrackerSession = Depends(get_session),
) -> HistoryResponse:
    """Most recent entries grouped by week and day, with totals.

    Example:
        >>> GET /api/v1/history?project=chronii
        {
            "now": 1760880000000,
            "total_ms": 5400000,
            "weeks": [{"week_label": "This week", "days": [...], ...}]
        }
    """
    if limit:
        session.page_size = limit
    view = session.set_project_filter(project)
    return HistoryResponse.from_view(view)


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(session: TrackerSession = Depends(get_session)) -> SummaryResponse:
    """Totals for today, this week and this month."""
    now = session.clock.refresh()
    entries = session.storage.list_entries_in_range(now - _SUMMARY_WINDOW_MS, now)
    return SummaryResponse.from_totals(summary_totals(entries, now), now)
