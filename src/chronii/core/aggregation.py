"""Day and week totals over grouped entries.

Grouping is the expensive, structural half of building the history view;
totals are the cheap, numeric half. ``HistoryAggregator`` memoizes the
structure per entry list, project filter and local day, and keeps, for every
day, the sum of its closed entries plus the start times of its open ones. A
clock tick then only re-sums the open durations.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Optional

from chronii.core.grouping import DayGroup, WeekGroup, group_entries, week_start_date
from chronii.core.models import TimeEntry, to_datetime, to_millis
from chronii.core.storage import ALL_PROJECTS

logger = logging.getLogger(__name__)


def clamped_duration(entry: TimeEntry, now: int) -> int:
    """Duration for display totals; negative values count as zero."""
    return max(0, entry.duration(now))


@dataclass
class DaySummary:
    """A day group with its total duration in milliseconds."""

    day: DayGroup
    total: int


@dataclass
class WeekSummary:
    """A week group with its total and per-day summaries."""

    week: WeekGroup
    total: int
    days: list[DaySummary] = field(default_factory=list)


@dataclass
class HistoryView:
    """Grouped history with totals, all computed at the same ``now``."""

    now: int
    weeks: list[WeekSummary] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Sum of all week totals."""
        return sum(week.total for week in self.weeks)

    @property
    def entries(self) -> list[TimeEntry]:
        """All entries in display order."""
        return [entry for week in self.weeks for entry in week.week.entries]

    @property
    def has_open(self) -> bool:
        """Whether any entry in the view is still running."""
        return any(entry.is_running for entry in self.entries)


@dataclass
class SummaryTotals:
    """Totals for the current day, week and month."""

    today: int
    week: int
    month: int


class _DayPlan:
    """Precomputed parts of a day total."""

    __slots__ = ("closed_total", "open_starts")

    def __init__(self, entries: list[TimeEntry]):
        self.closed_total = 0
        self.open_starts: list[int] = []
        for entry in entries:
            if entry.end_time is None:
                self.open_starts.append(entry.start_time)
            else:
                self.closed_total += max(0, entry.end_time - entry.start_time)

    def total(self, now: int) -> int:
        return self.closed_total + sum(max(0, now - start) for start in self.open_starts)


class HistoryAggregator:
    """Memoized grouping and totals over an entry list.

    Three inputs drive recomputation: the entry list, the project filter and
    the clock value passed to ``view``. Changing the entries or the filter
    invalidates the grouping; a new clock value only recomputes totals.
    """

    def __init__(self, entries: Optional[Iterable[TimeEntry]] = None, project: Any = ALL_PROJECTS):
        """Initialize aggregator.

        Args:
            entries: Initial entry list
            project: Project filter; ALL_PROJECTS disables filtering and None
                keeps only entries without a project
        """
        self._entries: list[TimeEntry] = list(entries or [])
        self._project = project
        self._version = 0
        self._structure_key: Optional[tuple[Any, ...]] = None
        self._weeks: list[WeekGroup] = []
        self._plans: list[list[_DayPlan]] = []
        self._view: Optional[HistoryView] = None
        self.structure_builds = 0

    @property
    def project_filter(self) -> Any:
        """The active project filter."""
        return self._project

    @property
    def entries(self) -> list[TimeEntry]:
        """Entries that pass the project filter."""
        if self._project is ALL_PROJECTS:
            return list(self._entries)
        return [entry for entry in self._entries if entry.project == self._project]

    def set_entries(self, entries: Iterable[TimeEntry]) -> None:
        """Replace the entry list and invalidate the grouping."""
        self._entries = list(entries)
        self._version += 1
        self._view = None

    def set_project_filter(self, project: Any) -> None:
        """Change the project filter, invalidating the grouping if it differs."""
        if project is self._project or project == self._project:
            return
        self._project = project
        self._view = None

    def any_open(self) -> bool:
        """Whether any entry passing the filter is running."""
        return any(entry.is_running for entry in self.entries)

    def structure(self, now: int) -> list[WeekGroup]:
        """Week groups for ``now``, rebuilt only when an input changed.

        Labels depend on the local day, so crossing midnight also rebuilds.
        """
        key = (self._version, self._project, to_datetime(now).date())
        if key != self._structure_key:
            self._weeks = group_entries(self.entries, now)
            self._plans = [[_DayPlan(day.entries) for day in week.days] for week in self._weeks]
            self._structure_key = key
            self._view = None
            self.structure_builds += 1
            logger.debug(f"Regrouped {len(self._entries)} entries into {len(self._weeks)} weeks")
        return self._weeks

    def view(self, now: int) -> HistoryView:
        """Grouped history with totals at ``now``."""
        weeks = self.structure(now)
        if self._view is not None and self._view.now == now:
            return self._view

        summaries = []
        for week, plans in zip(weeks, self._plans):
            days = [DaySummary(day=day, total=plan.total(now)) for day, plan in zip(week.days, plans)]
            summaries.append(
                WeekSummary(week=week, total=sum(day.total for day in days), days=days)
            )

        self._view = HistoryView(now=now, weeks=summaries)
        return self._view


def total_duration(entries: Iterable[TimeEntry], now: int) -> int:
    """Sum of clamped durations of ``entries`` at ``now``."""
    return sum(clamped_duration(entry, now) for entry in entries)


def summary_totals(entries: Iterable[TimeEntry], now: int) -> SummaryTotals:
    """Totals for today, the current Sunday-aligned week and the current month.

    Entries are attributed by start time, like the history grouping.
    """
    today = to_datetime(now).date()
    day_start = to_millis(datetime.combine(today, time.min))
    day_end = to_millis(datetime.combine(today + timedelta(days=1), time.min)) - 1
    week_start = to_millis(datetime.combine(week_start_date(today), time.min))
    month_start = to_millis(datetime.combine(today.replace(day=1), time.min))

    totals = SummaryTotals(today=0, week=0, month=0)
    for entry in entries:
        value = clamped_duration(entry, now)
        if day_start <= entry.start_time <= day_end:
            totals.today += value
        if entry.start_time >= week_start:
            totals.week += value
        if entry.start_time >= month_start:
            totals.month += value
    return totals
