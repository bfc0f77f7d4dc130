"""Week and day grouping of time entries.

Entries are partitioned into Sunday-aligned weeks of local calendar time and,
inside each week, into calendar days. Labels are relative to the instant the
grouping is evaluated at, so ``group_entries`` is a pure function of the entry
list and ``now``.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from chronii.core.models import TimeEntry, to_datetime, to_millis

TODAY = "Today"
YESTERDAY = "Yesterday"
THIS_WEEK = "This week"
LAST_WEEK = "Last week"


@dataclass
class DayGroup:
    """Entries that started on one calendar day.

    Attributes:
        date: Display label ("Today", "Yesterday" or e.g. "Oct 5")
        day: Calendar day the entries started on
        entries: Member entries, most recent first
    """

    date: str
    day: date
    entries: list[TimeEntry] = field(default_factory=list)


@dataclass
class WeekGroup:
    """Days of one Sunday-to-Saturday week.

    Attributes:
        week_label: Display label ("This week", "Last week" or a date range)
        week_start: Sunday 00:00:00.000 local time, epoch milliseconds
        week_end: Saturday 23:59:59.999 local time, epoch milliseconds
        days: Day groups in display order
    """

    week_label: str
    week_start: int
    week_end: int
    days: list[DayGroup] = field(default_factory=list)

    @property
    def entries(self) -> list[TimeEntry]:
        """All member entries in display order."""
        return [entry for day in self.days for entry in day.entries]


def week_start_date(day: date) -> date:
    """Return the Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _midnight(day: date) -> int:
    return to_millis(datetime.combine(day, time.min))


def week_bounds(instant: int) -> tuple[int, int]:
    """Local week bounds (inclusive, epoch milliseconds) containing ``instant``."""
    start_day = week_start_date(to_datetime(instant).date())
    return _midnight(start_day), _midnight(start_day + timedelta(days=7)) - 1


def _month_day(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


def day_label(day: date, today: date) -> str:
    """Relative label for a calendar day."""
    if day == today:
        return TODAY
    if day == today - timedelta(days=1):
        return YESTERDAY
    label = _month_day(day)
    if day.year != today.year:
        label += f", {day.year}"
    return label


def format_week_range(start: date, end: date) -> str:
    """Format a date range such as "Oct 12 – 18" or "Sep 28 – Oct 4"."""
    if (start.year, start.month) == (end.year, end.month):
        return f"{_month_day(start)} – {end.day}"
    return f"{_month_day(start)} – {_month_day(end)}"


def week_label(start_day: date, today: date) -> str:
    """Relative label for the week starting on ``start_day``."""
    current = week_start_date(today)
    if start_day == current:
        return THIS_WEEK
    if start_day == current - timedelta(days=7):
        return LAST_WEEK
    return format_week_range(start_day, start_day + timedelta(days=6))


def _entry_order(entry: TimeEntry) -> tuple[int, int]:
    return (entry.start_time, entry.id)


def _day_order(group: DayGroup) -> tuple[int, int]:
    if group.date == TODAY:
        rank = 0
    elif group.date == YESTERDAY:
        rank = 1
    else:
        rank = 2
    return (rank, -group.entries[0].start_time)


def group_entries(entries: list[TimeEntry], now: int) -> list[WeekGroup]:
    """Partition entries into weeks and days.

    Args:
        entries: Entries in any order
        now: Instant the labels are relative to, epoch milliseconds

    Returns:
        Week groups, most recent week first

    Raises:
        ValueError: If an entry has no start time
    """
    today = to_datetime(now).date()
    buckets: dict[date, dict[date, list[TimeEntry]]] = defaultdict(lambda: defaultdict(list))

    for entry in entries:
        if entry.start_time is None:
            raise ValueError(f"Entry {entry.id} has no start time")
        day = to_datetime(entry.start_time).date()
        buckets[week_start_date(day)][day].append(entry)

    weeks = []
    for start_day in sorted(buckets, reverse=True):
        days = []
        for day, members in buckets[start_day].items():
            members.sort(key=_entry_order, reverse=True)
            days.append(DayGroup(date=day_label(day, today), day=day, entries=members))
        days.sort(key=_day_order)

        weeks.append(
            WeekGroup(
                week_label=week_label(start_day, today),
                week_start=_midnight(start_day),
                week_end=_midnight(start_day + timedelta(days=7)) - 1,
                days=days,
            )
        )

    return weeks
