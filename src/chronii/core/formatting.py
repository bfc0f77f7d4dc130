"""Duration and timestamp formatting."""

from datetime import datetime
from typing import Optional

from chronii.core.models import to_datetime, to_millis


def format_duration(milliseconds: Optional[int]) -> str:
    """Format a duration with seconds precision, e.g. "2h 15m 30s"."""
    if milliseconds is None:
        return "ongoing"

    total_seconds = max(0, milliseconds) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    elif minutes > 0:
        return f"{minutes}m {seconds}s"
    else:
        return f"{seconds}s"


def format_duration_summary(milliseconds: int) -> str:
    """Format a day/week total rounded to the nearest minute, e.g. "2h 15m"."""
    # Round half up; Python's round() would round half to even.
    total_minutes = (max(0, milliseconds) + 30_000) // 60_000
    hours = total_minutes // 60
    minutes = total_minutes % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_timer_display(milliseconds: int) -> str:
    """Format a running timer with colons, e.g. "1:23:45" or "23:45"."""
    total_seconds = max(0, milliseconds) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_time(instant: int) -> str:
    """Format the local time of day of an instant, e.g. "14:15"."""
    return to_datetime(instant).strftime("%H:%M")


def format_datetime(instant: int) -> str:
    """Format an instant for display."""
    return to_datetime(instant).strftime("%Y-%m-%d %H:%M:%S")


def parse_datetime(value: str, today: Optional[datetime] = None) -> int:
    """Parse user input into epoch milliseconds.

    Accepts "YYYY-MM-DD HH:MM[:SS]", "YYYY-MM-DDTHH:MM[:SS]" or "HH:MM[:SS]"
    (the latter on ``today``, which defaults to the current local date).

    Raises:
        ValueError: If the value matches none of the formats
    """
    text = value.strip().replace("T", " ")
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M"):
        try:
            return to_millis(datetime.strptime(text, fmt))
        except ValueError:
            pass

    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            time_part = datetime.strptime(text, fmt).time()
        except ValueError:
            continue
        day = (today or datetime.now()).date()
        return to_millis(datetime.combine(day, time_part))

    raise ValueError(f"Invalid time format: {value}. Use 'HH:MM' or 'YYYY-MM-DD HH:MM'")
