"""Core functionality for time tracking."""

from chronii.core.aggregation import HistoryAggregator, HistoryView
from chronii.core.clock import AsyncioScheduler, Clock
from chronii.core.errors import ChroniiError, NotFoundError, StorageError, ValidationError
from chronii.core.grouping import DayGroup, WeekGroup, group_entries
from chronii.core.models import TimeEntry
from chronii.core.selection import SelectionTracker
from chronii.core.session import TrackerSession
from chronii.core.storage import ALL_PROJECTS, StorageManager
from chronii.core.tracker import BulkResult, TimeTracker

__all__ = [
    "ALL_PROJECTS",
    "AsyncioScheduler",
    "BulkResult",
    "ChroniiError",
    "Clock",
    "DayGroup",
    "HistoryAggregator",
    "HistoryView",
    "NotFoundError",
    "SelectionTracker",
    "StorageError",
    "StorageManager",
    "TimeEntry",
    "TimeTracker",
    "TrackerSession",
    "ValidationError",
    "WeekGroup",
    "group_entries",
]
