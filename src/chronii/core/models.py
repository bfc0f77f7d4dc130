"""Core data model for time tracking."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

UNTITLED_TASK = "(untitled)"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    return datetime.fromtimestamp(ms / 1000)


def to_millis(dt: datetime) -> int:
    """Convert a datetime (naive values are local time) to epoch milliseconds."""
    return int(round(dt.timestamp() * 1000))


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass
class TimeEntry:
    """A recorded or in-progress interval of work.

    Attributes:
        id: Unique identifier assigned by storage, never reused
        task_name: Display label
        start_time: Start instant in epoch milliseconds
        end_time: End instant in epoch milliseconds (None while running)
        project: Project name (None for "no project")
        logged: User-facing flag, e.g. "submitted to timesheet"
        created_at: When this record was created
        updated_at: Last update time
    """

    id: int
    task_name: str
    start_time: int
    end_time: Optional[int] = None
    project: Optional[str] = None
    logged: bool = False
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)

    @property
    def is_running(self) -> bool:
        """Check if this entry is currently running."""
        return self.end_time is None

    @property
    def is_untitled(self) -> bool:
        """Check if the entry carries the sentinel label for an empty name."""
        return self.task_name == UNTITLED_TASK

    def duration(self, now: int) -> int:
        """Duration in milliseconds, using ``now`` as the end of an open entry."""
        end = self.end_time if self.end_time is not None else now
        return end - self.start_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "task_name": self.task_name,
            "project": self.project or "",
            "start_time": self.start_time,
            "end_time": self.end_time if self.end_time is not None else "",
            "logged": self.logged,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from dictionary (CSV/JSON deserialization)."""
        end_time = data.get("end_time")
        return cls(
            id=int(data["id"]),
            task_name=data["task_name"],
            start_time=int(data["start_time"]),
            end_time=int(end_time) if end_time not in (None, "") else None,
            project=data["project"] if data.get("project") else None,
            logged=_parse_bool(data.get("logged", False)),
            created_at=int(data["created_at"]),
            updated_at=int(data["updated_at"]),
        )


def duration(entry: TimeEntry, now: int) -> int:
    """Return ``(end_time or now) - start_time`` in milliseconds."""
    return entry.duration(now)


def is_open(entry: TimeEntry) -> bool:
    """Return True when the entry has no end time."""
    return entry.end_time is None


@dataclass
class Project:
    """A pre-declared project name.

    Projects are otherwise implied by the entries that reference them; a
    declaration lets an empty project exist with zero entries.
    """

    name: str
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {"name": self.name, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from dictionary (CSV/JSON deserialization)."""
        return cls(name=data["name"], created_at=int(data["created_at"]))
