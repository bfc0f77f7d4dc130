"""Pytest configuration and shared fixtures."""

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

import pytest  # type: ignore[import-not-found]

from chronii.core.models import TimeEntry, to_millis
from chronii.core.storage import StorageManager
from chronii.core.tracker import TimeTracker

MINUTE = 60_000
HOUR = 60 * MINUTE


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def ms(*args: int) -> int:
    """Epoch milliseconds of a local wall-clock time, e.g. ms(2026, 10, 19, 9, 30)."""
    return to_millis(datetime(*args))


def make_entry(
    entry_id: int,
    start: int,
    end: Optional[int] = None,
    task_name: str = "Task",
    project: Optional[str] = None,
    logged: bool = False,
) -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        task_name=task_name,
        start_time=start,
        end_time=end,
        project=project,
        logged=logged,
    )


class FakeTime:
    """Settable time source."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> int:
        self.now += milliseconds
        return self.now


class ManualHandle:
    def __init__(self, scheduler: "ManualScheduler", callback: Callable[[], None]):
        self.scheduler = scheduler
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        if self in self.scheduler.pending:
            self.scheduler.pending.remove(self)


class ManualScheduler:
    """Scheduler that runs callbacks only when the test says so."""

    def __init__(self) -> None:
        self.pending: list[ManualHandle] = []
        self.delays: list[float] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self, callback)
        self.pending.append(handle)
        self.delays.append(delay)
        return handle

    def run_pending(self) -> int:
        """Run the callbacks scheduled so far. Returns how many ran."""
        due, self.pending = self.pending, []
        for handle in due:
            handle.callback()
        return len(due)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage(temp_dir: Path) -> StorageManager:
    """Create a storage manager with a temporary directory."""
    return StorageManager(temp_dir / "data")


@pytest.fixture
def fake_time() -> FakeTime:
    """Time source fixed at Monday 2026-10-19 12:00 local time."""
    return FakeTime(ms(2026, 10, 19, 12, 0))


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def tracker(storage: StorageManager, fake_time: FakeTime) -> TimeTracker:
    """Create a time tracker with temporary storage and a fake clock."""
    return TimeTracker(storage, time_source=fake_time)
