"""Tests for time tracker."""

from pathlib import Path

import pytest  # type: ignore[import-not-found]
from conftest import HOUR, MINUTE, FakeTime, ms

from chronii.core.errors import NotFoundError, StorageError, ValidationError
from chronii.core.models import UNTITLED_TASK
from chronii.core.storage import StorageManager
from chronii.core.tracker import TimeTracker


class TestStartStop:
    """Test starting and stopping entries."""

    def test_start_tracking(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test starting time tracking."""
        stopped, entry = tracker.start("Test task", project="test-project")

        assert stopped is None
        assert entry.task_name == "Test task"
        assert entry.project == "test-project"
        assert entry.start_time == fake_time.now
        assert entry.is_running is True

    def test_start_stops_running_entry(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test that starting a new task stops the running one at call time."""
        _, first = tracker.start("B")
        fake_time.advance(30 * MINUTE)

        stopped, second = tracker.start("X")

        assert stopped is not None
        assert stopped.id == first.id
        assert stopped.end_time == fake_time.now
        running = [e for e in tracker.storage.list_entries() if e.is_running]
        assert [e.id for e in running] == [second.id]

    def test_at_most_one_open_entry(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test the single-running-entry invariant over many starts."""
        for i in range(10):
            tracker.start(f"Task {i}")
            fake_time.advance(MINUTE)

        running = [e for e in tracker.storage.list_entries() if e.is_running]
        assert len(running) == 1

    def test_start_closes_every_open_entry(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test that stray open entries are all closed on start."""
        tracker.storage.create_entry("Stray 1", fake_time.now - HOUR)
        tracker.storage.create_entry("Stray 2", fake_time.now - 2 * HOUR)

        tracker.start("New")

        running = [e for e in tracker.storage.list_entries() if e.is_running]
        assert [e.task_name for e in running] == ["New"]

    def test_start_with_empty_name_rejected(self, tracker: TimeTracker) -> None:
        """Test that empty task names are rejected by default."""
        with pytest.raises(ValidationError, match="must not be empty"):
            tracker.start("   ")

        assert tracker.storage.list_entries() == []

    def test_start_with_empty_name_substituted(
        self, storage: StorageManager, fake_time: FakeTime
    ) -> None:
        """Test the untitled substitution mode."""
        tracker = TimeTracker(storage, time_source=fake_time, substitute_untitled=True)

        _, entry = tracker.start("")

        assert entry.task_name == UNTITLED_TASK

    def test_blank_project_means_no_project(self, tracker: TimeTracker) -> None:
        """Test project normalization."""
        _, entry = tracker.start("Task", project="  ")

        assert entry.project is None

    def test_stop(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test stopping an entry by id."""
        _, entry = tracker.start("Task")
        fake_time.advance(HOUR)

        stopped = tracker.stop(entry.id)

        assert stopped.end_time == fake_time.now
        assert stopped.duration(0) == HOUR

    def test_stop_already_stopped_is_noop(self, tracker: TimeTracker, fake_time: FakeTime) -> None:
        """Test that stopping twice keeps the first end time."""
        _, entry = tracker.start("Task")
        fake_time.advance(HOUR)
        first = tracker.stop(entry.id)
        fake_time.advance(HOUR)

        second = tracker.stop(entry.id)

        assert second.end_time == first.end_time

    def test_stop_future_start_yields_zero_length(
        self, tracker: TimeTracker, fake_time: FakeTime
    ) -> None:
        """Test clock skew: end is clamped to the start."""
        entry = tracker.storage.create_entry("Skewed", fake_time.now + MINUTE)

        stopped = tracker.stop(entry.id)

        assert stopped.end_time == stopped.start_time

    def test_stop_missing_raises(self, tracker: TimeTracker) -> None:
        """Test stopping an unknown id."""
        with pytest.raises(NotFoundError):
            tracker.stop(404)

    def test_stop_active(self, tracker: TimeTracker) -> None:
        """Test stopping whatever is running."""
        assert tracker.stop_active() is None

        tracker.start("Task")
        stopped = tracker.stop_active()

        assert stopped is not None
        assert tracker.status() is None


class TestAddEntry:
    """Test adding finished entries."""

    def test_add_entry(self, tracker: TimeTracker) -> None:
        """Test adding a closed entry."""
        entry = tracker.add_entry("Meeting", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 9, 30))

        assert entry.is_running is False
        assert entry.duration(0) == 30 * MINUTE

    def test_add_inverted_interval_rejected(self, tracker: TimeTracker) -> None:
        """Test that end before start is rejected without writing."""
        with pytest.raises(ValidationError):
            tracker.add_entry("Bad", ms(2026, 10, 19, 10, 0), ms(2026, 10, 19, 9, 0))

        assert tracker.storage.list_entries() == []

    def test_add_does_not_stop_running_entry(self, tracker: TimeTracker) -> None:
        """Test that back-filling leaves the timer alone."""
        _, running = tracker.start("Live")

        tracker.add_entry("Earlier", ms(2026, 10, 19, 8, 0), ms(2026, 10, 19, 9, 0))

        active = tracker.status()
        assert active is not None
        assert active.id == running.id


class TestEdit:
    """Test editing entries."""

    def test_edit_changes_only_given_fields(self, tracker: TimeTracker) -> None:
        """Test partial edits."""
        entry = tracker.add_entry("Old", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0), "p")

        edited = tracker.edit(entry.id, task_name="New")

        assert edited.task_name == "New"
        assert edited.project == "p"
        assert edited.start_time == entry.start_time
        assert edited.end_time == entry.end_time

    def test_edit_end_before_start_leaves_entry_unchanged(
        self, tracker: TimeTracker, fake_time: FakeTime
    ) -> None:
        """Test that an invalid edit writes nothing."""
        fake_time.now = ms(2026, 10, 19, 10, 0)
        _, b = tracker.start("B")

        with pytest.raises(ValidationError):
            tracker.edit(b.id, end_time=ms(2026, 10, 19, 9, 30))

        unchanged = tracker.storage.get_entry(b.id)
        assert unchanged == b
        assert unchanged is not None and unchanged.is_running

    def test_edit_invalid_name_and_valid_project_is_atomic(self, tracker: TimeTracker) -> None:
        """Test that one bad field rejects the whole edit."""
        entry = tracker.add_entry("Task", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0))

        with pytest.raises(ValidationError):
            tracker.edit(entry.id, task_name="", project="new")

        assert tracker.storage.get_entry(entry.id) == entry

    def test_edit_clear_project_and_reopen(self, tracker: TimeTracker) -> None:
        """Test that None clears the project and reopens the entry."""
        entry = tracker.add_entry("Task", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0), "p")

        edited = tracker.edit(entry.id, project=None, end_time=None)

        assert edited.project is None
        assert edited.is_running

    def test_edit_logged(self, tracker: TimeTracker) -> None:
        """Test setting the logged flag."""
        entry = tracker.add_entry("Task", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0))

        assert tracker.edit(entry.id, logged=True).logged is True

    def test_edit_missing_raises(self, tracker: TimeTracker) -> None:
        """Test editing an unknown id."""
        with pytest.raises(NotFoundError):
            tracker.edit(404, task_name="X")


class TestDelete:
    """Test deleting entries, singly and in bulk."""

    def test_delete(self, tracker: TimeTracker) -> None:
        """Test deleting an entry."""
        entry = tracker.add_entry("Task", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0))

        tracker.delete(entry.id)

        assert tracker.storage.get_entry(entry.id) is None

    def test_delete_running_entry_stops_it_first(self, tracker: TimeTracker) -> None:
        """Test that the returned entry is closed."""
        _, entry = tracker.start("Task")

        deleted = tracker.delete(entry.id)

        assert deleted.is_running is False
        assert tracker.status() is None

    def test_delete_many_reports_per_id(self, tracker: TimeTracker) -> None:
        """Test partial failure in bulk delete."""
        a = tracker.add_entry("A", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0))
        b = tracker.add_entry("B", ms(2026, 10, 19, 10, 0), ms(2026, 10, 19, 11, 0))

        result = tracker.delete_many([a.id, 999, b.id])

        assert result.succeeded == [a.id, b.id]
        assert list(result.failed) == [999]
        assert isinstance(result.failed[999], NotFoundError)
        assert result.ok is False
        assert tracker.storage.list_entries() == []

    def test_set_logged_many(self, tracker: TimeTracker) -> None:
        """Test bulk logged flag."""
        a = tracker.add_entry("A", ms(2026, 10, 19, 9, 0), ms(2026, 10, 19, 10, 0))
        b = tracker.add_entry("B", ms(2026, 10, 19, 10, 0), ms(2026, 10, 19, 11, 0))

        result = tracker.set_logged_many([a.id, b.id], True)

        assert result.ok
        assert all(e.logged for e in tracker.storage.list_entries())


class TestProjects:
    """Test project operations through the tracker."""

    def test_create_project_strips_name(self, tracker: TimeTracker) -> None:
        """Test name normalization."""
        assert tracker.create_project("  chronii ") == "chronii"
        assert tracker.list_projects() == ["chronii"]

    def test_create_empty_project_rejected(self, tracker: TimeTracker) -> None:
        """Test that empty names are rejected."""
        with pytest.raises(ValidationError):
            tracker.create_project(" ")

    def test_rename_project(self, tracker: TimeTracker) -> None:
        """Test renaming a project."""
        tracker.start("Task", project="old")

        assert tracker.rename_project("old", "new") == 1
        assert tracker.count_by_project("new") == 1

    def test_rename_unknown_project_rejected(self, tracker: TimeTracker) -> None:
        """Test renaming a project that does not exist."""
        with pytest.raises(ValidationError, match="Unknown project"):
            tracker.rename_project("missing", "new")

    def test_rename_to_same_name(self, tracker: TimeTracker) -> None:
        """Test that renaming to the same name changes nothing."""
        tracker.start("Task", project="p")

        assert tracker.rename_project("p", "p") == 0

    def test_delete_project(self, tracker: TimeTracker) -> None:
        """Test deleting a project with its entries."""
        tracker.start("A", project="p")
        tracker.start("B")

        assert tracker.delete_project("p") == 1
        assert tracker.count_by_project("p") == 0
        assert tracker.count_by_project(None) == 1


class FailingStorage(StorageManager):
    """Storage whose named operations raise StorageError while ``failing`` is set."""

    def __init__(self, data_dir: Path, fail_on: str):
        super().__init__(data_dir)
        self.fail_on = fail_on
        self.failing = False

    def create_entry(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        if self.failing and self.fail_on == "create_entry":
            raise StorageError("disk full")
        return super().create_entry(*args, **kwargs)

    def stop_entry(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        if self.failing and self.fail_on == "stop_entry":
            raise StorageError("disk full")
        return super().stop_entry(*args, **kwargs)


class TestFailedWritesRollBack:
    """Test that a failed storage write leaves no partial change behind."""

    def test_failed_start_reopens_stopped_entry(self, temp_dir: Path, fake_time: FakeTime) -> None:
        """Test that the running entry keeps running when the new one cannot be created."""
        storage = FailingStorage(temp_dir / "data", "create_entry")
        tracker = TimeTracker(storage, time_source=fake_time)
        _, first = tracker.start("A")
        fake_time.advance(10 * MINUTE)
        storage.failing = True

        with pytest.raises(StorageError):
            tracker.start("B")

        entries = storage.list_entries()
        assert [(e.id, e.task_name, e.end_time) for e in entries] == [(first.id, "A", None)]
        assert storage.get_active_entry().id == first.id

    def test_failed_add_entry_leaves_nothing(self, temp_dir: Path, fake_time: FakeTime) -> None:
        """Test that a manual entry that cannot be closed is removed again."""
        storage = FailingStorage(temp_dir / "data", "stop_entry")
        tracker = TimeTracker(storage, time_source=fake_time)
        storage.failing = True
        start = ms(2026, 10, 18, 9, 0)

        with pytest.raises(StorageError):
            tracker.add_entry("Past", start, start + HOUR)

        assert storage.list_entries() == []
        assert storage.get_active_entry() is None
