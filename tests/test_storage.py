"""Tests for storage manager."""

from pathlib import Path

import pytest  # type: ignore[import-not-found]

from chronii.core.errors import StorageError
from chronii.core.storage import ALL_PROJECTS, StorageManager


class TestStorageManager:
    """Test StorageManager."""

    def test_initialization_creates_csv_files(self, storage: StorageManager) -> None:
        """Test that initialization creates CSV files with headers."""
        assert storage.entries_file.exists()
        assert storage.projects_file.exists()

        with open(storage.entries_file) as f:
            header = f.readline().strip()
            assert "id" in header
            assert "task_name" in header

    def test_create_and_get_entry(self, storage: StorageManager) -> None:
        """Test creating and loading an entry."""
        entry = storage.create_entry("Test task", 1_000, project="test-project")

        loaded = storage.get_entry(entry.id)
        assert loaded is not None
        assert loaded.task_name == "Test task"
        assert loaded.project == "test-project"
        assert loaded.is_running

    def test_get_missing_entry_returns_none(self, storage: StorageManager) -> None:
        """Test that unknown ids return None."""
        assert storage.get_entry(999) is None

    def test_ids_are_never_reused(self, storage: StorageManager) -> None:
        """Test that deleting the newest entry does not free its id."""
        first = storage.create_entry("A", 1_000)
        second = storage.create_entry("B", 2_000)
        storage.delete_entry(second.id)

        third = storage.create_entry("C", 3_000)

        assert third.id not in (first.id, second.id)
        assert third.id > second.id

    def test_ids_survive_new_storage_instance(self, storage: StorageManager) -> None:
        """Test that the id sequence is persisted."""
        entry = storage.create_entry("A", 1_000)
        storage.delete_entry(entry.id)

        reopened = StorageManager(storage.data_dir)
        assert reopened.create_entry("B", 2_000).id > entry.id

    def test_stop_entry_only_stops_open_entries(self, storage: StorageManager) -> None:
        """Test that a closed entry keeps its end time."""
        entry = storage.create_entry("A", 1_000)

        stopped = storage.stop_entry(entry.id, 5_000)
        assert stopped is not None
        assert stopped.end_time == 5_000

        again = storage.stop_entry(entry.id, 9_000)
        assert again is not None
        assert again.end_time == 5_000

    def test_get_active_entry(self, storage: StorageManager) -> None:
        """Test finding the running entry."""
        assert storage.get_active_entry() is None

        entry = storage.create_entry("A", 1_000)
        active = storage.get_active_entry()
        assert active is not None
        assert active.id == entry.id

        storage.stop_entry(entry.id, 2_000)
        assert storage.get_active_entry() is None

    def test_list_entries_most_recent_first(self, storage: StorageManager) -> None:
        """Test ordering by start time, then id."""
        a = storage.create_entry("A", 3_000)
        b = storage.create_entry("B", 1_000)
        c = storage.create_entry("C", 3_000)

        ids = [entry.id for entry in storage.list_entries()]
        assert ids == [c.id, a.id, b.id]

    def test_list_entries_pagination(self, storage: StorageManager) -> None:
        """Test limit and offset."""
        for i in range(5):
            storage.create_entry(f"Task {i}", i * 1_000)

        page = storage.list_entries(limit=2, offset=1)
        assert [entry.task_name for entry in page] == ["Task 3", "Task 2"]

    def test_list_entries_project_filter(self, storage: StorageManager) -> None:
        """Test filtering by project, including entries without one."""
        storage.create_entry("A", 1_000, project="work")
        storage.create_entry("B", 2_000)
        storage.create_entry("C", 3_000, project="home")

        assert [e.task_name for e in storage.list_entries(project="work")] == ["A"]
        assert [e.task_name for e in storage.list_entries(project=None)] == ["B"]
        assert len(storage.list_entries(project=ALL_PROJECTS)) == 3

    def test_update_entry(self, storage: StorageManager) -> None:
        """Test partial updates."""
        entry = storage.create_entry("Old", 1_000, project="p")

        updated = storage.update_entry(entry.id, task_name="New", project=None, logged=True)

        assert updated is not None
        assert updated.task_name == "New"
        assert updated.project is None
        assert updated.logged is True
        reloaded = storage.get_entry(entry.id)
        assert reloaded == updated

    def test_update_entry_rejects_unknown_fields(self, storage: StorageManager) -> None:
        """Test that only known fields can be updated."""
        entry = storage.create_entry("A", 1_000)

        with pytest.raises(ValueError, match="Unknown entry fields"):
            storage.update_entry(entry.id, notes="nope")

    def test_update_missing_entry_returns_none(self, storage: StorageManager) -> None:
        """Test updating an unknown id."""
        assert storage.update_entry(42, task_name="X") is None

    def test_delete_entry(self, storage: StorageManager) -> None:
        """Test deleting an entry."""
        entry = storage.create_entry("A", 1_000)

        assert storage.delete_entry(entry.id) is True
        assert storage.get_entry(entry.id) is None
        assert storage.delete_entry(entry.id) is False

    def test_list_entries_in_range_is_inclusive(self, storage: StorageManager) -> None:
        """Test range bounds on start time."""
        storage.create_entry("Before", 999)
        storage.create_entry("Start", 1_000)
        storage.create_entry("End", 2_000)
        storage.create_entry("After", 2_001)

        names = [e.task_name for e in storage.list_entries_in_range(1_000, 2_000)]
        assert names == ["End", "Start"]

    def test_corrupt_file_raises_storage_error(self, storage: StorageManager) -> None:
        """Test that unreadable rows surface as StorageError."""
        storage.entries_file.write_text(
            "id,task_name,project,start_time,end_time,logged,created_at,updated_at\n"
            "abc,Task,,not-a-number,,False,0,0\n"
        )

        with pytest.raises(StorageError):
            storage.list_entries()

    def test_unwritable_data_dir_raises_storage_error(self, temp_dir: Path) -> None:
        """Test that a data dir blocked by a file surfaces as StorageError."""
        blocker = temp_dir / "blocker"
        blocker.write_text("")

        with pytest.raises(StorageError):
            StorageManager(blocker / "data")


class TestProjectStorage:
    """Test project operations."""

    def test_list_projects_includes_declared_and_referenced(self, storage: StorageManager) -> None:
        """Test that the directory merges declarations and entry labels."""
        storage.create_project("declared")
        storage.create_entry("A", 1_000, project="used")

        assert storage.list_projects() == ["declared", "used"]

    def test_create_project_is_idempotent(self, storage: StorageManager) -> None:
        """Test declaring the same project twice."""
        storage.create_project("p")
        storage.create_project("p")

        assert storage.list_projects() == ["p"]

    def test_count_by_project(self, storage: StorageManager) -> None:
        """Test counting entries per project."""
        storage.create_entry("A", 1_000, project="p")
        storage.create_entry("B", 2_000, project="p")
        storage.create_entry("C", 3_000)

        assert storage.count_by_project("p") == 2
        assert storage.count_by_project(None) == 1
        assert storage.count_by_project("missing") == 0

    def test_delete_project_removes_entries(self, storage: StorageManager) -> None:
        """Test that deleting a project deletes its entries."""
        storage.create_project("p")
        storage.create_entry("A", 1_000, project="p")
        storage.create_entry("B", 2_000, project="q")

        assert storage.delete_project("p") == 1
        assert storage.list_projects() == ["q"]
        assert [e.task_name for e in storage.list_entries()] == ["B"]

    def test_delete_entries_without_project(self, storage: StorageManager) -> None:
        """Test deleting the no-project bucket."""
        storage.create_entry("A", 1_000)
        storage.create_entry("B", 2_000, project="q")

        assert storage.delete_project(None) == 1
        assert [e.task_name for e in storage.list_entries()] == ["B"]

    def test_rename_project(self, storage: StorageManager) -> None:
        """Test renaming moves entries and the declaration."""
        storage.create_project("old")
        storage.create_entry("A", 1_000, project="old")
        storage.create_entry("B", 2_000, project="old")

        assert storage.rename_project("old", "new") == 2
        assert storage.list_projects() == ["new"]
        assert storage.count_by_project("new") == 2
