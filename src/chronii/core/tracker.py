"""Core time tracking engine.

``TimeTracker`` is the only path that changes stored entries. It validates
every mutation before touching storage, so a rejected operation leaves no
partial update behind.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from chronii.core.errors import ChroniiError, NotFoundError, StorageError, ValidationError
from chronii.core.models import UNTITLED_TASK, TimeEntry, now_ms
from chronii.core.storage import EntryStore, StorageManager

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class BulkResult:
    """Outcome of a bulk operation, per entry id."""

    succeeded: list[int] = field(default_factory=list)
    failed: dict[int, ChroniiError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether every id succeeded."""
        return not self.failed


class TimeTracker:
    """Validates and applies entry mutations."""

    def __init__(
        self,
        storage: Optional[EntryStore] = None,
        time_source: Callable[[], int] = now_ms,
        substitute_untitled: bool = False,
    ):
        """Initialize time tracker.

        Args:
            storage: Entry store. Creates default CSV storage if None.
            time_source: Returns "now" in epoch milliseconds
            substitute_untitled: Replace empty task names with "(untitled)"
                instead of rejecting them
        """
        self.storage: EntryStore = storage if storage is not None else StorageManager()
        self.time_source = time_source
        self.substitute_untitled = substitute_untitled

    def _task_name(self, task_name: Optional[str]) -> str:
        name = (task_name or "").strip()
        if name:
            return name
        if self.substitute_untitled:
            return UNTITLED_TASK
        raise ValidationError("Task name must not be empty")

    @staticmethod
    def _project(project: Optional[str]) -> Optional[str]:
        if project is None:
            return None
        return project.strip() or None

    def _require(self, entry_id: int) -> TimeEntry:
        entry = self.storage.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_id)
        return entry

    def start(
        self, task_name: str, project: Optional[str] = None
    ) -> tuple[Optional[TimeEntry], TimeEntry]:
        """Start tracking a new task, stopping any running entry first.

        Args:
            task_name: Name of the task
            project: Project name

        Returns:
            Tuple of (stopped entry or None, new entry)

        Raises:
            ValidationError: If the task name is empty
        """
        name = self._task_name(task_name)
        now = self.time_source()

        stopped: list[TimeEntry] = []
        try:
            active = self.storage.get_active_entry()
            while active is not None:
                result = self.storage.stop_entry(active.id, max(now, active.start_time))
                if result is None or result.is_running:
                    raise StorageError(f"Failed to stop running entry {active.id}")
                stopped.append(result)
                logger.info(f"Stopped entry {active.id} before starting {name!r}")
                active = self.storage.get_active_entry()

            entry = self.storage.create_entry(name, now, self._project(project))
        except StorageError:
            self._reopen(stopped)
            raise

        logger.info(f"Started entry {entry.id}: {name}")
        return (stopped[0] if stopped else None), entry

    def _reopen(self, entries: list[TimeEntry]) -> None:
        """Undo the stops made by a failed ``start``."""
        for entry in entries:
            logger.warning(f"Reopening entry {entry.id} after a failed start")
            self.storage.update_entry(entry.id, end_time=None)

    def stop(self, entry_id: int) -> TimeEntry:
        """Stop an entry if it is running.

        Args:
            entry_id: Entry to stop

        Returns:
            The entry; unchanged if it was already stopped

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self._require(entry_id)
        if not entry.is_running:
            logger.info(f"Entry {entry_id} already stopped")
            return entry

        # A start time in the future (clock skew) yields a zero-length entry.
        end_time = max(self.time_source(), entry.start_time)
        stopped = self.storage.stop_entry(entry_id, end_time)
        if stopped is None:
            raise NotFoundError(entry_id)
        logger.info(f"Stopped entry {entry_id}")
        return stopped

    def stop_active(self) -> Optional[TimeEntry]:
        """Stop the currently running entry.

        Returns:
            Stopped entry or None if nothing was running
        """
        active = self.storage.get_active_entry()
        if active is None:
            return None
        return self.stop(active.id)

    def status(self) -> Optional[TimeEntry]:
        """Get the running entry, if any."""
        return self.storage.get_active_entry()

    def add_entry(
        self,
        task_name: str,
        start_time: int,
        end_time: int,
        project: Optional[str] = None,
    ) -> TimeEntry:
        """Add a closed entry for time that was not tracked live.

        Raises:
            ValidationError: If the name is empty or end_time < start_time
        """
        name = self._task_name(task_name)
        if end_time < start_time:
            raise ValidationError("End time must not be before start time")

        entry = self.storage.create_entry(name, start_time, self._project(project))
        try:
            stopped = self.storage.stop_entry(entry.id, end_time)
            if stopped is None:
                raise StorageError(f"Entry {entry.id} vanished while being created")
        except StorageError:
            # Roll back the open entry
            self.storage.delete_entry(entry.id)
            raise
        logger.info(f"Added entry {entry.id}: {name}")
        return stopped

    def edit(
        self,
        entry_id: int,
        task_name: Any = UNSET,
        project: Any = UNSET,
        start_time: Any = UNSET,
        end_time: Any = UNSET,
        logged: Any = UNSET,
    ) -> TimeEntry:
        """Edit an existing entry.

        Only the fields that are passed are changed. Passing ``end_time=None``
        reopens the entry; other running entries are left alone.

        Returns:
            Updated entry

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If the result would be invalid; nothing is written
        """
        entry = self._require(entry_id)
        updates: dict[str, Any] = {}

        if task_name is not UNSET:
            updates["task_name"] = self._task_name(task_name)
        if project is not UNSET:
            updates["project"] = self._project(project)
        if start_time is not UNSET:
            if start_time is None:
                raise ValidationError("Start time is required")
            updates["start_time"] = int(start_time)
        if end_time is not UNSET:
            updates["end_time"] = int(end_time) if end_time is not None else None
        if logged is not UNSET:
            updates["logged"] = bool(logged)

        new_start = updates.get("start_time", entry.start_time)
        new_end = updates.get("end_time", entry.end_time)
        if new_end is not None and new_end < new_start:
            raise ValidationError("End time must not be before start time")

        updated = self.storage.update_entry(entry_id, **updates)
        if updated is None:
            raise NotFoundError(entry_id)
        logger.info(f"Edited entry {entry_id}: {', '.join(sorted(updates)) or 'no changes'}")
        return updated

    def delete(self, entry_id: int) -> TimeEntry:
        """Delete an entry, stopping it first if it is running.

        Returns:
            The entry as it was last stored

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self._require(entry_id)
        if entry.is_running:
            entry = self.stop(entry_id)

        if not self.storage.delete_entry(entry_id):
            raise NotFoundError(entry_id)
        logger.info(f"Deleted entry {entry_id}")
        return entry

    def delete_many(self, entry_ids: Iterable[int]) -> BulkResult:
        """Delete several entries, collecting failures per id."""
        return self._bulk(entry_ids, self.delete)

    def set_logged_many(self, entry_ids: Iterable[int], logged: bool) -> BulkResult:
        """Set the logged flag on several entries, collecting failures per id."""
        return self._bulk(entry_ids, lambda entry_id: self.edit(entry_id, logged=logged))

    def _bulk(self, entry_ids: Iterable[int], operation: Callable[[int], Any]) -> BulkResult:
        result = BulkResult()
        for entry_id in entry_ids:
            try:
                operation(entry_id)
            except ChroniiError as e:
                logger.warning(f"Bulk operation failed for entry {entry_id}: {e}")
                result.failed[entry_id] = e
            else:
                result.succeeded.append(entry_id)
        return result

    # Project directory

    @staticmethod
    def _project_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Project name must not be empty")
        return cleaned

    def create_project(self, name: str) -> str:
        """Declare a project. Returns the normalized name."""
        cleaned = self._project_name(name)
        self.storage.create_project(cleaned)
        return cleaned

    def list_projects(self) -> list[str]:
        return self.storage.list_projects()

    def count_by_project(self, project: Optional[str]) -> int:
        return self.storage.count_by_project(project)

    def rename_project(self, old_name: str, new_name: str) -> int:
        """Rename a project on all its entries.

        Raises:
            ValidationError: If either name is empty or the old project is unknown
        """
        old = self._project_name(old_name)
        new = self._project_name(new_name)
        if old not in self.storage.list_projects():
            raise ValidationError(f"Unknown project: {old}")
        if old == new:
            return 0
        return self.storage.rename_project(old, new)

    def delete_project(self, project: Optional[str]) -> int:
        """Delete a project and all of its entries (None: entries without a project)."""
        if project is not None:
            project = self._project_name(project)
        return self.storage.delete_project(project)
