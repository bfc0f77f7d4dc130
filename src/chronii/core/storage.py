"""Entry storage: the collaborator interface and a CSV implementation."""

import csv
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Protocol

from chronii.core.errors import StorageError
from chronii.core.models import Project, TimeEntry, now_ms

logger = logging.getLogger(__name__)

ENTRY_FIELDS = [
    "id",
    "task_name",
    "project",
    "start_time",
    "end_time",
    "logged",
    "created_at",
    "updated_at",
]
PROJECT_FIELDS = ["name", "created_at"]
UPDATABLE_FIELDS = {"task_name", "project", "start_time", "end_time", "logged"}


class _AllProjects:
    """Marker for "no project filter" (``None`` already means "no project")."""

    def __repr__(self) -> str:
        return "ALL_PROJECTS"


ALL_PROJECTS: Any = _AllProjects()


class EntryStore(Protocol):
    """Operations the tracking core needs from persistence."""

    def create_entry(
        self, task_name: str, start_time: int, project: Optional[str] = None
    ) -> TimeEntry: ...

    def get_entry(self, entry_id: int) -> Optional[TimeEntry]: ...

    def stop_entry(self, entry_id: int, end_time: int) -> Optional[TimeEntry]: ...

    def get_active_entry(self) -> Optional[TimeEntry]: ...

    def list_entries(
        self, limit: int = 100, offset: int = 0, project: Any = ALL_PROJECTS
    ) -> list[TimeEntry]: ...

    def update_entry(self, entry_id: int, **fields: Any) -> Optional[TimeEntry]: ...

    def delete_entry(self, entry_id: int) -> bool: ...

    def list_entries_in_range(self, start: int, end: int) -> list[TimeEntry]: ...

    def create_project(self, name: str) -> None: ...

    def list_projects(self) -> list[str]: ...

    def count_by_project(self, project: Optional[str]) -> int: ...

    def delete_project(self, project: Optional[str]) -> int: ...

    def rename_project(self, old_name: str, new_name: str) -> int: ...


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way.

    Args:
        file_obj: File object to unlock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


def _sort_key(entry: TimeEntry) -> tuple[int, int]:
    return (entry.start_time, entry.id)


class StorageManager:
    """CSV storage for time entries and project declarations.

    Every write goes through a temporary file that is fsynced and renamed over
    the target, so a crash leaves either the old or the new file in place.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize storage manager.

        Args:
            data_dir: Custom data directory. Defaults to ~/.chronii/data

        Raises:
            StorageError: If the data directory cannot be created
        """
        if data_dir is None:
            data_dir = Path.home() / ".chronii" / "data"

        self.data_dir = data_dir
        self.entries_file = self.data_dir / "entries.csv"
        self.projects_file = self.data_dir / "projects.csv"
        self.sequence_file = self.data_dir / "sequence"

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.data_dir}: {e}") from e

        self._initialize_files()

    def _initialize_files(self) -> None:
        """Create CSV files with headers if they don't exist."""
        if not self.entries_file.exists():
            self._write_csv_atomic(self.entries_file, ENTRY_FIELDS, [])
        if not self.projects_file.exists():
            self._write_csv_atomic(self.projects_file, PROJECT_FIELDS, [])

    def _write_csv_atomic(
        self, file_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]
    ) -> None:
        """Write CSV file atomically using temporary file and rename.

        Args:
            file_path: Target file path
            fieldnames: CSV field names
            rows: List of row dictionaries

        Raises:
            StorageError: If the file cannot be written
        """
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                writer = csv.DictWriter(f, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(rows)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)

        except (OSError, csv.Error) as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"Failed to write {file_path.name}: {e}")
            raise StorageError(f"Failed to write {file_path}: {e}") from e

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        """Read CSV file with locking.

        Args:
            file_path: CSV file to read

        Returns:
            List of row dictionaries

        Raises:
            StorageError: If the file cannot be read
        """
        if not file_path.exists():
            return []

        try:
            with open(file_path, encoding="utf-8") as f:
                _lock_file(f, exclusive=False)

                try:
                    reader = csv.DictReader(f)
                    rows = list(reader)
                finally:
                    _unlock_file(f)
        except (OSError, csv.Error) as e:
            logger.error(f"Failed to read {file_path.name}: {e}")
            raise StorageError(f"Failed to read {file_path}: {e}") from e

        return rows

    def _load_all(self) -> list[TimeEntry]:
        rows = self._read_csv(self.entries_file)
        try:
            return [TimeEntry.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt entry row in {self.entries_file}: {e}") from e

    def _save_all(self, entries: list[TimeEntry]) -> None:
        self._write_csv_atomic(
            self.entries_file, ENTRY_FIELDS, [entry.to_dict() for entry in entries]
        )

    def _load_projects(self) -> list[Project]:
        rows = self._read_csv(self.projects_file)
        try:
            return [Project.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt project row in {self.projects_file}: {e}") from e

    def _save_projects(self, projects: list[Project]) -> None:
        self._write_csv_atomic(
            self.projects_file, PROJECT_FIELDS, [project.to_dict() for project in projects]
        )

    def _next_id(self, entries: list[TimeEntry]) -> int:
        """Allocate the next entry id.

        The last issued id is persisted separately so ids of deleted entries
        are never handed out again.
        """
        last = 0
        try:
            if self.sequence_file.exists():
                text = self.sequence_file.read_text(encoding="utf-8").strip()
                last = int(text) if text else 0
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read id sequence: {e}") from e

        last = max([last] + [entry.id for entry in entries])
        next_id = last + 1

        temp_file = self.sequence_file.with_suffix(".tmp")
        try:
            temp_file.write_text(str(next_id), encoding="utf-8")
            temp_file.replace(self.sequence_file)
        except OSError as e:
            raise StorageError(f"Failed to write id sequence: {e}") from e

        return next_id

    # Entry operations

    def create_entry(
        self, task_name: str, start_time: int, project: Optional[str] = None
    ) -> TimeEntry:
        """Create a new open entry.

        Args:
            task_name: Task label
            start_time: Start instant in epoch milliseconds
            project: Project name (optional)

        Returns:
            Created entry with its assigned id
        """
        entries = self._load_all()
        now = now_ms()
        entry = TimeEntry(
            id=self._next_id(entries),
            task_name=task_name,
            start_time=start_time,
            project=project,
            created_at=now,
            updated_at=now,
        )
        entries.append(entry)
        self._save_all(entries)
        logger.debug(f"Created entry {entry.id}: {task_name}")
        return entry

    def get_entry(self, entry_id: int) -> Optional[TimeEntry]:
        """Get an entry by id, or None if it does not exist."""
        for entry in self._load_all():
            if entry.id == entry_id:
                return entry
        return None

    def stop_entry(self, entry_id: int, end_time: int) -> Optional[TimeEntry]:
        """Set the end time of an entry that is still open.

        Entries that are already stopped are left untouched.

        Returns:
            The entry after the operation, or None if it does not exist
        """
        entries = self._load_all()
        for entry in entries:
            if entry.id == entry_id:
                if entry.end_time is None:
                    entry.end_time = end_time
                    entry.updated_at = now_ms()
                    self._save_all(entries)
                return entry
        return None

    def get_active_entry(self) -> Optional[TimeEntry]:
        """Get the most recently started open entry (if any)."""
        running = [entry for entry in self._load_all() if entry.is_running]
        if not running:
            return None
        return max(running, key=_sort_key)

    def list_entries(
        self, limit: int = 100, offset: int = 0, project: Any = ALL_PROJECTS
    ) -> list[TimeEntry]:
        """List entries, most recent first.

        Args:
            limit: Maximum number of entries to return
            offset: Number of entries to skip
            project: Project to filter on; None selects entries without a project

        Returns:
            List of entries
        """
        entries = self._load_all()
        if project is not ALL_PROJECTS:
            entries = [entry for entry in entries if entry.project == project]

        entries.sort(key=_sort_key, reverse=True)
        return entries[offset : offset + limit]

    def update_entry(self, entry_id: int, **fields: Any) -> Optional[TimeEntry]:
        """Apply a partial update to an entry.

        Args:
            entry_id: Entry to update
            **fields: Any of task_name, project, start_time, end_time, logged

        Returns:
            Updated entry, or None if it does not exist

        Raises:
            ValueError: If an unknown field is given
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown entry fields: {', '.join(sorted(unknown))}")

        entries = self._load_all()
        for entry in entries:
            if entry.id == entry_id:
                if not fields:
                    return entry
                for key, value in fields.items():
                    setattr(entry, key, value)
                entry.updated_at = now_ms()
                self._save_all(entries)
                return entry
        return None

    def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry by id.

        Returns:
            True if entry was deleted, False if not found
        """
        entries = self._load_all()
        remaining = [entry for entry in entries if entry.id != entry_id]

        if len(remaining) == len(entries):
            return False

        self._save_all(remaining)
        logger.debug(f"Deleted entry {entry_id}")
        return True

    def list_entries_in_range(self, start: int, end: int) -> list[TimeEntry]:
        """List entries whose start time lies in ``[start, end]``, most recent first."""
        entries = [entry for entry in self._load_all() if start <= entry.start_time <= end]
        entries.sort(key=_sort_key, reverse=True)
        return entries

    # Project operations

    def create_project(self, name: str) -> None:
        """Declare a project so it exists before any entry references it."""
        projects = self._load_projects()
        if any(project.name == name for project in projects):
            return
        projects.append(Project(name=name))
        self._save_projects(projects)

    def list_projects(self) -> list[str]:
        """All declared or referenced project names, sorted."""
        names = {project.name for project in self._load_projects()}
        names.update(entry.project for entry in self._load_all() if entry.project)
        return sorted(names)

    def count_by_project(self, project: Optional[str]) -> int:
        """Count entries in a project (None counts entries without a project)."""
        return sum(1 for entry in self._load_all() if entry.project == project)

    def delete_project(self, project: Optional[str]) -> int:
        """Delete every entry of a project along with its declaration.

        Returns:
            Number of entries deleted
        """
        entries = self._load_all()
        remaining = [entry for entry in entries if entry.project != project]
        deleted = len(entries) - len(remaining)
        if deleted:
            self._save_all(remaining)

        if project is not None:
            projects = self._load_projects()
            kept = [p for p in projects if p.name != project]
            if len(kept) != len(projects):
                self._save_projects(kept)

        logger.info(f"Deleted project {project!r} ({deleted} entries)")
        return deleted

    def rename_project(self, old_name: str, new_name: str) -> int:
        """Move every entry and the declaration of ``old_name`` to ``new_name``.

        Returns:
            Number of entries updated
        """
        entries = self._load_all()
        changed = 0
        now = now_ms()
        for entry in entries:
            if entry.project == old_name:
                entry.project = new_name
                entry.updated_at = now
                changed += 1
        if changed:
            self._save_all(entries)

        projects = self._load_projects()
        if any(p.name == old_name for p in projects):
            renamed: list[Project] = []
            for p in projects:
                name = new_name if p.name == old_name else p.name
                if not any(r.name == name for r in renamed):
                    renamed.append(Project(name=name, created_at=p.created_at))
            self._save_projects(renamed)

        logger.info(f"Renamed project {old_name!r} to {new_name!r} ({changed} entries)")
        return changed
