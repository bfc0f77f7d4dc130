"""Query and command surface for presentation layers.

Commands flow into the session, which applies them through ``TimeTracker``,
reloads entries and recomputes the view; views flow out to subscribers. The
clock ticks only while the view holds a running entry, and a tick recomputes
totals without regrouping.
"""

import logging
from typing import Any, Callable, Optional

from chronii.core.aggregation import HistoryAggregator, HistoryView
from chronii.core.clock import Clock
from chronii.core.models import TimeEntry
from chronii.core.selection import SelectionTracker
from chronii.core.storage import ALL_PROJECTS, EntryStore, StorageManager
from chronii.core.tracker import UNSET, BulkResult, TimeTracker

logger = logging.getLogger(__name__)

ViewListener = Callable[[HistoryView], None]


class TrackerSession:
    """Live, grouped history plus the operations that change it."""

    def __init__(
        self,
        storage: Optional[EntryStore] = None,
        clock: Optional[Clock] = None,
        tracker: Optional[TimeTracker] = None,
        page_size: int = 50,
        project: Any = ALL_PROJECTS,
    ):
        """Initialize session.

        Args:
            storage: Entry store (ignored when ``tracker`` is given)
            clock: Clock source. Creates a non-ticking clock if None.
            tracker: Mutation coordinator. Created over ``storage`` if None.
            page_size: Number of most recent entries kept in view
            project: Initial project filter
        """
        self.clock = clock or Clock()
        if tracker is None:
            tracker = TimeTracker(
                storage if storage is not None else StorageManager(),
                time_source=self.clock.time_source,
            )
        self.tracker = tracker
        self.storage = tracker.storage
        self.page_size = page_size
        self.selection = SelectionTracker()
        self.aggregator = HistoryAggregator(project=project)
        self._entries: list[TimeEntry] = []
        self._listeners: list[ViewListener] = []
        self._unsubscribe_clock = self.clock.subscribe(self._on_tick)

    # Queries

    @property
    def project_filter(self) -> Any:
        return self.aggregator.project_filter

    @property
    def entries(self) -> list[TimeEntry]:
        """Entries currently loaded, most recent first."""
        return list(self._entries)

    def view(self) -> HistoryView:
        """Grouped history with totals at the clock's current value."""
        return self.aggregator.view(self.clock.now)

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Receive a new view after every reload and clock tick.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reload(self) -> HistoryView:
        """Load entries from storage and publish a fresh view.

        Raises:
            StorageError: If loading fails; the previous view is kept
        """
        entries = self.storage.list_entries(self.page_size, 0, self.project_filter)
        self._entries = entries
        self.aggregator.set_entries(entries)
        self.clock.refresh()
        self.clock.sync(self.aggregator.any_open())
        logger.debug(f"Reloaded {len(entries)} entries")
        return self._publish()

    def set_project_filter(self, project: Any) -> HistoryView:
        """Show only one project (None: entries without a project; ALL_PROJECTS: all)."""
        self.aggregator.set_project_filter(project)
        return self.reload()

    def close(self) -> None:
        """Stop ticking and detach from the clock."""
        self.clock.stop()
        self._unsubscribe_clock()
        self._listeners.clear()

    def _publish(self) -> HistoryView:
        view = self.view()
        for listener in list(self._listeners):
            listener(view)
        return view

    def _on_tick(self, now: int) -> None:
        self._publish()

    # Selection

    def toggle_selection(self, entry_id: int) -> bool:
        return self.selection.toggle(entry_id)

    def clear_selection(self) -> None:
        self.selection.clear()

    def selected_entries(self) -> list[TimeEntry]:
        return self.selection.selected(self._entries)

    def selection_total(self) -> int:
        """Total duration of the selected entries at the clock's current value."""
        return self.selection.total_duration(self._entries, self.clock.now)

    # Commands

    def _mutate(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        result = operation(*args, **kwargs)
        self.reload()
        return result

    def start(
        self, task_name: str, project: Optional[str] = None
    ) -> tuple[Optional[TimeEntry], TimeEntry]:
        return self._mutate(self.tracker.start, task_name, project)

    def stop(self, entry_id: Optional[int] = None) -> Optional[TimeEntry]:
        """Stop an entry, or whatever is running when no id is given."""
        if entry_id is None:
            return self._mutate(self.tracker.stop_active)
        return self._mutate(self.tracker.stop, entry_id)

    def add_entry(
        self, task_name: str, start_time: int, end_time: int, project: Optional[str] = None
    ) -> TimeEntry:
        return self._mutate(self.tracker.add_entry, task_name, start_time, end_time, project)

    def edit(
        self,
        entry_id: int,
        task_name: Any = UNSET,
        project: Any = UNSET,
        start_time: Any = UNSET,
        end_time: Any = UNSET,
        logged: Any = UNSET,
    ) -> TimeEntry:
        return self._mutate(
            self.tracker.edit,
            entry_id,
            task_name=task_name,
            project=project,
            start_time=start_time,
            end_time=end_time,
            logged=logged,
        )

    def delete(self, entry_id: int) -> TimeEntry:
        return self._mutate(self.tracker.delete, entry_id)

    def delete_many(self, entry_ids: list[int]) -> BulkResult:
        return self._mutate(self.tracker.delete_many, entry_ids)

    def set_logged_many(self, entry_ids: list[int], logged: bool) -> BulkResult:
        return self._mutate(self.tracker.set_logged_many, entry_ids, logged)

    def delete_selected(
        self, confirm: Optional[Callable[[list[TimeEntry]], bool]] = None
    ) -> BulkResult:
        """Delete the selected entries.

        Args:
            confirm: Asked with the targets before deleting; returning False
                cancels

        Returns:
            Per-id outcome (empty when cancelled)
        """
        targets = self.selected_entries()
        if confirm is not None and not confirm(targets):
            logger.info("Deleting selection cancelled")
            self.selection.clear()
            return BulkResult()

        result = self.delete_many([entry.id for entry in targets])
        self.selection.clear()
        return result

    def set_selected_logged(self, logged: bool) -> BulkResult:
        """Set the logged flag on every selected entry."""
        targets = self.selected_entries()
        result = self.set_logged_many([entry.id for entry in targets], logged)
        self.selection.clear()
        return result

    def create_project(self, name: str) -> str:
        return self._mutate(self.tracker.create_project, name)

    def rename_project(self, old_name: str, new_name: str) -> int:
        return self._mutate(self.tracker.rename_project, old_name, new_name)

    def delete_project(self, project: Optional[str]) -> int:
        return self._mutate(self.tracker.delete_project, project)
