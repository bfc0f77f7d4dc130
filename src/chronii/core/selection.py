"""Selection of entries by id for bulk actions."""

import logging
from typing import Iterable

from chronii.core.aggregation import total_duration
from chronii.core.models import TimeEntry

logger = logging.getLogger(__name__)


class SelectionTracker:
    """Set of selected entry ids.

    Selection is keyed by id only, so it survives reloads of the entry list as
    long as the same ids are still present. Ids that disappear are dropped
    from projections, not from the set.
    """

    def __init__(self) -> None:
        self._ids: set[int] = set()

    @property
    def ids(self) -> frozenset[int]:
        """Currently selected ids."""
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._ids

    def is_selected(self, entry_id: int) -> bool:
        return entry_id in self._ids

    def toggle(self, entry_id: int) -> bool:
        """Flip the selection state of an id.

        Returns:
            True if the id is selected afterwards
        """
        if entry_id in self._ids:
            self._ids.remove(entry_id)
            return False
        self._ids.add(entry_id)
        return True

    def select(self, entry_id: int) -> None:
        self._ids.add(entry_id)

    def deselect(self, entry_id: int) -> None:
        self._ids.discard(entry_id)

    def clear(self) -> None:
        self._ids.clear()

    def selected(self, entries: Iterable[TimeEntry]) -> list[TimeEntry]:
        """Project the selection onto a live entry list.

        Args:
            entries: Current entries

        Returns:
            Selected entries in the order of ``entries``
        """
        result = [entry for entry in entries if entry.id in self._ids]
        if len(result) < len(self._ids):
            stale = self._ids - {entry.id for entry in result}
            logger.debug(f"Selection holds ids no longer present: {sorted(stale)}")
        return result

    def total_duration(self, entries: Iterable[TimeEntry], now: int) -> int:
        """Total duration of the selected entries at ``now``."""
        return total_duration(self.selected(entries), now)
