"""Tests for entry selection."""

import logging

import pytest  # type: ignore[import-not-found]
from conftest import HOUR, make_entry

from chronii.core.selection import SelectionTracker


@pytest.fixture
def entries():  # type: ignore[no-untyped-def]
    return [
        make_entry(7, 3 * HOUR, 4 * HOUR),
        make_entry(5, 2 * HOUR, 3 * HOUR),
        make_entry(3, 1 * HOUR),
    ]


class TestSelectionTracker:
    """Test SelectionTracker."""

    def test_toggle(self) -> None:
        """Test toggling an id on and off."""
        selection = SelectionTracker()

        assert selection.toggle(5) is True
        assert 5 in selection
        assert selection.toggle(5) is False
        assert len(selection) == 0

    def test_selected_keeps_entry_order(self, entries) -> None:  # type: ignore[no-untyped-def]
        """Test that projections follow the entry list, not selection order."""
        selection = SelectionTracker()
        selection.select(3)
        selection.select(7)

        assert [e.id for e in selection.selected(entries)] == [7, 3]

    def test_selection_survives_reload(self, entries) -> None:  # type: ignore[no-untyped-def]
        """Test that ids match fresh entry objects after a reload."""
        selection = SelectionTracker()
        selection.toggle(5)

        reloaded = [make_entry(e.id, e.start_time, e.end_time, task_name="fresh") for e in entries]

        selected = selection.selected(reloaded)
        assert [e.id for e in selected] == [5]
        assert selected[0].task_name == "fresh"

    def test_deleted_ids_are_dropped_from_projection(
        self, entries, caplog: pytest.LogCaptureFixture  # type: ignore[no-untyped-def]
    ) -> None:
        """Test that a vanished id is skipped without error."""
        selection = SelectionTracker()
        selection.toggle(5)
        selection.toggle(7)

        remaining = [e for e in entries if e.id != 5]
        with caplog.at_level(logging.DEBUG, logger="chronii.core.selection"):
            selected = selection.selected(remaining)

        assert [e.id for e in selected] == [7]
        assert selection.ids == frozenset({5, 7})
        assert "no longer present" in caplog.text

    def test_total_duration(self, entries) -> None:  # type: ignore[no-untyped-def]
        """Test total over selected entries, including a running one."""
        selection = SelectionTracker()
        selection.select(5)
        selection.select(3)

        assert selection.total_duration(entries, now=2 * HOUR) == 2 * HOUR

    def test_clear(self) -> None:
        """Test clearing the selection."""
        selection = SelectionTracker()
        selection.select(1)
        selection.deselect(2)
        selection.clear()

        assert selection.ids == frozenset()
