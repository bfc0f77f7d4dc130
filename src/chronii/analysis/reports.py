"""Report generation for time tracking data."""

from typing import Optional

from rich.console import Console, Group  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from chronii.core.aggregation import HistoryView, SummaryTotals, WeekSummary
from chronii.core.formatting import (
    format_duration,
    format_duration_summary,
    format_time,
    format_timer_display,
)
from chronii.core.models import TimeEntry


class ReportGenerator:
    """Render history views and summaries with rich."""

    def __init__(self, console: Optional[Console] = None, show_seconds: bool = True):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            show_seconds: Show entry durations with seconds precision
        """
        self.console = console or Console()
        self.show_seconds = show_seconds

    def _entry_duration(self, entry: TimeEntry, now: int) -> str:
        value = max(0, entry.duration(now))
        if self.show_seconds:
            return format_duration(value)
        return format_duration_summary(value)

    def week_table(self, week: WeekSummary, now: int, selected: frozenset[int] = frozenset()) -> Table:
        """Build the table for one week: a header row per day, then its entries."""
        table = Table(
            title=f"{week.week.week_label}  [bold magenta]{format_duration_summary(week.total)}[/bold magenta]",
            title_justify="left",
            expand=False,
        )
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Time", style="cyan")
        table.add_column("Duration", style="magenta", justify="right")
        table.add_column("Task", style="bold")
        table.add_column("Project", style="blue")
        table.add_column("Logged", style="green", justify="center")

        for day in week.days:
            table.add_row(
                "",
                Text(day.day.date, style="bold yellow"),
                Text(format_duration_summary(day.total), style="bold yellow"),
                "",
                "",
                "",
                end_section=False,
            )
            for entry in day.day.entries:
                end = format_time(entry.end_time) if entry.end_time is not None else "now"
                marker = "▶ " if entry.is_running else ""
                if entry.id in selected:
                    marker = "● " + marker
                task = Text(f"{marker}{entry.task_name}")
                if entry.is_untitled:
                    task.stylize("italic dim")
                table.add_row(
                    str(entry.id),
                    f"{format_time(entry.start_time)} → {end}",
                    self._entry_duration(entry, now),
                    task,
                    entry.project or "-",
                    "✓" if entry.logged else "",
                )
            table.add_section()

        return table

    def history_renderable(self, view: HistoryView, selected: frozenset[int] = frozenset()) -> Group:
        """Renderable for a whole history view (used by live displays)."""
        if not view.weeks:
            return Group(Text("No entries found", style="yellow"))
        return Group(*(self.week_table(week, view.now, selected) for week in view.weeks))

    def history_report(self, view: HistoryView, selected: frozenset[int] = frozenset()) -> None:
        """Display the grouped history.

        Args:
            view: History view with totals
            selected: Ids to mark as selected
        """
        if not view.weeks:
            self.console.print("[yellow]No entries found[/yellow]")
            return

        for week in view.weeks:
            self.console.print(self.week_table(week, view.now, selected))
            self.console.print()

    def summary_report(self, totals: SummaryTotals) -> None:
        """Display today, this week and this month totals."""
        table = Table(title="Summary", show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column(style="bold")
        table.add_column(style="dim")

        table.add_row("Today:", format_duration_summary(totals.today), format_timer_display(totals.today))
        table.add_row("This Week:", format_duration_summary(totals.week), format_timer_display(totals.week))
        table.add_row("This Month:", format_duration_summary(totals.month), format_timer_display(totals.month))

        self.console.print(table)

    def selection_report(self, entries: list[TimeEntry], total: int) -> None:
        """Display a one-line summary of selected entries."""
        if not entries:
            return
        plural = "" if len(entries) == 1 else "s"
        self.console.print(
            f"{len(entries)} task{plural} selected  "
            f"[bold]Total: {format_duration(total)}[/bold]"
        )
