"""Main CLI application."""

import asyncio
import json
import logging
from typing import Optional

import click
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from chronii import __version__
from chronii.analysis.reports import ReportGenerator
from chronii.cli.common import console, error_console, fail, get_config, get_session
from chronii.cli.config_commands import config
from chronii.cli.project_commands import project
from chronii.core.aggregation import HistoryView, summary_totals
from chronii.core.clock import AsyncioScheduler
from chronii.core.errors import ChroniiError
from chronii.core.formatting import (
    format_datetime,
    format_duration,
    format_timer_display,
    parse_datetime,
)
from chronii.core.log import setup_logging
from chronii.core.models import now_ms
from chronii.core.storage import ALL_PROJECTS
from chronii.core.tracker import UNSET, BulkResult

logger = logging.getLogger(__name__)


def _project_filter(project: Optional[str], no_project: bool) -> object:
    if no_project:
        return None
    return project if project else ALL_PROJECTS


def _report(ctx: click.Context) -> ReportGenerator:
    return ReportGenerator(console, show_seconds=get_config(ctx).show_seconds)


def _print_bulk(result: BulkResult, message: str) -> None:
    if result.succeeded:
        console.print(f"[green]✓[/green] {message.format(count=len(result.succeeded))}")
    for entry_id, error in result.failed.items():
        error_console.print(f"[red]Error:[/red] #{entry_id}: {error}")


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Configuration file", type=click.Path(), envvar="CHRONII_CONFIG")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_path: Optional[str],
    no_color: bool,
    verbose: bool,
) -> None:
    """Chronii - Personal time tracking.

    Start and stop timers and review your history grouped by week and day.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["config_path"] = config_path

    if no_color:
        console.no_color = True

    cfg = get_config(ctx)
    setup_logging("DEBUG" if verbose else cfg.log_level, cfg.log_file)


@cli.command()
@click.argument("task_name")
@click.option("-p", "--project", help="Project name")
@click.pass_context
def start(ctx: click.Context, task_name: str, project: Optional[str]) -> None:
    """Start tracking a task, stopping the running one.

    Example:
        chronii start "Writing documentation" -p chronii
    """
    session = get_session(ctx)

    try:
        stopped, entry = session.start(task_name, project)
    except ChroniiError as e:
        fail(str(e))

    if stopped:
        console.print(
            f"[yellow]⏹[/yellow]  Stopped: {stopped.task_name} "
            f"({format_duration(stopped.duration(session.clock.now))})"
        )
    console.print(f"[green]✓[/green] Started tracking: {entry.task_name}")
    if entry.project:
        console.print(f"  Project: {entry.project}")
    console.print(f"  Started: {format_datetime(entry.start_time)}")


@cli.command()
@click.argument("entry_id", type=int, required=False)
@click.pass_context
def stop(ctx: click.Context, entry_id: Optional[int]) -> None:
    """Stop the running entry (or the given one).

    Example:
        chronii stop
        chronii stop 42
    """
    session = get_session(ctx)

    try:
        entry = session.stop(entry_id)
    except ChroniiError as e:
        fail(str(e))

    if entry is None:
        fail("No entry is currently running")

    console.print(f"[green]✓[/green] Stopped tracking: {entry.task_name}")
    console.print(f"  Duration: {format_duration(entry.duration(session.clock.now))}")
    if entry.project:
        console.print(f"  Project: {entry.project}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running entry.

    Example:
        chronii status
    """
    session = get_session(ctx)
    try:
        entry = session.tracker.status()
    except ChroniiError as e:
        fail(str(e))

    if not entry:
        console.print("[yellow]No task currently being tracked[/yellow]")
        console.print('\nStart tracking with: [cyan]chronii start "Task name"[/cyan]')
        return

    elapsed = entry.duration(session.clock.refresh())
    content = f"""[bold]{entry.task_name}[/bold]

[dim]Started:[/dim] {format_datetime(entry.start_time)}
[dim]Elapsed:[/dim] {format_timer_display(elapsed)}
[dim]Entry ID:[/dim] {entry.id}"""
    if entry.project:
        content += f"\n[dim]Project:[/dim] {entry.project}"

    console.print(Panel(content, title="Currently Tracking", border_style="green"))


@cli.command()
@click.argument("task_name")
@click.option("--start", "start_at", required=True, help="Start time (YYYY-MM-DD HH:MM or HH:MM for today)")
@click.option("--end", "end_at", required=True, help="End time (YYYY-MM-DD HH:MM or HH:MM for today)")
@click.option("-p", "--project", help="Project name")
@click.pass_context
def add(
    ctx: click.Context,
    task_name: str,
    start_at: str,
    end_at: str,
    project: Optional[str],
) -> None:
    """Add a finished entry.

    Example:
        chronii add "Morning meeting" --start "09:00" --end "09:30"
    """
    session = get_session(ctx)

    try:
        entry = session.add_entry(task_name, parse_datetime(start_at), parse_datetime(end_at), project)
    except (ValueError, ChroniiError) as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Added entry #{entry.id}: {entry.task_name}")
    console.print(f"  Duration: {format_duration(entry.duration(session.clock.now))}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--task", "task_name", help="New task name")
@click.option("-p", "--project", help="New project ('' clears it)")
@click.option("--start", "start_at", help="New start time")
@click.option("--end", "end_at", help="New end time")
@click.option("--reopen", is_flag=True, help="Clear the end time so the entry runs again")
@click.option("--logged/--not-logged", default=None, help="Set the logged flag")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: int,
    task_name: Optional[str],
    project: Optional[str],
    start_at: Optional[str],
    end_at: Optional[str],
    reopen: bool,
    logged: Optional[bool],
) -> None:
    """Edit an entry. Only the given fields change.

    Example:
        chronii edit 42 --task "Code review" --end "17:30"
        chronii edit 42 --reopen
    """
    if reopen and end_at:
        fail("--reopen and --end are mutually exclusive")

    session = get_session(ctx)
    try:
        end_time = None if reopen else (parse_datetime(end_at) if end_at else UNSET)
        entry = session.edit(
            entry_id,
            task_name=task_name if task_name is not None else UNSET,
            project=project if project is not None else UNSET,
            start_time=parse_datetime(start_at) if start_at else UNSET,
            end_time=end_time,
            logged=logged if logged is not None else UNSET,
        )
    except (ValueError, ChroniiError) as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Updated entry #{entry.id}: {entry.task_name}")


@cli.command()
@click.argument("entry_ids", type=int, nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_ids: tuple[int, ...], yes: bool) -> None:
    """Delete entries.

    Example:
        chronii delete 41 42
    """
    if not yes and not click.confirm(f"Delete {len(entry_ids)} entries?"):
        console.print("Cancelled")
        return

    session = get_session(ctx)
    try:
        result = session.delete_many(list(entry_ids))
    except ChroniiError as e:
        fail(str(e))
    _print_bulk(result, "Deleted {count} entries")
    if result.failed:
        ctx.exit(1)


@cli.command()
@click.argument("entry_ids", type=int, nargs=-1, required=True)
@click.option("--undo", is_flag=True, help="Clear the logged flag instead")
@click.pass_context
def logged(ctx: click.Context, entry_ids: tuple[int, ...], undo: bool) -> None:
    """Mark entries as logged (e.g. submitted to a timesheet).

    Example:
        chronii logged 41 42
        chronii logged 41 --undo
    """
    session = get_session(ctx)
    try:
        result = session.set_logged_many(list(entry_ids), not undo)
    except ChroniiError as e:
        fail(str(e))
    _print_bulk(result, "Marked {count} entries as not logged" if undo else "Marked {count} entries as logged")
    if result.failed:
        ctx.exit(1)


@cli.command()
@click.option("-n", "--count", default=10, help="Number of entries to show")
@click.option("-p", "--project", help="Filter by project")
@click.option("--no-project", is_flag=True, help="Only entries without a project")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(
    ctx: click.Context,
    count: int,
    project: Optional[str],
    no_project: bool,
    as_json: bool,
) -> None:
    """List recent time entries.

    Example:
        chronii log -n 20 -p my-project
    """
    session = get_session(ctx)
    try:
        entries = session.storage.list_entries(count, 0, _project_filter(project, no_project))
    except ChroniiError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    now = now_ms()
    table = Table(title=f"Time Entries (showing {len(entries)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Task", style="bold")
    table.add_column("Project", style="blue")

    for entry in entries:
        status_icon = "▶" if entry.is_running else "■"
        table.add_row(
            str(entry.id),
            format_datetime(entry.start_time),
            format_duration(entry.duration(now)),
            f"{status_icon} {entry.task_name}",
            entry.project or "-",
        )

    console.print(table)


@cli.command()
@click.option("-n", "--count", type=int, help="Number of most recent entries to group")
@click.option("-p", "--project", help="Filter by project")
@click.option("--no-project", is_flag=True, help="Only entries without a project")
@click.option("-s", "--select", "selected_ids", type=int, multiple=True, help="Mark an entry and total the marked ones")
@click.pass_context
def history(
    ctx: click.Context,
    count: Optional[int],
    project: Optional[str],
    no_project: bool,
    selected_ids: tuple[int, ...],
) -> None:
    """Show entries grouped by week and day, with totals.

    Example:
        chronii history
        chronii history -p my-project
        chronii history -s 41 -s 42
    """
    session = get_session(ctx)
    if count:
        session.page_size = count

    try:
        view = session.set_project_filter(_project_filter(project, no_project))
    except ChroniiError as e:
        fail(str(e))

    for entry_id in selected_ids:
        session.selection.select(entry_id)
    selected = session.selected_entries()

    report = _report(ctx)
    report.history_report(view, selected=frozenset(entry.id for entry in selected))
    report.selection_report(selected, session.selection_total())


@cli.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show totals for today, this week and this month.

    Example:
        chronii summary
    """
    session = get_session(ctx)
    now = session.clock.refresh()
    try:
        # Entries started this month at the latest; five weeks covers any month
        entries = session.storage.list_entries_in_range(now - 35 * 86_400_000, now)
    except ChroniiError as e:
        fail(str(e))

    _report(ctx).summary_report(summary_totals(entries, now))


@cli.command()
@click.option("-p", "--project", help="Filter by project")
@click.option("--no-project", is_flag=True, help="Only entries without a project")
@click.pass_context
def watch(ctx: click.Context, project: Optional[str], no_project: bool) -> None:
    """Show the history and keep running totals live until Ctrl+C.

    Example:
        chronii watch
    """
    report = _report(ctx)

    async def run() -> None:
        session = get_session(ctx, scheduler=AsyncioScheduler())
        with Live(console=console, auto_refresh=False) as live:

            def render(view: HistoryView) -> None:
                live.update(report.history_renderable(view), refresh=True)

            session.subscribe(render)
            session.set_project_filter(_project_filter(project, no_project))
            try:
                while True:
                    await asyncio.sleep(3600)
            finally:
                session.close()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    except ChroniiError as e:
        fail(str(e))


@cli.command()
@click.option("--host", help="Host to bind (default from config)")
@click.option("--port", type=int, help="Port to bind (default from config)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Run the HTTP API server.

    Example:
        chronii serve --port 8080
    """
    from chronii.api.server import run_server

    cfg = get_config(ctx)
    run_server(
        host=host or cfg.get("api.host", "localhost"),
        port=port or cfg.get("api.port", 8000),
        reload=reload or cfg.get("api.advanced.reload", False),
        config=cfg,
    )


cli.add_command(config)
cli.add_command(project)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
