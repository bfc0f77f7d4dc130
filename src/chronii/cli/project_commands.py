"""CLI commands for managing projects."""

import json
from typing import Optional

import click  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from chronii.cli.common import console, fail, get_session, get_tracker
from chronii.core.errors import ChroniiError


@click.group()  # type: ignore[misc]
def project() -> None:
    """Manage projects.

    A project is a label on entries; renaming or deleting one applies to
    every entry that carries it.
    """
    pass


@project.command("list")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def project_list(ctx: click.Context, as_json: bool) -> None:
    """List projects with their entry counts.

    Example:
        chronii project list
    """
    tracker = get_tracker(ctx)
    try:
        rows = [(name, tracker.count_by_project(name)) for name in tracker.list_projects()]
        unassigned = tracker.count_by_project(None)
    except ChroniiError as e:
        fail(str(e))

    if as_json:
        data = [{"name": name, "entry_count": count} for name, count in rows]
        click.echo(json.dumps({"projects": data, "without_project": unassigned}, indent=2))
        return

    if not rows:
        console.print("[yellow]No projects found[/yellow]")
        console.print("\nCreate one with: [cyan]chronii project create NAME[/cyan]")
        return

    table = Table(title="Projects")
    table.add_column("Name", style="cyan")
    table.add_column("Entries", justify="right")
    for name, count in rows:
        table.add_row(name, str(count))
    if unassigned:
        table.add_row("[dim](no project)[/dim]", str(unassigned))
    console.print(table)


@project.command("create")  # type: ignore[misc]
@click.argument("name")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def project_create(ctx: click.Context, name: str) -> None:
    """Declare a project before any entry uses it.

    Example:
        chronii project create chronii
    """
    try:
        created = get_tracker(ctx).create_project(name)
    except ChroniiError as e:
        fail(str(e))
    console.print(f"[green]✓[/green] Created project: {created}")


@project.command("rename")  # type: ignore[misc]
@click.argument("old_name")  # type: ignore[misc]
@click.argument("new_name")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def project_rename(ctx: click.Context, old_name: str, new_name: str) -> None:
    """Rename a project on every entry.

    Example:
        chronii project rename old-name new-name
    """
    session = get_session(ctx)
    try:
        count = session.rename_project(old_name, new_name)
    except ChroniiError as e:
        fail(str(e))
    console.print(f"[green]✓[/green] Renamed {old_name} → {new_name} ({count} entries)")


@project.command("delete")  # type: ignore[misc]
@click.argument("name", required=False)  # type: ignore[misc]
@click.option("--none", "no_project", is_flag=True, help="Delete entries without a project")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def project_delete(ctx: click.Context, name: Optional[str], no_project: bool, yes: bool) -> None:
    """Delete a project together with all of its entries.

    Example:
        chronii project delete old-project
        chronii project delete --none --yes
    """
    if bool(name) == no_project:
        fail("Give a project name or --none")

    session = get_session(ctx)
    label = name if name else "(no project)"
    try:
        count = session.tracker.count_by_project(name)
    except ChroniiError as e:
        fail(str(e))

    if not yes:
        console.print(f"[yellow]Warning:[/yellow] This deletes {count} entries in {label}.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    try:
        deleted = session.delete_project(name)
    except ChroniiError as e:
        fail(str(e))
    console.print(f"[green]✓[/green] Deleted {label} ({deleted} entries)")


@project.command("count")  # type: ignore[misc]
@click.argument("name", required=False)  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def project_count(ctx: click.Context, name: Optional[str]) -> None:
    """Count entries in a project (without NAME: entries without a project).

    Example:
        chronii project count chronii
    """
    try:
        count = get_tracker(ctx).count_by_project(name)
    except ChroniiError as e:
        fail(str(e))
    click.echo(str(count))
