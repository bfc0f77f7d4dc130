"""``chronii config``: inspect and change settings."""

import json
from typing import Any

import click  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from chronii.cli.common import console, fail, get_config
from chronii.core.config import DEFAULTS
from chronii.core.errors import ConfigError

_MISSING = object()


def convert_value(value: str) -> Any:
    """Convert a command-line string to a bool, None, int or float where it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def _default(key: str) -> Any:
    node: Any = DEFAULTS
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


@click.group()  # type: ignore[misc]
def config() -> None:
    """Inspect and change settings (~/.chronii/config.yml by default)."""


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show every setting; changed values are marked with *.

    Example:
        chronii config show
        chronii config show --json
    """
    cfg = get_config(ctx)

    if as_json:
        click.echo(json.dumps(cfg.to_dict(), indent=2))
        return

    table = Table(title="Chronii Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("", style="yellow")

    for key in cfg.keys():
        value = cfg.get(key)
        table.add_row(key, str(value), "" if value == _default(key) else "*")

    console.print(table)
    console.print(f"\nConfig file: {cfg.config_path}")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Print one value; sections print as JSON.

    Example:
        chronii config get history.page_size
        chronii config get api.cors
    """
    value = get_config(ctx).get(key)
    if value is None:
        fail(f"Configuration key '{key}' not found")

    click.echo(json.dumps(value, indent=2) if isinstance(value, (dict, list)) else str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one value. true/false, null and numbers are converted.

    Example:
        chronii config set history.page_size 100
        chronii config set tracking.empty_task_name untitled
        chronii config set clock.tick_seconds 0.5
    """
    converted = convert_value(value)
    try:
        get_config(ctx).set(key, converted)
    except ConfigError as e:
        fail(str(e))
    console.print(f"[green]✓[/green] Set {key} = {converted}")


@config.command("edit")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_edit(ctx: click.Context) -> None:
    """Open the config file in $EDITOR, then validate it.

    Example:
        chronii config edit
    """
    cfg = get_config(ctx)
    click.edit(filename=str(cfg.config_path))

    try:
        cfg.load()
    except ConfigError as e:
        fail(str(e))
    console.print("[green]✓[/green] Configuration is valid")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Restore all defaults, keeping a backup of the current file.

    Example:
        chronii config reset --yes
    """
    if not yes and not click.confirm("Reset all settings to defaults?"):
        console.print("Cancelled")
        return

    backup = get_config(ctx).reset()
    if backup is not None:
        console.print(f"Backed up current config to {backup}")
    console.print("[green]✓[/green] Configuration reset to defaults")


@config.command("validate")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_validate(ctx: click.Context) -> None:
    """Check the loaded settings against the schema."""
    try:
        get_config(ctx).validate()
    except ConfigError as e:
        fail(str(e))
    console.print("[green]✓[/green] Configuration is valid")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Print the config file location."""
    click.echo(str(get_config(ctx).config_path))
