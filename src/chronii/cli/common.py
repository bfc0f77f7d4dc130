"""Helpers shared by CLI command modules."""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]

from chronii.core.clock import Clock, Scheduler
from chronii.core.config import ConfigManager
from chronii.core.errors import ConfigError
from chronii.core.session import TrackerSession
from chronii.core.storage import StorageManager
from chronii.core.tracker import TimeTracker

console = Console()
error_console = Console(stderr=True)


def get_config(ctx: click.Context) -> ConfigManager:
    """Get the configuration for this invocation (loaded once per context)."""
    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        config_path = obj.get("config_path")
        try:
            obj["config"] = ConfigManager(Path(config_path) if config_path else None)
        except ConfigError as e:
            # The bad file was moved aside; the rewritten defaults load cleanly
            error_console.print(f"[yellow]Warning:[/yellow] {e}")
            obj["config"] = ConfigManager(Path(config_path) if config_path else None)
    config: ConfigManager = obj["config"]
    return config


def get_data_dir(ctx: click.Context) -> Path:
    data_dir: Optional[str] = ctx.ensure_object(dict).get("data_dir")
    if data_dir:
        return Path(data_dir)
    return get_config(ctx).data_dir


def get_tracker(ctx: click.Context) -> TimeTracker:
    """Get TimeTracker over the configured data directory."""
    config = get_config(ctx)
    return TimeTracker(
        StorageManager(get_data_dir(ctx)),
        substitute_untitled=config.substitute_untitled,
    )


def get_session(ctx: click.Context, scheduler: Optional[Scheduler] = None) -> TrackerSession:
    """Get a session; pass a scheduler for live views that tick."""
    config = get_config(ctx)
    clock = Clock(scheduler=scheduler, interval=config.tick_seconds)
    tracker = get_tracker(ctx)
    tracker.time_source = clock.time_source
    return TrackerSession(
        clock=clock,
        tracker=tracker,
        page_size=config.page_size,
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)
