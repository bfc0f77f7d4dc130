"""FastAPI dependencies: settings, storage, tracker and history session.

Each request builds its own tracker over the configured data directory, so
the CSV files stay the only shared state between requests.
"""

from typing import Any, Optional

from fastapi import Depends, Query, Request  # type: ignore[import-untyped]

from chronii.core.config import ConfigManager
from chronii.core.session import TrackerSession
from chronii.core.storage import ALL_PROJECTS, StorageManager
from chronii.core.tracker import TimeTracker


def get_config(request: Request) -> ConfigManager:
    """Settings the app was created with (``app.state.config``)."""
    config: ConfigManager = request.app.state.config
    return config


def get_storage(config: ConfigManager = Depends(get_config)) -> StorageManager:
    return StorageManager(config.data_dir)


def get_tracker(
    config: ConfigManager = Depends(get_config),
    storage: StorageManager = Depends(get_storage),
) -> TimeTracker:
    """Tracker honoring ``tracking.empty_task_name``."""
    return TimeTracker(storage, substitute_untitled=config.substitute_untitled)


def get_session(
    config: ConfigManager = Depends(get_config),
    tracker: TimeTracker = Depends(get_tracker),
) -> TrackerSession:
    """Non-ticking session; the clock is read once per request."""
    return TrackerSession(tracker=tracker, page_size=config.page_size)


def project_filter(
    project: Optional[str] = Query(None, description="Only entries of this project"),
    no_project: bool = Query(False, description="Only entries without a project"),
) -> Any:
    """Translate query parameters into a storage project filter."""
    if no_project:
        return None
    return project if project else ALL_PROJECTS
