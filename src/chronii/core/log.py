"""Logging setup shared by the CLI and the API server."""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Also append records to this file when given
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    # Re-running setup replaces our handlers instead of stacking them
    for handler in list(root_logger.handlers):
        if getattr(handler, "_chronii", False):
            root_logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler._chronii = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)
