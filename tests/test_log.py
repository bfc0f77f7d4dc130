"""Tests for logging setup."""

import logging
from pathlib import Path

from chronii.core.log import setup_logging


def _our_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, "_chronii", False)]


class TestSetupLogging:
    """Test setup_logging."""

    def teardown_method(self) -> None:
        root = logging.getLogger()
        for handler in _our_handlers():
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.WARNING)

    def test_sets_level(self) -> None:
        """Test that the root level follows the argument."""
        setup_logging("DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        """Test that handlers are replaced, not added."""
        setup_logging("INFO")
        setup_logging("INFO")

        assert len(_our_handlers()) == 1

    def test_log_file(self, temp_dir: Path) -> None:
        """Test writing records to a file."""
        log_file = temp_dir / "logs" / "chronii.log"
        setup_logging("INFO", log_file)

        logging.getLogger("chronii.test").info("hello from test")
        for handler in _our_handlers():
            handler.flush()

        content = log_file.read_text()
        assert "chronii.test - INFO - hello from test" in content
