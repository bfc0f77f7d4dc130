"""Error types raised by the tracking core."""


class ChroniiError(Exception):
    """Base class for all tracking errors."""

    pass


class ValidationError(ChroniiError):
    """Malformed mutation input (empty name, inverted interval, ...)."""

    pass


class NotFoundError(ChroniiError):
    """An operation referenced an entry id that does not exist."""

    def __init__(self, entry_id: int):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class StorageError(ChroniiError):
    """The persistence layer failed to read or write."""

    pass


class ConfigError(ChroniiError, ValueError):
    """The configuration file is unreadable or fails schema validation."""

    pass
