"""Configuration management for Chronii.

Settings live in a YAML file (``~/.chronii/config.yml`` by default), are
merged over ``DEFAULTS`` and validated against ``SCHEMA`` on every load and
every change. Keys are addressed in dot notation, e.g. ``history.page_size``.
"""

import copy
import logging
import shutil
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from chronii.core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".chronii" / "config.yml"

DEFAULTS: dict[str, Any] = {
    "version": "1.0",
    "general": {"data_dir": "~/.chronii/data"},
    "history": {"page_size": 50},
    "tracking": {"empty_task_name": "reject"},
    "clock": {"tick_seconds": 1.0},
    "display": {"show_seconds": True},
    "logging": {"level": "WARNING", "file": None},
    "api": {
        "host": "localhost",
        "port": 8000,
        "cors": {
            "enabled": True,
            "origins": ["http://localhost:3000", "http://localhost:5173"],
        },
        "advanced": {"reload": False, "log_level": "info", "access_log": True},
    },
}


def _object(**properties: Any) -> dict[str, Any]:
    return {"type": "object", "properties": properties}


SCHEMA: dict[str, Any] = {
    **_object(
        version={"type": "string"},
        general=_object(data_dir={"type": "string"}),
        history=_object(page_size={"type": "integer", "minimum": 1, "maximum": 10000}),
        tracking=_object(empty_task_name={"enum": ["reject", "untitled"]}),
        clock=_object(tick_seconds={"type": "number", "exclusiveMinimum": 0, "maximum": 60}),
        display=_object(show_seconds={"type": "boolean"}),
        logging=_object(
            level={"enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
            file={"type": ["string", "null"]},
        ),
        api=_object(
            host={"type": "string"},
            port={"type": "integer", "minimum": 1, "maximum": 65535},
            cors=_object(
                enabled={"type": "boolean"},
                origins={"type": "array", "items": {"type": "string"}},
            ),
            advanced=_object(
                reload={"type": "boolean"},
                log_level={"type": "string"},
                access_log={"type": "boolean"},
            ),
        ),
    ),
    "required": ["version"],
}


def _merged(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``base`` with ``override`` merged in, section by section."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _merged(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class ConfigManager:
    """Load, query and update the YAML configuration file."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.chronii/config.yml

        Raises:
            ConfigError: If the existing file was invalid. It has been moved
                aside and defaults are in effect.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: dict[str, Any] = copy.deepcopy(DEFAULTS)
        self.load()

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_suffix(".yml.backup")

    def load(self) -> None:
        """(Re)read the file, creating it with defaults when missing.

        A file that cannot be parsed or fails validation is moved to
        ``backup_path`` and replaced with defaults before ConfigError is raised.
        """
        if not self.config_path.exists():
            self._config = copy.deepcopy(DEFAULTS)
            self.save()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ConfigError("Config file must contain a mapping")
            self._config = _merged(DEFAULTS, loaded)
            self.validate()
        except (yaml.YAMLError, ConfigError) as e:
            self.config_path.replace(self.backup_path)
            self._config = copy.deepcopy(DEFAULTS)
            self.save()
            logger.warning(f"Replaced invalid config {self.config_path} with defaults: {e}")
            raise ConfigError(
                f"Config validation failed, backed up to {self.backup_path}. "
                f"Using defaults. Error: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key; ``default`` when missing or null.

        Example:
            >>> config.get("history.page_size")
            50
        """
        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict) or value.get(part) is None:
                return default
            value = value[part]
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a value by dotted key and save.

        Raises:
            ConfigError: If the result fails validation; nothing changes
        """
        *sections, name = key.split(".")
        candidate = copy.deepcopy(self._config)
        node = candidate
        for section in sections:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[name] = value

        self._check(candidate)
        self._config = candidate
        self.save()

    @staticmethod
    def _check(config: dict[str, Any]) -> None:
        try:
            validate(instance=config, schema=SCHEMA)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e.message}") from e

    def validate(self) -> bool:
        """Validate the loaded configuration.

        Raises:
            ConfigError: If it does not match the schema
        """
        self._check(self._config)
        return True

    def save(self) -> None:
        """Write the configuration to ``config_path``."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def reset(self) -> Optional[Path]:
        """Restore defaults, keeping a copy of the current file.

        Returns:
            Backup path, or None if there was no file to back up
        """
        backup = None
        if self.config_path.exists():
            shutil.copy(self.config_path, self.backup_path)
            backup = self.backup_path
        self._config = copy.deepcopy(DEFAULTS)
        self.save()
        return backup

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def keys(self) -> list[str]:
        """All leaf keys in dot notation, in file order."""
        return list(self._iter_keys(self._config, ""))

    def _iter_keys(self, node: dict[str, Any], prefix: str) -> Iterator[str]:
        for key, value in node.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict):
                yield from self._iter_keys(value, f"{dotted}.")
            else:
                yield dotted

    # Typed settings

    @property
    def data_dir(self) -> Path:
        """Data directory with ``~`` expanded."""
        return Path(self.get("general.data_dir", DEFAULTS["general"]["data_dir"])).expanduser()

    @property
    def page_size(self) -> int:
        return int(self.get("history.page_size", DEFAULTS["history"]["page_size"]))

    @property
    def tick_seconds(self) -> float:
        return float(self.get("clock.tick_seconds", DEFAULTS["clock"]["tick_seconds"]))

    @property
    def substitute_untitled(self) -> bool:
        """Whether empty task names become "(untitled)" instead of being rejected."""
        return self.get("tracking.empty_task_name") == "untitled"

    @property
    def show_seconds(self) -> bool:
        return bool(self.get("display.show_seconds", True))

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "WARNING"))

    @property
    def log_file(self) -> Optional[Path]:
        log_file = self.get("logging.file")
        return Path(log_file).expanduser() if log_file else None
