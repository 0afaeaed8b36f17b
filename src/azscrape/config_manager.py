"""Configuration management module.

This module loads collector configuration from a TOML file, environment
variables and command line overrides.

Precedence (highest first):
1. Command line options
2. Environment variables (AZSCRAPE_*)
3. Config file table [collector] (~/.azscrape/config.toml or --config)
4. Defaults

Example config.toml:

    [collector]
    scrape_interval = 300
    cache = "azblob://acct.blob.core.windows.net/azscrape/metrics.json"
    cache_tag = "v2"
    subscriptions = ["00000000-0000-0000-0000-000000000000"]
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import tomli

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_PREFIX = "AZSCRAPE_"


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class CollectorConfig:
    """Collector configuration data."""

    scrape_interval: int = 300  # seconds
    cache: str | None = None  # path, file:// or azblob:// location
    cache_tag: str | None = None
    discovery_cache_ttl: int = 1800  # seconds
    subscriptions: list[str] = field(default_factory=list)
    use_az_cli: bool = False
    storage_timeout: int | None = None  # seconds
    log_level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CollectorConfig":
        """Create from dictionary, ignoring unknown keys.

        Raises:
            ConfigError: If values are invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        config = cls(**{k: v for k, v in data.items() if k in known})
        config.validate()
        return config

    def validate(self) -> None:
        """Validate values.

        Raises:
            ConfigError: If any value is out of range or of the wrong type
        """
        for name in ("scrape_interval", "discovery_cache_ttl"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer (seconds), got {value!r}")

        if self.storage_timeout is not None and (
            isinstance(self.storage_timeout, bool)
            or not isinstance(self.storage_timeout, int)
            or self.storage_timeout <= 0
        ):
            raise ConfigError(
                f"storage_timeout must be a positive integer (seconds), got {self.storage_timeout!r}"
            )

        if not isinstance(self.subscriptions, list) or not all(
            isinstance(sub, str) for sub in self.subscriptions
        ):
            raise ConfigError(f"subscriptions must be a list of strings, got {self.subscriptions!r}")

        for name in ("cache", "cache_tag"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {value!r}")

        if not isinstance(self.use_az_cli, bool):
            raise ConfigError(f"use_az_cli must be a boolean, got {self.use_az_cli!r}")

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        self.log_level = self.log_level.upper()


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {value!r}") from e


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Load azscrape collector configuration.

    Configuration is read from ~/.azscrape/config.toml unless a custom
    path is given.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".azscrape"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file

        Raises:
            ConfigError: If a custom path does not exist
        """
        if custom_path:
            path = Path(custom_path).expanduser().resolve()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> CollectorConfig:
        """Load configuration from file.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            CollectorConfig object

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return CollectorConfig()

        try:
            with open(config_path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config {config_path}: {e}") from e

        section = data.get("collector", {})
        if not isinstance(section, dict):
            raise ConfigError(f"[collector] in {config_path} must be a table")

        logger.debug(f"Loaded config from: {config_path}")
        return CollectorConfig.from_dict(section)

    @classmethod
    def env_overrides(cls, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
        """Read AZSCRAPE_* environment overrides.

        Raises:
            ConfigError: If a numeric variable is not an integer
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        for name in ("cache", "cache_tag", "log_level"):
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value:
                overrides[name] = value

        for name in ("scrape_interval", "discovery_cache_ttl", "storage_timeout"):
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value:
                overrides[name] = _parse_int(name, value)

        subscriptions = environ.get(f"{ENV_PREFIX}SUBSCRIPTIONS")
        if subscriptions:
            overrides["subscriptions"] = [s.strip() for s in subscriptions.split(",") if s.strip()]

        use_az_cli = environ.get(f"{ENV_PREFIX}USE_AZ_CLI")
        if use_az_cli:
            overrides["use_az_cli"] = _parse_bool(use_az_cli)

        return overrides

    @classmethod
    def resolve(
        cls,
        custom_path: str | None = None,
        environ: Mapping[str, str] | None = None,
        **cli_values: Any,
    ) -> CollectorConfig:
        """Merge file, environment and CLI values.

        Args:
            custom_path: Custom config file path (optional)
            environ: Environment mapping (default: os.environ)
            **cli_values: CLI overrides; None values are ignored

        Returns:
            Validated CollectorConfig

        Raises:
            ConfigError: If any source holds invalid values
        """
        config = cls.load_config(custom_path)

        overrides = cls.env_overrides(environ)
        overrides.update({k: v for k, v in cli_values.items() if v is not None})

        config = replace(config, **overrides)
        config.validate()
        return config


__all__ = ["CollectorConfig", "ConfigError", "ConfigManager"]
