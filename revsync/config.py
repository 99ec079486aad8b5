"""Configuration loading for revsync."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .hashing import DEFAULT_ALGORITHM, Hasher


@dataclass
class HashingConfig:
    algorithm: str = DEFAULT_ALGORITHM

    def build_hasher(self) -> Hasher:
        return Hasher(self.algorithm)


@dataclass
class StoreConfig:
    """Configuration for the change record store."""

    db_path: str = "~/.revsync/changes.db"


@dataclass
class LoggingConfig:
    level: str = "info"  # "warning", "info" or "debug"
    json: bool = False


@dataclass
class Config:
    hashing: HashingConfig = field(default_factory=HashingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with REVSYNC_ prefix."""
    return os.environ.get(f"REVSYNC_{key}", default)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    if algorithm := _get_env("HASH_ALGORITHM"):
        config.hashing.algorithm = algorithm

    if db_path := _get_env("DB_PATH"):
        config.store.db_path = db_path

    if level := _get_env("LOG_LEVEL"):
        config.logging.level = level.lower()
    if json_output := _get_env("LOG_JSON"):
        config.logging.json = _parse_bool(json_output)

    return config


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None or missing, defaults
            are used.

    Returns:
        Loaded Config object.

    Raises:
        ConfigError: If the file is not valid YAML or has a bad layout.
    """
    config = Config()

    if config_path:
        path = Path(config_path).expanduser()
        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e

            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")

            # Parse hashing config
            if "hashing" in data:
                hashing_data = _section(data, "hashing")
                config.hashing = HashingConfig(
                    algorithm=hashing_data.get("algorithm", config.hashing.algorithm),
                )

            # Parse store config
            if "store" in data:
                store_data = _section(data, "store")
                config.store = StoreConfig(
                    db_path=store_data.get("db_path", config.store.db_path),
                )

            # Parse logging config
            if "logging" in data:
                logging_data = _section(data, "logging")
                config.logging = LoggingConfig(
                    level=str(logging_data.get("level", config.logging.level)).lower(),
                    json=_parse_bool(logging_data.get("json", config.logging.json)),
                )

    return _apply_env_overrides(config)
