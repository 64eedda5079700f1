"""Local config file I/O.

Configuration is stored in ~/.config/dotstate/config.toml with mode
0600 because it may hold a GitHub token.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from dotstate.core.errors import MalformedStoreError, NotConfiguredError, StorageIOError
from dotstate.core.paths import get_config_path
from dotstate.models.config import Config
from dotstate.utils.fileops import atomic_write

logger = logging.getLogger(__name__)

CONFIG_FILE_MODE = 0o600


class ConfigError(MalformedStoreError):
    """Raised when the config file cannot be parsed or validated."""


class ConfigNotFoundError(NotConfiguredError):
    """Raised when the config file does not exist."""


def load_config(path: Path | None = None) -> Config:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated Config object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigError: If the TOML syntax or content is invalid.
        StorageIOError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise StorageIOError.from_os_error("Failed to read config", e) from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_or_default(path: Path | None = None) -> Config:
    """Load configuration, falling back to defaults when the file is missing."""
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return Config()


def save_config(config: Config, path: Path | None = None) -> Path:
    """Save configuration atomically with mode 0600.

    Args:
        config: The Config object to save.
        path: Path to save to. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        StorageIOError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data = _config_to_dict(config)
    try:
        atomic_write(config_path, tomli_w.dumps(data).encode("utf-8"), mode=CONFIG_FILE_MODE)
    except OSError as e:
        raise StorageIOError.from_os_error("Failed to write config", e) from e
    return config_path


def require_configured(config: Config) -> None:
    """Ensure a storage repository exists.

    Raises:
        NotConfiguredError: If ``config.repo_path`` is not a directory.
    """
    if not config.is_configured:
        raise NotConfiguredError(
            f"No storage repository at {config.repo_path}. Run 'dotstate init' first."
        )


def _config_to_dict(config: Config) -> dict[str, Any]:
    """Convert a Config to a TOML-ready dictionary (no None values)."""
    data = config.model_dump(mode="json", exclude_none=True)
    if config.github is not None:
        data["github"] = config.github.model_dump(mode="json", exclude_none=True)
    return data
