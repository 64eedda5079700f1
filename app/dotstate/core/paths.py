"""Path management for dotstate.

This module resolves every location dotstate reads or writes:

- Home: the OS home directory
- Config: ~/.config/dotstate/ (config.toml, symlinks.json)
- Backups: ~/.local/share/dotstate/backups/
- Repository: configured storage repo, one directory per profile plus common/

Tests redirect these locations through explicit environment variables
instead of patching module globals.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "dotstate"

# Environment overrides used by the test-suite
HOME_OVERRIDE_ENV = "DOTSTATE_TEST_HOME"
CONFIG_DIR_OVERRIDE_ENV = "DOTSTATE_TEST_CONFIG_DIR"
BACKUP_DIR_OVERRIDE_ENV = "DOTSTATE_TEST_BACKUP_DIR"

CONFIG_FILENAME = "config.toml"
TRACKING_FILENAME = "symlinks.json"
MANIFEST_FILENAME = ".dotstate-profiles.toml"
LOG_FILENAME = "dotstate.log"
COMMON_DIR_NAME = "common"


def _env_path(env_var: str) -> Path | None:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return None


def get_home_dir() -> Path:
    """Get the home directory.

    Returns:
        DOTSTATE_TEST_HOME when set, otherwise the OS home directory.
    """
    override = _env_path(HOME_OVERRIDE_ENV)
    if override is not None:
        return override
    return Path.home()


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/dotstate/ (or DOTSTATE_TEST_CONFIG_DIR).
    """
    override = _env_path(CONFIG_DIR_OVERRIDE_ENV)
    if override is not None:
        return override
    return get_home_dir() / ".config" / APP_NAME


def get_data_dir() -> Path:
    """Get the data directory path.

    Returns:
        Path to ~/.local/share/dotstate/.
    """
    return get_home_dir() / ".local" / "share" / APP_NAME


def get_backup_dir() -> Path:
    """Get the backup root directory.

    Each backup session creates a timestamped subdirectory here.

    Returns:
        Path to ~/.local/share/dotstate/backups/ (or DOTSTATE_TEST_BACKUP_DIR).
    """
    override = _env_path(BACKUP_DIR_OVERRIDE_ENV)
    if override is not None:
        return override
    return get_data_dir() / "backups"


def get_config_path() -> Path:
    """Get the local config file path.

    Returns:
        Path to ~/.config/dotstate/config.toml.
    """
    return get_config_dir() / CONFIG_FILENAME


def get_tracking_path(config_dir: Path | None = None) -> Path:
    """Get the symlink tracking ledger path.

    Args:
        config_dir: Optional override for the config directory.

    Returns:
        Path to ~/.config/dotstate/symlinks.json.
    """
    return (config_dir or get_config_dir()) / TRACKING_FILENAME


def get_log_path() -> Path:
    """Get the log file path.

    Returns:
        Path to ~/.local/share/dotstate/dotstate.log.
    """
    return get_data_dir() / LOG_FILENAME


def get_default_repo_path() -> Path:
    """Get the default storage repository location."""
    return get_config_dir() / "storage"


def get_manifest_path(repo_path: Path) -> Path:
    """Get the profile manifest path inside a repository."""
    return repo_path / MANIFEST_FILENAME


def get_profile_dir(repo_path: Path, profile_name: str) -> Path:
    """Get the directory holding a profile's files."""
    return repo_path / profile_name


def get_common_dir(repo_path: Path) -> Path:
    """Get the directory holding the common pool."""
    return repo_path / COMMON_DIR_NAME


def normalize_relative_path(path: str) -> str:
    """Normalise a home-relative path.

    Leading ``./`` segments are stripped and backslashes are rewritten to
    forward slashes. Unicode is left untouched.

    Args:
        path: Home-relative path as typed or stored.

    Returns:
        Normalised home-relative path.
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def expand_path(path_str: str) -> Path:
    """Expand a user supplied path.

    Handles ``~``, ``~/...``, absolute paths, and paths relative to home.

    Args:
        path_str: Path string as supplied by the user.

    Returns:
        Absolute path.
    """
    home = get_home_dir()
    if path_str == "~":
        return home
    if path_str.startswith("~/"):
        return home / path_str[2:]
    if path_str.startswith("/"):
        return Path(path_str)
    return home / normalize_relative_path(path_str)


def relative_to_home(path: Path, home: Path | None = None) -> str | None:
    """Compute the home-relative form of an absolute path.

    Args:
        path: Absolute path.
        home: Optional override for the home directory.

    Returns:
        Normalised relative path, or None when ``path`` is outside home
        or is home itself.
    """
    try:
        relative = path.relative_to(home if home is not None else get_home_dir())
    except ValueError:
        return None
    rel = relative.as_posix()
    if rel in ("", "."):
        return None
    return normalize_relative_path(rel)


def format_path_for_display(path: Path) -> str:
    """Format a path for display, showing ``~`` for home."""
    home = get_home_dir()
    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)
    if str(relative) == ".":
        return "~"
    return f"~/{relative.as_posix()}"


def ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
