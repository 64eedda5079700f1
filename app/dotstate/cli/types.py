"""Shared types and helpers for CLI commands.

Loading the config, mapping core errors to exit codes, and reporting
SyncOutcome values live here so every command handles them the same way.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

import typer

from dotstate.core.config import ConfigNotFoundError, load_config, require_configured
from dotstate.core.errors import DotstateError
from dotstate.core.paths import get_config_path
from dotstate.models.config import Config
from dotstate.services.sync import SyncOutcome, SyncStatus
from dotstate.symlinks.models import RemoveMode
from dotstate.utils.formatting import print_error, print_info, print_success, print_warning


class RemoveModeChoice(str, Enum):
    """What deactivation leaves behind in home."""

    RESTORE = "restore"
    REMOVE = "remove"

    def to_mode(self) -> RemoveMode:
        """Map the CLI choice to the engine's RemoveMode."""
        if self == RemoveModeChoice.REMOVE:
            return RemoveMode.REMOVE_ONLY
        return RemoveMode.RESTORE_FROM_REPO


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report any DotstateError raised in the block and exit with code 1."""
    try:
        yield
    except DotstateError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def load_configured() -> Config:
    """Load the config and make sure the storage repository exists.

    Raises:
        typer.Exit: If the config is missing or invalid, or no repository exists.
    """
    try:
        config = load_config()
    except ConfigNotFoundError as e:
        print_error(f"Config not found: {get_config_path()}")
        print_info("Run 'dotstate init' to set up a storage repository.")
        raise typer.Exit(code=1) from e
    with handle_errors():
        require_configured(config)
    return config


def require_active_profile(config: Config) -> str:
    """Get the active profile name.

    Raises:
        typer.Exit: If no profile is selected.
    """
    if not config.active_profile:
        print_error("No active profile. Create one with 'dotstate profiles create <name>'.")
        raise typer.Exit(code=1)
    return config.active_profile


def require_activated(config: Config, action: str) -> None:
    """Refuse to continue while the selected profile's symlinks are not live.

    Args:
        config: Loaded local config.
        action: What the command is about to do, for the hint line.

    Raises:
        typer.Exit: If the profile is not activated.
    """
    if config.profile_activated:
        return
    print_error("Profile is not activated. Please activate your profile first:")
    print_info("  dotstate activate")
    print_info(f"This ensures your symlinks are active before {action}.")
    raise typer.Exit(code=1)


def report_outcome(outcome: SyncOutcome, success_message: str) -> None:
    """Print a SyncOutcome and exit 1 if validation refused it.

    Already-synced and not-synced outcomes are no-ops and exit 0.
    """
    if outcome.status == SyncStatus.SUCCESS:
        print_success(success_message)
    elif outcome.status == SyncStatus.ALREADY_SYNCED:
        print_warning(outcome.message or f"'{outcome.relative_path}' is already synced")
    elif outcome.status == SyncStatus.NOT_SYNCED:
        print_warning(outcome.message or f"'{outcome.relative_path}' is not synced")
    else:
        print_error(outcome.message or "Validation failed")
        raise typer.Exit(code=1)
