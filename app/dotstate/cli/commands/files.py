"""Add and remove commands.

This module provides `dotstate add` and `dotstate remove`, which start
and stop syncing single files for the active profile or the common pool.
"""

from typing import Annotated

import typer

from dotstate.cli.types import (
    handle_errors,
    load_configured,
    report_outcome,
    require_activated,
)
from dotstate.core.candidates import is_custom_file
from dotstate.core.config import save_config
from dotstate.services.sync import SyncService


def add(
    path: Annotated[
        str,
        typer.Argument(help="File or directory to sync (absolute, ~/..., or home-relative)."),
    ],
    common: Annotated[
        bool,
        typer.Option(
            "--common",
            "-c",
            help="Sync through the common pool shared by every profile.",
        ),
    ] = False,
) -> None:
    """Start syncing a file or directory.

    The content is copied into the storage repository and the original
    is replaced by a symlink to it.

    Examples:
        dotstate add ~/.zshrc
        dotstate add .config/nvim --common
    """
    config = load_configured()
    require_activated(config, "adding files")
    with handle_errors():
        service = SyncService(config)
        outcome = service.add(path, common=common)

    scope = "common" if common else config.active_profile
    report_outcome(outcome, f"Synced {outcome.relative_path} ({scope})")

    if outcome.success and is_custom_file(outcome.relative_path):
        if config.add_custom_file(outcome.relative_path):
            with handle_errors():
                save_config(config)


def remove(
    relative_path: Annotated[
        str,
        typer.Argument(help="Home-relative path of the synced file."),
    ],
    common: Annotated[
        bool,
        typer.Option(
            "--common",
            "-c",
            help="Remove from the common pool instead of the active profile.",
        ),
    ] = False,
) -> None:
    """Stop syncing a file.

    The symlink in home is replaced by a regular copy of the file and the
    repository copy is deleted.

    Examples:
        dotstate remove .zshrc
        dotstate remove .config/nvim --common
    """
    config = load_configured()
    require_activated(config, "removing files")
    with handle_errors():
        service = SyncService(config)
        outcome = service.remove(relative_path, common=common)

    report_outcome(outcome, f"Stopped syncing {outcome.relative_path}")
