"""Activate and deactivate commands.

This module provides `dotstate activate`, which links the active
profile and the common pool into home, and `dotstate deactivate`, which
takes those links down again.
"""

from typing import Annotated

import typer

from dotstate.cli.display import print_batch_report
from dotstate.cli.types import (
    RemoveModeChoice,
    handle_errors,
    load_configured,
    require_active_profile,
)
from dotstate.core.config import save_config
from dotstate.services.profiles import ProfileService
from dotstate.utils.formatting import print_info, print_success, print_warning

activate_app = typer.Typer(
    name="activate",
    help="Link the active profile into home.",
    invoke_without_command=True,
)

deactivate_app = typer.Typer(
    name="deactivate",
    help="Remove the active profile's symlinks from home.",
    invoke_without_command=True,
)


@activate_app.callback(invoke_without_command=True)
def activate(ctx: typer.Context) -> None:
    """Link the active profile's files and the common pool into home.

    Existing files that are in the way are backed up first. Activating
    twice is harmless: links that are already correct are left alone.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_configured()
    profile = require_active_profile(config)
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    with handle_errors():
        service = ProfileService(config.repo_path, backup_enabled=config.backup_enabled)
        result = service.activate(profile)
    print_batch_report(result.report, verbose=verbose)
    if result.report.aborted is not None:
        raise typer.Exit(code=1)

    config.profile_activated = True
    with handle_errors():
        save_config(config)

    if result.packages:
        print_info(
            f"Profile '{profile}' expects {len(result.packages)} package(s). "
            "Run 'dotstate packages check' to see what is missing."
        )
    if result.report.has_errors:
        raise typer.Exit(code=1)
    print_success(f"Activated profile '{profile}'")


@deactivate_app.callback(invoke_without_command=True)
def deactivate(
    ctx: typer.Context,
    mode: Annotated[
        RemoveModeChoice,
        typer.Option(
            "--mode",
            help="restore: leave a copy of each file in home; remove: delete the links only.",
            case_sensitive=False,
        ),
    ] = RemoveModeChoice.RESTORE,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
) -> None:
    """Take down the active profile's symlinks.

    By default every link is replaced with a regular copy of the file so
    home keeps working without dotstate.

    Examples:
        dotstate deactivate
        dotstate deactivate --mode remove -y
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_configured()
    if not config.profile_activated:
        print_info("No profile is active.")
        return
    profile = require_active_profile(config)

    if mode == RemoveModeChoice.REMOVE:
        print_warning("Your synced files will disappear from home (they stay in the repository).")
        if not yes and not typer.confirm("Remove the symlinks without restoring copies?"):
            print_info("Cancelled.")
            return

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    with handle_errors():
        service = ProfileService(config.repo_path, backup_enabled=config.backup_enabled)
        report = service.deactivate(profile, mode.to_mode())
    print_batch_report(report, verbose=verbose)
    if report.aborted is not None:
        raise typer.Exit(code=1)

    config.profile_activated = False
    with handle_errors():
        save_config(config)
    if report.has_errors:
        raise typer.Exit(code=1)
    print_success(f"Deactivated profile '{profile}'")
