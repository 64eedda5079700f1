"""Profile commands.

This module provides `dotstate profiles`, which lists, creates, renames,
deletes and switches profiles. Switching changes which files are linked
into home; the other commands only touch the repository, except a rename
of the active profile, which re-points its links.
"""

from typing import Annotated

import typer

from dotstate.cli.display import create_profiles_table, print_switch_preview, print_switch_report
from dotstate.cli.types import handle_errors, load_configured
from dotstate.core.config import save_config
from dotstate.models.config import Config
from dotstate.services.profiles import ProfileService
from dotstate.utils.formatting import console, print_info, print_success, print_warning

app = typer.Typer(
    help="Manage profiles.",
    no_args_is_help=True,
)


def _service(config: Config) -> ProfileService:
    with handle_errors():
        return ProfileService(config.repo_path, backup_enabled=config.backup_enabled)


@app.command("list")
def list_profiles() -> None:
    """List profiles; the active one is highlighted."""
    config = load_configured()
    service = _service(config)
    profiles = service.list_profiles()
    if not profiles:
        print_info("No profiles yet. Create one with 'dotstate profiles create <name>'.")
        return
    console.print(create_profiles_table(profiles, config.active_profile, config.profile_activated))


@app.command("create")
def create_profile(
    name: Annotated[str, typer.Argument(help="Profile name.")],
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Short description."),
    ] = None,
    copy_from: Annotated[
        str | None,
        typer.Option("--copy-from", help="Existing profile whose files are copied."),
    ] = None,
) -> None:
    """Create a profile.

    The name is cleaned up first: whitespace becomes '-' and other
    unsupported characters become '_'.

    Examples:
        dotstate profiles create work
        dotstate profiles create laptop --copy-from work
    """
    config = load_configured()
    service = _service(config)
    with handle_errors():
        created = service.create(name, description, copy_from)

    if created != name:
        print_info(f"Profile name normalised to '{created}'")
    if not config.active_profile:
        config.active_profile = created
        with handle_errors():
            save_config(config)
        print_info("Selected as the active profile. Run 'dotstate activate' to link it.")
    print_success(f"Created profile '{created}'")


@app.command("rename")
def rename_profile(
    old_name: Annotated[str, typer.Argument(help="Current profile name.")],
    new_name: Annotated[str, typer.Argument(help="New profile name.")],
) -> None:
    """Rename a profile (its live links are re-pointed if it is active)."""
    config = load_configured()
    service = _service(config)
    is_active = old_name == config.active_profile
    with handle_errors():
        renamed = service.rename(
            old_name, new_name, is_active=is_active and config.profile_activated
        )

    if is_active:
        config.active_profile = renamed
        with handle_errors():
            save_config(config)
    print_success(f"Renamed profile '{old_name}' to '{renamed}'")


@app.command("delete")
def delete_profile(
    name: Annotated[str, typer.Argument(help="Profile to delete.")],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
) -> None:
    """Delete a profile and its files from the repository.

    The active profile cannot be deleted; switch away from it first.
    """
    config = load_configured()
    service = _service(config)
    if name != config.active_profile:
        print_warning(f"This deletes every file stored for profile '{name}' in the repository.")
        if not yes and not typer.confirm(f"Delete profile '{name}'?"):
            print_info("Cancelled.")
            return
    with handle_errors():
        service.delete(name, config.active_profile or None)
    print_success(f"Deleted profile '{name}'")


@app.command("switch")
def switch_profile(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Profile to switch to.")],
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without touching home.",
        ),
    ] = False,
) -> None:
    """Switch the files linked into home to another profile.

    If the new profile cannot be activated, the previous one is restored.

    Examples:
        dotstate profiles switch work
        dotstate profiles switch personal --dry-run
    """
    config = load_configured()
    service = _service(config)
    old = config.active_profile if config.profile_activated else None

    if dry_run:
        with handle_errors():
            preview = service.preview_switch(old, name)
        print_switch_preview(preview)
        print_info("[dry-run] No changes made.")
        return

    with handle_errors():
        result = service.switch(old, name)

    if result.report is None:
        print_info(f"Profile '{name}' is already active.")
        return

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    print_switch_report(result.report, verbose=verbose)

    # The ledger records which profile's links are actually live.
    live = service.engine.tracking.active_profile
    config.active_profile = live or name
    config.profile_activated = bool(live)
    with handle_errors():
        save_config(config)

    if not result.success:
        raise typer.Exit(code=1)
    if result.packages:
        print_info(
            f"Profile '{name}' expects {len(result.packages)} package(s). "
            "Run 'dotstate packages check' to see what is missing."
        )
    print_success(f"Switched to profile '{name}'")
