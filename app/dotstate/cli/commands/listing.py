"""List command.

This module provides the `dotstate list` command for showing which
files are synced through the common pool and the active profile.
"""

from typing import Annotated

import typer

from dotstate.cli.types import handle_errors, load_configured
from dotstate.core.candidates import find_candidate
from dotstate.services.sync import SyncService
from dotstate.utils.formatting import console, create_files_table, icons, print_info

app = typer.Typer(
    name="list",
    help="List synced files.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_files(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Also show dotfiles in home that are not synced.",
        ),
    ] = False,
) -> None:
    """List common and active-profile files.

    A check mark means the file is currently linked into home.

    Examples:
        dotstate list
        dotstate list -v     # Include unsynced dotfiles found in home
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_configured()
    with handle_errors():
        service = SyncService(config)

    common = list(service.manifest.common.synced_files)
    profile_files = service.synced_files()
    unsynced = []
    if verbose:
        unsynced = [e for e in service.scan_dotfiles() if not e.synced and not e.is_common]

    if not common and not profile_files and not unsynced:
        print_info("No files synced yet. Add one with 'dotstate add <path>'.")
        return

    ic = icons()
    profile = config.active_profile or "-"
    table = create_files_table(f"Synced files (profile: {profile})")

    def linked(rel: str) -> str:
        if service.engine.tracking.is_tracked(service.home / rel):
            return f"[synced]{ic.link}[/]"
        return f"[muted]{ic.file}[/]"

    def describe(rel: str) -> str:
        candidate = find_candidate(rel)
        return candidate.description if candidate is not None else ""

    for rel in common:
        table.add_row(linked(rel), rel, "[common]common[/]", describe(rel))
    for rel in profile_files:
        table.add_row(linked(rel), rel, profile, describe(rel))
    for entry in unsynced:
        table.add_row(
            f"[unsynced]{ic.cross}[/]",
            entry.relative_path,
            "[muted]not synced[/]",
            entry.description or "",
        )

    console.print(table)
    console.print(
        f"[muted]{len(common)} common, {len(profile_files)} in profile"
        + (f", {len(unsynced)} not synced" if verbose else "")
        + "[/]"
    )
