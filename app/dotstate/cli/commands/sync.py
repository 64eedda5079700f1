"""Sync command.

This module provides the `dotstate sync` command, which commits local
changes, pulls with rebase, pushes, and links any files the pull brought
in.
"""

from typing import Annotated

import typer

from dotstate.cli.display import print_batch_report
from dotstate.cli.types import handle_errors, load_configured
from dotstate.services.remote import RemoteSyncService
from dotstate.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    name="sync",
    help="Sync the storage repository with its remote.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def sync(
    ctx: typer.Context,
    message: Annotated[
        str | None,
        typer.Option(
            "--message",
            "-m",
            help="Commit message (generated from the changes if omitted).",
        ),
    ] = None,
) -> None:
    """Commit, pull, push, then link new files.

    Local changes are committed first so the rebase never meets a dirty
    tree. After a successful push, any profile or common files that
    arrived with the pull are linked into home; existing links are left
    alone.

    Examples:
        dotstate sync
        dotstate sync -m "Add tmux config"
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_configured()
    with handle_errors(), console.status("Syncing with remote..."):
        result = RemoteSyncService(config).sync(message)

    if not result.success:
        print_error(result.message)
        raise typer.Exit(code=1)

    if result.committed:
        print_info("Committed local changes.")
    if result.pulled_count:
        print_info(f"Pulled {result.pulled_count} commit(s) from remote.")
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    for report in result.reports:
        if report.operations and (verbose or report.created or report.has_errors):
            print_batch_report(report, verbose=verbose)
    for warning in result.warnings:
        print_warning(warning)

    print_success(f"Synced with remote ({result.branch}).")
