"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer

from dotstate import __version__
from dotstate.cli.commands import (
    activate,
    doctor,
    files,
    init,
    listing,
    packages,
    paths,
    profiles,
    sync,
)
from dotstate.core.config import load_or_default
from dotstate.core.errors import DotstateError
from dotstate.utils.formatting import set_icon_set
from dotstate.utils.logger import setup_logging

logger = logging.getLogger(__name__)

# Create main Typer app
app = typer.Typer(
    name="dotstate",
    help="Profile-based dotfile manager.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dotstate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """dotstate - profile-based dotfile manager.

    Keep your dotfiles in a git repository and link them into home,
    one profile at a time.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    setup_logging(verbose=verbose, quiet=quiet)
    try:
        set_icon_set(load_or_default().effective_icon_set())
    except DotstateError as e:
        # Commands that need the config report the problem themselves.
        logger.debug("Could not read icon preference: %s", e)


# Register commands
app.add_typer(init.app, name="init")
app.add_typer(sync.app, name="sync")
app.add_typer(listing.app, name="list")
app.command(name="add")(files.add)
app.command(name="remove")(files.remove)
app.add_typer(activate.activate_app, name="activate")
app.add_typer(activate.deactivate_app, name="deactivate")
app.add_typer(profiles.app, name="profiles")
app.add_typer(packages.app, name="packages")
app.add_typer(doctor.app, name="doctor")
app.add_typer(paths.logs_app, name="logs")
app.add_typer(paths.config_app, name="config")
app.add_typer(paths.repository_app, name="repository")


if __name__ == "__main__":
    app()
