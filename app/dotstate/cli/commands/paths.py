"""Path commands.

This module provides `dotstate logs`, `dotstate config` and
`dotstate repository`, which print where dotstate keeps things so they
can be used in scripts.
"""

import typer

from dotstate.cli.types import handle_errors
from dotstate.core.config import load_or_default
from dotstate.core.paths import get_config_path, get_log_path

logs_app = typer.Typer(name="logs", help="Print the log file path.", invoke_without_command=True)
config_app = typer.Typer(
    name="config", help="Print the config file path.", invoke_without_command=True
)
repository_app = typer.Typer(
    name="repository", help="Print the storage repository path.", invoke_without_command=True
)


@logs_app.callback(invoke_without_command=True)
def logs(ctx: typer.Context) -> None:
    """Print the log file path."""
    if ctx.invoked_subcommand is None:
        typer.echo(str(get_log_path()))


@config_app.callback(invoke_without_command=True)
def config(ctx: typer.Context) -> None:
    """Print the config file path."""
    if ctx.invoked_subcommand is None:
        typer.echo(str(get_config_path()))


@repository_app.callback(invoke_without_command=True)
def repository(ctx: typer.Context) -> None:
    """Print the storage repository path."""
    if ctx.invoked_subcommand is not None:
        return
    with handle_errors():
        loaded = load_or_default()
    typer.echo(str(loaded.repo_path))
