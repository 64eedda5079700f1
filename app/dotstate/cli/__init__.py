"""CLI package for dotstate.

This package contains the Typer application and all subcommands.
"""

from dotstate.cli.main import app

__all__ = ["app"]
