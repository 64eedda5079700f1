"""CLI commands for dotstate.

This package contains all subcommand implementations.
"""

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

__all__ = [
    "activate",
    "doctor",
    "files",
    "init",
    "listing",
    "packages",
    "paths",
    "profiles",
    "sync",
]
