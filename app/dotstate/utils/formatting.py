"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from dotstate.core.theme import Icons, get_icons, get_theme

if TYPE_CHECKING:
    from dotstate.symlinks.models import SymlinkOperation


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

_icons: Icons | None = None


def icons() -> Icons:
    """Get the active icon set."""
    global _icons
    if _icons is None:
        _icons = get_icons()
    return _icons


def set_icon_set(configured: str) -> None:
    """Select the icon set from a config value ("auto", "nerd", "unicode", "ascii")."""
    global _icons
    _icons = get_icons(configured)


def create_files_table(title: str) -> Table:
    """Create a pre-configured table for listing synced files.

    Args:
        title: Table title.

    Returns:
        Rich Table with status, path and scope columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("", width=4, justify="center")
    table.add_column("Path", style="path", no_wrap=True)
    table.add_column("Scope", style="muted")
    table.add_column("Description", style="text", overflow="ellipsis")
    return table


def format_operation(op: SymlinkOperation) -> str:
    """Render one symlink operation as a single markup line."""
    ic = icons()
    verb = "link" if op.kind.value == "create" else "unlink"
    if op.succeeded:
        line = f"[success]{ic.check}[/] {verb} [path]{op.target}[/]"
    elif op.skipped:
        line = f"[muted]{ic.arrow} {verb} {op.target} ({op.reason})[/]"
    else:
        line = f"[error]{ic.cross}[/] {verb} [path]{op.target}[/]: {op.reason}"
    if op.backup is not None:
        line += f" [muted](backup: {op.backup})[/]"
    return line


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
