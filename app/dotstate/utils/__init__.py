"""Utility modules for dotstate.

This module exports commonly used utility functions.
"""

from dotstate.utils.formatting import (
    console,
    create_files_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from dotstate.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "create_files_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
