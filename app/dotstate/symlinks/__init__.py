"""Symlink placement and removal.

This package provides the SymlinkEngine and the result types of its
single and batch operations.
"""

from dotstate.symlinks.engine import SymlinkEngine
from dotstate.symlinks.models import (
    BatchReport,
    OperationKind,
    OperationStatus,
    RemoveMode,
    SwitchPreview,
    SwitchReport,
    SymlinkOperation,
)

__all__ = [
    "BatchReport",
    "OperationKind",
    "OperationStatus",
    "RemoveMode",
    "SwitchPreview",
    "SwitchReport",
    "SymlinkEngine",
    "SymlinkOperation",
]
