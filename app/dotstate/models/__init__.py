"""Data models for dotstate.

This module exports the persisted data models.
"""

from dotstate.models.config import Config, GitHubConfig
from dotstate.models.manifest import (
    CommonSection,
    Package,
    PackageManager,
    ProfileInfo,
    ProfileManifest,
)
from dotstate.models.tracking import SymlinkTracking, TrackedSymlink

__all__ = [
    "CommonSection",
    "Config",
    "GitHubConfig",
    "Package",
    "PackageManager",
    "ProfileInfo",
    "ProfileManifest",
    "SymlinkTracking",
    "TrackedSymlink",
]
