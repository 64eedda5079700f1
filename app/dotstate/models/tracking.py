"""Symlink tracking ledger models.

The ledger is the authoritative record of which symlinks dotstate
created. It is stored as JSON in the config directory and is never
shared between machines.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

TRACKING_VERSION = 1


class TrackedSymlink(BaseModel):
    """A symlink dotstate placed in the home directory.

    Attributes:
        target: Absolute path of the symlink in home.
        source: Absolute path in the repository the symlink points to.
        created_at: When the symlink was created (UTC).
        backup: Absolute path of the backup taken before replacing the target.
    """

    model_config = ConfigDict(extra="forbid")

    target: Annotated[Path, Field(description="Symlink location in home")]
    source: Annotated[Path, Field(description="Repository path the link points to")]
    created_at: Annotated[
        datetime,
        Field(default_factory=lambda: datetime.now(UTC), description="Creation time"),
    ]
    backup: Annotated[Path | None, Field(description="Backup of the replaced target")] = None

    def is_under(self, directory: Path) -> bool:
        """Check whether this entry's source lives under ``directory``."""
        return self.source.is_relative_to(directory)


class SymlinkTracking(BaseModel):
    """The persisted tracking ledger.

    Attributes:
        version: Ledger schema version.
        active_profile: Profile the ledger last activated ("" when none).
        symlinks: Tracked symlinks in creation order.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[int, Field(description="Ledger schema version")] = TRACKING_VERSION
    active_profile: Annotated[str, Field(description="Last activated profile")] = ""
    symlinks: Annotated[
        list[TrackedSymlink],
        Field(default_factory=list, description="Tracked symlinks"),
    ]
