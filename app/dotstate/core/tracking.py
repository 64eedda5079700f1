"""Symlink tracking ledger persistence.

This module provides the TrackingStore class, which owns the in-memory
ledger of symlinks dotstate created and persists it as JSON in the
config directory.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from dotstate.core.errors import MalformedStoreError, StorageIOError
from dotstate.core.paths import get_config_dir, get_tracking_path
from dotstate.models.tracking import SymlinkTracking, TrackedSymlink
from dotstate.utils.fileops import atomic_write

logger = logging.getLogger(__name__)


class TrackingStore:
    """Loads, mutates and saves the symlink tracking ledger.

    Storage location: ~/.config/dotstate/symlinks.json

    Mutators append or filter entries; they never re-order them.

    Attributes:
        config_dir: Directory containing the ledger file.
        data: The loaded ledger.
    """

    def __init__(self, config_dir: Path | None = None, data: SymlinkTracking | None = None) -> None:
        """Initialize TrackingStore.

        Args:
            config_dir: Optional override for the config directory.
            data: Ledger contents; an empty ledger when None.
        """
        self._config_dir = config_dir if config_dir is not None else get_config_dir()
        self.data = data if data is not None else SymlinkTracking()

    @classmethod
    def load(cls, config_dir: Path | None = None) -> "TrackingStore":
        """Load the ledger, returning an empty one if the file is missing.

        Raises:
            MalformedStoreError: If the ledger cannot be parsed.
            StorageIOError: If the file cannot be read.
        """
        store = cls(config_dir)
        path = store.path
        if not path.exists():
            return store

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise StorageIOError.from_os_error("Failed to read tracking file", e) from e

        try:
            store.data = SymlinkTracking.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedStoreError(f"Failed to parse tracking file {path}: {e}") from e

        logger.debug("Loaded %d tracked symlink(s) from %s", len(store.data.symlinks), path)
        return store

    @property
    def path(self) -> Path:
        """Path to the ledger file."""
        return get_tracking_path(self._config_dir)

    @property
    def config_dir(self) -> Path:
        """Directory containing the ledger file."""
        return self._config_dir

    def save(self) -> None:
        """Persist the ledger atomically.

        Raises:
            StorageIOError: If the file cannot be written.
        """
        payload = self.data.model_dump_json(indent=2).encode("utf-8")
        try:
            atomic_write(self.path, payload)
        except OSError as e:
            raise StorageIOError.from_os_error("Failed to write tracking file", e) from e
        logger.debug("Tracking data saved to %s", self.path)

    # -- queries ------------------------------------------------------------

    @property
    def active_profile(self) -> str | None:
        """Profile the ledger last activated, or None."""
        return self.data.active_profile or None

    @property
    def symlinks(self) -> list[TrackedSymlink]:
        """Tracked symlinks in creation order."""
        return self.data.symlinks

    def find(self, target: Path) -> TrackedSymlink | None:
        """Get the entry tracking ``target``, or None."""
        for entry in self.data.symlinks:
            if entry.target == target:
                return entry
        return None

    def is_tracked(self, target: Path) -> bool:
        """Check whether ``target`` appears in the ledger."""
        return self.find(target) is not None

    def is_ours(self, target: Path) -> bool:
        """Check that ``target`` is a symlink on disk and appears in the ledger."""
        return target.is_symlink() and self.is_tracked(target)

    def entries_under(self, directory: Path) -> list[TrackedSymlink]:
        """Get entries whose source lives under ``directory``."""
        return [e for e in self.data.symlinks if e.is_under(directory)]

    # -- mutators -----------------------------------------------------------

    def set_active_profile(self, name: str | None) -> None:
        """Record the active profile; None clears it."""
        self.data.active_profile = name or ""

    def record(self, entry: TrackedSymlink) -> None:
        """Append an entry, replacing any existing entry for the same target in place."""
        for index, existing in enumerate(self.data.symlinks):
            if existing.target == entry.target:
                self.data.symlinks[index] = entry
                return
        self.data.symlinks.append(entry)

    def remove_target(self, target: Path) -> bool:
        """Drop the entry for ``target``. Returns True if one was removed."""
        before = len(self.data.symlinks)
        self.data.symlinks = [e for e in self.data.symlinks if e.target != target]
        return len(self.data.symlinks) < before

    def remove_where(self, predicate: Callable[[TrackedSymlink], bool]) -> list[TrackedSymlink]:
        """Drop every entry matching ``predicate`` and return them."""
        removed = [e for e in self.data.symlinks if predicate(e)]
        self.data.symlinks = [e for e in self.data.symlinks if not predicate(e)]
        return removed

    def prune_missing(self) -> list[TrackedSymlink]:
        """Drop entries whose target no longer exists on disk (not even dangling)."""
        return self.remove_where(lambda e: not e.target.is_symlink() and not e.target.exists())
