"""Adding and removing synced files.

SyncService coordinates the manifest, the tracking ledger and the
filesystem for single-file operations. Content is always copied before
anything is deleted, so a failure part-way leaves at worst a stray copy
in the repository and never a broken file in home.

Validation failures are returned as SyncOutcome values; I/O failures
raise StorageIOError.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotstate.core.candidates import default_dotfile_paths, find_candidate
from dotstate.core.errors import (
    AlreadySyncedError,
    DotstateError,
    MissingSourceError,
    NotConfiguredError,
    StorageIOError,
    TargetOccupiedError,
    UnsafePathError,
)
from dotstate.core.manifest import load_manifest, save_manifest
from dotstate.core.paths import (
    expand_path,
    get_common_dir,
    get_profile_dir,
    normalize_relative_path,
    relative_to_home,
)
from dotstate.models.config import Config
from dotstate.models.manifest import ProfileManifest
from dotstate.services.validation import (
    check_safe_location,
    resolve_sync_source,
    validate_before_sync,
    validate_symlink_creation,
)
from dotstate.symlinks.engine import SymlinkEngine
from dotstate.symlinks.models import RemoveMode
from dotstate.utils.fileops import copy_path, lexists, move_path, remove_path

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Outcome of a sync operation.

    Attributes:
        SUCCESS: The operation completed.
        ALREADY_SYNCED: The file is already where it was being put.
        NOT_SYNCED: The file is not synced where it was being taken from.
        VALIDATION_FAILED: A safety check refused the operation.
    """

    SUCCESS = "success"
    ALREADY_SYNCED = "already_synced"
    NOT_SYNCED = "not_synced"
    VALIDATION_FAILED = "validation_failed"


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """Result of a single sync operation.

    Attributes:
        status: What happened.
        relative_path: Home-relative path operated on (empty if none could be computed).
        message: Human-readable explanation for non-success outcomes.
        error: The validation error behind a VALIDATION_FAILED outcome.
    """

    status: SyncStatus
    relative_path: str
    message: str | None = None
    error: DotstateError | None = None

    @property
    def success(self) -> bool:
        """Check if the operation completed."""
        return self.status == SyncStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class DotfileEntry:
    """A dotfile found while scanning home.

    Attributes:
        relative_path: Home-relative path.
        path: Absolute path in home.
        synced: Whether the active profile syncs it.
        is_common: Whether the common pool syncs it.
        description: Description of curated candidates.
    """

    relative_path: str
    path: Path
    synced: bool
    is_common: bool
    description: str | None = None


class SyncService:
    """Single-file sync operations for the active profile and the common pool.

    Attributes:
        config: Local configuration (active profile, repo path).
        engine: Symlink engine owning the tracking ledger.
        manifest: Loaded profile manifest.
    """

    def __init__(
        self,
        config: Config,
        engine: SymlinkEngine | None = None,
        manifest: ProfileManifest | None = None,
    ) -> None:
        """Initialize the SyncService.

        Args:
            config: Local configuration.
            engine: Optional engine; one over the on-disk ledger is built if None.
            manifest: Optional manifest; loaded from the repository if None.
        """
        self.config = config
        self.engine = engine or SymlinkEngine.for_repo(
            config.repo_path, backup_enabled=config.backup_enabled
        )
        self.manifest = manifest if manifest is not None else load_manifest(config.repo_path)

    @property
    def repo_path(self) -> Path:
        """Storage repository root."""
        return self.config.repo_path

    @property
    def home(self) -> Path:
        """Home directory synced files live in."""
        return self.engine.home

    @property
    def profile_name(self) -> str:
        """Active profile name.

        Raises:
            NotConfiguredError: If no profile is active.
        """
        if not self.config.active_profile:
            raise NotConfiguredError("No active profile. Create or select a profile first.")
        return self.config.active_profile

    def synced_files(self) -> list[str]:
        """Files synced by the active profile (empty if it is not in the manifest)."""
        profile = self.manifest.find_profile(self.config.active_profile)
        return list(profile.synced_files) if profile is not None else []

    # -- add / remove -------------------------------------------------------

    def add(self, path: str | Path, *, common: bool = False) -> SyncOutcome:
        """Start syncing a file or directory from home.

        The content is copied into the repository (following a symlink in
        home to its final target), the home path is replaced by a symlink
        into the repository, and the manifest records the file.

        Args:
            path: Absolute, ``~``-prefixed, or home-relative path.
            common: Add to the common pool instead of the active profile.

        Returns:
            SUCCESS, ALREADY_SYNCED or VALIDATION_FAILED.

        Raises:
            NotConfiguredError: If no profile is active (profile adds only).
            ProfileNotFoundError: If the active profile is not in the manifest.
            StorageIOError: If copying or linking fails.
        """
        full_path = Path(os.path.abspath(expand_path(str(path))))
        rel = relative_to_home(full_path, self.home)

        if common:
            base_dir = get_common_dir(self.repo_path)
            profile_files = self.synced_files()
        else:
            profile = self.manifest.get_profile(self.profile_name)
            base_dir = get_profile_dir(self.repo_path, profile.name)
            profile_files = list(profile.synced_files)
        synced = set(profile_files) | set(self.manifest.common.synced_files)

        try:
            if rel is None:
                check_safe_location(full_path, self.repo_path, self.home)
                raise UnsafePathError(f"Cannot sync a path outside the home directory: {full_path}")
            validate_before_sync(rel, full_path, synced, self.repo_path, self.home)
            source = resolve_sync_source(full_path, self.repo_path)
            repo_dest = base_dir / rel
            validate_symlink_creation(source, repo_dest, self.home / rel)
        except AlreadySyncedError as e:
            logger.debug("Already synced: %s", rel)
            return SyncOutcome(SyncStatus.ALREADY_SYNCED, rel or "", str(e))
        except DotstateError as e:
            logger.warning("Refusing to sync %s: %s", full_path, e)
            return SyncOutcome(SyncStatus.VALIDATION_FAILED, rel or "", str(e), error=e)

        logger.info("Adding %s to %s", rel, "common" if common else self.profile_name)
        try:
            copy_path(source, repo_dest)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to copy {source} into repository", e) from e

        with self.engine.backups.session() as session:
            op = self.engine.add_symlink(repo_dest, self.home / rel, rel, session)
        if op.failed:
            raise StorageIOError(f"Failed to link {self.home / rel}: {op.reason}")

        if common:
            self.manifest.add_common_file(rel)
        else:
            self.manifest.add_profile_file(self.profile_name, rel)
        save_manifest(self.manifest, self.repo_path)
        return SyncOutcome(SyncStatus.SUCCESS, rel)

    def add_common(self, path: str | Path) -> SyncOutcome:
        """Start syncing a file through the common pool."""
        return self.add(path, common=True)

    def remove(self, relative_path: str, *, common: bool = False) -> SyncOutcome:
        """Stop syncing a file and put a regular copy back in home.

        The managed symlink is replaced by a copy of the repository
        content, the repository copy is deleted, and only this file's
        ledger entry is dropped.

        Args:
            relative_path: Home-relative path.
            common: Remove from the common pool instead of the active profile.

        Returns:
            SUCCESS or NOT_SYNCED.

        Raises:
            NotConfiguredError: If no profile is active (profile removes only).
            StorageIOError: If restoring or deleting fails.
        """
        rel = normalize_relative_path(relative_path)
        if common:
            base_dir = get_common_dir(self.repo_path)
            files = self.manifest.common.synced_files
        else:
            base_dir = get_profile_dir(self.repo_path, self.profile_name)
            files = self.synced_files()
        if rel not in files:
            return SyncOutcome(SyncStatus.NOT_SYNCED, rel, f"'{rel}' is not synced")

        logger.info("Removing %s from %s", rel, "common" if common else self.profile_name)
        repo_file = base_dir / rel
        target = self.home / rel

        if self.engine.tracking.is_tracked(target):
            self.engine.remove_single(target, RemoveMode.RESTORE_FROM_REPO)
        elif target.is_symlink() and target.resolve() == repo_file.resolve():
            logger.debug("Untracked link %s points into the repository, restoring", target)
            target.unlink()
        try:
            if not lexists(target) and repo_file.exists():
                copy_path(repo_file, target)
            if lexists(repo_file):
                remove_path(repo_file)
                _prune_empty_parents(repo_file.parent, base_dir)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to restore {target}", e) from e

        if common:
            self.manifest.remove_common_file(rel)
        else:
            self.manifest.remove_profile_file(self.profile_name, rel)
        save_manifest(self.manifest, self.repo_path)
        return SyncOutcome(SyncStatus.SUCCESS, rel)

    def remove_common(self, relative_path: str) -> SyncOutcome:
        """Stop syncing a file through the common pool."""
        return self.remove(relative_path, common=True)

    # -- moves between profile and common -----------------------------------

    def move_to_common(
        self, relative_path: str, cleanup_profiles: list[str] | None = None
    ) -> SyncOutcome:
        """Move a file from the active profile into the common pool.

        Args:
            relative_path: Home-relative path synced by the active profile.
            cleanup_profiles: Other profiles that also sync the file; their
                copies and manifest entries are removed.

        Returns:
            SUCCESS, ALREADY_SYNCED, NOT_SYNCED or VALIDATION_FAILED.

        Raises:
            StorageIOError: If moving or relinking fails.
        """
        rel = normalize_relative_path(relative_path)
        profile_name = self.profile_name
        if self.manifest.is_common_file(rel):
            return SyncOutcome(SyncStatus.ALREADY_SYNCED, rel, f"'{rel}' is already in common")
        if rel not in self.synced_files():
            return SyncOutcome(
                SyncStatus.NOT_SYNCED, rel, f"'{rel}' is not synced in profile '{profile_name}'"
            )

        source = get_profile_dir(self.repo_path, profile_name) / rel
        dest = get_common_dir(self.repo_path) / rel
        failure = self._check_move(source, dest, rel)
        if failure is not None:
            return failure

        logger.info("Moving %s from %s to common", rel, profile_name)
        self._move_and_relink(source, dest, rel)
        self.manifest.move_to_common(profile_name, rel)

        for other in cleanup_profiles or []:
            if other == profile_name:
                continue
            profile = self.manifest.find_profile(other)
            if profile is None or not profile.has_file(rel):
                continue
            copy = get_profile_dir(self.repo_path, other) / rel
            try:
                if lexists(copy):
                    remove_path(copy)
                    _prune_empty_parents(copy.parent, get_profile_dir(self.repo_path, other))
            except OSError as e:
                raise StorageIOError.from_os_error(f"Failed to remove {copy}", e) from e
            self.manifest.remove_profile_file(other, rel)
            logger.info("Removed %s from profile %s", rel, other)

        save_manifest(self.manifest, self.repo_path)
        return SyncOutcome(SyncStatus.SUCCESS, rel)

    def move_from_common(self, relative_path: str) -> SyncOutcome:
        """Move a file from the common pool into the active profile.

        Returns:
            SUCCESS, ALREADY_SYNCED, NOT_SYNCED or VALIDATION_FAILED.

        Raises:
            StorageIOError: If moving or relinking fails.
        """
        rel = normalize_relative_path(relative_path)
        profile_name = self.profile_name
        if not self.manifest.is_common_file(rel):
            return SyncOutcome(SyncStatus.NOT_SYNCED, rel, f"'{rel}' is not in common")
        profile = self.manifest.get_profile(profile_name)
        if profile.has_file(rel):
            return SyncOutcome(
                SyncStatus.ALREADY_SYNCED,
                rel,
                f"'{rel}' is already synced in profile '{profile_name}'",
            )

        source = get_common_dir(self.repo_path) / rel
        dest = get_profile_dir(self.repo_path, profile_name) / rel
        failure = self._check_move(source, dest, rel)
        if failure is not None:
            return failure

        logger.info("Moving %s from common to %s", rel, profile_name)
        self._move_and_relink(source, dest, rel)
        self.manifest.move_from_common(profile_name, rel)
        save_manifest(self.manifest, self.repo_path)
        return SyncOutcome(SyncStatus.SUCCESS, rel)

    # -- scanning -----------------------------------------------------------

    def scan_dotfiles(self) -> list[DotfileEntry]:
        """List curated and custom dotfiles present in home.

        Returns:
            Entries sorted by relative path, annotated with their sync state.
        """
        synced = set(self.synced_files())
        common = set(self.manifest.common.synced_files)
        found: dict[str, DotfileEntry] = {}

        custom = [normalize_relative_path(f) for f in self.config.custom_files]
        for rel in [*default_dotfile_paths(), *custom]:
            full_path = self.home / rel
            if rel in found or not lexists(full_path):
                continue
            candidate = find_candidate(rel)
            found[rel] = DotfileEntry(
                relative_path=rel,
                path=full_path,
                synced=rel in synced,
                is_common=rel in common,
                description=candidate.description if candidate is not None else None,
            )

        return sorted(found.values(), key=lambda e: e.relative_path)

    # -- helpers ------------------------------------------------------------

    def _check_move(self, source: Path, dest: Path, rel: str) -> SyncOutcome | None:
        if not source.exists():
            error = MissingSourceError(f"Repository file missing: {source}")
            return SyncOutcome(SyncStatus.VALIDATION_FAILED, rel, str(error), error=error)
        if lexists(dest):
            error = TargetOccupiedError(f"Repository already contains {dest}")
            return SyncOutcome(SyncStatus.VALIDATION_FAILED, rel, str(error), error=error)
        return None

    def _move_and_relink(self, source: Path, dest: Path, rel: str) -> None:
        """Move repository content and re-point its managed symlink without backups."""
        try:
            move_path(source, dest)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to move {source} to {dest}", e) from e

        target = self.home / rel
        if self.engine.tracking.is_tracked(target):
            self.engine.remove_single(target, RemoveMode.REMOVE_ONLY)
            self.engine.add_symlink(dest, target, rel)


def _prune_empty_parents(directory: Path, stop_at: Path) -> None:
    """Remove empty directories from ``directory`` up to, but not including, ``stop_at``."""
    current = directory
    while current != stop_at and current.is_relative_to(stop_at):
        try:
            current.rmdir()
        except OSError:
            return
        current = current.parent
