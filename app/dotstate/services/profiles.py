"""Profile lifecycle operations.

ProfileService creates, renames, deletes, switches and activates
profiles. It keeps the profile directories in the repository and the
manifest in step and drives the SymlinkEngine for anything that touches
home. Recording which profile is active in the local config is left to
the caller.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dotstate.core.errors import (
    CannotDeleteActiveError,
    InvalidProfileNameError,
    ProfileExistsError,
    StorageIOError,
)
from dotstate.core.manifest import load_manifest, save_manifest
from dotstate.core.paths import get_profile_dir
from dotstate.core.profile_names import sanitize_profile_name, validate_profile_name
from dotstate.models.manifest import Package, ProfileInfo, ProfileManifest
from dotstate.symlinks.engine import SymlinkEngine
from dotstate.symlinks.models import BatchReport, RemoveMode, SwitchPreview, SwitchReport
from dotstate.utils.fileops import copy_path, lexists, remove_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProfileActivationResult:
    """Result of activating a profile.

    Attributes:
        profile: Activated profile name.
        report: Symlink operations performed.
        packages: Packages the profile expects, for a follow-up package check.
    """

    profile: str
    report: BatchReport
    packages: list[Package] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        """Number of symlinks created."""
        return self.report.created


@dataclass(slots=True)
class ProfileSwitchResult:
    """Result of switching profiles.

    Attributes:
        report: What the switch did; None when the target was already active.
        packages: Packages the new profile expects.
    """

    report: SwitchReport | None
    packages: list[Package] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the switch completed (or was not needed)."""
        return self.report is None or self.report.success


class ProfileService:
    """Creates, renames, deletes, switches and activates profiles.

    Attributes:
        repo_path: Storage repository root.
        backup_enabled: Whether replaced files are backed up.
        manifest: Loaded profile manifest.
    """

    def __init__(
        self,
        repo_path: Path,
        *,
        backup_enabled: bool = True,
        engine: SymlinkEngine | None = None,
        manifest: ProfileManifest | None = None,
    ) -> None:
        """Initialize the ProfileService.

        Args:
            repo_path: Storage repository root.
            backup_enabled: Whether replaced files are backed up.
            engine: Optional engine; built from the on-disk ledger on first use.
            manifest: Optional manifest; loaded from the repository if None.
        """
        self.repo_path = repo_path
        self.backup_enabled = backup_enabled
        self._engine = engine
        self.manifest = manifest if manifest is not None else load_manifest(repo_path)

    @property
    def engine(self) -> SymlinkEngine:
        """Symlink engine, loaded lazily so manifest-only operations skip the ledger."""
        if self._engine is None:
            self._engine = SymlinkEngine.for_repo(
                self.repo_path, backup_enabled=self.backup_enabled
            )
        return self._engine

    def reload_manifest(self) -> None:
        """Re-read the manifest from disk (after a pull, for example)."""
        self.manifest = load_manifest(self.repo_path)

    def list_profiles(self) -> list[ProfileInfo]:
        """Get every profile in manifest order."""
        return list(self.manifest.profiles)

    # -- lifecycle ----------------------------------------------------------

    def create(
        self,
        name: str,
        description: str | None = None,
        copy_from: str | None = None,
    ) -> str:
        """Create a profile directory and manifest entry.

        Args:
            name: Requested name; sanitized before use.
            description: Optional description.
            copy_from: Existing profile whose files (and file list) are copied.

        Returns:
            The sanitized profile name.

        Raises:
            InvalidProfileNameError: If the sanitized name is empty or invalid.
            ProfileExistsError: If the name is already taken.
            ProfileNotFoundError: If ``copy_from`` is not a profile.
            StorageIOError: If the directory or copies cannot be created.
        """
        sanitized = sanitize_profile_name(name)
        if not sanitized:
            raise InvalidProfileNameError("Profile name cannot be empty")
        validate_profile_name(sanitized, self.manifest.profile_names())
        source = self.manifest.get_profile(copy_from) if copy_from is not None else None

        profile_dir = get_profile_dir(self.repo_path, sanitized)
        try:
            if profile_dir.exists():
                logger.warning("Profile folder %s already exists, reusing it", profile_dir)
            profile_dir.mkdir(parents=True, exist_ok=True)
            if source is not None:
                source_dir = get_profile_dir(self.repo_path, source.name)
                for rel in source.synced_files:
                    if (source_dir / rel).exists():
                        copy_path(source_dir / rel, profile_dir / rel)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to create profile {sanitized}", e) from e

        self.manifest.add_profile(sanitized, description)
        if source is not None:
            self.manifest.update_synced_files(sanitized, list(source.synced_files))
        save_manifest(self.manifest, self.repo_path)
        logger.info("Created profile %s", sanitized)
        return sanitized

    def rename(self, old_name: str, new_name: str, *, is_active: bool) -> str:
        """Rename a profile, its directory and (if active) its symlinks.

        Args:
            old_name: Current profile name.
            new_name: Requested name; sanitized before use.
            is_active: Whether the profile is currently active.

        Returns:
            The sanitized new name.

        Raises:
            InvalidProfileNameError: If the sanitized name is empty or invalid.
            ProfileExistsError: If the new name is already taken.
            ProfileNotFoundError: If ``old_name`` is not a profile.
            StorageIOError: If the directory cannot be renamed.
        """
        sanitized = sanitize_profile_name(new_name)
        if not sanitized:
            raise InvalidProfileNameError("Profile name cannot be empty")
        self.manifest.get_profile(old_name)
        others = [n for n in self.manifest.profile_names() if n != old_name]
        validate_profile_name(sanitized, others)

        old_dir = get_profile_dir(self.repo_path, old_name)
        new_dir = get_profile_dir(self.repo_path, sanitized)
        if old_dir.exists():
            if lexists(new_dir) and new_dir != old_dir:
                raise ProfileExistsError(f"Directory {new_dir} already exists")
            try:
                old_dir.rename(new_dir)
            except OSError as e:
                raise StorageIOError.from_os_error(f"Failed to rename {old_dir}", e) from e

        self.manifest.rename_profile(old_name, sanitized)
        save_manifest(self.manifest, self.repo_path)

        if is_active:
            report = self.engine.rename_profile(old_name, sanitized)
            if report.has_errors:
                logger.error("Some symlinks were not updated after rename: %s", report.errors)
        logger.info("Renamed profile %s to %s", old_name, sanitized)
        return sanitized

    def delete(self, name: str, active_name: str | None) -> None:
        """Delete an inactive profile's directory and manifest entry.

        Raises:
            CannotDeleteActiveError: If ``name`` is the active profile.
            ProfileNotFoundError: If ``name`` is not a profile.
            StorageIOError: If the directory cannot be removed.
        """
        if name == active_name:
            raise CannotDeleteActiveError(
                f"Cannot delete active profile '{name}'. Switch to another profile first."
            )
        self.manifest.get_profile(name)

        profile_dir = get_profile_dir(self.repo_path, name)
        try:
            if lexists(profile_dir):
                remove_path(profile_dir)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to remove {profile_dir}", e) from e

        self.manifest.remove_profile(name)
        save_manifest(self.manifest, self.repo_path)
        logger.info("Deleted profile %s", name)

    # -- activation ---------------------------------------------------------

    def switch(self, old_name: str | None, target_name: str) -> ProfileSwitchResult:
        """Switch the live symlinks from one profile to another.

        Switching to the profile that is already active does nothing. With
        no previously active profile the target is simply activated.

        Raises:
            ProfileNotFoundError: If ``target_name`` is not a profile.
        """
        target = self.manifest.get_profile(target_name)
        if old_name == target_name:
            logger.info("Profile %s is already active", target_name)
            return ProfileSwitchResult(report=None, packages=list(target.packages))

        common_files = list(self.manifest.common.synced_files)
        if not old_name:
            activation = self.activate(target_name)
            report = SwitchReport(from_profile="", to_profile=target_name)
            report.created = activation.report.operations
            if activation.report.aborted is not None:
                report.errors.append(activation.report.aborted)
            return ProfileSwitchResult(report=report, packages=list(target.packages))

        report = self.engine.switch(old_name, target_name, list(target.synced_files), common_files)
        logger.info(
            "Switched %s -> %s: %d removed, %d created",
            old_name,
            target_name,
            sum(1 for op in report.removed if op.succeeded),
            sum(1 for op in report.created if op.succeeded),
        )
        return ProfileSwitchResult(report=report, packages=list(target.packages))

    def preview_switch(self, old_name: str | None, target_name: str) -> SwitchPreview:
        """Describe what switching would change, without changing anything.

        Raises:
            ProfileNotFoundError: If ``target_name`` is not a profile.
        """
        target = self.manifest.get_profile(target_name)
        return self.engine.preview_switch(old_name, target_name, list(target.synced_files))

    def activate(self, name: str) -> ProfileActivationResult:
        """Link a profile's files and the common pool into home.

        Raises:
            ProfileNotFoundError: If ``name`` is not a profile.
        """
        profile = self.manifest.get_profile(name)
        report = self.engine.activate_profile(
            name, list(profile.synced_files), list(self.manifest.common.synced_files)
        )
        return ProfileActivationResult(profile=name, report=report, packages=list(profile.packages))

    def deactivate(self, name: str, mode: RemoveMode = RemoveMode.RESTORE_FROM_REPO) -> BatchReport:
        """Take down a profile's symlinks (and the common pool's)."""
        return self.engine.deactivate(name, mode)

    def ensure_profile_symlinks(self, name: str) -> BatchReport:
        """Create any symlinks missing for a profile's files.

        Raises:
            ProfileNotFoundError: If ``name`` is not a profile.
        """
        profile = self.manifest.get_profile(name)
        if not profile.synced_files:
            logger.info("Profile %s has no files to sync", name)
            return BatchReport()
        return self.engine.ensure_profile_symlinks(name, list(profile.synced_files))

    def ensure_common_symlinks(self) -> BatchReport:
        """Create any symlinks missing for the common pool."""
        files = list(self.manifest.common.synced_files)
        if not files:
            logger.info("No common files to sync")
            return BatchReport()
        return self.engine.ensure_common_symlinks(files)
