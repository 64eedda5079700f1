"""Diagnostics across the config, manifest, ledger and repository.

Doctor reads every store without changing anything and classifies
what it finds. Repairs run only when asked for, and only for findings
that carry a fix action.
"""

import logging
from pathlib import Path

from dotstate.core.backup import BackupStore
from dotstate.core.config import save_config
from dotstate.core.errors import DotstateError
from dotstate.core.manifest import load_manifest
from dotstate.core.paths import get_common_dir, get_config_path, get_profile_dir
from dotstate.core.tracking import TrackingStore
from dotstate.doctor.models import (
    FIX_PRUNE_MISSING,
    FIX_REACTIVATE,
    FIX_SYNC_ACTIVATION,
    CheckCategory,
    CheckStatus,
    DoctorReport,
    FixOutcome,
)
from dotstate.models.config import Config
from dotstate.models.manifest import ProfileManifest
from dotstate.ports.vcs import VCS, GitRepo
from dotstate.services.profiles import ProfileService
from dotstate.symlinks.engine import SymlinkEngine
from dotstate.utils.fileops import lexists

logger = logging.getLogger(__name__)

WRITE_TEST_NAME = ".write_test"


class Doctor:
    """Runs diagnostics and optional repairs.

    Example:
        >>> doctor = Doctor(config)
        >>> report = doctor.run()
        >>> if report.fixable:
        ...     doctor.fix(report)
    """

    def __init__(
        self,
        config: Config,
        *,
        config_path: Path | None = None,
        config_dir: Path | None = None,
        vcs: VCS | None = None,
    ) -> None:
        """Initialize the Doctor.

        Args:
            config: Loaded local config.
            config_path: Config file location; defaults to the standard path.
            config_dir: Directory holding the tracking ledger.
            vcs: Git adapter for the repository checks.
        """
        self.config = config
        self.config_path = config_path or get_config_path()
        self.config_dir = config_dir
        self.vcs = vcs if vcs is not None else GitRepo(config.repo_path, config.default_branch)
        self._manifest: ProfileManifest | None = None
        self._tracking: TrackingStore | None = None

    # -- store access -------------------------------------------------------

    def _load_tracking(self, report: DoctorReport) -> TrackingStore | None:
        if self._tracking is None:
            try:
                self._tracking = TrackingStore.load(self.config_dir)
            except DotstateError as e:
                report.add(
                    CheckCategory.TRACKING, f"Failed to load tracking file: {e}", CheckStatus.ERROR
                )
                return None
        return self._tracking

    # -- diagnostics --------------------------------------------------------

    def run(self) -> DoctorReport:
        """Run every check in order and return the findings."""
        report = DoctorReport()
        self._manifest = None
        self._tracking = None
        self.check_configuration(report)
        self.check_activation(report)
        self.check_manifest(report)
        self.check_tracking(report)
        self.check_git(report)
        self.check_permissions(report)
        logger.debug(
            "Doctor finished: %d error(s), %d warning(s)",
            len(report.errors),
            len(report.warnings),
        )
        return report

    def check_configuration(self, report: DoctorReport) -> None:
        """Check that the config file and the repository exist."""
        if self.config_path.exists():
            report.add(CheckCategory.CONFIG, "Configuration file exists")
        else:
            report.add(CheckCategory.CONFIG, "Configuration file missing", CheckStatus.ERROR)

        if self.config.repo_path.exists():
            report.add(CheckCategory.CONFIG, "Repository path exists")
        else:
            report.add(
                CheckCategory.CONFIG,
                f"Repository path not found: {self.config.repo_path}",
                CheckStatus.ERROR,
            )

    def check_activation(self, report: DoctorReport) -> None:
        """Compare the config's activation flag with the ledger.

        The ledger reflects what was actually done to the filesystem, so
        when the two disagree the config is the one that gets corrected.
        """
        if not self.config.profile_activated:
            report.add(CheckCategory.ACTIVATION, "No profile currently active")
            return

        report.add(
            CheckCategory.ACTIVATION,
            f"Profile '{self.config.active_profile}' is marked as active in config",
        )
        tracking = self._load_tracking(report)
        if tracking is None:
            return

        ledger_profile = tracking.active_profile or ""
        if ledger_profile == self.config.active_profile:
            report.add(CheckCategory.ACTIVATION, "Tracking file matches active profile")
        elif not ledger_profile:
            report.add(
                CheckCategory.ACTIVATION,
                "Config says active, but tracking file says inactive",
                CheckStatus.WARNING,
                FIX_SYNC_ACTIVATION,
            )
        else:
            report.add(
                CheckCategory.ACTIVATION,
                f"Profile mismatch: config='{self.config.active_profile}', "
                f"tracking='{ledger_profile}'",
                CheckStatus.WARNING,
            )

    def check_manifest(self, report: DoctorReport) -> None:
        """Check that the manifest parses and the active profile's files are stored."""
        try:
            manifest = load_manifest(self.config.repo_path, backfill=False)
        except DotstateError as e:
            report.add(CheckCategory.MANIFEST, f"Failed to load manifest: {e}", CheckStatus.ERROR)
            return
        self._manifest = manifest

        report.add(
            CheckCategory.MANIFEST,
            f"Manifest loaded ({len(manifest.profiles)} profiles, "
            f"{len(manifest.common.synced_files)} common files)",
        )
        active = self.config.active_profile
        if not active:
            return

        profile = manifest.find_profile(active)
        if profile is None:
            report.add(
                CheckCategory.MANIFEST,
                f"Active profile '{active}' not found in manifest",
                CheckStatus.ERROR,
            )
            return
        report.add(CheckCategory.MANIFEST, "Active profile exists in manifest")

        profile_dir = get_profile_dir(self.config.repo_path, active)
        missing = [f for f in profile.synced_files if not lexists(profile_dir / f)]
        if missing:
            report.add(
                CheckCategory.MANIFEST,
                f"{len(missing)} file(s) missing from storage: {', '.join(missing)}",
                CheckStatus.ERROR,
            )
        else:
            report.add(
                CheckCategory.MANIFEST,
                f"All {len(profile.synced_files)} profile files exist in storage",
            )

    def check_tracking(self, report: DoctorReport) -> None:
        """Check that the ledger and the filesystem agree.

        Tracked targets that vanished are a Warning (prune them). Files the
        manifest expects but the ledger lacks are an Error (re-activate).
        """
        tracking = self._load_tracking(report)
        if tracking is None:
            return
        entries = tracking.symlinks

        if not self.config.profile_activated:
            if entries:
                report.add(
                    CheckCategory.TRACKING,
                    f"{len(entries)} files tracked but no profile is active",
                    CheckStatus.WARNING,
                )
            else:
                report.add(CheckCategory.TRACKING, "No symlinks tracked")
            return

        report.add(CheckCategory.TRACKING, f"{len(entries)} files tracked")

        missing = [e for e in entries if not lexists(e.target)]
        if missing:
            report.add(
                CheckCategory.TRACKING,
                f"{len(missing)} tracked symlink(s) missing from disk: "
                + ", ".join(str(e.target) for e in missing),
                CheckStatus.WARNING,
                FIX_PRUNE_MISSING,
            )
        else:
            report.add(CheckCategory.TRACKING, "All tracked symlinks exist on disk")

        manifest = self._manifest
        if manifest is None:
            return
        profile = manifest.find_profile(self.config.active_profile)
        repo = self.config.repo_path
        expected = [get_common_dir(repo) / f for f in manifest.common.synced_files]
        if profile is not None:
            profile_dir = get_profile_dir(repo, profile.name)
            expected.extend(profile_dir / f for f in profile.synced_files)

        sources = {e.source for e in entries}
        untracked = [p for p in expected if p not in sources]
        if untracked:
            report.add(
                CheckCategory.TRACKING,
                f"{len(untracked)} expected file(s) are not tracked (including: "
                f"{untracked[0].relative_to(repo)})",
                CheckStatus.ERROR,
                FIX_REACTIVATE,
            )
        else:
            report.add(CheckCategory.TRACKING, "All expected files (profile + common) are tracked")

    def check_git(self, report: DoctorReport) -> None:
        """Check the repository's git state without touching the network."""
        if not self.vcs.is_repository():
            report.add(CheckCategory.GIT, "Not a git repository", CheckStatus.WARNING)
            return
        report.add(CheckCategory.GIT, "Valid git repository")

        remote = self.vcs.get_remote_url()
        if remote.success:
            report.add(CheckCategory.GIT, f"Remote 'origin': {remote.value}")
        else:
            report.add(CheckCategory.GIT, "No remote configured", CheckStatus.WARNING)

        changed = self.vcs.get_changed_files()
        if not changed.success:
            report.add(
                CheckCategory.GIT, f"Could not read status: {changed.error}", CheckStatus.WARNING
            )
        elif changed.value:
            report.add(
                CheckCategory.GIT, f"{len(changed.value)} uncommitted changes", CheckStatus.WARNING
            )
        else:
            report.add(CheckCategory.GIT, "Working tree clean")

    def check_permissions(self, report: DoctorReport) -> None:
        """Check that the repository root is writable."""
        test_file = self.config.repo_path / WRITE_TEST_NAME
        try:
            test_file.write_text("test", encoding="utf-8")
            test_file.unlink()
        except OSError as e:
            report.add(
                CheckCategory.PERMISSIONS, f"Repository not writable: {e}", CheckStatus.ERROR
            )
            return
        report.add(CheckCategory.PERMISSIONS, "Repository is writable")

    # -- repairs ------------------------------------------------------------

    def fix(self, report: DoctorReport) -> list[FixOutcome]:
        """Apply the repair for every fixable finding in ``report``.

        Each distinct action runs at most once. Outcomes are also
        appended to ``report.fixes``.
        """
        actions: list[str] = []
        for result in report.fixable:
            if result.fix_action is not None and result.fix_action not in actions:
                actions.append(result.fix_action)

        for action in actions:
            try:
                outcome = self._apply(action)
            except DotstateError as e:
                logger.error("Repair %r failed: %s", action, e)
                outcome = FixOutcome(action, False, str(e))
            report.fixes.append(outcome)
        return report.fixes

    def _apply(self, action: str) -> FixOutcome:
        if action == FIX_SYNC_ACTIVATION:
            self.config.profile_activated = False
            save_config(self.config, self.config_path)
            return FixOutcome(action, True, "Config updated to match tracking state (inactive)")

        if action == FIX_PRUNE_MISSING:
            tracking = TrackingStore.load(self.config_dir)
            pruned = tracking.prune_missing()
            tracking.save()
            self._tracking = tracking
            return FixOutcome(
                action, True, f"Removed {len(pruned)} missing entries from tracking"
            )

        if action == FIX_REACTIVATE:
            if not self.config.active_profile:
                return FixOutcome(action, False, "Cannot re-activate: no active profile set")
            engine = SymlinkEngine(
                self.config.repo_path,
                TrackingStore.load(self.config_dir),
                BackupStore(enabled=False),
            )
            service = ProfileService(self.config.repo_path, backup_enabled=False, engine=engine)
            result = service.activate(self.config.active_profile)
            if result.report.aborted is not None:
                return FixOutcome(action, False, result.report.aborted)
            if result.report.has_errors:
                return FixOutcome(action, False, "; ".join(result.report.errors))
            return FixOutcome(action, True, "Profile re-activated")

        return FixOutcome(action, False, f"No repair available for: {action}")
