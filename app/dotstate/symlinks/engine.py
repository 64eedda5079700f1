"""Symlink creation and removal.

The SymlinkEngine places symlinks from the home directory into the
storage repository and takes them down again. It owns the tracking
ledger for the duration of a batch: every successful placement is
recorded, every removal drops its entry, and the ledger is persisted
before a batch returns, including a batch cut short by an I/O error.

A target is only ever removed if the ledger claims it. Anything else
found at a target path is backed up into the run's backup session and
replaced.
"""

import logging
import os
from pathlib import Path

from dotstate.core.backup import BackupSession, BackupStore
from dotstate.core.errors import DotstateError, StorageIOError
from dotstate.core.paths import get_common_dir, get_home_dir, get_profile_dir
from dotstate.core.tracking import TrackingStore
from dotstate.models.tracking import TrackedSymlink
from dotstate.symlinks.models import (
    REASON_ALREADY_CORRECT,
    REASON_ALREADY_GONE,
    REASON_NOT_OURS,
    REASON_SOURCE_MISSING,
    BatchReport,
    OperationKind,
    OperationStatus,
    RemoveMode,
    SwitchPreview,
    SwitchReport,
    SymlinkOperation,
)
from dotstate.utils.fileops import copy_path, lexists, move_path, remove_path

logger = logging.getLogger(__name__)


class SymlinkEngine:
    """Creates and removes managed symlinks.

    Attributes:
        repo_path: Storage repository root.
        tracking: Ledger of the symlinks dotstate owns.
        backups: Backup store used before replacing anything.
        home: Home directory targets are resolved against.
    """

    def __init__(
        self,
        repo_path: Path,
        tracking: TrackingStore,
        backups: BackupStore,
        home: Path | None = None,
    ) -> None:
        """Initialize the SymlinkEngine.

        Args:
            repo_path: Storage repository root.
            tracking: Loaded tracking ledger.
            backups: Backup store for this run.
            home: Optional override for the home directory.
        """
        self.repo_path = repo_path
        self.tracking = tracking
        self.backups = backups
        self.home = home if home is not None else get_home_dir()

    @classmethod
    def for_repo(cls, repo_path: Path, *, backup_enabled: bool = True) -> "SymlinkEngine":
        """Build an engine over the on-disk ledger and the default backup root.

        Raises:
            MalformedStoreError: If the tracking ledger cannot be parsed.
        """
        return cls(repo_path, TrackingStore.load(), BackupStore(enabled=backup_enabled))

    # -- single operations --------------------------------------------------

    def create(
        self,
        source: Path,
        target: Path,
        logical_name: str,
        session: BackupSession | None = None,
    ) -> SymlinkOperation:
        """Point ``target`` at ``source``, replacing whatever is there.

        Decision tree over the target (inspected without following links):

        - a symlink already resolving to ``source`` is left alone (SKIPPED);
        - a symlink pointing at an existing path has that path backed up,
          then the link is removed;
        - a dangling symlink is removed without backup;
        - a regular file or directory is backed up, then removed. A failed
          backup is logged and the replacement continues;
        - a missing target needs no preparation.

        Backups are only taken when ``session`` is given. Parent
        directories of ``target`` are created as needed and the new link
        always holds the absolute ``source`` path.

        Args:
            source: Repository path the link should point to.
            target: Symlink location in home.
            logical_name: Name used for backups (usually home-relative).
            session: Backup session, or None to skip backups.

        Returns:
            SUCCESS, SKIPPED("already correct") or FAILED("source missing").

        Raises:
            StorageIOError: If the target cannot be cleared or the link created.
        """
        if not source.exists():
            logger.warning("Cannot link %s: source %s does not exist", target, source)
            return _create_op(source, target, OperationStatus.FAILED, REASON_SOURCE_MISSING)

        backup: Path | None = None
        try:
            if target.is_symlink():
                pointed = Path(os.readlink(target))
                if not pointed.is_absolute():
                    pointed = target.parent / pointed
                if pointed.resolve() == source.resolve():
                    logger.debug("Symlink %s already points to %s", target, source)
                    return _create_op(
                        source, target, OperationStatus.SKIPPED, REASON_ALREADY_CORRECT
                    )
                if pointed.exists() and session is not None:
                    backup = self._backup_quietly(session, pointed, logical_name)
                target.unlink()
            elif lexists(target):
                if session is not None:
                    backup = self._backup_quietly(session, target, logical_name)
                remove_path(target)

            target.parent.mkdir(parents=True, exist_ok=True)
            target.symlink_to(source)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to link {target} -> {source}", e) from e

        logger.debug("Linked %s -> %s", target, source)
        return _create_op(source, target, OperationStatus.SUCCESS, backup=backup)

    def remove(self, entry: TrackedSymlink, mode: RemoveMode) -> SymlinkOperation:
        """Take down a tracked symlink.

        The ledger is not modified; batch callers drop the entry.

        Args:
            entry: Ledger entry for the link.
            mode: Whether to restore content to the target afterwards.

        Returns:
            SUCCESS, SKIPPED("already gone") or SKIPPED("not ours").

        Raises:
            StorageIOError: If the link cannot be removed or content restored.
        """
        target = entry.target
        if not lexists(target):
            return _remove_op(entry, OperationStatus.SKIPPED, REASON_ALREADY_GONE)
        if not self.tracking.is_ours(target):
            logger.warning("Leaving %s in place: not a symlink managed by dotstate", target)
            return _remove_op(entry, OperationStatus.SKIPPED, REASON_NOT_OURS)

        try:
            target.unlink()
            if mode == RemoveMode.RESTORE_FROM_REPO:
                if entry.source.exists():
                    copy_path(entry.source, target)
                elif entry.backup is not None and lexists(entry.backup):
                    move_path(entry.backup, target)
                else:
                    logger.warning(
                        "Nothing to restore for %s: %s and its backup are gone",
                        target,
                        entry.source,
                    )
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to remove symlink {target}", e) from e

        logger.debug("Removed symlink %s (%s)", target, mode.value)
        return _remove_op(entry, OperationStatus.SUCCESS)

    def add_symlink(
        self,
        source: Path,
        target: Path,
        logical_name: str,
        session: BackupSession | None = None,
    ) -> SymlinkOperation:
        """Create one symlink, record it and persist the ledger.

        Raises:
            StorageIOError: If the link cannot be created or the ledger saved.
        """
        op = self.create(source, target, logical_name, session)
        self._track(op)
        self.tracking.save()
        return op

    def remove_single(self, target: Path, mode: RemoveMode) -> SymlinkOperation:
        """Take down the one symlink at ``target`` and drop only its entry.

        Raises:
            StorageIOError: If the link cannot be removed or the ledger saved.
        """
        entry = self.tracking.find(target)
        if entry is None:
            return SymlinkOperation(
                kind=OperationKind.REMOVE,
                source=target,
                target=target,
                status=OperationStatus.SKIPPED,
                reason=REASON_NOT_OURS,
            )
        op = self.remove(entry, mode)
        self.tracking.remove_target(target)
        self.tracking.save()
        return op

    # -- batch operations ---------------------------------------------------

    def activate_profile(
        self,
        profile: str,
        files: list[str],
        common_files: list[str],
    ) -> BatchReport:
        """Link every profile file, then every common file, and mark the profile active.

        Files are processed in the order given. A missing source is
        reported as FAILED and the batch continues; an I/O error aborts
        the batch. Either way the ledger is saved with every success so
        far before returning.

        Args:
            profile: Profile to activate.
            files: The profile's home-relative files.
            common_files: Home-relative files from the common pool.

        Returns:
            BatchReport of every operation attempted.
        """
        logger.info("Activating profile %s", profile)
        session = self.backups.open_session()
        profile_dir = get_profile_dir(self.repo_path, profile)
        report = BatchReport()

        if not profile_dir.is_dir():
            report.aborted = f"Profile directory does not exist: {profile_dir}"
            logger.error(report.aborted)
            return report

        self._link_all(report, profile_dir, files, session)
        if report.aborted is None:
            self._link_all(report, get_common_dir(self.repo_path), common_files, session)

        self.tracking.set_active_profile(profile)
        self.tracking.save()
        logger.info(
            "Profile %s activated: %d created, %d skipped, %d failed",
            profile,
            report.created,
            report.skipped,
            len(report.errors),
        )
        return report

    def deactivate(self, profile: str, mode: RemoveMode) -> BatchReport:
        """Take down every managed symlink sourced from the profile or common.

        Only ledger entries are considered, so nothing dotstate did not
        create is ever touched. Entries are dropped as they are processed;
        an I/O error stops the batch with the remaining entries kept.

        Args:
            profile: Profile to deactivate.
            mode: Whether to restore content to the targets.

        Returns:
            BatchReport of every operation attempted.
        """
        logger.info("Deactivating profile %s", profile)
        profile_dir = get_profile_dir(self.repo_path, profile)
        common_dir = get_common_dir(self.repo_path)
        entries = [
            e for e in self.tracking.symlinks if e.is_under(profile_dir) or e.is_under(common_dir)
        ]

        report = BatchReport()
        for entry in entries:
            try:
                report.operations.append(self.remove(entry, mode))
            except StorageIOError as e:
                logger.error("Deactivation of %s aborted: %s", profile, e)
                report.operations.append(_remove_op(entry, OperationStatus.FAILED, str(e)))
                report.aborted = str(e)
                break
            self.tracking.remove_target(entry.target)

        if report.aborted is None:
            self.tracking.set_active_profile(None)
        self.tracking.save()
        logger.info("Profile %s deactivated: %d symlink(s) removed", profile, report.created)
        return report

    def switch(
        self,
        from_profile: str,
        to_profile: str,
        to_files: list[str],
        common_files: list[str],
    ) -> SwitchReport:
        """Deactivate one profile and activate another.

        The old profile's live files are captured before deactivation. If
        activating the new profile aborts, its partial symlinks are taken
        down and the old profile is re-activated.

        Args:
            from_profile: Currently active profile.
            to_profile: Profile to activate.
            to_files: The new profile's home-relative files.
            common_files: Home-relative files from the common pool.

        Returns:
            SwitchReport describing what happened.
        """
        logger.info("Switching profile %s -> %s", from_profile, to_profile)
        report = SwitchReport(from_profile=from_profile, to_profile=to_profile)

        from_dir = get_profile_dir(self.repo_path, from_profile)
        old_files = [
            e.source.relative_to(from_dir).as_posix()
            for e in self.tracking.symlinks
            if e.is_under(from_dir)
        ]

        removal = self.deactivate(from_profile, RemoveMode.RESTORE_FROM_REPO)
        report.removed = removal.operations
        if removal.aborted is not None:
            report.errors.append(f"Failed to deactivate {from_profile}: {removal.aborted}")
            return report

        activation = self.activate_profile(to_profile, to_files, common_files)
        report.created = activation.operations
        if activation.aborted is None:
            return report

        report.errors.append(f"Failed to activate {to_profile}: {activation.aborted}")
        logger.warning("Rolling back to profile %s", from_profile)
        try:
            self.deactivate(to_profile, RemoveMode.REMOVE_ONLY)
            rollback = self.activate_profile(from_profile, old_files, common_files)
        except DotstateError as e:
            report.errors.append(f"Rollback failed: {e}")
            logger.error("Rollback to %s failed: %s", from_profile, e)
            return report

        if rollback.aborted is None:
            report.rollback_performed = True
            logger.info("Rolled back to profile %s", from_profile)
        else:
            report.errors.append(f"Rollback failed: {rollback.aborted}")
        return report

    def preview_switch(
        self, from_profile: str | None, to_profile: str, to_files: list[str]
    ) -> SwitchPreview:
        """Describe what switch() would do without touching anything.

        With no ``from_profile`` nothing is removed, as in a first activation.
        """
        will_remove: list[Path] = []
        if from_profile:
            from_dir = get_profile_dir(self.repo_path, from_profile)
            will_remove = [e.target for e in self.tracking.symlinks if e.is_under(from_dir)]
        will_create: list[Path] = []
        conflicts: list[Path] = []
        for rel in to_files:
            target = self.home / rel
            will_create.append(target)
            if lexists(target) and target not in will_remove and not self.tracking.is_ours(target):
                conflicts.append(target)

        return SwitchPreview(will_remove=will_remove, will_create=will_create, conflicts=conflicts)

    def ensure_profile_symlinks(self, profile: str, files: list[str]) -> BatchReport:
        """Create any missing symlinks for a profile's files.

        Idempotent: links that are already correct are skipped. Errors
        are collected and processing continues.
        """
        report = BatchReport()
        self._link_all(
            report,
            get_profile_dir(self.repo_path, profile),
            files,
            self.backups.open_session(),
            keep_going=True,
        )
        self.tracking.save()
        logger.info(
            "Ensured symlinks for %s: %d created, %d skipped",
            profile,
            report.created,
            report.skipped,
        )
        return report

    def ensure_common_symlinks(self, files: list[str]) -> BatchReport:
        """Create any missing symlinks for the common pool."""
        report = BatchReport()
        self._link_all(
            report,
            get_common_dir(self.repo_path),
            files,
            self.backups.open_session(),
            keep_going=True,
        )
        self.tracking.save()
        logger.info(
            "Ensured common symlinks: %d created, %d skipped", report.created, report.skipped
        )
        return report

    def rename_profile(self, old_name: str, new_name: str) -> BatchReport:
        """Re-point every symlink sourced from ``old_name`` at ``new_name``.

        Called after the profile directory has been renamed in the
        repository, so the old links are dangling and are replaced
        without backup.
        """
        old_dir = get_profile_dir(self.repo_path, old_name)
        new_dir = get_profile_dir(self.repo_path, new_name)
        report = BatchReport()

        for entry in [e for e in self.tracking.symlinks if e.is_under(old_dir)]:
            rel = entry.source.relative_to(old_dir)
            new_source = new_dir / rel
            try:
                op = self.create(new_source, entry.target, rel.as_posix())
            except StorageIOError as e:
                op = _create_op(new_source, entry.target, OperationStatus.FAILED, str(e))
            report.operations.append(op)
            if op.failed:
                continue
            self.tracking.record(
                TrackedSymlink(
                    target=entry.target,
                    source=new_source,
                    created_at=entry.created_at,
                    backup=entry.backup,
                )
            )

        if self.tracking.active_profile == old_name:
            self.tracking.set_active_profile(new_name)
        self.tracking.save()
        logger.info("Re-pointed %d symlink(s) from %s to %s", report.created, old_name, new_name)
        return report

    # -- helpers ------------------------------------------------------------

    def _link_all(
        self,
        report: BatchReport,
        base_dir: Path,
        files: list[str],
        session: BackupSession | None,
        *,
        keep_going: bool = False,
    ) -> None:
        for rel in files:
            source = base_dir / rel
            target = self.home / rel
            try:
                op = self.create(source, target, rel, session)
            except StorageIOError as e:
                logger.error("Failed to link %s: %s", target, e)
                report.operations.append(_create_op(source, target, OperationStatus.FAILED, str(e)))
                if keep_going:
                    continue
                report.aborted = str(e)
                return
            report.operations.append(op)
            self._track(op)

    def _track(self, op: SymlinkOperation) -> None:
        """Record a created link, or adopt an already-correct one the ledger lost."""
        if op.succeeded:
            entry = TrackedSymlink(target=op.target, source=op.source, backup=op.backup)
            self.tracking.record(entry)
        elif op.reason == REASON_ALREADY_CORRECT and not self.tracking.is_tracked(op.target):
            self.tracking.record(TrackedSymlink(target=op.target, source=op.source))

    def _backup_quietly(
        self, session: BackupSession, path: Path, logical_name: str
    ) -> Path | None:
        try:
            return self.backups.backup(session, path, logical_name)
        except StorageIOError as e:
            logger.warning("Backup of %s failed, replacing it anyway: %s", path, e)
            return None


def _create_op(
    source: Path,
    target: Path,
    status: OperationStatus,
    reason: str | None = None,
    backup: Path | None = None,
) -> SymlinkOperation:
    return SymlinkOperation(
        kind=OperationKind.CREATE,
        source=source,
        target=target,
        status=status,
        reason=reason,
        backup=backup,
    )


def _remove_op(
    entry: TrackedSymlink,
    status: OperationStatus,
    reason: str | None = None,
) -> SymlinkOperation:
    return SymlinkOperation(
        kind=OperationKind.REMOVE,
        source=entry.source,
        target=entry.target,
        status=status,
        reason=reason,
        backup=entry.backup,
    )
