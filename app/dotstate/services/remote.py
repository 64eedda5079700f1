"""Synchronising the storage repository with its remote.

A sync commits local changes, rebases onto the remote branch, pushes,
and then reconciles symlinks so files that arrived with the pull are
linked into home.
"""

import logging
from dataclasses import dataclass, field

from dotstate.core.errors import DotstateError
from dotstate.models.config import Config
from dotstate.ports.vcs import DEFAULT_REMOTE, VCS, GitRepo
from dotstate.services.profiles import ProfileService
from dotstate.symlinks.models import BatchReport

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Update dotfiles"


@dataclass(slots=True)
class RemoteSyncResult:
    """Result of a sync with the remote.

    Attributes:
        success: Whether commit, pull and push all succeeded.
        message: Summary, or the error that stopped the sync.
        branch: Branch that was synced.
        committed: Whether local changes were committed.
        pulled_count: Commits pulled from the remote.
        reports: Symlink reconciliation reports (profile, then common).
        warnings: Problems that did not stop the sync.
    """

    success: bool
    message: str
    branch: str = ""
    committed: bool = False
    pulled_count: int = 0
    reports: list[BatchReport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def symlinks_created(self) -> int:
        """Symlinks created while reconciling."""
        return sum(r.created for r in self.reports)


class RemoteSyncService:
    """Commits, pulls, pushes and reconciles the storage repository.

    Attributes:
        config: Local configuration.
        vcs: Version-control adapter for the repository.
        profiles: Profile service used for reconciliation.
    """

    def __init__(
        self,
        config: Config,
        vcs: VCS | None = None,
        profiles: ProfileService | None = None,
    ) -> None:
        self.config = config
        self.vcs = vcs if vcs is not None else GitRepo(config.repo_path, config.default_branch)
        self._profiles = profiles

    @property
    def profiles(self) -> ProfileService:
        """Profile service, built on first use."""
        if self._profiles is None:
            self._profiles = ProfileService(
                self.config.repo_path, backup_enabled=self.config.backup_enabled
            )
        return self._profiles

    def _token(self) -> str | None:
        if self.config.repo_mode == "local":
            return None
        return self.config.github_token()

    def sync(self, message: str | None = None) -> RemoteSyncResult:
        """Commit, pull with rebase, push, then reconcile symlinks.

        Args:
            message: Commit message; generated from the changes if None.
        """
        if not self.config.repo_path.exists():
            return RemoteSyncResult(
                False, f"Repository not found at {self.config.repo_path}. Sync some files first."
            )

        token = self._token()
        if self.config.repo_mode == "github" and not token:
            return RemoteSyncResult(
                False,
                "GitHub token not found. Set DOTSTATE_GITHUB_TOKEN or add a token to the "
                "config. Required scope: repo.",
            )

        opened = self.vcs.open_or_init(self.config.repo_path)
        if not opened.success:
            return RemoteSyncResult(False, f"Failed to open repository: {opened.error}")

        current = self.vcs.get_current_branch()
        branch = current.value if current.success and current.value else None
        branch = branch or self.config.default_branch

        if message is None:
            generated = self.vcs.generate_commit_message()
            message = generated.value if generated.success and generated.value else None
        commit = self.vcs.commit_all(message or DEFAULT_COMMIT_MESSAGE)
        if not commit.success:
            return RemoteSyncResult(False, f"Failed to commit: {commit.error}", branch)
        committed = bool(commit.value)

        pull = self.vcs.pull_with_rebase(DEFAULT_REMOTE, branch, token)
        if not pull.success:
            return RemoteSyncResult(
                False, f"Failed to pull from remote: {pull.error}", branch, committed
            )
        pulled = pull.value or 0

        push = self.vcs.push(DEFAULT_REMOTE, branch, token)
        if not push.success:
            return RemoteSyncResult(
                False, f"Failed to push to remote: {push.error}", branch, committed, pulled
            )

        result = RemoteSyncResult(True, "Synced with remote", branch, committed, pulled)
        self._reconcile(result)
        logger.info("Synced %s: committed=%s pulled=%d", branch, committed, pulled)
        return result

    def _reconcile(self, result: RemoteSyncResult) -> None:
        """Link files that arrived with a pull, without touching existing links."""
        try:
            # The pull may have changed the manifest on disk.
            self.profiles.reload_manifest()
            if not (self.config.active_profile and self.config.profile_activated):
                return
            result.reports.append(
                self.profiles.ensure_profile_symlinks(self.config.active_profile)
            )
            result.reports.append(self.profiles.ensure_common_symlinks())
        except DotstateError as e:
            logger.warning("Failed to reconcile symlinks after pull: %s", e)
            result.warnings.append(f"Failed to create symlinks for new files: {e}")
            return
        for report in result.reports:
            result.warnings.extend(report.errors)
