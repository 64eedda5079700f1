"""Version control for the storage repository.

The core talks to the VCS protocol. GitRepo implements it with GitPython;
every method returns a VcsResult rather than raising, so callers decide
how a failed pull or push is reported.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Protocol, TypeVar
from urllib.parse import urlsplit, urlunsplit

from git import GitCommandError, Repo
from git.exc import BadName, GitCommandNotFound, GitError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REMOTE = "origin"

# Seconds before a network command is killed.
NETWORK_TIMEOUT = 120.0

GITIGNORE_CONTENT = """\
# OS files
.DS_Store
Thumbs.db

# Backup files
*.bak
*.swp
*.swo
*~
"""


@dataclass(frozen=True, slots=True)
class VcsResult(Generic[T]):
    """Outcome of a version-control operation.

    Attributes:
        success: Whether the operation succeeded.
        value: Operation-specific result (None on failure).
        error: Error message when the operation failed.
    """

    success: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "VcsResult[T]":
        """Build a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> "VcsResult[T]":
        """Build a failed result."""
        return cls(success=False, error=error)


class VCS(Protocol):
    """What the core needs from version control."""

    def is_repository(self) -> bool: ...

    def open_or_init(self, path: Path) -> VcsResult[None]: ...

    def clone_or_open(
        self, remote: str, path: Path, token: str | None = None
    ) -> VcsResult[None]: ...

    def commit_all(self, message: str) -> VcsResult[bool]: ...

    def pull_with_rebase(
        self, remote: str, branch: str, token: str | None = None
    ) -> VcsResult[int]: ...

    def push(self, remote: str, branch: str, token: str | None = None) -> VcsResult[None]: ...

    def fetch(self, remote: str, branch: str, token: str | None = None) -> VcsResult[None]: ...

    def get_ahead_behind(self, remote: str, branch: str) -> VcsResult[tuple[int, int]]: ...

    def get_changed_files(self) -> VcsResult[list[str]]: ...

    def get_diff_for_file(self, path: str) -> VcsResult[str]: ...

    def generate_commit_message(self) -> VcsResult[str]: ...

    def get_current_branch(self) -> VcsResult[str]: ...

    def get_remote_url(self, remote: str = DEFAULT_REMOTE) -> VcsResult[str]: ...

    def has_uncommitted_changes(self) -> VcsResult[bool]: ...

    def has_unpushed_commits(self, remote: str, branch: str) -> VcsResult[bool]: ...


def authenticated_url(url: str, token: str | None) -> str:
    """Embed a token in an https remote URL for a single command.

    Non-https URLs and empty tokens are returned unchanged. The token is
    never written to the repository config.
    """
    if not token:
        return url
    parts = urlsplit(url)
    if parts.scheme != "https":
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"x-access-token:{token}@{host}"))


def redact(text: str, token: str | None) -> str:
    """Remove a token from command output before it is logged or shown."""
    if token:
        return text.replace(token, "***")
    return text


def describe_error(error: Exception, token: str | None = None) -> str:
    """Turn a GitPython error into a one-line message without the token."""
    if isinstance(error, GitCommandNotFound):
        return "git is not installed"
    if isinstance(error, GitCommandError):
        # GitPython formats stderr as "\n  stderr: '<text>'".
        detail = str(error.stderr).strip().removeprefix("stderr:").strip().strip("'").strip()
        if detail:
            return redact(detail, token)
    return redact(str(error), token)


def parse_porcelain(output: str) -> list[str]:
    """Turn ``git status --porcelain`` output into ``"<status> <path>"`` lines.

    Untracked files are reported as added, like new files in the index.
    """
    files: list[str] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code, path = line[:2], line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        if code == "??" or "A" in code:
            status = "A"
        elif "D" in code:
            status = "D"
        elif "R" in code:
            status = "R"
        else:
            status = "M"
        files.append(f"{status} {path}")
    return files


def _has_revision(repo: Repo, rev: str) -> bool:
    try:
        repo.commit(rev)
    except (BadName, ValueError):
        return False
    return True


def _count(repo: Repo, rev_range: str) -> int:
    return sum(1 for _ in repo.iter_commits(rev_range))


class GitRepo:
    """VCS adapter over a GitPython ``Repo``.

    The ``Repo`` is opened afresh for each call so the index is never
    stale after another process commits.

    Attributes:
        repo_path: Working tree of the storage repository.
        default_branch: Branch created on init.
    """

    def __init__(self, repo_path: Path, default_branch: str = "main") -> None:
        self.repo_path = repo_path
        self.default_branch = default_branch

    def is_repository(self) -> bool:
        """Check if ``repo_path`` is a git working tree."""
        return (self.repo_path / ".git").exists()

    def _open(self) -> Repo:
        return Repo(self.repo_path)

    def get_remote_url(self, remote: str = DEFAULT_REMOTE) -> VcsResult[str]:
        """Get the configured URL of a remote."""
        try:
            url = self._open().remote(remote).url
        except (GitError, ValueError):
            return VcsResult.fail(f"Remote '{remote}' not found")
        if not url:
            return VcsResult.fail(f"Remote '{remote}' not found")
        return VcsResult.ok(url)

    def _remote_url(self, remote: str, token: str | None) -> VcsResult[str]:
        url = self.get_remote_url(remote)
        if not url.success or url.value is None:
            return url
        return VcsResult.ok(authenticated_url(url.value, token))

    # -- setup --------------------------------------------------------------

    def open_or_init(self, path: Path | None = None) -> VcsResult[None]:
        """Open the repository, initialising it on ``default_branch`` if needed.

        A .gitignore for editor and OS clutter is written when missing.
        """
        if path is not None:
            self.repo_path = path
        if not self.is_repository():
            try:
                self.repo_path.mkdir(parents=True, exist_ok=True)
                repo = Repo.init(self.repo_path)
                repo.git.symbolic_ref("HEAD", f"refs/heads/{self.default_branch}")
            except (GitError, OSError) as e:
                return VcsResult.fail(f"Failed to initialise repository: {describe_error(e)}")
            logger.info("Initialised git repository at %s", self.repo_path)

        gitignore = self.repo_path / ".gitignore"
        if not gitignore.exists():
            try:
                gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")
            except OSError as e:
                logger.warning("Could not write %s: %s", gitignore, e)
        return VcsResult.ok()

    def clone_or_open(
        self, remote: str, path: Path | None = None, token: str | None = None
    ) -> VcsResult[None]:
        """Clone ``remote`` into the repository path unless it is already a repository."""
        if path is not None:
            self.repo_path = path
        if self.is_repository():
            return VcsResult.ok()
        try:
            self.repo_path.parent.mkdir(parents=True, exist_ok=True)
            repo = Repo.clone_from(authenticated_url(remote, token), self.repo_path)
            # Keep the token out of .git/config.
            repo.remote(DEFAULT_REMOTE).set_url(remote)
        except (GitError, OSError) as e:
            return VcsResult.fail(f"Failed to clone {remote}: {describe_error(e, token)}")
        logger.info("Cloned %s into %s", remote, self.repo_path)
        return VcsResult.ok()

    # -- local state --------------------------------------------------------

    def commit_all(self, message: str) -> VcsResult[bool]:
        """Stage everything and commit.

        Returns:
            A result whose value is False when there was nothing to commit.
        """
        try:
            repo = self._open()
            repo.git.add(A=True)
            if not repo.is_dirty(index=True, working_tree=False, untracked_files=False):
                return VcsResult.ok(False)
            repo.index.commit(message)
        except (GitError, OSError) as e:
            return VcsResult.fail(f"Failed to commit: {describe_error(e)}")
        return VcsResult.ok(True)

    def get_current_branch(self) -> VcsResult[str]:
        """Get the checked-out branch name."""
        try:
            return VcsResult.ok(self._open().active_branch.name)
        except TypeError:
            return VcsResult.fail("No current branch (detached HEAD)")
        except (GitError, OSError) as e:
            return VcsResult.fail(f"No current branch: {describe_error(e)}")

    def get_changed_files(self) -> VcsResult[list[str]]:
        """List changed files as ``"<A|M|D|R> <path>"`` strings."""
        try:
            output = self._open().git.status("--porcelain", "--untracked-files=all")
        except (GitError, OSError) as e:
            return VcsResult.fail(f"Failed to read status: {describe_error(e)}")
        return VcsResult.ok(parse_porcelain(output))

    def has_uncommitted_changes(self) -> VcsResult[bool]:
        """Check for staged, unstaged or untracked changes."""
        changed = self.get_changed_files()
        if not changed.success:
            return VcsResult.fail(changed.error or "Failed to read status")
        return VcsResult.ok(bool(changed.value))

    def get_diff_for_file(self, path: str) -> VcsResult[str]:
        """Get the diff of one file against HEAD (untracked files diff against nothing)."""
        try:
            repo = self._open()
            if path in repo.untracked_files:
                # --no-index exits 1 when the files differ.
                diff = repo.git.diff("--no-index", "--", os.devnull, path, with_exceptions=False)
                return VcsResult.ok(diff)
            if not _has_revision(repo, "HEAD"):
                return VcsResult.ok("")
            return VcsResult.ok(repo.git.diff("HEAD", "--", path))
        except (GitError, OSError) as e:
            return VcsResult.fail(f"Failed to diff {path}: {describe_error(e)}")

    def generate_commit_message(self) -> VcsResult[str]:
        """Summarise the pending changes as a commit message."""
        changed = self.get_changed_files()
        if not changed.success:
            return VcsResult.fail(changed.error or "Failed to read status")
        files = changed.value or []
        if not files:
            return VcsResult.ok("Update dotfiles")

        counts = {"A": 0, "M": 0, "D": 0, "R": 0}
        for entry in files:
            counts[entry[0]] = counts.get(entry[0], 0) + 1
        labels = {"A": "added", "M": "modified", "D": "deleted", "R": "renamed"}
        summary = ", ".join(f"{n} {labels[k]}" for k, n in counts.items() if n)

        names = [entry[2:] for entry in files]
        listed = "\n".join(f"- {name}" for name in names[:20])
        if len(names) > 20:
            listed += f"\n- ... and {len(names) - 20} more"
        return VcsResult.ok(f"Update dotfiles ({summary})\n\n{listed}")

    # -- remote -------------------------------------------------------------

    def fetch(self, remote: str, branch: str, token: str | None = None) -> VcsResult[None]:
        """Fetch ``branch`` from ``remote`` and update its remote-tracking ref."""
        url = self._remote_url(remote, token)
        if not url.success or url.value is None:
            return VcsResult.fail(url.error or f"Remote '{remote}' not found")
        refspec = f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}"
        try:
            self._open().git.fetch(url.value, refspec, kill_after_timeout=NETWORK_TIMEOUT)
        except (GitError, OSError) as e:
            return VcsResult.fail(f"Failed to fetch from {remote}: {describe_error(e, token)}")
        return VcsResult.ok()

    def get_ahead_behind(self, remote: str, branch: str) -> VcsResult[tuple[int, int]]:
        """Count commits ahead of and behind ``remote/branch``."""
        tracking = f"refs/remotes/{remote}/{branch}"
        try:
            repo = self._open()
            ahead = _count(repo, f"{tracking}..HEAD")
            behind = _count(repo, f"HEAD..{tracking}")
        except (GitError, OSError, ValueError) as e:
            return VcsResult.fail(f"Cannot compare with {remote}/{branch}: {describe_error(e)}")
        return VcsResult.ok((ahead, behind))

    def has_unpushed_commits(self, remote: str, branch: str) -> VcsResult[bool]:
        """Check if the local branch has commits the remote-tracking ref lacks.

        With no remote-tracking ref every local commit counts as unpushed.
        """
        try:
            repo = self._open()
        except (GitError, OSError) as e:
            return VcsResult.fail(describe_error(e))
        if not _has_revision(repo, f"refs/remotes/{remote}/{branch}"):
            return VcsResult.ok(_has_revision(repo, "HEAD"))
        counts = self.get_ahead_behind(remote, branch)
        if not counts.success or counts.value is None:
            return VcsResult.fail(counts.error or "Failed to compare branches")
        return VcsResult.ok(counts.value[0] > 0)

    def pull_with_rebase(
        self, remote: str, branch: str, token: str | None = None
    ) -> VcsResult[int]:
        """Fetch and rebase local commits onto ``remote/branch``.

        A remote without the branch yet (first push) is not an error.

        Returns:
            A result whose value is the number of commits pulled.
        """
        fetched = self.fetch(remote, branch, token)
        if not fetched.success:
            if fetched.error and "couldn't find remote ref" in fetched.error:
                logger.info("Remote %s has no branch %s yet", remote, branch)
                return VcsResult.ok(0)
            return VcsResult.fail(fetched.error or "Fetch failed")

        tracking = f"refs/remotes/{remote}/{branch}"
        try:
            repo = self._open()
            has_head = _has_revision(repo, "HEAD")
            # Unborn branch: everything on the remote is new.
            behind = _count(repo, f"HEAD..{tracking}" if has_head else tracking)
            if behind == 0:
                return VcsResult.ok(0)
            if has_head:
                repo.git.rebase(tracking)
            else:
                repo.git.reset("--hard", tracking)
        except (GitError, OSError, ValueError) as e:
            if self.is_repository():
                self._open().git.rebase("--abort", with_exceptions=False)
            return VcsResult.fail(f"Failed to rebase onto {remote}/{branch}: {describe_error(e)}")
        logger.info("Pulled %d commit(s) from %s/%s", behind, remote, branch)
        return VcsResult.ok(behind)

    def push(self, remote: str, branch: str, token: str | None = None) -> VcsResult[None]:
        """Push the current branch to ``remote/branch``."""
        url = self._remote_url(remote, token)
        if not url.success or url.value is None:
            return VcsResult.fail(url.error or f"Remote '{remote}' not found")
        current = self.get_current_branch()
        local = current.value if current.success and current.value else branch
        try:
            repo = self._open()
            repo.git.push(
                url.value,
                f"refs/heads/{local}:refs/heads/{branch}",
                kill_after_timeout=NETWORK_TIMEOUT,
            )
            # Keep the remote-tracking ref current since the push went by URL.
            repo.git.update_ref(f"refs/remotes/{remote}/{branch}", f"refs/heads/{local}")
        except (GitError, OSError) as e:
            return VcsResult.fail(
                f"Failed to push to {remote}: {describe_error(e, token)}. Check that your "
                "token has 'repo' scope and that you have push permission."
            )
        return VcsResult.ok()
