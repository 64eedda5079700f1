"""Unit tests for pre-sync safety checks."""

from pathlib import Path

import pytest
from dotstate.core.errors import (
    AlreadySyncedError,
    MissingSourceError,
    StorageIOError,
    TargetOccupiedError,
    UnsafePathError,
)
from dotstate.services.validation import (
    check_safe_location,
    contains_git_repo,
    contains_nested_git_repo,
    contains_synced_files,
    is_inside_synced_directory,
    resolve_sync_source,
    validate_before_sync,
    validate_symlink_creation,
)
from support import DotstateEnv


class TestSyncedOverlap:
    """Tests for parent/child overlap with synced paths."""

    def test_inside_synced_directory(self) -> None:
        """Files below a synced directory are detected."""
        assert is_inside_synced_directory(".config/nvim/init.lua", [".config/nvim"])
        assert not is_inside_synced_directory(".config/nvim", [".config/nvim"])
        assert not is_inside_synced_directory(".config/nvim2/x", [".config/nvim"])

    def test_contains_synced_files(self) -> None:
        """Directories holding synced files are detected."""
        assert contains_synced_files(".config", [".config/git/config"])
        assert not contains_synced_files(".config/git/config", [".config/git/config"])
        assert not contains_synced_files(".conf", [".config/git/config"])


class TestGitDetection:
    """Tests for git repository detection."""

    def test_path_inside_working_copy(self, dotstate_env: DotstateEnv) -> None:
        """Files inside a git working copy under home are detected."""
        project = dotstate_env.home / "code" / "project"
        (project / ".git").mkdir(parents=True)
        file = project / "README"
        file.write_text("x")

        assert contains_git_repo(file, dotstate_env.home)
        assert contains_git_repo(project, dotstate_env.home)

    def test_home_git_not_counted(self, dotstate_env: DotstateEnv) -> None:
        """A git directory at home itself does not poison every path."""
        (dotstate_env.home / ".git").mkdir()
        file = dotstate_env.write_home(".zshrc")

        assert not contains_git_repo(file, dotstate_env.home)

    def test_nested_repo(self, tmp_path: Path) -> None:
        """Nested repositories below a directory are found."""
        (tmp_path / "a" / "b" / ".git").mkdir(parents=True)

        assert contains_nested_git_repo(tmp_path)

    def test_nested_repo_depth_limit(self, tmp_path: Path) -> None:
        """Repositories deeper than the limit are not looked for."""
        (tmp_path / "a" / "b" / "c" / ".git").mkdir(parents=True)

        assert not contains_nested_git_repo(tmp_path, max_depth=2)

    def test_nested_repo_not_dir(self, tmp_path: Path) -> None:
        """Files never contain repositories."""
        file = tmp_path / "file"
        file.write_text("x")

        assert not contains_nested_git_repo(file)


class TestCheckSafeLocation:
    """Tests for check_safe_location function."""

    @pytest.fixture
    def repo(self, dotstate_env: DotstateEnv) -> Path:
        """Storage repository inside home, as in a default setup."""
        repo = dotstate_env.home / ".config" / "dotstate" / "storage"
        repo.mkdir(parents=True)
        return repo

    def test_home_itself(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """Home cannot be synced."""
        with pytest.raises(UnsafePathError, match="home directory itself"):
            check_safe_location(dotstate_env.home, repo, dotstate_env.home)

    def test_root(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """The filesystem root cannot be synced."""
        with pytest.raises(UnsafePathError, match="filesystem root"):
            check_safe_location(Path("/"), repo, dotstate_env.home)

    def test_repo_and_inside(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """The repository and anything in it are refused."""
        with pytest.raises(UnsafePathError):
            check_safe_location(repo, repo, dotstate_env.home)
        with pytest.raises(UnsafePathError, match="inside the storage repository"):
            check_safe_location(repo / "Work" / ".zshrc", repo, dotstate_env.home)

    def test_repo_parent(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """Ancestors of the repository are refused."""
        with pytest.raises(UnsafePathError, match="parent of the storage repository"):
            check_safe_location(dotstate_env.home / ".config", repo, dotstate_env.home)

    def test_outside_home(self, dotstate_env: DotstateEnv, repo: Path, tmp_path: Path) -> None:
        """Paths outside home are refused."""
        with pytest.raises(UnsafePathError, match="outside the home directory"):
            check_safe_location(tmp_path / "elsewhere", repo, dotstate_env.home)

    def test_symlinked_parent(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """A path reaching the repository through a linked directory is refused."""
        (repo / "Work").mkdir()
        (dotstate_env.home / "work").symlink_to(repo / "Work")

        with pytest.raises(UnsafePathError, match="inside the storage repository"):
            check_safe_location(dotstate_env.home / "work" / ".zshrc", repo, dotstate_env.home)

    def test_ok(self, dotstate_env: DotstateEnv, repo: Path) -> None:
        """Ordinary dotfiles pass."""
        check_safe_location(dotstate_env.home / ".zshrc", repo, dotstate_env.home)


class TestResolveSyncSource:
    """Tests for resolve_sync_source function."""

    def test_regular_file(self, dotstate_env: DotstateEnv) -> None:
        """Regular files are their own source."""
        file = dotstate_env.write_home(".zshrc")

        assert resolve_sync_source(file, dotstate_env.repo) == file

    def test_follows_symlink(self, dotstate_env: DotstateEnv) -> None:
        """Symlinks are followed to the real content."""
        real = dotstate_env.write_home("dotfiles/zshrc", "x")
        link = dotstate_env.home / ".zshrc"
        link.symlink_to(real)

        assert resolve_sync_source(link, dotstate_env.repo) == real.resolve()

    def test_missing(self, dotstate_env: DotstateEnv) -> None:
        """Missing paths (and dangling links) raise MissingSourceError."""
        link = dotstate_env.home / ".zshrc"
        link.symlink_to(dotstate_env.home / "gone")

        with pytest.raises(MissingSourceError):
            resolve_sync_source(link, dotstate_env.repo)

    def test_link_into_repo(self, dotstate_env: DotstateEnv) -> None:
        """A link already pointing into the repository is unsafe."""
        source = dotstate_env.write_repo("Work", ".zshrc")
        link = dotstate_env.home / ".zshrc"
        link.symlink_to(source)

        with pytest.raises(UnsafePathError, match="already points into"):
            resolve_sync_source(link, dotstate_env.repo)

    def test_parent_link_into_repo(self, dotstate_env: DotstateEnv) -> None:
        """A regular file behind a linked parent directory in the repository is unsafe."""
        dotstate_env.write_repo("Work", ".zshrc")
        (dotstate_env.home / "work").symlink_to(dotstate_env.repo / "Work")

        with pytest.raises(UnsafePathError, match="already points into"):
            resolve_sync_source(dotstate_env.home / "work" / ".zshrc", dotstate_env.repo)


class TestValidateBeforeSync:
    """Tests for validate_before_sync function."""

    def test_already_synced(self, dotstate_env: DotstateEnv) -> None:
        """Synced paths raise AlreadySyncedError first."""
        file = dotstate_env.write_home(".zshrc")

        with pytest.raises(AlreadySyncedError):
            validate_before_sync(".zshrc", file, {".zshrc"}, dotstate_env.repo, dotstate_env.home)

    def test_inside_synced_dir(self, dotstate_env: DotstateEnv) -> None:
        """Files inside a synced directory are refused."""
        file = dotstate_env.write_home(".config/nvim/init.lua")

        with pytest.raises(UnsafePathError, match="inside a synced directory"):
            validate_before_sync(
                ".config/nvim/init.lua", file, {".config/nvim"}, dotstate_env.repo
            )

    def test_dir_with_synced_files(self, dotstate_env: DotstateEnv) -> None:
        """Directories holding synced files are refused."""
        dotstate_env.write_home(".config/git/config")

        with pytest.raises(UnsafePathError, match="contains files that are already synced"):
            validate_before_sync(
                ".config",
                dotstate_env.home / ".config",
                {".config/git/config"},
                dotstate_env.repo,
            )

    def test_git_repo(self, dotstate_env: DotstateEnv) -> None:
        """Git working copies are refused."""
        project = dotstate_env.home / "project"
        (project / ".git").mkdir(parents=True)

        with pytest.raises(UnsafePathError, match="git repository"):
            validate_before_sync("project", project, set(), dotstate_env.repo)

    def test_nested_git_repo(self, dotstate_env: DotstateEnv) -> None:
        """Directories containing a repository are refused."""
        (dotstate_env.home / ".vim" / "bundle" / "plugin" / ".git").mkdir(parents=True)

        with pytest.raises(UnsafePathError, match="nested git repository"):
            validate_before_sync(".vim", dotstate_env.home / ".vim", set(), dotstate_env.repo)

    def test_passes(self, dotstate_env: DotstateEnv) -> None:
        """An ordinary dotfile passes every check."""
        file = dotstate_env.write_home(".zshrc")

        validate_before_sync(".zshrc", file, set(), dotstate_env.repo)


class TestValidateSymlinkCreation:
    """Tests for validate_symlink_creation function."""

    def test_ok(self, dotstate_env: DotstateEnv) -> None:
        """A free repository slot and writable home pass."""
        source = dotstate_env.write_home(".zshrc")

        validate_symlink_creation(source, dotstate_env.repo / "Work" / ".zshrc", source)

    def test_missing_source(self, dotstate_env: DotstateEnv) -> None:
        """A missing source raises MissingSourceError."""
        with pytest.raises(MissingSourceError):
            validate_symlink_creation(
                dotstate_env.home / ".nope",
                dotstate_env.repo / ".nope",
                dotstate_env.home / ".nope",
            )

    def test_occupied(self, dotstate_env: DotstateEnv) -> None:
        """An occupied repository destination raises TargetOccupiedError."""
        source = dotstate_env.write_home(".zshrc")
        dest = dotstate_env.write_repo("Work", ".zshrc")

        with pytest.raises(TargetOccupiedError):
            validate_symlink_creation(source, dest, source)

    def test_parent_not_dir(self, dotstate_env: DotstateEnv) -> None:
        """A file in place of the target's parent raises StorageIOError."""
        source = dotstate_env.write_home(".zshrc")
        dotstate_env.write_home("blocked", "file")

        with pytest.raises(StorageIOError) as excinfo:
            validate_symlink_creation(
                source, dotstate_env.repo / "x", dotstate_env.home / "blocked" / "x"
            )

        assert excinfo.value.kind == "ENOTDIR"
