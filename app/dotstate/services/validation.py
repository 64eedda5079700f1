"""Safety checks run before a path is synced.

Every check raises a DotstateError subclass describing why the path
cannot be synced; SyncService turns those into outcome values. Nothing
in this module modifies the filesystem.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from dotstate.core.errors import (
    AlreadySyncedError,
    MissingSourceError,
    StorageIOError,
    TargetOccupiedError,
    UnsafePathError,
)
from dotstate.core.paths import get_home_dir, normalize_relative_path
from dotstate.utils.fileops import lexists

logger = logging.getLogger(__name__)

# Nested repositories deeper than this are not looked for.
MAX_GIT_SCAN_DEPTH = 10


def contains_git_repo(path: Path, home: Path) -> bool:
    """Check if ``path`` is, or lies inside, a git working copy below ``home``.

    Ancestors are checked up to but not including the home directory.
    """
    current = path if path.is_dir() else path.parent
    while current != home and current.is_relative_to(home):
        if (current / ".git").exists():
            return True
        current = current.parent
    return False


def contains_nested_git_repo(path: Path, max_depth: int = MAX_GIT_SCAN_DEPTH) -> bool:
    """Check if a directory contains a git repository anywhere beneath it.

    Unreadable directories are logged and treated as not containing one.
    """
    if not path.is_dir():
        return False

    def _scan(directory: Path, depth: int) -> bool:
        if depth > max_depth:
            return False
        if (directory / ".git").exists():
            return True
        try:
            children = [c for c in directory.iterdir() if c.is_dir() and not c.is_symlink()]
        except OSError as e:
            logger.warning("Could not scan %s for git repositories: %s", directory, e)
            return False
        return any(_scan(child, depth + 1) for child in children if child.name != ".git")

    return _scan(path, 0)


def is_inside_synced_directory(relative_path: str, synced_files: Iterable[str]) -> bool:
    """Check if any parent of ``relative_path`` is already synced."""
    synced = set(synced_files)
    parents = PurePosixPath(normalize_relative_path(relative_path)).parents
    return any(str(parent) in synced for parent in parents if str(parent) != ".")


def contains_synced_files(relative_path: str, synced_files: Iterable[str]) -> bool:
    """Check if any synced path lies below ``relative_path``."""
    directory = PurePosixPath(normalize_relative_path(relative_path))
    return any(
        PurePosixPath(f).is_relative_to(directory) and PurePosixPath(f) != directory
        for f in synced_files
    )


def check_safe_location(path: Path, repo_path: Path, home: Path | None = None) -> None:
    """Reject paths that must never be synced.

    The repository checks run on both the given path and its resolved
    form, so a symlinked parent directory cannot lead into the repository.

    Raises:
        UnsafePathError: If ``path`` is the filesystem root, the home
            directory, outside home, the repository, inside it, or one of
            its ancestors.
    """
    home = home if home is not None else get_home_dir()
    if path == Path(path.anchor):
        raise UnsafePathError("Cannot sync the filesystem root")
    if path == home:
        raise UnsafePathError("Cannot sync the home directory itself")
    for candidate, repo in ((path, repo_path), (path.resolve(), repo_path.resolve())):
        if candidate == repo:
            raise UnsafePathError("Cannot sync the storage repository")
        if candidate.is_relative_to(repo):
            raise UnsafePathError(f"Cannot sync a path inside the storage repository: {path}")
        if repo.is_relative_to(candidate):
            raise UnsafePathError(f"Cannot sync a parent of the storage repository: {path}")
    if not path.is_relative_to(home):
        raise UnsafePathError(f"Cannot sync a path outside the home directory: {path}")


def resolve_sync_source(path: Path, repo_path: Path) -> Path:
    """Follow ``path`` through any symlinks to the content that will be copied.

    Symlinks anywhere along the path are followed, not only at the leaf.

    Raises:
        MissingSourceError: If the path (or its final target) does not exist.
        UnsafePathError: If the path resolves into the storage repository.
    """
    if not path.exists():
        raise MissingSourceError(f"Path does not exist: {path}")

    resolved = path.resolve()
    if resolved.is_relative_to(repo_path.resolve()):
        raise UnsafePathError(f"{path} already points into the storage repository")
    return resolved if path.is_symlink() else path


def validate_before_sync(
    relative_path: str,
    full_path: Path,
    synced_files: Iterable[str],
    repo_path: Path,
    home: Path | None = None,
) -> None:
    """Run every check that must pass before ``full_path`` is synced.

    Args:
        relative_path: Home-relative path being added.
        full_path: Absolute path in home.
        synced_files: Paths already synced (active profile and common).
        repo_path: Storage repository root.
        home: Optional override for the home directory.

    Raises:
        AlreadySyncedError: If the path is already synced.
        UnsafePathError: If the path is unsafe, overlaps a synced path, or
            contains a git repository.
    """
    synced = set(synced_files)
    normalized = normalize_relative_path(relative_path)
    home = home if home is not None else get_home_dir()
    logger.debug("Validating %s (%s) before sync", normalized, full_path)

    if normalized in synced:
        raise AlreadySyncedError(f"'{normalized}' is already synced")

    check_safe_location(full_path, repo_path, home)

    if is_inside_synced_directory(normalized, synced):
        raise UnsafePathError(
            f"Cannot sync '{normalized}': it is inside a synced directory. "
            "Remove the parent directory from sync first."
        )
    if full_path.is_dir() and contains_synced_files(normalized, synced):
        raise UnsafePathError(
            f"Cannot sync directory '{normalized}': it contains files that are already synced. "
            "Remove those files from sync first."
        )
    if contains_git_repo(full_path, home):
        raise UnsafePathError(f"Cannot sync a git repository: {full_path}")
    if contains_nested_git_repo(full_path):
        raise UnsafePathError(
            f"Cannot sync directory '{normalized}': it contains a nested git repository"
        )


def validate_symlink_creation(source: Path, repo_dest: Path, target: Path) -> None:
    """Check that copying into the repo and linking back can succeed.

    Args:
        source: Content in home that will be copied into the repository.
        repo_dest: Where the content will live in the repository.
        target: Where the symlink will be created.

    Raises:
        MissingSourceError: If ``source`` does not exist.
        TargetOccupiedError: If ``repo_dest`` is already occupied.
        StorageIOError: If the target's parent is not a writable directory.
    """
    if not source.exists():
        raise MissingSourceError(f"Source does not exist: {source}")
    if lexists(repo_dest):
        raise TargetOccupiedError(f"Repository already contains {repo_dest}")

    parent = target.parent
    while not lexists(parent):
        parent = parent.parent
    if not parent.is_dir():
        raise StorageIOError(f"Target parent exists but is not a directory: {parent}", "ENOTDIR")
    if not os.access(parent, os.W_OK):
        raise StorageIOError(f"Cannot write to target location: {parent}", "EACCES")
