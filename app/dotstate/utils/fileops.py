"""Filesystem helpers shared by the stores and the symlink engine."""

import os
import shutil
from pathlib import Path
from tempfile import NamedTemporaryFile


def lexists(path: Path) -> bool:
    """Check if anything exists at ``path``, including dangling symlinks."""
    return os.path.lexists(path)


def atomic_write(path: Path, data: bytes, mode: int | None = None) -> None:
    """Write ``data`` to ``path`` atomically.

    The content is written to a temporary file in the same directory and
    moved into place with os.replace(). The temporary file is cleaned up
    on failure.

    Args:
        path: Destination file.
        data: Bytes to write.
        mode: Optional permission bits applied before the rename (POSIX).

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
            tmp_path = Path(f.name)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None and os.name == "posix":
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


def copy_path(source: Path, dest: Path) -> None:
    """Copy a file or directory tree to ``dest``, creating parents.

    Symlinks inside a copied tree are preserved as symlinks.

    Raises:
        OSError: If the copy fails.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, dest, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(source, dest)


def remove_path(path: Path) -> None:
    """Remove a file, symlink, or directory tree.

    A symlink is always unlinked, never followed.

    Raises:
        OSError: If the removal fails.
    """
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def move_path(source: Path, dest: Path) -> None:
    """Move a file or directory to ``dest``, creating parents."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(dest))
