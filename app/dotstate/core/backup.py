"""Session-scoped backups.

Every run that may overwrite user data opens at most one backup
session: a timestamped directory under the backup root into which
files are copied before they are replaced. Backups are never deleted
by dotstate.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from dotstate.core.errors import StorageIOError
from dotstate.core.paths import get_backup_dir
from dotstate.utils.fileops import copy_path, lexists

logger = logging.getLogger(__name__)

SESSION_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


@dataclass(frozen=True, slots=True)
class BackupSession:
    """An open backup session.

    Attributes:
        path: Session directory.
        started_at: When the session was opened (UTC).
    """

    path: Path
    started_at: datetime

    @property
    def session_id(self) -> str:
        """Session identifier (the directory name)."""
        return self.path.name


class BackupStore:
    """Creates backup sessions and copies paths into them.

    Attributes:
        enabled: When False, open_session() returns None and nothing is copied.
    """

    def __init__(self, *, enabled: bool = True, backup_root: Path | None = None) -> None:
        """Initialize the BackupStore.

        Args:
            enabled: Whether backups are taken at all.
            backup_root: Optional override for the backup root directory.
        """
        self.enabled = enabled
        self._backup_root = backup_root
        self._session: BackupSession | None = None

    @property
    def backup_root(self) -> Path:
        """Root directory holding every session."""
        return self._backup_root if self._backup_root is not None else get_backup_dir()

    @property
    def current_session(self) -> BackupSession | None:
        """The session opened during this run, if any."""
        return self._session

    def open_session(self) -> BackupSession | None:
        """Open the run's backup session, creating it on first call.

        Returns:
            The session, or None when backups are disabled.

        Raises:
            StorageIOError: If the session directory cannot be created.
        """
        if not self.enabled:
            return None
        if self._session is not None:
            return self._session

        started_at = datetime.now(UTC)
        session_dir = self.backup_root / started_at.strftime(SESSION_TIMESTAMP_FORMAT)
        try:
            session_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError.from_os_error(
                f"Failed to create backup session {session_dir}", e
            ) from e

        self._session = BackupSession(path=session_dir, started_at=started_at)
        logger.info("Opened backup session %s", session_dir)
        return self._session

    @contextmanager
    def session(self) -> Iterator[BackupSession | None]:
        """Scoped acquisition of the run's session.

        A session abandoned by an exception keeps whatever was already
        copied into it so it can be recovered by hand.
        """
        session = self.open_session()
        try:
            yield session
        except Exception:
            if session is not None:
                logger.warning(
                    "Operation aborted; partial backups retained in %s", session.path
                )
            raise

    def backup(self, session: BackupSession, source: Path, logical_name: str) -> Path:
        """Copy a file or directory into a session.

        If the session already holds ``logical_name`` a numeric suffix is
        appended so earlier backups are never overwritten.

        Args:
            session: Open session to copy into.
            source: File or directory to back up.
            logical_name: Name (usually home-relative) under the session.

        Returns:
            Absolute path of the backup.

        Raises:
            StorageIOError: If the copy fails.
        """
        dest = self._unique_destination(session.path / logical_name.lstrip("/"))
        try:
            copy_path(source, dest)
        except OSError as e:
            raise StorageIOError.from_os_error(f"Failed to back up {source} to {dest}", e) from e
        logger.debug("Backed up %s to %s", source, dest)
        return dest

    @staticmethod
    def _unique_destination(dest: Path) -> Path:
        if not lexists(dest):
            return dest
        counter = 1
        while True:
            candidate = dest.with_name(f"{dest.name}.{counter}")
            if not lexists(candidate):
                return candidate
            counter += 1
