"""Error kinds raised by the dotstate core.

Every error derives from DotstateError so the CLI can map any core
failure to a single exit code. Store-specific families (manifest,
config, tracking) also derive from MalformedStoreError where the
failure is a parse or schema problem.
"""

import errno


class DotstateError(Exception):
    """Base exception for all dotstate errors."""


class NotConfiguredError(DotstateError):
    """Raised when no storage repository has been configured."""


class MissingSourceError(DotstateError):
    """Raised when a requested file does not exist."""


class UnsafePathError(DotstateError):
    """Raised when a path is the repo, inside it, a git working copy, or outside home."""


class AlreadySyncedError(DotstateError):
    """Raised when a file is already synced where it is being added."""


class NotSyncedError(DotstateError):
    """Raised when a file is expected to be synced but is not."""


class ConflictError(DotstateError):
    """Raised when something occupies a destination and replacement is forbidden."""


class TargetOccupiedError(DotstateError):
    """Raised when the repository destination for a file already exists."""


class MalformedStoreError(DotstateError):
    """Raised when the manifest, ledger, or config cannot be parsed."""


class StorageIOError(DotstateError):
    """Raised for underlying filesystem or process failures.

    Attributes:
        kind: Symbolic errno name (e.g. "EACCES"), or "unknown".
    """

    def __init__(self, message: str, kind: str = "unknown") -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def from_os_error(cls, message: str, error: OSError) -> "StorageIOError":
        """Build a StorageIOError carrying the errno name of ``error``."""
        kind = errno.errorcode.get(error.errno, "unknown") if error.errno else "unknown"
        return cls(f"{message}: {error}", kind=kind)


class ProfileNotFoundError(DotstateError):
    """Raised when a profile is not listed in the manifest."""


class ProfileExistsError(DotstateError):
    """Raised when creating or renaming onto an existing profile."""


class InvalidProfileNameError(DotstateError):
    """Raised when a profile name fails validation."""


class CannotDeleteActiveError(DotstateError):
    """Raised when deleting the currently active profile."""


class VcsError(DotstateError):
    """Raised when a version-control operation fails."""


class PackageProbeError(DotstateError):
    """Raised when package probing or installation fails."""


class PackageNotFoundError(DotstateError):
    """Raised when a profile does not list the named package."""
