"""Result models for symlink operations.

This module defines the data structures returned by the SymlinkEngine:
the outcome of a single create or remove, and the aggregate reports of
batch operations (activation, switch, reconciliation, preview).
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class OperationStatus(Enum):
    """Outcome of a single symlink operation.

    Attributes:
        SUCCESS: The filesystem was changed as requested.
        SKIPPED: Nothing needed doing, or the target was not ours to touch.
        FAILED: The operation could not be completed.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class OperationKind(Enum):
    """Kind of symlink operation."""

    CREATE = "create"
    REMOVE = "remove"


class RemoveMode(Enum):
    """What to leave behind after removing a managed symlink.

    Attributes:
        RESTORE_FROM_REPO: Copy the repository file (or the backup) back to home.
        REMOVE_ONLY: Leave the target absent.
    """

    RESTORE_FROM_REPO = "restore_from_repo"
    REMOVE_ONLY = "remove_only"


# Reasons reported with SKIPPED and FAILED outcomes.
REASON_ALREADY_CORRECT = "already correct"
REASON_ALREADY_GONE = "already gone"
REASON_NOT_OURS = "not ours"
REASON_SOURCE_MISSING = "source missing"


@dataclass(frozen=True, slots=True)
class SymlinkOperation:
    """Result of a single symlink create or remove.

    Attributes:
        kind: Whether a link was created or removed.
        source: Repository path the link points (or pointed) to.
        target: Symlink location in home.
        status: Outcome of the operation.
        reason: Why the operation was skipped or failed.
        backup: Backup taken before the target was replaced, if any.
    """

    kind: OperationKind
    source: Path
    target: Path
    status: OperationStatus
    reason: str | None = None
    backup: Path | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the operation changed the filesystem."""
        return self.status == OperationStatus.SUCCESS

    @property
    def skipped(self) -> bool:
        """Check if the operation was a no-op."""
        return self.status == OperationStatus.SKIPPED

    @property
    def failed(self) -> bool:
        """Check if the operation failed."""
        return self.status == OperationStatus.FAILED


@dataclass(slots=True)
class BatchReport:
    """Aggregate result of a batch of symlink operations.

    Attributes:
        operations: Every operation in processing order.
        aborted: Error that stopped the batch early, if any.
    """

    operations: list[SymlinkOperation] = field(default_factory=list)
    aborted: str | None = None

    @property
    def created(self) -> int:
        """Number of successful operations."""
        return sum(1 for op in self.operations if op.succeeded)

    @property
    def skipped(self) -> int:
        """Number of skipped operations."""
        return sum(1 for op in self.operations if op.skipped)

    @property
    def errors(self) -> list[str]:
        """Human-readable descriptions of the failed operations."""
        return [f"{op.target}: {op.reason}" for op in self.operations if op.failed]

    @property
    def has_errors(self) -> bool:
        """Check if any operation failed."""
        return any(op.failed for op in self.operations)


@dataclass(slots=True)
class SwitchReport:
    """Result of switching from one profile to another.

    Attributes:
        from_profile: Profile that was active before the switch.
        to_profile: Profile that was requested.
        removed: Operations that took down the old profile's symlinks.
        created: Operations that activated the new profile.
        errors: Errors that aborted the switch.
        rollback_performed: Whether the old profile was re-activated after a failure.
    """

    from_profile: str
    to_profile: str
    removed: list[SymlinkOperation] = field(default_factory=list)
    created: list[SymlinkOperation] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rollback_performed: bool = False

    @property
    def success(self) -> bool:
        """Check if the switch completed without errors."""
        return not self.errors


@dataclass(frozen=True, slots=True)
class SwitchPreview:
    """Dry-run description of a profile switch.

    Attributes:
        will_remove: Managed symlinks that would be taken down.
        will_create: Home paths that would become symlinks.
        conflicts: Home paths occupied by something dotstate does not own;
            they would be backed up and replaced.
    """

    will_remove: list[Path]
    will_create: list[Path]
    conflicts: list[Path]
