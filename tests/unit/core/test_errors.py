"""Unit tests for the error hierarchy."""

import errno

import pytest
from dotstate.core import errors
from dotstate.core.errors import DotstateError, MalformedStoreError, StorageIOError


class TestHierarchy:
    """Every core error is catchable as DotstateError."""

    @pytest.mark.parametrize(
        "error_class",
        [
            errors.NotConfiguredError,
            errors.MissingSourceError,
            errors.UnsafePathError,
            errors.AlreadySyncedError,
            errors.NotSyncedError,
            errors.ConflictError,
            errors.TargetOccupiedError,
            errors.MalformedStoreError,
            errors.StorageIOError,
            errors.ProfileNotFoundError,
            errors.ProfileExistsError,
            errors.InvalidProfileNameError,
            errors.CannotDeleteActiveError,
            errors.VcsError,
            errors.PackageProbeError,
            errors.PackageNotFoundError,
        ],
    )
    def test_derives_from_base(self, error_class: type[Exception]) -> None:
        """The CLI maps any of these to exit code 1."""
        assert issubclass(error_class, DotstateError)

    def test_malformed_store_is_not_io(self) -> None:
        """Parse failures and I/O failures are distinct families."""
        assert not issubclass(MalformedStoreError, StorageIOError)


class TestStorageIOError:
    """Tests for StorageIOError."""

    def test_default_kind(self) -> None:
        """Errors without an errno are 'unknown'."""
        assert StorageIOError("boom").kind == "unknown"

    def test_from_os_error(self) -> None:
        """The errno name is carried as kind."""
        os_error = PermissionError(errno.EACCES, "Permission denied", "/x")

        error = StorageIOError.from_os_error("Failed to write", os_error)

        assert error.kind == "EACCES"
        assert str(error).startswith("Failed to write: ")

    def test_from_os_error_without_errno(self) -> None:
        """OSErrors without errno map to 'unknown'."""
        error = StorageIOError.from_os_error("Failed", OSError("no errno"))

        assert error.kind == "unknown"
