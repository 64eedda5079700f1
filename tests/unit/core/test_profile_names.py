"""Unit tests for the profile name grammar."""

import pytest
from dotstate.core.errors import InvalidProfileNameError, ProfileExistsError
from dotstate.core.profile_names import (
    MAX_NAME_LENGTH,
    is_reserved_name,
    is_safe_profile_name,
    sanitize_profile_name,
    validate_profile_name,
)


class TestIsSafeProfileName:
    """Tests for is_safe_profile_name function."""

    @pytest.mark.parametrize("name", ["Work", "my-laptop", "v1.2_beta", "a" * MAX_NAME_LENGTH])
    def test_accepts(self, name: str) -> None:
        """Portable names are accepted."""
        assert is_safe_profile_name(name)

    @pytest.mark.parametrize(
        "name",
        [
            "",
            ".hidden",
            "has space",
            "slash/name",
            "ümlaut",
            "a" * (MAX_NAME_LENGTH + 1),
            "Common",
        ],
    )
    def test_rejects(self, name: str) -> None:
        """Empty, dotted, non-portable, overlong and reserved names are rejected."""
        assert not is_safe_profile_name(name)


class TestIsReservedName:
    """Tests for is_reserved_name function."""

    @pytest.mark.parametrize("name", ["common", "COMMON", "backup", "Temp", ".git", "build"])
    def test_reserved(self, name: str) -> None:
        """Reserved names are matched case-insensitively."""
        assert is_reserved_name(name)

    def test_not_reserved(self) -> None:
        """Ordinary names are not reserved."""
        assert not is_reserved_name("Work")


class TestSanitizeProfileName:
    """Tests for sanitize_profile_name function."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Work", "Work"),
            ("  My Laptop  ", "My-Laptop"),
            ("a/b:c", "a_b_c"),
            ("café", "caf_"),
            ("   ", ""),
        ],
    )
    def test_sanitizes(self, raw: str, expected: str) -> None:
        """Whitespace becomes '-' and other disallowed characters become '_'."""
        assert sanitize_profile_name(raw) == expected

    def test_truncates(self) -> None:
        """Results are cut to the maximum length."""
        assert len(sanitize_profile_name("x" * 80)) == MAX_NAME_LENGTH


class TestValidateProfileName:
    """Tests for validate_profile_name function."""

    def test_valid(self) -> None:
        """A new, well-formed name passes."""
        validate_profile_name("Work", ["Home"])

    @pytest.mark.parametrize(
        ("name", "message"),
        [
            ("", "cannot be empty"),
            ("x" * 51, "50 characters or less"),
            (".hidden", "cannot start with a dot"),
            ("bad name", "can only contain"),
            ("common", "reserved"),
        ],
    )
    def test_invalid(self, name: str, message: str) -> None:
        """Grammar violations raise InvalidProfileNameError."""
        with pytest.raises(InvalidProfileNameError, match=message):
            validate_profile_name(name, [])

    def test_duplicate_case_insensitive(self) -> None:
        """Names collide regardless of case."""
        with pytest.raises(ProfileExistsError):
            validate_profile_name("work", ["Work"])
