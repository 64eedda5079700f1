"""Profile name grammar.

A profile name doubles as a directory name in the storage repository,
so it is restricted to a portable character set:

- 1 to 50 characters
- ASCII letters, digits, ``-``, ``_`` and ``.``
- must not start with ``.``
- must not be a reserved name (case-insensitive)
"""

from dotstate.core.errors import InvalidProfileNameError, ProfileExistsError

MAX_NAME_LENGTH = 50

RESERVED_NAMES = frozenset({"common", "backup", "temp", ".git", "node_modules", "target", "build"})

_ALLOWED_PUNCTUATION = frozenset("-_.")


def _is_allowed_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in _ALLOWED_PUNCTUATION


def is_reserved_name(name: str) -> bool:
    """Check if a name is reserved (case-insensitive)."""
    return name.lower() in RESERVED_NAMES


def is_safe_profile_name(name: str) -> bool:
    """Check the name format only, without uniqueness."""
    return (
        0 < len(name) <= MAX_NAME_LENGTH
        and not name.startswith(".")
        and all(_is_allowed_char(c) for c in name)
        and not is_reserved_name(name)
    )


def sanitize_profile_name(name: str) -> str:
    """Turn arbitrary input into a directory-safe profile name.

    Whitespace becomes ``-``, any other disallowed character becomes
    ``_``, and the result is truncated to MAX_NAME_LENGTH. The result may
    be empty; callers reject that.
    """
    sanitized: list[str] = []
    for char in name.strip():
        if _is_allowed_char(char):
            sanitized.append(char)
        elif char.isspace():
            sanitized.append("-")
        else:
            sanitized.append("_")
    return "".join(sanitized)[:MAX_NAME_LENGTH]


def validate_profile_name(name: str, existing: list[str]) -> None:
    """Validate a profile name against the grammar and existing names.

    Args:
        name: Candidate profile name.
        existing: Names already in use.

    Raises:
        InvalidProfileNameError: If the name breaks the grammar.
        ProfileExistsError: If the name collides with an existing one
            (case-insensitive).
    """
    if not name.strip():
        raise InvalidProfileNameError("Profile name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidProfileNameError(
            f"Profile name must be {MAX_NAME_LENGTH} characters or less (got {len(name)})"
        )
    if name.startswith("."):
        raise InvalidProfileNameError("Profile name cannot start with a dot")
    if not all(_is_allowed_char(c) for c in name):
        raise InvalidProfileNameError(
            "Profile name can only contain letters, numbers, '-', '_' and '.'"
        )
    if is_reserved_name(name):
        raise InvalidProfileNameError(f"'{name}' is a reserved name and cannot be used")
    lowered = name.lower()
    if any(e.lower() == lowered for e in existing):
        raise ProfileExistsError(f"A profile with the name '{name}' already exists")
