"""Profile manifest file I/O.

This module loads and saves the .dotstate-profiles.toml manifest that
lives in the storage repository root, and backfills profiles whose
directories exist on disk but are missing from the manifest (a freshly
cloned repository, or one created before the manifest existed).
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from dotstate.core.errors import MalformedStoreError, StorageIOError
from dotstate.core.paths import COMMON_DIR_NAME, get_common_dir, get_manifest_path
from dotstate.core.profile_names import is_safe_profile_name
from dotstate.models.manifest import ProfileManifest
from dotstate.utils.fileops import atomic_write

logger = logging.getLogger(__name__)


class ManifestError(MalformedStoreError):
    """Raised when the manifest cannot be parsed or validated."""


class ManifestParseError(ManifestError):
    """Raised when the manifest TOML syntax is invalid."""


class ManifestValidationError(ManifestError):
    """Raised when the manifest content does not match the schema."""


def load_manifest(repo_path: Path, *, backfill: bool = True) -> ProfileManifest:
    """Load the manifest from a repository.

    A missing file yields an empty manifest; a present but malformed file
    fails loudly.

    Args:
        repo_path: Storage repository root.
        backfill: Whether to add profiles found on disk but not listed.

    Returns:
        Validated ProfileManifest.

    Raises:
        ManifestParseError: If the TOML syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
        StorageIOError: If the file cannot be read.
    """
    manifest_path = get_manifest_path(repo_path)
    manifest_exists = manifest_path.exists()

    if manifest_exists:
        try:
            with open(manifest_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ManifestParseError(f"Invalid TOML syntax in {manifest_path}: {e}") from e
        except OSError as e:
            raise StorageIOError.from_os_error("Failed to read manifest", e) from e

        try:
            manifest = ProfileManifest.model_validate(data)
        except ValidationError as e:
            raise ManifestValidationError(f"Invalid manifest content: {e}") from e
    else:
        manifest = ProfileManifest()

    if backfill:
        added = backfill_from_repo(manifest, repo_path, seed_common=not manifest_exists)
        if added:
            logger.info("Backfilled %d profile(s) from %s: %s", len(added), repo_path, added)

    return manifest


def backfill_from_repo(
    manifest: ProfileManifest,
    repo_path: Path,
    *,
    seed_common: bool = False,
) -> list[str]:
    """Add profiles whose directories exist but are not listed.

    Only directories whose name matches the profile-name grammar are
    considered, which skips ``.git``, ``common`` and other reserved
    names. Directories are visited in sorted order so backfill is
    deterministic.

    Args:
        manifest: Manifest to extend in place.
        repo_path: Storage repository root.
        seed_common: Also list the files already present in ``common/``
            (used when no manifest file exists yet).

    Returns:
        Names of the profiles that were added.
    """
    added: list[str] = []
    if not repo_path.is_dir():
        return added

    for entry in sorted(repo_path.iterdir()):
        if not entry.is_dir() or entry.is_symlink():
            continue
        name = entry.name
        if name == COMMON_DIR_NAME or not is_safe_profile_name(name):
            continue
        if manifest.has_profile(name):
            continue
        manifest.add_profile(name)
        added.append(name)

    if seed_common and not manifest.common.synced_files:
        common_dir = get_common_dir(repo_path)
        if common_dir.is_dir():
            manifest.common.synced_files = _scan_folder_files(common_dir)

    return added


def _scan_folder_files(folder: Path) -> list[str]:
    """List every file under ``folder`` as sorted relative paths."""
    files: list[str] = []
    for path in folder.rglob("*"):
        if path.is_file() or path.is_symlink():
            files.append(path.relative_to(folder).as_posix())
    return sorted(files)


def save_manifest(manifest: ProfileManifest, repo_path: Path) -> Path:
    """Save the manifest atomically.

    Args:
        manifest: The manifest to save.
        repo_path: Storage repository root.

    Returns:
        Path where the manifest was saved.

    Raises:
        StorageIOError: If the file cannot be written.
    """
    manifest_path = get_manifest_path(repo_path)
    data = _manifest_to_dict(manifest)
    try:
        atomic_write(manifest_path, tomli_w.dumps(data).encode("utf-8"))
    except OSError as e:
        raise StorageIOError.from_os_error("Failed to write manifest", e) from e
    logger.debug("Manifest saved to %s", manifest_path)
    return manifest_path


def manifest_exists(repo_path: Path) -> bool:
    """Check if a manifest file exists in the repository."""
    return get_manifest_path(repo_path).exists()


def _manifest_to_dict(manifest: ProfileManifest) -> dict[str, Any]:
    """Convert a manifest to a dictionary suitable for TOML serialization.

    None values are dropped because TOML has no null.
    """
    return {
        "version": manifest.version,
        "common": {"synced_files": list(manifest.common.synced_files)},
        "profiles": [
            {
                "name": profile.name,
                **({"description": profile.description} if profile.description else {}),
                "synced_files": list(profile.synced_files),
                "packages": [
                    pkg.model_dump(mode="json", exclude_none=True) for pkg in profile.packages
                ],
            }
            for profile in manifest.profiles
        ],
    }
