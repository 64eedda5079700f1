"""Unit tests for manifest file I/O and backfill."""

import tomllib
from pathlib import Path

import pytest
from dotstate.core.errors import MalformedStoreError
from dotstate.core.manifest import (
    ManifestParseError,
    ManifestValidationError,
    backfill_from_repo,
    load_manifest,
    manifest_exists,
    save_manifest,
)
from dotstate.models.manifest import Package, PackageManager, ProfileManifest


class TestLoadManifest:
    """Tests for load_manifest function."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """A repository without a manifest yields an empty one."""
        manifest = load_manifest(tmp_path)

        assert manifest.profiles == []
        assert manifest.common.synced_files == []
        assert not manifest_exists(tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ManifestParseError."""
        (tmp_path / ".dotstate-profiles.toml").write_text("[[profiles]\nname=")

        with pytest.raises(ManifestParseError):
            load_manifest(tmp_path)

    def test_invalid_schema(self, tmp_path: Path) -> None:
        """Unknown keys raise ManifestValidationError."""
        (tmp_path / ".dotstate-profiles.toml").write_text('surprise = "yes"\n')

        with pytest.raises(ManifestValidationError):
            load_manifest(tmp_path)

    def test_errors_are_malformed_store(self) -> None:
        """Both manifest errors are MalformedStoreError."""
        assert issubclass(ManifestParseError, MalformedStoreError)
        assert issubclass(ManifestValidationError, MalformedStoreError)

    def test_reads_profiles_and_packages(self, tmp_path: Path) -> None:
        """Profiles, files and packages are parsed."""
        (tmp_path / ".dotstate-profiles.toml").write_text(
            """\
version = 1

[common]
synced_files = [".gitconfig"]

[[profiles]]
name = "Work"
description = "Laptop"
synced_files = [".zshrc", ".bashrc"]

[[profiles.packages]]
name = "ripgrep"
manager = "brew"
binary_name = "rg"
package_name = "ripgrep"
"""
        )

        manifest = load_manifest(tmp_path, backfill=False)

        work = manifest.get_profile("Work")
        assert work.description == "Laptop"
        assert work.synced_files == [".bashrc", ".zshrc"]
        assert work.packages[0].binary_name == "rg"
        assert manifest.common.synced_files == [".gitconfig"]


class TestBackfill:
    """Tests for backfill of profiles found on disk."""

    def test_adds_profile_directories(self, tmp_path: Path) -> None:
        """Directories matching the name grammar become profiles, sorted."""
        for name in ("Work", "Home", ".git", "common", "backup", "has space"):
            (tmp_path / name).mkdir()

        manifest = load_manifest(tmp_path)

        assert manifest.profile_names() == ["Home", "Work"]

    def test_skips_files_and_symlinks(self, tmp_path: Path) -> None:
        """Only real directories are considered."""
        (tmp_path / "Real").mkdir()
        (tmp_path / "file").write_text("x")
        (tmp_path / "Linked").symlink_to(tmp_path / "Real")

        manifest = load_manifest(tmp_path)

        assert manifest.profile_names() == ["Real"]

    def test_keeps_listed_profiles(self, tmp_path: Path) -> None:
        """Listed profiles are not duplicated."""
        (tmp_path / "Work").mkdir()
        manifest = ProfileManifest()
        manifest.add_profile("Work", "listed")

        added = backfill_from_repo(manifest, tmp_path)

        assert added == []
        assert manifest.get_profile("Work").description == "listed"

    def test_seeds_common_without_manifest(self, tmp_path: Path) -> None:
        """With no manifest file, files already in common/ are listed."""
        (tmp_path / "common" / ".config" / "git").mkdir(parents=True)
        (tmp_path / "common" / ".config" / "git" / "config").write_text("x")
        (tmp_path / "common" / ".gitconfig").write_text("x")

        manifest = load_manifest(tmp_path)

        assert manifest.common.synced_files == [".config/git/config", ".gitconfig"]

    def test_does_not_seed_common_with_manifest(self, tmp_path: Path) -> None:
        """An existing manifest's common list is authoritative."""
        save_manifest(ProfileManifest(), tmp_path)
        (tmp_path / "common").mkdir()
        (tmp_path / "common" / ".gitconfig").write_text("x")

        manifest = load_manifest(tmp_path)

        assert manifest.common.synced_files == []

    def test_missing_repo(self, tmp_path: Path) -> None:
        """A missing repository backfills nothing."""
        assert backfill_from_repo(ProfileManifest(), tmp_path / "absent") == []


class TestSaveManifest:
    """Tests for save_manifest function."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved manifest loads back equal."""
        manifest = ProfileManifest()
        manifest.add_profile("Work", "Laptop")
        manifest.add_profile_file("Work", ".zshrc")
        manifest.add_common_file(".gitconfig")
        manifest.update_packages(
            "Work",
            [
                Package(
                    name="ripgrep",
                    manager=PackageManager.CARGO,
                    binary_name="rg",
                    package_name="ripgrep",
                )
            ],
        )

        save_manifest(manifest, tmp_path)
        loaded = load_manifest(tmp_path, backfill=False)

        assert loaded == manifest

    def test_omits_none(self, tmp_path: Path) -> None:
        """Unset descriptions and optional package fields are not written."""
        manifest = ProfileManifest()
        manifest.add_profile("Work")
        manifest.update_packages(
            "Work",
            [
                Package(
                    name="tool",
                    manager=PackageManager.CUSTOM,
                    binary_name="tool",
                    install_command="curl -sL example.sh | sh",
                )
            ],
        )

        path = save_manifest(manifest, tmp_path)
        data = tomllib.loads(path.read_text())

        profile = data["profiles"][0]
        assert "description" not in profile
        assert "package_name" not in profile["packages"][0]
        assert manifest_exists(tmp_path)
