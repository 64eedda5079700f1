"""Unit tests for profile manifest models."""

import pytest
from dotstate.core.errors import (
    AlreadySyncedError,
    NotSyncedError,
    ProfileExistsError,
    ProfileNotFoundError,
)
from dotstate.models.manifest import (
    Package,
    PackageManager,
    ProfileInfo,
    ProfileManifest,
)
from pydantic import ValidationError


class TestPackage:
    """Tests for Package model validation."""

    def test_managed_package(self) -> None:
        """Managed packages need a package name."""
        package = Package(
            name="ripgrep", manager=PackageManager.APT, binary_name="rg", package_name="ripgrep"
        )
        assert package.manager == PackageManager.APT

    def test_managed_without_package_name(self) -> None:
        """A managed package without package_name is rejected."""
        with pytest.raises(ValidationError, match="requires package_name"):
            Package(name="ripgrep", manager=PackageManager.BREW, binary_name="rg")

    def test_custom_requires_install_command(self) -> None:
        """Custom packages need an install command."""
        with pytest.raises(ValidationError, match="requires install_command"):
            Package(name="tool", manager=PackageManager.CUSTOM, binary_name="tool")

    def test_custom_package(self) -> None:
        """Custom packages do not need a package name."""
        package = Package(
            name="tool",
            manager=PackageManager.CUSTOM,
            binary_name="tool",
            install_command="make install",
        )
        assert package.package_name is None

    def test_manager_values(self) -> None:
        """Manager values are lowercase strings in the manifest."""
        assert PackageManager("pip3") == PackageManager.PIP3
        assert {m.value for m in PackageManager} >= {"brew", "apt", "cargo", "custom"}

    def test_rejects_empty_name(self) -> None:
        """Names must not be empty."""
        with pytest.raises(ValidationError):
            Package(name="", manager=PackageManager.NPM, binary_name="x", package_name="x")


class TestProfileManifestValidation:
    """Tests for manifest-level validation."""

    def test_file_lists_sorted_and_unique(self) -> None:
        """Loaded file lists are sorted and de-duplicated."""
        manifest = ProfileManifest.model_validate(
            {
                "profiles": [{"name": "Work", "synced_files": [".zshrc", ".bashrc", ".zshrc"]}],
                "common": {"synced_files": [".vimrc", ".gitconfig"]},
            }
        )

        assert manifest.get_profile("Work").synced_files == [".bashrc", ".zshrc"]
        assert manifest.common.synced_files == [".gitconfig", ".vimrc"]

    def test_extra_keys_forbidden(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValidationError):
            ProfileInfo.model_validate({"name": "Work", "colour": "blue"})


class TestProfileMutators:
    """Tests for profile add/remove/rename."""

    def test_add_profile(self) -> None:
        """Profiles are appended in declaration order."""
        manifest = ProfileManifest()
        manifest.add_profile("B")
        manifest.add_profile("A", "first letter")

        assert manifest.profile_names() == ["B", "A"]
        assert manifest.get_profile("A").description == "first letter"

    def test_add_duplicate(self) -> None:
        """Adding an existing name raises ProfileExistsError."""
        manifest = ProfileManifest()
        manifest.add_profile("Work")

        with pytest.raises(ProfileExistsError):
            manifest.add_profile("Work")

    def test_get_missing(self) -> None:
        """Looking up a missing profile raises ProfileNotFoundError."""
        manifest = ProfileManifest()

        assert manifest.find_profile("Nope") is None
        with pytest.raises(ProfileNotFoundError):
            manifest.get_profile("Nope")

    def test_remove_profile(self) -> None:
        """Removing drops the profile."""
        manifest = ProfileManifest()
        manifest.add_profile("A")
        manifest.add_profile("B")

        manifest.remove_profile("A")

        assert manifest.profile_names() == ["B"]
        with pytest.raises(ProfileNotFoundError):
            manifest.remove_profile("A")

    def test_rename_keeps_position(self) -> None:
        """Renaming keeps the profile in place."""
        manifest = ProfileManifest()
        manifest.add_profile("A")
        manifest.add_profile("B")
        manifest.add_profile("C")

        manifest.rename_profile("B", "Beta")

        assert manifest.profile_names() == ["A", "Beta", "C"]

    def test_rename_onto_existing(self) -> None:
        """Renaming onto another profile's name fails."""
        manifest = ProfileManifest()
        manifest.add_profile("A")
        manifest.add_profile("B")

        with pytest.raises(ProfileExistsError):
            manifest.rename_profile("A", "B")


class TestFileMutators:
    """Tests for synced file mutators."""

    @pytest.fixture
    def manifest(self) -> ProfileManifest:
        """A manifest with profiles A and B."""
        manifest = ProfileManifest()
        manifest.add_profile("A")
        manifest.add_profile("B")
        return manifest

    def test_add_profile_file_sorted(self, manifest: ProfileManifest) -> None:
        """Files are kept sorted."""
        manifest.add_profile_file("A", ".zshrc")
        manifest.add_profile_file("A", ".bashrc")

        assert manifest.get_profile("A").synced_files == [".bashrc", ".zshrc"]
        assert manifest.get_profile("A").has_file(".zshrc")

    def test_add_profile_file_twice(self, manifest: ProfileManifest) -> None:
        """Adding a synced file again raises AlreadySyncedError."""
        manifest.add_profile_file("A", ".zshrc")

        with pytest.raises(AlreadySyncedError):
            manifest.add_profile_file("A", ".zshrc")

    def test_remove_profile_file(self, manifest: ProfileManifest) -> None:
        """Removing an unsynced file raises NotSyncedError."""
        manifest.add_profile_file("A", ".zshrc")
        manifest.remove_profile_file("A", ".zshrc")

        assert manifest.get_profile("A").synced_files == []
        with pytest.raises(NotSyncedError):
            manifest.remove_profile_file("A", ".zshrc")

    def test_common_files(self, manifest: ProfileManifest) -> None:
        """The common pool has its own add and remove."""
        manifest.add_common_file(".gitconfig")

        assert manifest.is_common_file(".gitconfig")
        with pytest.raises(AlreadySyncedError):
            manifest.add_common_file(".gitconfig")

        manifest.remove_common_file(".gitconfig")
        with pytest.raises(NotSyncedError):
            manifest.remove_common_file(".gitconfig")

    def test_profiles_with_file(self, manifest: ProfileManifest) -> None:
        """Profiles syncing a file are listed in order."""
        manifest.add_profile_file("A", ".gitconfig")
        manifest.add_profile_file("B", ".gitconfig")

        assert manifest.profiles_with_file(".gitconfig") == ["A", "B"]

    def test_move_to_common(self, manifest: ProfileManifest) -> None:
        """Moving takes the file out of the profile and into common."""
        manifest.add_profile_file("A", ".gitconfig")

        manifest.move_to_common("A", ".gitconfig")

        assert manifest.get_profile("A").synced_files == []
        assert manifest.common.synced_files == [".gitconfig"]

    def test_move_to_common_requires_profile_file(self, manifest: ProfileManifest) -> None:
        """Only files the profile syncs can be moved."""
        with pytest.raises(NotSyncedError):
            manifest.move_to_common("A", ".gitconfig")

    def test_move_from_common(self, manifest: ProfileManifest) -> None:
        """Moving back puts the file in the profile only."""
        manifest.add_common_file(".gitconfig")

        manifest.move_from_common("B", ".gitconfig")

        assert manifest.common.synced_files == []
        assert manifest.get_profile("B").synced_files == [".gitconfig"]

    def test_move_from_common_conflict(self, manifest: ProfileManifest) -> None:
        """A profile already syncing the file cannot receive it."""
        manifest.add_common_file(".gitconfig")
        manifest.add_profile_file("B", ".gitconfig")

        with pytest.raises(AlreadySyncedError):
            manifest.move_from_common("B", ".gitconfig")

    def test_update_packages(self, manifest: ProfileManifest) -> None:
        """A profile's package list is replaced wholesale."""
        package = Package(
            name="jq", manager=PackageManager.BREW, binary_name="jq", package_name="jq"
        )

        manifest.update_packages("A", [package])

        assert manifest.get_profile("A").packages == [package]
        assert manifest.get_profile("B").packages == []
