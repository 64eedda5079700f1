"""Profile manifest models.

This module defines the Pydantic models representing the
.dotstate-profiles.toml file stored at the root of the storage
repository. The manifest describes which files every profile syncs,
which files are shared through the common pool, and which packages a
profile expects to be installed.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dotstate.core.errors import (
    AlreadySyncedError,
    NotSyncedError,
    ProfileExistsError,
    ProfileNotFoundError,
)

MANIFEST_VERSION = 1


class PackageManager(str, Enum):
    """Package managers a profile package can be installed with."""

    BREW = "brew"
    APT = "apt"
    DNF = "dnf"
    YUM = "yum"
    PACMAN = "pacman"
    SNAP = "snap"
    CARGO = "cargo"
    NPM = "npm"
    PIP = "pip"
    PIP3 = "pip3"
    GEM = "gem"
    CUSTOM = "custom"


class Package(BaseModel):
    """A package a profile depends on.

    Attributes:
        name: Display name.
        description: Optional cached description.
        manager: Package manager used to install it.
        binary_name: Primary binary used for the existence check.
        package_name: Name inside the package manager (required unless custom).
        install_command: Shell command for custom packages.
        existence_check: Optional shell command overriding the binary check.
        manager_check: Optional manager-native check command.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Display name")]
    description: Annotated[str | None, Field(description="Package description")] = None
    manager: Annotated[PackageManager, Field(description="Package manager")]
    binary_name: Annotated[str, Field(min_length=1, description="Binary to look for")]
    package_name: Annotated[str | None, Field(description="Name in the manager")] = None
    install_command: Annotated[str | None, Field(description="Custom install command")] = None
    existence_check: Annotated[str | None, Field(description="Custom existence check")] = None
    manager_check: Annotated[str | None, Field(description="Manager-native check")] = None

    @model_validator(mode="after")
    def validate_manager_fields(self) -> Package:
        """Managed packages need a package name; custom ones need a command."""
        if self.manager == PackageManager.CUSTOM:
            if not self.install_command:
                msg = f"Custom package '{self.name}' requires install_command"
                raise ValueError(msg)
        elif not self.package_name:
            msg = f"Package '{self.name}' ({self.manager.value}) requires package_name"
            raise ValueError(msg)
        return self


class ProfileInfo(BaseModel):
    """A named profile in the manifest.

    Attributes:
        name: Profile name, matching its directory in the repository.
        description: Optional free-form description.
        synced_files: Home-relative paths synced by this profile.
        packages: Packages this profile expects.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Profile name")]
    description: Annotated[str | None, Field(description="Profile description")] = None
    synced_files: Annotated[
        list[str],
        Field(default_factory=list, description="Home-relative synced paths"),
    ]
    packages: Annotated[
        list[Package],
        Field(default_factory=list, description="Packages for this profile"),
    ]

    def has_file(self, relative_path: str) -> bool:
        """Check whether ``relative_path`` is synced by this profile."""
        return relative_path in self.synced_files


class CommonSection(BaseModel):
    """Files shared by every profile."""

    model_config = ConfigDict(extra="forbid")

    synced_files: Annotated[
        list[str],
        Field(default_factory=list, description="Home-relative synced paths"),
    ]


class ProfileManifest(BaseModel):
    """The complete profile manifest.

    Mutators keep ``synced_files`` lists sorted and unique so that the
    serialised manifest produces stable diffs.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[int, Field(description="Manifest schema version")] = MANIFEST_VERSION
    profiles: Annotated[
        list[ProfileInfo],
        Field(default_factory=list, description="Profiles in declaration order"),
    ]
    common: Annotated[
        CommonSection,
        Field(default_factory=CommonSection, description="Common pool"),
    ]

    @model_validator(mode="after")
    def normalize_file_lists(self) -> ProfileManifest:
        """Sort and de-duplicate every synced file list."""
        self.common.synced_files = sorted(set(self.common.synced_files))
        for profile in self.profiles:
            profile.synced_files = sorted(set(profile.synced_files))
        return self

    # -- lookup -------------------------------------------------------------

    def profile_names(self) -> list[str]:
        """Get all profile names in manifest order."""
        return [p.name for p in self.profiles]

    def has_profile(self, name: str) -> bool:
        """Check if a profile is listed."""
        return any(p.name == name for p in self.profiles)

    def find_profile(self, name: str) -> ProfileInfo | None:
        """Get a profile by name, or None."""
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None

    def get_profile(self, name: str) -> ProfileInfo:
        """Get a profile by name.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
        """
        profile = self.find_profile(name)
        if profile is None:
            raise ProfileNotFoundError(f"Profile '{name}' not found in manifest")
        return profile

    def is_common_file(self, relative_path: str) -> bool:
        """Check if a file is in the common pool."""
        return relative_path in self.common.synced_files

    def profiles_with_file(self, relative_path: str) -> list[str]:
        """Get the names of every profile syncing ``relative_path``."""
        return [p.name for p in self.profiles if relative_path in p.synced_files]

    # -- profile mutators ---------------------------------------------------

    def add_profile(self, name: str, description: str | None = None) -> ProfileInfo:
        """Append a new, empty profile.

        Raises:
            ProfileExistsError: If a profile with that name is already listed.
        """
        if self.has_profile(name):
            raise ProfileExistsError(f"Profile '{name}' already exists in manifest")
        profile = ProfileInfo(name=name, description=description)
        self.profiles.append(profile)
        return profile

    def remove_profile(self, name: str) -> None:
        """Remove a profile from the manifest.

        The caller is responsible for refusing to remove the active profile.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
        """
        self.get_profile(name)
        self.profiles = [p for p in self.profiles if p.name != name]

    def rename_profile(self, old_name: str, new_name: str) -> None:
        """Rename a profile in place, keeping its position.

        Raises:
            ProfileNotFoundError: If ``old_name`` is not listed.
            ProfileExistsError: If ``new_name`` is already taken.
        """
        profile = self.get_profile(old_name)
        if old_name != new_name and self.has_profile(new_name):
            raise ProfileExistsError(f"Profile '{new_name}' already exists in manifest")
        profile.name = new_name

    def update_synced_files(self, profile_name: str, synced_files: list[str]) -> None:
        """Replace a profile's synced file list.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
        """
        profile = self.get_profile(profile_name)
        profile.synced_files = sorted(set(synced_files))

    def add_profile_file(self, profile_name: str, relative_path: str) -> None:
        """Add one file to a profile.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
            AlreadySyncedError: If the profile already syncs the file.
        """
        profile = self.get_profile(profile_name)
        if relative_path in profile.synced_files:
            raise AlreadySyncedError(
                f"'{relative_path}' is already synced in profile '{profile_name}'"
            )
        profile.synced_files = sorted([*profile.synced_files, relative_path])

    def remove_profile_file(self, profile_name: str, relative_path: str) -> None:
        """Remove one file from a profile.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
            NotSyncedError: If the profile does not sync the file.
        """
        profile = self.get_profile(profile_name)
        if relative_path not in profile.synced_files:
            raise NotSyncedError(f"'{relative_path}' is not synced in profile '{profile_name}'")
        profile.synced_files = [f for f in profile.synced_files if f != relative_path]

    def update_packages(self, profile_name: str, packages: list[Package]) -> None:
        """Replace a profile's package list."""
        self.get_profile(profile_name).packages = list(packages)

    # -- common mutators ----------------------------------------------------

    def add_common_file(self, relative_path: str) -> None:
        """Add a file to the common pool.

        Raises:
            AlreadySyncedError: If the file is already common.
        """
        if relative_path in self.common.synced_files:
            raise AlreadySyncedError(f"'{relative_path}' is already in common")
        self.common.synced_files = sorted([*self.common.synced_files, relative_path])

    def remove_common_file(self, relative_path: str) -> None:
        """Remove a file from the common pool.

        Raises:
            NotSyncedError: If the file is not common.
        """
        if relative_path not in self.common.synced_files:
            raise NotSyncedError(f"'{relative_path}' is not in common")
        self.common.synced_files = [f for f in self.common.synced_files if f != relative_path]

    def move_to_common(self, profile_name: str, relative_path: str) -> None:
        """Move a file from a profile to the common pool.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
            NotSyncedError: If the profile does not sync the file.
            AlreadySyncedError: If the file is already common.
        """
        profile = self.get_profile(profile_name)
        if relative_path not in profile.synced_files:
            raise NotSyncedError(f"'{relative_path}' is not synced in profile '{profile_name}'")
        if relative_path in self.common.synced_files:
            raise AlreadySyncedError(f"'{relative_path}' is already in common")
        profile.synced_files = [f for f in profile.synced_files if f != relative_path]
        self.common.synced_files = sorted([*self.common.synced_files, relative_path])

    def move_from_common(self, profile_name: str, relative_path: str) -> None:
        """Move a file from the common pool into a profile.

        Raises:
            ProfileNotFoundError: If the profile is not listed.
            NotSyncedError: If the file is not common.
            AlreadySyncedError: If the profile already syncs the file.
        """
        profile = self.get_profile(profile_name)
        if relative_path not in self.common.synced_files:
            raise NotSyncedError(f"'{relative_path}' is not in common")
        if relative_path in profile.synced_files:
            raise AlreadySyncedError(
                f"'{relative_path}' is already synced in profile '{profile_name}'"
            )
        self.common.synced_files = [f for f in self.common.synced_files if f != relative_path]
        profile.synced_files = sorted([*profile.synced_files, relative_path])
