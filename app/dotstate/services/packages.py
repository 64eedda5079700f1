"""Per-profile package lists.

PackageService edits the packages a profile expects and checks or
installs them through a PackageProbe.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from dotstate.core.errors import PackageNotFoundError
from dotstate.core.manifest import load_manifest, save_manifest
from dotstate.models.manifest import Package, ProfileManifest
from dotstate.ports.packages import (
    CheckStatus,
    InstallResult,
    PackageCheckResult,
    PackageProbe,
    SubprocessPackageProbe,
)
from dotstate.utils.shell import OutputLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PackageState:
    """A package together with whether it was found on this machine."""

    package: Package
    check: PackageCheckResult


class PackageService:
    """Lists, edits, checks and installs a profile's packages.

    Attributes:
        repo_path: Storage repository root.
        manifest: Loaded profile manifest.
        probe: Backend used for checks and installs.
    """

    def __init__(
        self,
        repo_path: Path,
        manifest: ProfileManifest | None = None,
        probe: PackageProbe | None = None,
    ) -> None:
        self.repo_path = repo_path
        self.manifest = manifest if manifest is not None else load_manifest(repo_path)
        self.probe: PackageProbe = probe if probe is not None else SubprocessPackageProbe()

    def list_packages(self, profile_name: str) -> list[Package]:
        """Get a profile's packages.

        Raises:
            ProfileNotFoundError: If the profile is not in the manifest.
        """
        return list(self.manifest.get_profile(profile_name).packages)

    def add_package(self, profile_name: str, package: Package) -> list[Package]:
        """Append a package to a profile and save the manifest."""
        profile = self.manifest.get_profile(profile_name)
        logger.info("Adding package %s to profile %s", package.name, profile_name)
        self.manifest.update_packages(profile_name, [*profile.packages, package])
        save_manifest(self.manifest, self.repo_path)
        return self.list_packages(profile_name)

    def remove_package(self, profile_name: str, name: str) -> Package:
        """Remove the first package called ``name`` from a profile.

        Raises:
            ProfileNotFoundError: If the profile is not in the manifest.
            PackageNotFoundError: If the profile has no such package.
        """
        packages = self.list_packages(profile_name)
        for index, package in enumerate(packages):
            if package.name == name:
                del packages[index]
                self.manifest.update_packages(profile_name, packages)
                save_manifest(self.manifest, self.repo_path)
                logger.info("Removed package %s from profile %s", name, profile_name)
                return package
        raise PackageNotFoundError(f"Package '{name}' not found in profile '{profile_name}'")

    def check_packages(self, profile_name: str) -> list[PackageState]:
        """Look for every package of a profile on this machine."""
        states = []
        for package in self.list_packages(profile_name):
            result = self.probe.is_installed(package)
            logger.debug("Package %s: %s", package.name, result.status.value)
            states.append(PackageState(package, result))
        return states

    def install_missing(
        self,
        profile_name: str,
        on_start: Callable[[Package], None] | None = None,
        on_output: Callable[[OutputLine], None] | None = None,
    ) -> list[InstallResult]:
        """Install every package of a profile that is not already installed.

        Packages whose check reports an error (usually a missing manager)
        are skipped.

        Raises:
            PackageProbeError: If an install command cannot be started.
        """
        results = []
        for state in self.check_packages(profile_name):
            if state.check.installed:
                continue
            if state.check.status == CheckStatus.ERROR:
                logger.warning("Skipping %s: %s", state.package.name, state.check.message)
                continue
            if on_start is not None:
                on_start(state.package)
            results.append(self.probe.install(state.package, on_output))
        return results
