"""Package probing and installation.

The core only depends on the PackageProbe protocol. The subprocess
adapter below checks for packages and installs them by shelling out
to the package managers themselves.
"""

import logging
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from dotstate.core.errors import PackageProbeError
from dotstate.models.manifest import Package, PackageManager
from dotstate.utils.shell import OutputLine, StreamingCommand, command_exists, run_command

logger = logging.getLogger(__name__)

# Binary whose presence means the manager can be used.
MANAGER_BINARIES: dict[PackageManager, str] = {
    PackageManager.BREW: "brew",
    PackageManager.APT: "apt-get",
    PackageManager.YUM: "yum",
    PackageManager.DNF: "dnf",
    PackageManager.PACMAN: "pacman",
    PackageManager.SNAP: "snap",
    PackageManager.CARGO: "cargo",
    PackageManager.NPM: "npm",
    PackageManager.PIP: "pip",
    PackageManager.PIP3: "pip3",
    PackageManager.GEM: "gem",
}

_INSTALL_PREFIXES: dict[PackageManager, list[str]] = {
    PackageManager.BREW: ["brew", "install"],
    PackageManager.APT: ["sudo", "apt-get", "install", "-y"],
    PackageManager.YUM: ["sudo", "yum", "install", "-y"],
    PackageManager.DNF: ["sudo", "dnf", "install", "-y"],
    PackageManager.PACMAN: ["sudo", "pacman", "-S", "--noconfirm"],
    PackageManager.SNAP: ["sudo", "snap", "install"],
    PackageManager.CARGO: ["cargo", "install"],
    PackageManager.NPM: ["npm", "install", "-g"],
    PackageManager.PIP: ["pip", "install"],
    PackageManager.PIP3: ["pip3", "install"],
    PackageManager.GEM: ["gem", "install"],
}

_CHECK_PREFIXES: dict[PackageManager, list[str]] = {
    PackageManager.BREW: ["brew", "list"],
    PackageManager.APT: ["dpkg", "-s"],
    PackageManager.YUM: ["rpm", "-q"],
    PackageManager.DNF: ["rpm", "-q"],
    PackageManager.PACMAN: ["pacman", "-Q"],
    PackageManager.SNAP: ["snap", "list"],
    PackageManager.NPM: ["npm", "list", "-g"],
    PackageManager.PIP: ["pip", "show"],
    PackageManager.PIP3: ["pip3", "show"],
    PackageManager.GEM: ["gem", "list", "-i"],
}

_LINUX_MANAGERS = (
    PackageManager.APT,
    PackageManager.YUM,
    PackageManager.DNF,
    PackageManager.PACMAN,
    PackageManager.SNAP,
)
_CROSS_PLATFORM_MANAGERS = (
    PackageManager.CARGO,
    PackageManager.NPM,
    PackageManager.PIP,
    PackageManager.PIP3,
    PackageManager.GEM,
)

INSTALL_INSTRUCTIONS: dict[PackageManager, str] = {
    PackageManager.BREW: "Install Homebrew: https://brew.sh",
    PackageManager.APT: "apt-get ships with Debian and Ubuntu based systems",
    PackageManager.YUM: "yum ships with RHEL and CentOS based systems",
    PackageManager.DNF: "dnf ships with Fedora and recent RHEL based systems",
    PackageManager.PACMAN: "pacman ships with Arch based systems",
    PackageManager.SNAP: "Install snapd: https://snapcraft.io/docs/installing-snapd",
    PackageManager.CARGO: "Install Rust and Cargo: https://rustup.rs",
    PackageManager.NPM: "Install Node.js and npm: https://nodejs.org",
    PackageManager.PIP: "Install pip: https://pip.pypa.io/en/stable/installation/",
    PackageManager.PIP3: "Install pip3: https://pip.pypa.io/en/stable/installation/",
    PackageManager.GEM: "Install Ruby and RubyGems: https://www.ruby-lang.org",
    PackageManager.CUSTOM: "Custom packages use their own install command",
}

# Manager checks are quick queries; installs may take much longer.
CHECK_TIMEOUT = 30.0


class CheckStatus(str, Enum):
    """Result of looking for a package on this machine."""

    INSTALLED = "installed"
    NOT_INSTALLED = "not_installed"
    ERROR = "error"


class InstallStatus(str, Enum):
    """Final status of an install run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PackageCheckResult:
    """Outcome of an existence check.

    Attributes:
        status: Whether the package was found.
        used_fallback: True when found by the manager rather than the binary.
        message: Explanation for errors.
    """

    status: CheckStatus
    used_fallback: bool = False
    message: str | None = None

    @property
    def installed(self) -> bool:
        """Check if the package was found."""
        return self.status == CheckStatus.INSTALLED


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Final result of installing one package.

    Attributes:
        package: Display name of the package.
        status: Whether the install command succeeded.
        returncode: Exit code of the install command.
    """

    package: str
    status: InstallStatus
    returncode: int

    @property
    def success(self) -> bool:
        """Check if the install succeeded."""
        return self.status == InstallStatus.SUCCEEDED


class PackageProbe(Protocol):
    """What the core needs from a package backend."""

    def available_managers(self) -> set[PackageManager]:
        """Get the managers usable on this machine."""
        ...

    def is_installed(self, package: Package) -> PackageCheckResult:
        """Look for ``package`` on this machine."""
        ...

    def install(
        self,
        package: Package,
        on_output: Callable[[OutputLine], None] | None = None,
    ) -> InstallResult:
        """Install ``package``, forwarding each output line to ``on_output``."""
        ...


def build_install_command(package: Package) -> list[str]:
    """Build the argv that installs ``package``.

    Raises:
        PackageProbeError: If the package lacks the name or command it needs.
    """
    if package.manager == PackageManager.CUSTOM:
        if not package.install_command:
            raise PackageProbeError(f"Custom package '{package.name}' has no install command")
        return ["sh", "-c", package.install_command]
    if not package.package_name:
        raise PackageProbeError(f"Package '{package.name}' has no package name")
    return [*_INSTALL_PREFIXES[package.manager], package.package_name]


def build_manager_check_command(manager: PackageManager, package_name: str) -> list[str] | None:
    """Build the manager-native query for ``package_name``.

    Returns:
        An argv list, or None for managers without a reliable query
        (cargo and custom).
    """
    prefix = _CHECK_PREFIXES.get(manager)
    if prefix is None:
        return None
    return [*prefix, package_name]


def requires_sudo(manager: PackageManager) -> bool:
    """Check if installing with ``manager`` goes through sudo."""
    prefix = _INSTALL_PREFIXES.get(manager)
    return prefix is not None and prefix[0] == "sudo"


def platform_managers(platform: str | None = None) -> list[PackageManager]:
    """Get the managers that can exist on a platform, in preference order."""
    platform = platform or sys.platform
    managers: list[PackageManager] = []
    if platform == "darwin":
        managers.append(PackageManager.BREW)
    elif platform.startswith("linux"):
        managers.extend(_LINUX_MANAGERS)
    managers.extend(_CROSS_PLATFORM_MANAGERS)
    return managers


def is_manager_installed(manager: PackageManager) -> bool:
    """Check if a manager's binary is on PATH (custom is always usable)."""
    if manager == PackageManager.CUSTOM:
        return True
    return command_exists(MANAGER_BINARIES[manager])


class SubprocessPackageProbe:
    """PackageProbe backed by the real package managers.

    Example:
        >>> probe = SubprocessPackageProbe()
        >>> result = probe.is_installed(package)
        >>> if not result.installed:
        ...     probe.install(package, on_output=lambda line: print(line.text))
    """

    def available_managers(self) -> set[PackageManager]:
        """Get the managers whose binaries are on PATH, plus custom."""
        managers = {m for m in platform_managers() if is_manager_installed(m)}
        managers.add(PackageManager.CUSTOM)
        return managers

    def is_installed(self, package: Package) -> PackageCheckResult:
        """Look for a package.

        The binary on PATH is checked first (or the custom existence
        check when one is set). If that fails, the configured manager
        check runs, then the manager's own query. A package that is not
        found while its manager is missing is reported as an error.
        """
        if package.existence_check:
            if self._shell_check(package.existence_check):
                return PackageCheckResult(CheckStatus.INSTALLED)
        elif command_exists(package.binary_name):
            return PackageCheckResult(CheckStatus.INSTALLED)

        if package.manager_check:
            if self._shell_check(package.manager_check):
                return PackageCheckResult(CheckStatus.INSTALLED, used_fallback=True)
        elif package.package_name and is_manager_installed(package.manager):
            args = build_manager_check_command(package.manager, package.package_name)
            if args is not None and self._run_check(args):
                return PackageCheckResult(CheckStatus.INSTALLED, used_fallback=True)

        if not is_manager_installed(package.manager):
            return PackageCheckResult(
                CheckStatus.ERROR,
                message=(
                    f"Package manager '{package.manager.value}' is not installed. "
                    f"{INSTALL_INSTRUCTIONS[package.manager]}"
                ),
            )
        return PackageCheckResult(CheckStatus.NOT_INSTALLED)

    def install(
        self,
        package: Package,
        on_output: Callable[[OutputLine], None] | None = None,
    ) -> InstallResult:
        """Install a package, streaming its output.

        Raises:
            PackageProbeError: If the manager is missing or the command
                cannot be started.
        """
        if not is_manager_installed(package.manager):
            raise PackageProbeError(
                f"Package manager '{package.manager.value}' is not installed. "
                f"{INSTALL_INSTRUCTIONS[package.manager]}"
            )
        args = build_install_command(package)
        logger.info("Installing %s: %s", package.name, " ".join(args))

        try:
            command = StreamingCommand(args)
        except OSError as e:
            raise PackageProbeError(f"Failed to start install of {package.name}: {e}") from e

        for line in command.lines():
            logger.debug("[%s] %s", line.stream, line.text)
            if on_output is not None:
                on_output(line)
        returncode = command.wait()

        status = InstallStatus.SUCCEEDED if returncode == 0 else InstallStatus.FAILED
        if status == InstallStatus.FAILED:
            logger.warning("Install of %s exited with %d", package.name, returncode)
        return InstallResult(package=package.name, status=status, returncode=returncode)

    def check_sudo_required(self) -> bool:
        """Check whether sudo will prompt for a password."""
        if not command_exists("sudo"):
            return False
        try:
            return not run_command(["sudo", "-n", "true"], timeout=CHECK_TIMEOUT).success
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("sudo check failed: %s", e)
            return True

    def _shell_check(self, command: str) -> bool:
        return self._run_check(["sh", "-c", command])

    def _run_check(self, args: list[str]) -> bool:
        try:
            return run_command(args, timeout=CHECK_TIMEOUT).success
        except OSError as e:
            logger.debug("Check %s could not run: %s", args, e)
            return False
        except subprocess.TimeoutExpired:
            logger.warning("Check %s timed out", args)
            return False
