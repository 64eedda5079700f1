"""Collaborator ports: version control, package managers, and repo hosting."""

from dotstate.ports.github import RemoteRepository, RepoProvider
from dotstate.ports.packages import (
    CheckStatus,
    InstallResult,
    InstallStatus,
    PackageCheckResult,
    PackageProbe,
    SubprocessPackageProbe,
)
from dotstate.ports.vcs import VCS, GitRepo, VcsResult

__all__ = [
    "VCS",
    "CheckStatus",
    "GitRepo",
    "InstallResult",
    "InstallStatus",
    "PackageCheckResult",
    "PackageProbe",
    "RemoteRepository",
    "RepoProvider",
    "SubprocessPackageProbe",
    "VcsResult",
]
