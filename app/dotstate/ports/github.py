"""Remote repository provider interface.

Only the interface lives here. Creating repositories through the
GitHub API is done by the setup flow, which is not part of this
package.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RemoteRepository:
    """A repository created on the hosting service.

    Attributes:
        owner: Account or organisation owning the repository.
        name: Repository name.
        clone_url: HTTPS clone URL.
        private: Whether the repository is private.
    """

    owner: str
    name: str
    clone_url: str
    private: bool = True


class RepoProvider(Protocol):
    """Creates storage repositories on a hosting service."""

    def create_repo(self, owner: str, name: str, private: bool, token: str) -> RemoteRepository:
        """Create ``owner/name`` and return where to clone it from.

        Raises:
            VcsError: If the repository cannot be created.
        """
        ...
