"""Local configuration model.

The config lives at ~/.config/dotstate/config.toml and holds settings
that are specific to one machine: where the storage repository is,
which profile is active, and whether backups are taken. Profiles
themselves live in the repository manifest, not here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from dotstate.core.paths import get_default_repo_path, normalize_relative_path

CONFIG_VERSION = 1

GITHUB_TOKEN_ENV = "DOTSTATE_GITHUB_TOKEN"
ICONS_ENV = "DOTSTATE_ICONS"

RepoMode = Literal["github", "local"]
IconSetName = Literal["auto", "nerd", "unicode", "ascii"]


class GitHubConfig(BaseModel):
    """GitHub repository settings (github mode only)."""

    model_config = ConfigDict(extra="ignore")

    owner: Annotated[str, Field(description="Repository owner")]
    repo: Annotated[str, Field(description="Repository name")]
    token: Annotated[str | None, Field(description="OAuth token or PAT")] = None


class Config(BaseModel):
    """Local dotstate configuration.

    Unknown keys are ignored so a config written by a newer release
    still loads.

    Attributes:
        version: Config schema version.
        repo_mode: "github" for API-created repos, "local" for user-managed ones.
        repo_path: Storage repository root.
        repo_name: Repository name on GitHub.
        default_branch: Branch used for pull and push.
        active_profile: Name of the active profile ("" when none).
        profile_activated: Whether the active profile's symlinks should be live.
        backup_enabled: Whether to back up files before replacing them.
        github: Optional GitHub settings.
        custom_files: Home-relative paths added outside the curated candidates.
        icon_set: Preferred icon set for terminal output.
    """

    model_config = ConfigDict(extra="ignore")

    version: int = CONFIG_VERSION
    repo_mode: RepoMode = "github"
    repo_path: Annotated[Path, Field(default_factory=get_default_repo_path)]
    repo_name: str = "dotstate-storage"
    default_branch: str = "main"
    active_profile: str = ""
    profile_activated: bool = False
    backup_enabled: bool = True
    github: GitHubConfig | None = None
    custom_files: Annotated[list[str], Field(default_factory=list)]
    icon_set: IconSetName = "auto"

    @property
    def is_configured(self) -> bool:
        """Check if a storage repository exists at ``repo_path``."""
        return self.repo_path.is_dir()

    def github_token(self) -> str | None:
        """Get the GitHub token.

        DOTSTATE_GITHUB_TOKEN takes priority over the configured token.
        """
        token = os.environ.get(GITHUB_TOKEN_ENV)
        if token:
            return token
        if self.github is not None:
            return self.github.token
        return None

    def effective_icon_set(self) -> str:
        """Resolve the icon set, honouring DOTSTATE_ICONS."""
        env_value = os.environ.get(ICONS_ENV, "").strip().lower()
        if env_value in ("nerd", "unicode", "ascii"):
            return env_value
        return self.icon_set

    def add_custom_file(self, relative_path: str) -> bool:
        """Remember a custom file. Returns False if it was already known."""
        normalized = normalize_relative_path(relative_path)
        if normalized in self.custom_files:
            return False
        self.custom_files.append(normalized)
        return True
