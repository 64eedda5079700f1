"""Helpers shared by the test-suite.

DotstateEnv bundles the throwaway locations set up by the
``dotstate_env`` fixture with a few builders for repository content.
"""

from dataclasses import dataclass
from pathlib import Path

from dotstate.core.backup import BackupStore
from dotstate.core.config import save_config
from dotstate.core.manifest import save_manifest
from dotstate.core.tracking import TrackingStore
from dotstate.models.config import Config
from dotstate.models.manifest import ProfileManifest
from dotstate.symlinks.engine import SymlinkEngine


@dataclass
class DotstateEnv:
    """Isolated locations for one test.

    Attributes:
        home: Stand-in home directory.
        config_dir: Stand-in config directory (holds config.toml and symlinks.json).
        backup_dir: Stand-in backup root.
        repo: Storage repository (the default repo path under config_dir).
    """

    home: Path
    config_dir: Path
    backup_dir: Path
    repo: Path

    def write_home(self, rel: str, content: str = "") -> Path:
        """Create a regular file in home."""
        path = self.home / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def write_repo(self, scope: str, rel: str, content: str = "") -> Path:
        """Create a file in a profile (or ``common``) directory of the repository."""
        path = self.repo / scope / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def save_manifest(self, manifest: ProfileManifest) -> None:
        """Write a manifest into the repository, creating each profile directory."""
        self.repo.mkdir(parents=True, exist_ok=True)
        for name in manifest.profile_names():
            (self.repo / name).mkdir(parents=True, exist_ok=True)
        save_manifest(manifest, self.repo)

    def config(self, **overrides: object) -> Config:
        """Build a local-mode config pointing at the test repository."""
        values: dict[str, object] = {"repo_mode": "local", "repo_path": self.repo}
        values.update(overrides)
        return Config.model_validate(values)

    def save_config(self, config: Config) -> Path:
        """Write config.toml into the test config directory."""
        return save_config(config, self.config_dir / "config.toml")

    def engine(self, *, backup_enabled: bool = True) -> SymlinkEngine:
        """Build an engine over the on-disk ledger."""
        return SymlinkEngine(
            self.repo,
            TrackingStore.load(self.config_dir),
            BackupStore(enabled=backup_enabled, backup_root=self.backup_dir),
            home=self.home,
        )

    def tracking(self) -> TrackingStore:
        """Re-read the ledger from disk."""
        return TrackingStore.load(self.config_dir)


def make_manifest(
    profiles: dict[str, list[str]], common: list[str] | None = None
) -> ProfileManifest:
    """Build a manifest from ``{profile: synced_files}``."""
    manifest = ProfileManifest()
    for name, files in profiles.items():
        manifest.add_profile(name)
        manifest.update_synced_files(name, files)
    manifest.common.synced_files = sorted(common or [])
    return manifest
