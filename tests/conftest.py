"""Pytest configuration and shared fixtures.

Every test runs against a throwaway home, config directory and backup
root, selected through the DOTSTATE_TEST_* environment variables, so
nothing touches the real ones.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from dotstate.core.paths import (
    BACKUP_DIR_OVERRIDE_ENV,
    CONFIG_DIR_OVERRIDE_ENV,
    HOME_OVERRIDE_ENV,
)
from dotstate.models.config import GITHUB_TOKEN_ENV, ICONS_ENV
from dotstate.models.manifest import ProfileManifest
from support import DotstateEnv


@pytest.fixture(autouse=True)
def dotstate_env(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> DotstateEnv:
    """Redirect every dotstate location into a fresh temporary directory.

    The directory is separate from ``tmp_path`` so tests that inspect
    ``tmp_path`` still see it empty.
    """
    tmp_path = tmp_path_factory.mktemp("dotstate_env")
    env = DotstateEnv(
        home=tmp_path / "home",
        config_dir=tmp_path / "config",
        backup_dir=tmp_path / "backups",
        repo=tmp_path / "config" / "storage",
    )
    env.home.mkdir()
    env.config_dir.mkdir()
    monkeypatch.setenv(HOME_OVERRIDE_ENV, str(env.home))
    monkeypatch.setenv(CONFIG_DIR_OVERRIDE_ENV, str(env.config_dir))
    monkeypatch.setenv(BACKUP_DIR_OVERRIDE_ENV, str(env.backup_dir))
    monkeypatch.delenv(GITHUB_TOKEN_ENV, raising=False)
    monkeypatch.delenv(ICONS_ENV, raising=False)
    return env


@pytest.fixture(autouse=True)
def reset_dotstate_logger() -> Iterator[None]:
    """Undo handlers the CLI attaches so caplog keeps working across tests."""
    yield
    logger = logging.getLogger("dotstate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def default_profile(dotstate_env: DotstateEnv) -> DotstateEnv:
    """A repository with one empty profile named ``default``, selected in config."""
    manifest = ProfileManifest()
    manifest.add_profile("default")
    dotstate_env.save_manifest(manifest)
    dotstate_env.save_config(dotstate_env.config(active_profile="default"))
    return dotstate_env
