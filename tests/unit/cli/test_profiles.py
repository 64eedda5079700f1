"""Unit tests for profile, activate and deactivate commands."""

import os

import pytest
from dotstate.cli.main import app
from dotstate.core.config import load_config
from dotstate.core.manifest import load_manifest
from dotstate.models.config import Config
from support import DotstateEnv, make_manifest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def work_home(dotstate_env: DotstateEnv) -> DotstateEnv:
    """Profiles Work and Home, with Work selected but not yet activated."""
    dotstate_env.save_manifest(
        make_manifest({"Work": [".zshrc", ".vimrc"], "Home": [".zshrc"]}, common=[".gitconfig"])
    )
    dotstate_env.write_repo("Work", ".zshrc", "work zsh")
    dotstate_env.write_repo("Work", ".vimrc", "work vim")
    dotstate_env.write_repo("Home", ".zshrc", "home zsh")
    dotstate_env.write_repo("common", ".gitconfig", "[user]")
    dotstate_env.save_config(dotstate_env.config(active_profile="Work"))
    return dotstate_env


def _config(env: DotstateEnv) -> Config:
    return load_config(env.config_dir / "config.toml")


class TestActivateCommands:
    """Tests for dotstate activate and deactivate."""

    def test_activate(self, work_home: DotstateEnv) -> None:
        """activate links files and records activation."""
        result = runner.invoke(app, ["activate"])

        assert result.exit_code == 0, result.output
        assert "Activated profile 'Work'" in result.output
        assert (work_home.home / ".gitconfig").is_symlink()
        assert _config(work_home).profile_activated

    def test_activate_twice(self, work_home: DotstateEnv) -> None:
        """A second activation changes nothing."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["activate"])

        assert result.exit_code == 0
        assert "0 changed" in result.output

    def test_activate_missing_source(self, work_home: DotstateEnv) -> None:
        """A missing repository file fails that file only, exiting 1."""
        (work_home.repo / "Work" / ".vimrc").unlink()

        result = runner.invoke(app, ["activate"])

        assert result.exit_code == 1
        assert (work_home.home / ".zshrc").is_symlink()
        assert "1 failed" in result.output

    def test_activate_without_profile(self, dotstate_env: DotstateEnv) -> None:
        """No active profile is an error."""
        dotstate_env.save_manifest(make_manifest({}))
        dotstate_env.save_config(dotstate_env.config())

        result = runner.invoke(app, ["activate"])

        assert result.exit_code == 1
        assert "No active profile" in result.output

    def test_deactivate_restores(self, work_home: DotstateEnv) -> None:
        """deactivate leaves copies behind."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["deactivate"])

        assert result.exit_code == 0, result.output
        assert (work_home.home / ".zshrc").read_text() == "work zsh"
        assert not (work_home.home / ".zshrc").is_symlink()
        assert not _config(work_home).profile_activated

    def test_deactivate_remove_needs_confirmation(self, work_home: DotstateEnv) -> None:
        """--mode remove asks first and can be cancelled."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["deactivate", "--mode", "remove"], input="n\n")

        assert "Cancelled" in result.output
        assert (work_home.home / ".zshrc").is_symlink()

    def test_deactivate_remove(self, work_home: DotstateEnv) -> None:
        """--mode remove -y deletes the links."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["deactivate", "--mode", "remove", "-y"])

        assert result.exit_code == 0
        assert not os.path.lexists(work_home.home / ".zshrc")

    def test_deactivate_when_inactive(self, work_home: DotstateEnv) -> None:
        """Nothing active is reported, not an error."""
        result = runner.invoke(app, ["deactivate"])

        assert result.exit_code == 0
        assert "No profile is active" in result.output


class TestProfilesCommands:
    """Tests for dotstate profiles."""

    def test_list(self, work_home: DotstateEnv) -> None:
        """Profiles are listed with the active one first in the config."""
        result = runner.invoke(app, ["profiles", "list"])

        assert result.exit_code == 0
        assert "Work" in result.output
        assert "Home" in result.output

    def test_create(self, work_home: DotstateEnv) -> None:
        """create adds a profile and reports normalised names."""
        result = runner.invoke(app, ["profiles", "create", "my laptop", "-d", "Laptop"])

        assert result.exit_code == 0, result.output
        assert "my-laptop" in result.output
        assert load_manifest(work_home.repo).has_profile("my-laptop")

    def test_create_duplicate(self, work_home: DotstateEnv) -> None:
        """Duplicate names exit 1."""
        result = runner.invoke(app, ["profiles", "create", "work"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_create_first_profile_selected(self, dotstate_env: DotstateEnv) -> None:
        """The first profile becomes the active one."""
        dotstate_env.save_manifest(make_manifest({}))
        dotstate_env.save_config(dotstate_env.config())

        runner.invoke(app, ["profiles", "create", "Solo"])

        assert _config(dotstate_env).active_profile == "Solo"

    def test_rename_active(self, work_home: DotstateEnv) -> None:
        """Renaming the active profile updates the config and links."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["profiles", "rename", "Work", "Office"])

        assert result.exit_code == 0, result.output
        assert _config(work_home).active_profile == "Office"
        link = os.readlink(work_home.home / ".zshrc")
        assert link == str(work_home.repo / "Office" / ".zshrc")

    def test_delete_active_refused(self, work_home: DotstateEnv) -> None:
        """The active profile cannot be deleted."""
        result = runner.invoke(app, ["profiles", "delete", "Work", "-y"])

        assert result.exit_code == 1
        assert (work_home.repo / "Work").is_dir()

    def test_delete(self, work_home: DotstateEnv) -> None:
        """Other profiles can be deleted after confirmation."""
        result = runner.invoke(app, ["profiles", "delete", "Home"], input="y\n")

        assert result.exit_code == 0, result.output
        assert not (work_home.repo / "Home").exists()

    def test_switch(self, work_home: DotstateEnv) -> None:
        """switch relinks home and updates the config."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["profiles", "switch", "Home"])

        assert result.exit_code == 0, result.output
        assert (work_home.home / ".zshrc").read_text() == "home zsh"
        config = _config(work_home)
        assert config.active_profile == "Home"
        assert config.profile_activated

    def test_switch_dry_run(self, work_home: DotstateEnv) -> None:
        """--dry-run changes nothing."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["profiles", "switch", "Home", "--dry-run"])

        assert result.exit_code == 0
        assert "No changes made" in result.output
        assert (work_home.home / ".zshrc").read_text() == "work zsh"
        assert _config(work_home).active_profile == "Work"

    def test_switch_to_active(self, work_home: DotstateEnv) -> None:
        """Switching to the active profile is a no-op."""
        runner.invoke(app, ["activate"])

        result = runner.invoke(app, ["profiles", "switch", "Work"])

        assert result.exit_code == 0
        assert "already active" in result.output

    def test_switch_unknown(self, work_home: DotstateEnv) -> None:
        """Unknown profiles exit 1."""
        result = runner.invoke(app, ["profiles", "switch", "Nope"])

        assert result.exit_code == 1
        assert "not found" in result.output
