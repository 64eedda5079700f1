"""Unit tests for the add, remove and list commands."""

import pytest
from dotstate.cli.main import app
from dotstate.core.config import load_config
from dotstate.core.manifest import load_manifest
from support import DotstateEnv
from typer.testing import CliRunner

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("activated")


@pytest.fixture
def activated(default_profile: DotstateEnv) -> DotstateEnv:
    """The default profile, selected and activated."""
    default_profile.save_config(
        default_profile.config(active_profile="default", profile_activated=True)
    )
    return default_profile


class TestAddCommand:
    """Tests for dotstate add."""

    def test_add(self, dotstate_env: DotstateEnv) -> None:
        """add syncs a file into the active profile."""
        dotstate_env.write_home(".zshrc", "x")

        result = runner.invoke(app, ["add", "~/.zshrc"])

        assert result.exit_code == 0, result.output
        assert "Synced .zshrc" in result.output
        assert (dotstate_env.home / ".zshrc").is_symlink()

    def test_add_common(self, dotstate_env: DotstateEnv) -> None:
        """--common syncs through the common pool."""
        dotstate_env.write_home(".gitconfig", "x")

        result = runner.invoke(app, ["add", ".gitconfig", "--common"])

        assert result.exit_code == 0, result.output
        assert load_manifest(dotstate_env.repo).common.synced_files == [".gitconfig"]

    def test_add_twice_warns(self, dotstate_env: DotstateEnv) -> None:
        """Adding an already synced file warns and exits 0."""
        dotstate_env.write_home(".zshrc", "x")
        runner.invoke(app, ["add", ".zshrc"])

        result = runner.invoke(app, ["add", ".zshrc"])

        assert result.exit_code == 0
        assert "already synced" in result.output

    def test_add_unsafe_fails(self, dotstate_env: DotstateEnv) -> None:
        """Paths inside the repository exit 1."""
        result = runner.invoke(app, ["add", str(dotstate_env.repo / "default")])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_add_missing_fails(self) -> None:
        """Missing files exit 1."""
        result = runner.invoke(app, ["add", ".nope"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    @pytest.mark.parametrize("command", ["add", "remove"])
    def test_requires_activation(self, dotstate_env: DotstateEnv, command: str) -> None:
        """Nothing is linked or tracked while the profile is not activated."""
        dotstate_env.save_config(dotstate_env.config(active_profile="default"))
        dotstate_env.write_home(".zshrc", "x")

        result = runner.invoke(app, [command, ".zshrc"])

        assert result.exit_code == 1
        assert "Profile is not activated" in result.output
        assert "dotstate activate" in result.output
        assert not (dotstate_env.home / ".zshrc").is_symlink()
        assert dotstate_env.tracking().symlinks == []

    def test_custom_file_remembered(self, dotstate_env: DotstateEnv) -> None:
        """Files outside the curated list are recorded as custom files."""
        dotstate_env.write_home(".config/myapp/settings.toml", "x")

        runner.invoke(app, ["add", ".config/myapp/settings.toml"])

        config = load_config(dotstate_env.config_dir / "config.toml")
        assert config.custom_files == [".config/myapp/settings.toml"]


class TestRemoveCommand:
    """Tests for dotstate remove."""

    def test_remove(self, dotstate_env: DotstateEnv) -> None:
        """remove restores a regular file."""
        dotstate_env.write_home(".zshrc", "content")
        runner.invoke(app, ["add", ".zshrc"])

        result = runner.invoke(app, ["remove", ".zshrc"])

        assert result.exit_code == 0, result.output
        assert not (dotstate_env.home / ".zshrc").is_symlink()
        assert (dotstate_env.home / ".zshrc").read_text() == "content"

    def test_remove_not_synced(self) -> None:
        """Removing an unsynced file warns and exits 0."""
        result = runner.invoke(app, ["remove", ".zshrc"])

        assert result.exit_code == 0
        assert "not synced" in result.output


class TestListCommand:
    """Tests for dotstate list."""

    def test_empty(self) -> None:
        """An empty repository says so."""
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No files synced yet" in result.output

    def test_lists_files(self, dotstate_env: DotstateEnv) -> None:
        """Profile and common files are listed."""
        dotstate_env.write_home(".zshrc", "x")
        dotstate_env.write_home(".gitconfig", "x")
        runner.invoke(app, ["add", ".zshrc"])
        runner.invoke(app, ["add", ".gitconfig", "-c"])

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert ".zshrc" in result.output
        assert ".gitconfig" in result.output
        assert "1 common, 1 in profile" in result.output

    def test_verbose_shows_unsynced(self, dotstate_env: DotstateEnv) -> None:
        """-v adds dotfiles found in home."""
        dotstate_env.write_home(".bashrc", "x")

        result = runner.invoke(app, ["list", "-v"])

        assert ".bashrc" in result.output
        assert "1 not synced" in result.output
