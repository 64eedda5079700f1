"""Init command implementation.

Creates the local config and a storage repository, either a fresh one
or a clone of an existing remote.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotstate.cli.types import handle_errors
from dotstate.core.config import save_config
from dotstate.core.paths import get_config_path, get_default_repo_path
from dotstate.models.config import Config
from dotstate.ports.vcs import GitRepo
from dotstate.services.profiles import ProfileService
from dotstate.utils.formatting import console, print_error, print_info, print_success

DEFAULT_PROFILE = "Personal"

app = typer.Typer(
    help="Set up dotstate with a storage repository.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def init(
    ctx: typer.Context,
    repo_path: Annotated[
        Path | None,
        typer.Option(
            "--repo-path",
            "-r",
            help="Where the storage repository lives.",
        ),
    ] = None,
    remote: Annotated[
        str | None,
        typer.Option(
            "--remote",
            help="Clone an existing storage repository from this URL.",
        ),
    ] = None,
    profile: Annotated[
        str,
        typer.Option(
            "--profile",
            "-p",
            help="Profile to select (created when the repository has none by that name).",
        ),
    ] = DEFAULT_PROFILE,
    branch: Annotated[
        str,
        typer.Option("--branch", help="Branch used for sync."),
    ] = "main",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config.",
        ),
    ] = False,
) -> None:
    """Create the config and the storage repository.

    The repository is user-managed: add a remote to it yourself (or pass
    --remote to clone one) before running 'dotstate sync'.

    Examples:
        dotstate init
        dotstate init --remote https://github.com/me/dotfiles.git
        dotstate init -r ~/dotfiles -p work
    """
    if ctx.invoked_subcommand is not None:
        return

    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    path = (repo_path or get_default_repo_path()).expanduser()
    config = Config(repo_mode="local", repo_path=path, default_branch=branch)
    vcs = GitRepo(path, branch)
    if remote:
        with console.status(f"Cloning {remote}..."):
            opened = vcs.clone_or_open(remote, path, config.github_token())
    else:
        opened = vcs.open_or_init(path)
    if not opened.success:
        print_error(opened.error or "Failed to set up the repository")
        raise typer.Exit(code=1)

    with handle_errors():
        service = ProfileService(path, backup_enabled=config.backup_enabled)
        existing = service.manifest.find_profile(profile)
        name = existing.name if existing is not None else service.create(profile)
        config.active_profile = name
        save_config(config, config_path)

    print_success(f"Storage repository ready at {path}")
    print_info(f"Active profile: {name}. Add files with 'dotstate add <path>'.")
