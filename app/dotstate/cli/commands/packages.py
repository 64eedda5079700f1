"""Package commands.

This module provides `dotstate packages`, which manages the packages a
profile expects and checks or installs them with the system's package
managers.
"""

import json
from typing import Annotated

import typer
from pydantic import ValidationError

from dotstate.cli.display import create_packages_table
from dotstate.cli.types import handle_errors, load_configured
from dotstate.models.config import Config
from dotstate.models.manifest import Package, PackageManager
from dotstate.ports.packages import (
    INSTALL_INSTRUCTIONS,
    SubprocessPackageProbe,
    is_manager_installed,
    requires_sudo,
)
from dotstate.services.packages import PackageService
from dotstate.utils.formatting import (
    console,
    icons,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from dotstate.utils.shell import OutputLine

app = typer.Typer(
    help="Manage the packages each profile expects.",
    no_args_is_help=True,
)

ProfileOption = Annotated[
    str | None,
    typer.Option(
        "--profile",
        "-p",
        help="Profile to use (defaults to the active profile).",
    ),
]


def _resolve_profile(config: Config, profile: str | None) -> str:
    name = profile or config.active_profile
    if not name:
        print_error("No active profile. Pass --profile or create a profile first.")
        raise typer.Exit(code=1)
    return name


@app.command("list")
def list_packages(
    profile: ProfileOption = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List a profile's packages."""
    config = load_configured()
    name = _resolve_profile(config, profile)
    with handle_errors():
        packages = PackageService(config.repo_path).list_packages(name)

    if json_output:
        typer.echo(json.dumps([p.model_dump(mode="json", exclude_none=True) for p in packages]))
        return
    if not packages:
        print_info(f"Profile '{name}' has no packages.")
        return

    ic = icons()
    console.print(f"[bold_header]Packages for {name}[/]")
    for package in packages:
        detail = package.package_name or package.install_command or ""
        line = f"  {ic.package} [bold]{package.name}[/]"
        line += f" [muted]({package.manager.value}: {detail})[/]"
        if package.description:
            line += f" {package.description}"
        console.print(line)


@app.command("add")
def add_package(
    name: Annotated[str, typer.Argument(help="Display name of the package.")],
    manager: Annotated[
        PackageManager,
        typer.Option(
            "--manager",
            "-m",
            help="Package manager that installs it.",
            case_sensitive=False,
        ),
    ],
    package_name: Annotated[
        str | None,
        typer.Option("--package-name", help="Name inside the manager (defaults to NAME)."),
    ] = None,
    binary: Annotated[
        str | None,
        typer.Option("--binary", "-b", help="Binary used to detect it (defaults to NAME)."),
    ] = None,
    install_command: Annotated[
        str | None,
        typer.Option("--install-command", help="Shell command for custom packages."),
    ] = None,
    existence_check: Annotated[
        str | None,
        typer.Option("--existence-check", help="Shell command that succeeds when installed."),
    ] = None,
    manager_check: Annotated[
        str | None,
        typer.Option("--manager-check", help="Manager-native check command."),
    ] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Short description."),
    ] = None,
    profile: ProfileOption = None,
) -> None:
    """Add a package to a profile.

    Examples:
        dotstate packages add ripgrep -m brew --binary rg
        dotstate packages add rustup -m custom --install-command "curl ... | sh"
    """
    config = load_configured()
    target = _resolve_profile(config, profile)

    if manager != PackageManager.CUSTOM and package_name is None:
        package_name = name
    try:
        package = Package(
            name=name,
            description=description,
            manager=manager,
            binary_name=binary or name,
            package_name=package_name,
            install_command=install_command,
            existence_check=existence_check,
            manager_check=manager_check,
        )
    except ValidationError as e:
        print_error(f"Invalid package: {e.errors()[0]['msg']}")
        raise typer.Exit(code=1) from e

    with handle_errors():
        PackageService(config.repo_path).add_package(target, package)
    print_success(f"Added {name} to profile '{target}'")


@app.command("remove")
def remove_package(
    name: Annotated[str, typer.Argument(help="Name of the package to remove.")],
    profile: ProfileOption = None,
) -> None:
    """Remove a package from a profile (it is not uninstalled)."""
    config = load_configured()
    target = _resolve_profile(config, profile)
    with handle_errors():
        PackageService(config.repo_path).remove_package(target, name)
    print_success(f"Removed {name} from profile '{target}'")


@app.command("check")
def check_packages(profile: ProfileOption = None) -> None:
    """Check which of a profile's packages are installed.

    Exits with code 1 when any package is missing.
    """
    config = load_configured()
    target = _resolve_profile(config, profile)
    with handle_errors(), console.status("Checking packages..."):
        states = PackageService(config.repo_path).check_packages(target)

    if not states:
        print_info(f"Profile '{target}' has no packages.")
        return
    console.print(create_packages_table(f"Packages for {target}", states))

    missing = [s for s in states if not s.check.installed]
    for manager in sorted({s.package.manager for s in missing}, key=lambda m: m.value):
        if not is_manager_installed(manager):
            print_warning(f"{manager.value} is not available. {INSTALL_INSTRUCTIONS[manager]}")
    if missing:
        print_info(f"{len(missing)} missing. Run 'dotstate packages install' to install them.")
        raise typer.Exit(code=1)
    print_success("All packages are installed.")


@app.command("install")
def install_packages(
    profile: ProfileOption = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
) -> None:
    """Install a profile's missing packages, streaming their output."""
    config = load_configured()
    target = _resolve_profile(config, profile)
    probe = SubprocessPackageProbe()
    with handle_errors():
        service = PackageService(config.repo_path, probe=probe)
        packages = service.list_packages(target)

    if not packages:
        print_info(f"Profile '{target}' has no packages.")
        return

    if any(requires_sudo(p.manager) for p in packages) and probe.check_sudo_required():
        print_warning("Some installs use sudo and may ask for your password.")
    if not yes and not typer.confirm(f"Install missing packages for '{target}'?"):
        print_info("Cancelled.")
        return

    def on_start(package: Package) -> None:
        console.print(f"\n[bold]Installing {package.name}[/] [muted]({package.manager.value})[/]")

    def on_output(line: OutputLine) -> None:
        style = "warning" if line.stream == "stderr" else "muted"
        console.print(f"  {line.text}", style=style, markup=False, highlight=False)

    with handle_errors():
        results = service.install_missing(target, on_start=on_start, on_output=on_output)

    if not results:
        print_success("Nothing to install.")
        return
    failed = [r for r in results if not r.success]
    for result in failed:
        print_error(f"{result.package} failed (exit code {result.returncode})")
    if failed:
        raise typer.Exit(code=1)
    print_success(f"Installed {len(results)} package(s).")
