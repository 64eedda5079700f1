"""Shared Rich display functions for symlink reports, packages and diagnostics.

Provides reusable table builders and summary printers used across CLI
commands (activate, deactivate, profiles, packages, doctor, sync).
"""

from rich.table import Table

from dotstate.doctor.models import CheckCategory, CheckStatus, DoctorReport, ValidationResult
from dotstate.models.manifest import ProfileInfo
from dotstate.ports.packages import CheckStatus as ProbeStatus
from dotstate.services.packages import PackageState
from dotstate.symlinks.models import BatchReport, SwitchPreview, SwitchReport
from dotstate.utils.formatting import console, format_operation, icons, print_error


def print_batch_report(report: BatchReport, *, verbose: bool = False) -> None:
    """Print the operations of a batch and a one-line summary.

    Skipped operations are only listed when verbose.

    Args:
        report: Batch to display.
        verbose: Also list skipped operations.
    """
    for op in report.operations:
        if op.skipped and not verbose:
            continue
        console.print(format_operation(op))

    errors = len(report.errors)
    summary = f"[bold]{report.created}[/] changed, [muted]{report.skipped} unchanged[/]"
    if errors:
        summary += f", [error]{errors} failed[/]"
    console.print(summary)
    if report.aborted is not None:
        print_error(f"Stopped early: {report.aborted}")


def print_switch_report(report: SwitchReport, *, verbose: bool = False) -> None:
    """Print what a profile switch removed and created."""
    removed = BatchReport(operations=report.removed)
    created = BatchReport(operations=report.created)
    if report.from_profile:
        console.print(f"\n[bold]Deactivated[/] [profile.active]{report.from_profile}[/]")
        print_batch_report(removed, verbose=verbose)
    console.print(f"\n[bold]Activated[/] [profile.active]{report.to_profile}[/]")
    print_batch_report(created, verbose=verbose)

    for error in report.errors:
        print_error(error)
    if report.rollback_performed:
        console.print(
            f"[warning]Rolled back to profile '{report.from_profile}'.[/] "
            "Your previous files are in place."
        )


def print_switch_preview(preview: SwitchPreview) -> None:
    """Print a dry-run switch preview."""
    ic = icons()
    console.print(f"[bold]Would remove {len(preview.will_remove)} symlink(s)[/]")
    for path in preview.will_remove:
        console.print(f"  [muted]-[/] [path]{path}[/]")
    console.print(f"[bold]Would create {len(preview.will_create)} symlink(s)[/]")
    for path in preview.will_create:
        console.print(f"  [success]+[/] [path]{path}[/]")
    if preview.conflicts:
        console.print(
            f"[warning]{ic.warning} {len(preview.conflicts)} existing path(s) "
            "would be backed up and replaced[/]"
        )
        for path in preview.conflicts:
            console.print(f"  [warning]![/] [path]{path}[/]")


def create_profiles_table(profiles: list[ProfileInfo], active: str, activated: bool) -> Table:
    """Create a table listing profiles with the active one marked."""
    ic = icons()
    table = Table(
        title="Profiles",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("", width=3, justify="center")
    table.add_column("Name", no_wrap=True)
    table.add_column("Files", justify="right")
    table.add_column("Packages", justify="right")
    table.add_column("Description", style="muted")

    for profile in profiles:
        marker = ""
        name = profile.name
        if profile.name == active:
            marker = f"[profile.active]{ic.check if activated else ic.arrow}[/]"
            name = f"[profile.active]{profile.name}[/]"
        table.add_row(
            marker,
            name,
            str(len(profile.synced_files)),
            str(len(profile.packages)),
            profile.description or "",
        )
    return table


def create_packages_table(title: str, states: list[PackageState]) -> Table:
    """Create a table of packages and whether they are installed."""
    ic = icons()
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("", width=3, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("Manager")
    table.add_column("Status")

    for state in states:
        check = state.check
        if check.installed:
            marker, status = f"[success]{ic.check}[/]", "[success]installed[/]"
        elif check.status == ProbeStatus.ERROR:
            marker, status = f"[error]{ic.cross}[/]", f"[error]{check.message or 'error'}[/]"
        else:
            marker, status = f"[warning]{ic.cross}[/]", "[warning]not installed[/]"
        if check.used_fallback:
            status += " [muted](manager check)[/]"
        table.add_row(marker, state.package.name, state.package.manager.value, status)
    return table


_STATUS_STYLE = {
    CheckStatus.PASS: "success",
    CheckStatus.WARNING: "warning",
    CheckStatus.ERROR: "error",
}


def _result_line(result: ValidationResult) -> str:
    ic = icons()
    symbol = {
        CheckStatus.PASS: ic.check,
        CheckStatus.WARNING: ic.warning,
        CheckStatus.ERROR: ic.cross,
    }[result.status]
    style = _STATUS_STYLE[result.status]
    line = f"  [{style}]{symbol}[/] {result.message}"
    if result.fixable:
        line += f" [muted](fix: {result.fix_action})[/]"
    return line


def print_doctor_report(report: DoctorReport, *, verbose: bool = False) -> None:
    """Print diagnostics grouped by category.

    Passing checks are only shown when verbose; a category with nothing
    to show is left out.
    """
    for category in CheckCategory:
        results = [
            r
            for r in report.by_category(category)
            if verbose or r.status != CheckStatus.PASS
        ]
        if not results:
            continue
        console.print(f"\n[bold_header]{category.value}[/]")
        for result in results:
            console.print(_result_line(result))

    for fix in report.fixes:
        style = "success" if fix.success else "error"
        console.print(f"[{style}]{fix.action}:[/] {fix.message}")

    passed = len(report.results) - len(report.warnings) - len(report.errors)
    console.print(
        f"\n[success]{passed} passed[/], [warning]{len(report.warnings)} warning(s)[/], "
        f"[error]{len(report.errors)} error(s)[/]"
    )
