"""Doctor command.

This module provides `dotstate doctor`, which checks that the config,
manifest, tracking ledger and filesystem agree, and can repair the
findings that have a safe fix.
"""

import json
from typing import Annotated

import typer

from dotstate.cli.display import print_doctor_report
from dotstate.cli.types import handle_errors
from dotstate.core.config import load_or_default
from dotstate.doctor import Doctor
from dotstate.utils.formatting import print_info

app = typer.Typer(
    name="doctor",
    help="Diagnose and repair dotstate state.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def doctor(
    ctx: typer.Context,
    fix: Annotated[
        bool,
        typer.Option(
            "--fix",
            help="Apply the available repairs, then check again.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show passing checks too.",
        ),
    ] = False,
) -> None:
    """Run diagnostics.

    Exits with code 1 when any check reports an error.

    Examples:
        dotstate doctor
        dotstate doctor --fix
        dotstate doctor --json
    """
    if ctx.invoked_subcommand is not None:
        return

    with handle_errors():
        config = load_or_default()
    runner = Doctor(config)
    report = runner.run()

    if fix and report.fixable:
        fixes = runner.fix(report)
        report = runner.run()
        report.fixes.extend(fixes)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        print_doctor_report(report, verbose=verbose)
        if not fix and report.fixable:
            print_info("Run 'dotstate doctor --fix' to apply the suggested repairs.")

    if report.has_errors:
        raise typer.Exit(code=1)
