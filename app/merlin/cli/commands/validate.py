"""Validate command implementation.

Checks the repository declarations and reports errors and warnings.
"""

from typing import Annotated

import typer

from merlin.cli.types import get_repo
from merlin.core.validation import validate_repo
from merlin.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Validate the repository declarations.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def validate(
    ctx: typer.Context,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Treat warnings as errors.",
        ),
    ] = False,
) -> None:
    """Validate the repository declarations.

    Reports duplicate packages and profiles, invalid settings, missing
    link sources and missing or non-executable scripts.

    Examples:
        merlin validate
        merlin validate --strict     # Fail on warnings too
    """
    if ctx.invoked_subcommand is not None:
        return

    repo = get_repo()
    report = validate_repo(repo)

    for issue in report.errors:
        print_error(str(issue))
    for issue in report.warnings:
        print_warning(str(issue))

    if report.failed(strict=strict):
        console.print(
            f"\n[error]Validation failed:[/error] "
            f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )
        raise typer.Exit(code=1)

    if report.warnings:
        console.print(f"\n[warning]{len(report.warnings)} warning(s)[/warning]")
    else:
        print_success("Repository is valid.")
