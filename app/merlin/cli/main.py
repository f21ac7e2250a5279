"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from merlin import __version__
from merlin.cli.commands import backup, diff, doctor, install, link, listing, run, validate
from merlin.core.logs import setup_logging

# Create main Typer app
app = typer.Typer(
    name="merlin",
    help="Declarative dotfiles and package management for macOS.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"merlin version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without changing anything.",
        ),
    ] = False,
) -> None:
    """merlin - Declarative dotfiles and package management for macOS.

    Describe packages, config links and setup scripts in a dotfiles
    repository and bring each machine into that state.
    """
    setup_logging(verbose=verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["dry_run"] = dry_run


# Register commands
app.add_typer(doctor.app, name="doctor")
app.add_typer(validate.app, name="validate")
app.add_typer(listing.app, name="list")
app.add_typer(install.app, name="install")
app.command("link")(link.link)
app.command("unlink")(link.unlink)
app.command("run")(run.run)
app.add_typer(diff.app, name="diff")
app.add_typer(backup.app, name="backup")


if __name__ == "__main__":
    app()
