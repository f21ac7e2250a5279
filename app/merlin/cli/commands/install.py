"""Install command implementation.

Installs declared Homebrew packages and App Store applications.
"""

from typing import Annotated

import typer

from merlin.cli.display import create_install_results_table, print_install_summary
from merlin.cli.types import get_model, is_dry_run
from merlin.operators.base import InstallResult, Operator
from merlin.operators.brew import BrewOperator
from merlin.operators.mas import MasOperator
from merlin.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="Install declared packages.",
    no_args_is_help=True,
)

DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        "-n",
        help="Show what would be installed without installing.",
    ),
]
YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmation prompt and proceed.",
    ),
]


def _confirm_install(count: int) -> bool:
    """Prompt user to confirm installing packages.

    Args:
        count: Number of packages to install.

    Returns:
        True if user confirms, False otherwise.
    """
    return typer.confirm(f"\nInstall {count} package(s)?", default=False)


def _run_operator(operator: Operator, names: list[str]) -> list[InstallResult]:
    """Run an operator, exiting on an unavailable package manager."""
    try:
        return operator.install(names)
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def _finish(results: list[InstallResult]) -> None:
    """Print results and exit nonzero if any package failed."""
    if not results:
        print_info("Nothing to install.")
        return
    console.print(create_install_results_table(results))
    print_install_summary(results)
    if any(r.failed for r in results):
        raise typer.Exit(code=1)


@app.command()
def brew(
    ctx: typer.Context,
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Formula or cask names to install."),
    ] = None,
    all_packages: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Install every declared formula and cask.",
        ),
    ] = False,
    formulae_only: Annotated[
        bool,
        typer.Option(
            "--formulae-only",
            help="Only install formulae.",
        ),
    ] = False,
    casks_only: Annotated[
        bool,
        typer.Option(
            "--casks-only",
            help="Only install casks.",
        ),
    ] = False,
    dry_run: DryRunOption = False,
    yes: YesOption = False,
) -> None:
    """Install declared Homebrew formulae and casks.

    Packages that are already installed are skipped.

    Examples:
        merlin install brew --all
        merlin install brew fzf ripgrep
        merlin install brew --all --casks-only --dry-run
    """
    if formulae_only and casks_only:
        print_error("--formulae-only and --casks-only are mutually exclusive.")
        raise typer.Exit(code=1)
    if not names and not all_packages:
        print_error("Specify package names or --all.")
        raise typer.Exit(code=1)

    model = get_model()
    dry = is_dry_run(ctx, dry_run)

    declared_casks = model.brew.cask_names
    if names:
        casks = [n for n in names if casks_only or (n in declared_casks and not formulae_only)]
        formulae = [n for n in names if n not in casks]
    else:
        formulae = sorted(model.brew.formula_names)
        casks = sorted(declared_casks)
    if casks_only:
        formulae = []
    if formulae_only:
        casks = []

    total = len(formulae) + len(casks)
    if total and not dry and not yes and model.root.settings.confirm_before_install:
        if not _confirm_install(total):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    results: list[InstallResult] = []
    if formulae:
        results.extend(_run_operator(BrewOperator(dry_run=dry), formulae))
    if casks:
        results.extend(_run_operator(BrewOperator(cask=True, dry_run=dry), casks))
    _finish(results)


@app.command()
def mas(
    ctx: typer.Context,
    ids: Annotated[
        list[str] | None,
        typer.Argument(help="App Store ids to install."),
    ] = None,
    all_apps: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Install every declared App Store application.",
        ),
    ] = False,
    dry_run: DryRunOption = False,
    yes: YesOption = False,
) -> None:
    """Install declared App Store applications.

    Requires a signed-in App Store account. Applications that are already
    installed are skipped.

    Examples:
        merlin install mas --all
        merlin install mas 497799835
    """
    if not ids and not all_apps:
        print_error("Specify app ids or --all.")
        raise typer.Exit(code=1)

    model = get_model()
    dry = is_dry_run(ctx, dry_run)
    targets = list(ids) if ids else sorted(model.mas.app_ids)

    if targets and not dry and not yes and model.root.settings.confirm_before_install:
        if not _confirm_install(len(targets)):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    results = _run_operator(MasOperator(dry_run=dry), targets) if targets else []
    _finish(results)
