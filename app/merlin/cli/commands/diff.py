"""Diff command implementation.

Compares the declared repository state with the live system.
"""

import json
from typing import Annotated

import typer

from merlin.cli.types import get_model, get_scanners
from merlin.core.diff import DiffReport, DriftEngine
from merlin.core.links import canonical_path
from merlin.core.snapshot import collect_snapshot
from merlin.utils.formatting import console, print_plain, print_success

app = typer.Typer(
    help="Compare declared state with the live system.",
    invoke_without_command=True,
)

_PACKAGE_KEYS = ("brew_formulae", "brew_casks", "mas_apps")


def _filter_dict(
    report: DiffReport, packages: bool, configs: bool, scripts: bool
) -> dict[str, object]:
    """Keep only the selected categories of the JSON form."""
    data = report.to_dict()
    keys: list[str] = []
    if packages:
        keys.extend(_PACKAGE_KEYS)
    if configs:
        keys.append("symlinks")
    if scripts:
        keys.append("scripts")
    return {key: data[key] for key in keys}


@app.callback(invoke_without_command=True)
def diff(
    ctx: typer.Context,
    packages: Annotated[
        bool,
        typer.Option(
            "--packages",
            help="Only compare packages.",
        ),
    ] = False,
    configs: Annotated[
        bool,
        typer.Option(
            "--configs",
            help="Only compare symlinks.",
        ),
    ] = False,
    scripts: Annotated[
        bool,
        typer.Option(
            "--scripts",
            help="Only compare setup scripts.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
) -> None:
    """Compare declared state with the live system.

    Reports installed packages that are not declared, declared packages
    that are missing, missing, orphaned, broken and divergent symlinks,
    and undeclared or missing setup scripts. Drift is not an error: the
    command exits 0 either way.

    Examples:
        merlin diff                    # Everything
        merlin diff --packages         # Packages only
        merlin diff --configs --json   # Symlinks as JSON
    """
    if ctx.invoked_subcommand is not None:
        return

    if not (packages or configs or scripts):
        packages = configs = scripts = True

    model = get_model()
    formula_scanner, cask_scanner, mas_scanner = get_scanners()
    snapshot = collect_snapshot(
        formula_scanner=formula_scanner,
        cask_scanner=cask_scanner,
        mas_scanner=mas_scanner,
        home_dir=canonical_path(model.variables.home_dir),
        config_dir=canonical_path(model.variables.config_dir),
        extra_paths=[link.target for link in model.links],
    )
    report = DriftEngine(model).compute(snapshot)

    if json_output:
        console.print_json(json.dumps(_filter_dict(report, packages, configs, scripts)))
        return

    print_plain(report.render_text(packages=packages, configs=configs, scripts=scripts).rstrip())
    if report.is_in_sync:
        print_success("\nSystem is in sync with the repository.")
    else:
        console.print(f"\n[muted]Total changes: {report.total_changes}[/muted]")
