"""Run command implementation.

Runs a tool's declared setup scripts in order.
"""

from typing import Annotated

import typer

from merlin.cli.types import get_model, get_option, is_dry_run
from merlin.core.links import Tool
from merlin.core.model import RepoModel
from merlin.scripts.runner import ScriptRunner, default_environment, format_script_result
from merlin.utils.formatting import console, print_error, print_info, print_plain


def run_tool_scripts(
    model: RepoModel,
    tool: Tool,
    *,
    dry_run: bool = False,
    verbose: bool = False,
    tag: str | None = None,
) -> bool:
    """Run a tool's declared scripts and print one line per script.

    Args:
        model: Loaded repository model.
        tool: Tool whose scripts run.
        dry_run: Only announce what would run.
        verbose: Stream script output.
        tag: Only run scripts carrying this tag.

    Returns:
        False if any script failed.
    """
    if tool.config is None or not tool.config.scripts.scripts:
        return True

    console.print(f"\n[header]Scripts for {tool.name}[/header]")
    runner = ScriptRunner(
        tool.scripts_dir,
        default_environment(tool.name, tool.root, model.variables),
        dry_run=dry_run,
        verbose=verbose,
        on_output=print_plain,
    )
    results = runner.run_scripts(tool.config.scripts.scripts, tag=tag)
    if not results:
        print_info("No matching scripts.")
    for result in results:
        print_plain(format_script_result(result, verbose=verbose))
    return all(r.success for r in results)


def run(
    ctx: typer.Context,
    tool: Annotated[
        str,
        typer.Argument(help="Tool whose scripts to run."),
    ],
    tag: Annotated[
        str | None,
        typer.Option(
            "--tag",
            "-t",
            help="Only run scripts carrying this tag.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show which scripts would run without running them.",
        ),
    ] = False,
) -> None:
    """Run a tool's setup scripts.

    Scripts run in declaration order from the tool's scripts directory and
    stop at the first failure.

    Examples:
        merlin run nvim
        merlin run macos --tag defaults
    """
    model = get_model()
    selected = model.get_tool(tool)
    if selected is None:
        print_error(f"Unknown tool: {tool}")
        raise typer.Exit(code=1)

    if selected.config is None or not selected.config.scripts.scripts:
        print_info(f"{tool} declares no scripts.")
        return

    ok = run_tool_scripts(
        model,
        selected,
        dry_run=is_dry_run(ctx, dry_run),
        verbose=get_option(ctx, "verbose"),
        tag=tag,
    )
    if not ok:
        raise typer.Exit(code=1)
