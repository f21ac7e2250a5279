"""Link and unlink command implementations.

Materializes tool configs as symlinks into the home directory, optionally
runs the tools' setup scripts, and removes links again.
"""

import sys
from typing import Annotated

import typer

from merlin.cli.commands.run import run_tool_scripts
from merlin.cli.display import create_link_results_table, print_link_summary
from merlin.cli.types import get_model, get_option, is_dry_run, run_auto_commit
from merlin.core.links import Tool
from merlin.core.model import RepoModel
from merlin.models.root import ConflictStrategy
from merlin.symlinks.engine import LinkResult, LinkStatus, SymlinkEngine
from merlin.utils.formatting import console, print_error, print_info, print_warning
from merlin.vcs.git import link_commit_message, unlink_commit_message

_PROMPT_CHOICES = (ConflictStrategy.SKIP, ConflictStrategy.BACKUP, ConflictStrategy.OVERWRITE)


def _select_tools(
    model: RepoModel,
    tool: str | None,
    all_tools: bool,
    profile: str | None = None,
) -> list[Tool]:
    """Resolve the tools a command operates on, exiting on bad input."""
    if tool is not None:
        selected = model.get_tool(tool)
        if selected is None:
            print_error(f"Unknown tool: {tool}")
            raise typer.Exit(code=1)
        return [selected]

    if profile is not None:
        declared = model.root.get_profile(profile)
        if declared is None:
            print_error(f"Unknown profile: {profile}")
            raise typer.Exit(code=1)
        if not declared.tools:
            return sorted(model.tools, key=lambda t: t.name)
        tools: list[Tool] = []
        for name in declared.tools:
            found = model.get_tool(name)
            if found is None:
                print_warning(f"Profile '{profile}' names unknown tool '{name}'")
            else:
                tools.append(found)
        return tools

    if all_tools:
        return sorted(model.tools, key=lambda t: t.name)

    print_error("Specify a tool, --profile or --all.")
    raise typer.Exit(code=1)


def _resolve_strategy(model: RepoModel, strategy: ConflictStrategy | None) -> ConflictStrategy:
    if strategy is not None:
        return strategy
    try:
        return model.root.settings.strategy
    except ValueError as e:
        name = model.root.settings.conflict_strategy
        print_error(f"Invalid conflict_strategy in settings: {name}")
        raise typer.Exit(code=1) from e


def _prompt_strategy(result: LinkResult) -> ConflictStrategy:
    """Ask how to resolve a conflict."""
    console.print(f"\n[conflict]Conflict:[/conflict] {result.link.target} ({result.message})")
    choice = typer.prompt(
        "Resolve with",
        type=typer.Choice([s.value for s in _PROMPT_CHOICES]),
        default=ConflictStrategy.SKIP.value,
    )
    return ConflictStrategy(choice)


def _resolve_conflict(engine: SymlinkEngine, result: LinkResult) -> LinkResult:
    """Resolve an interactive conflict by prompting, if a terminal is attached."""
    if engine.dry_run:
        return result
    if not sys.stdin.isatty():
        return LinkResult(
            result.link,
            LinkStatus.SKIPPED,
            f"{result.message} (skipped, no terminal)",
            result.error,
        )
    return engine.link(result.link, _prompt_strategy(result))


def _link_tool(engine: SymlinkEngine, tool: Tool, strategy: ConflictStrategy) -> list[LinkResult]:
    results: list[LinkResult] = []
    for result in engine.link_tool(tool, strategy):
        if result.status == LinkStatus.CONFLICT:
            result = _resolve_conflict(engine, result)
        results.append(result)
    return results


def link(
    ctx: typer.Context,
    tool: Annotated[
        str | None,
        typer.Argument(help="Tool to link."),
    ] = None,
    all_tools: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Link every tool.",
        ),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Link the tools of a profile.",
        ),
    ] = None,
    strategy: Annotated[
        ConflictStrategy | None,
        typer.Option(
            "--strategy",
            "-s",
            help="Conflict strategy: skip, backup, overwrite or interactive.",
            case_sensitive=False,
        ),
    ] = None,
    run_scripts: Annotated[
        bool,
        typer.Option(
            "--run-scripts",
            help="Run each tool's setup scripts after linking it.",
        ),
    ] = False,
    no_auto_commit: Annotated[
        bool,
        typer.Option(
            "--no-auto-commit",
            help="Do not commit repository changes.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be linked without changing anything.",
        ),
    ] = False,
) -> None:
    """Link tool configs into place.

    Occupied targets are handled by the conflict strategy, which defaults
    to the repository's settings.conflict_strategy.

    Examples:
        merlin link nvim
        merlin link --all --strategy backup
        merlin link --profile work --run-scripts
        merlin link --all --dry-run
    """
    model = get_model()
    tools = _select_tools(model, tool, all_tools, profile)
    chosen = _resolve_strategy(model, strategy)
    dry = is_dry_run(ctx, dry_run)
    verbose = get_option(ctx, "verbose")

    engine = SymlinkEngine(dry_run=dry)
    results: list[LinkResult] = []
    scripts_ok = True
    for selected in tools:
        tool_results = _link_tool(engine, selected, chosen)
        results.extend(tool_results)
        if run_scripts and not any(r.failed for r in tool_results):
            ran = run_tool_scripts(model, selected, dry_run=dry, verbose=verbose)
            scripts_ok = ran and scripts_ok

    if results:
        console.print(create_link_results_table(results))
        print_link_summary(results)
    else:
        print_info("No links declared.")

    names = [t.name for t in tools]
    run_auto_commit(
        model,
        [f"config/{name}" for name in names],
        link_commit_message(names),
        no_auto_commit=no_auto_commit,
        dry_run=dry,
    )

    if any(r.failed for r in results) or not scripts_ok:
        raise typer.Exit(code=1)


def unlink(
    ctx: typer.Context,
    tool: Annotated[
        str | None,
        typer.Argument(help="Tool to unlink."),
    ] = None,
    all_tools: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Unlink every tool.",
        ),
    ] = False,
    no_auto_commit: Annotated[
        bool,
        typer.Option(
            "--no-auto-commit",
            help="Do not commit repository changes.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be unlinked without changing anything.",
        ),
    ] = False,
) -> None:
    """Remove the symlinks of tool configs.

    Only symlinks pointing at the declared source are removed; regular
    files and foreign symlinks are left alone.

    Examples:
        merlin unlink nvim
        merlin unlink --all
    """
    model = get_model()
    tools = _select_tools(model, tool, all_tools)
    dry = is_dry_run(ctx, dry_run)

    engine = SymlinkEngine(dry_run=dry)
    results: list[LinkResult] = []
    for selected in tools:
        results.extend(engine.unlink_tool(selected))

    if results:
        console.print(create_link_results_table(results, title="Unlink"))
    else:
        print_info("No links declared.")

    names = [t.name for t in tools]
    run_auto_commit(
        model,
        [f"config/{name}" for name in names],
        unlink_commit_message(names),
        no_auto_commit=no_auto_commit,
        dry_run=dry,
    )

    if any(r.failed for r in results):
        raise typer.Exit(code=1)
