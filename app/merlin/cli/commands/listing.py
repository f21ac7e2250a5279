"""List command implementation.

Shows the declared packages, tools and profiles of the repository.
"""

import typer

from merlin.cli.display import link_status_text
from merlin.cli.types import get_model
from merlin.symlinks.engine import SymlinkEngine
from merlin.utils.formatting import console, create_table, print_info

app = typer.Typer(
    help="List declared packages, configs and profiles.",
    invoke_without_command=True,
)


def _muted(text: str) -> str:
    return f"[muted]{text}[/muted]"


@app.callback(invoke_without_command=True)
def list_default(ctx: typer.Context) -> None:
    """List declared packages, configs and profiles.

    Without a subcommand, lists the tool configs and their link status.

    Examples:
        merlin list                # Tool configs
        merlin list brew           # Declared formulae and casks
        merlin list profiles
    """
    if ctx.invoked_subcommand is not None:
        return
    configs()


@app.command()
def brew() -> None:
    """List declared Homebrew formulae and casks."""
    model = get_model()
    if not model.brew.formulae and not model.brew.casks:
        print_info("No Homebrew packages declared.")
        return

    table = create_table("Homebrew Packages", "Type", "Name", "Category", "Description")
    for package in sorted(model.brew.formulae, key=lambda p: p.name):
        table.add_row("formula", package.name, package.category, _muted(package.description))
    for package in sorted(model.brew.casks, key=lambda p: p.name):
        table.add_row("cask", package.name, package.category, _muted(package.description))
    console.print(table)


@app.command()
def mas() -> None:
    """List declared App Store applications."""
    model = get_model()
    if not model.mas.apps:
        print_info("No App Store applications declared.")
        return

    table = create_table("App Store Applications", "ID", "Name", "Category", "Description")
    for app_entry in sorted(model.mas.apps, key=lambda a: a.name.lower()):
        table.add_row(
            str(app_entry.id), app_entry.name, app_entry.category, _muted(app_entry.description)
        )
    console.print(table)


@app.command()
def configs() -> None:
    """List tools with their resolved links and link status."""
    model = get_model()
    if not model.tools:
        print_info(f"No tools found in {model.repo.config_root}")
        return

    engine = SymlinkEngine()
    table = create_table("Tool Configs", "Tool", "Target", "Source", "Status")
    for tool in sorted(model.tools, key=lambda t: t.name):
        if not tool.links:
            table.add_row(tool.name, _muted("-"), _muted("-"), _muted("no links"))
            continue
        for result in engine.status_all(tool.links):
            table.add_row(
                tool.name,
                str(result.link.target),
                model.repo.relative(result.link.source),
                link_status_text(result),
            )
    console.print(table)


@app.command()
def profiles() -> None:
    """List declared profiles."""
    model = get_model()
    if not model.root.profiles:
        print_info("No profiles declared.")
        return

    table = create_table("Profiles", "Name", "Hostname", "Default", "Tools", "Description")
    for profile in model.root.profiles:
        table.add_row(
            profile.name,
            profile.hostname or _muted("-"),
            "[success]yes[/success]" if profile.default else "",
            ", ".join(profile.tools),
            _muted(profile.description),
        )
    console.print(table)
