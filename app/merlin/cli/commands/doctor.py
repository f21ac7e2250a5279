"""Doctor command implementation.

Reports the environment merlin runs in: platform, repository location and
the external tools it depends on.
"""

import platform
import shutil

import typer

from merlin import __version__
from merlin.core.repo import DotfilesRepo, RepoError
from merlin.utils.formatting import console, create_table, print_error, print_success

app = typer.Typer(
    help="Check the environment and repository.",
    invoke_without_command=True,
)

REQUIRED_TOOLS = ("brew", "mas", "git")
OPTIONAL_TOOLS = ("curl", "jq", "yq")


def _tool_row(name: str, required: bool) -> tuple[str, str, str]:
    path = shutil.which(name)
    if path:
        return name, "[success]found[/success]", path
    if required:
        return name, "[error]missing[/error]", ""
    return name, "[warning]missing[/warning]", "[muted]optional[/muted]"


@app.callback(invoke_without_command=True)
def doctor(ctx: typer.Context) -> None:
    """Check the environment and repository.

    Prints system information, the dotfiles repository location and
    whether the external tools merlin uses are installed.

    Examples:
        merlin doctor
    """
    if ctx.invoked_subcommand is not None:
        return

    system = create_table("System", "Property", "Value")
    system.add_row("merlin", __version__)
    system.add_row("OS", f"{platform.system()} {platform.release()}")
    system.add_row("Architecture", platform.machine())
    system.add_row("Python", platform.python_version())
    console.print(system)

    tools = create_table("Tools", "Tool", "Status", "Path")
    for name in REQUIRED_TOOLS:
        tools.add_row(*_tool_row(name, required=True))
    for name in OPTIONAL_TOOLS:
        tools.add_row(*_tool_row(name, required=False))
    console.print(tools)

    try:
        repo = DotfilesRepo.discover()
    except RepoError as e:
        print_error(f"Dotfiles repository not found: {e}")
        raise typer.Exit(code=1) from e

    print_success(f"Dotfiles repository: {repo.root}")
    console.print(f"[muted]{len(repo.list_tools())} tool(s) in {repo.config_root}[/muted]")
