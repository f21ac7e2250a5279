"""Shared types and utilities for CLI commands.

This module provides the helpers every command uses to locate the
dotfiles repository, load its model, read global options and run the
auto-commit step.
"""

from collections.abc import Sequence

import typer

from merlin.core.declarations import ParseError
from merlin.core.model import RepoModel, load_model
from merlin.core.repo import DotfilesRepo, RepoError
from merlin.scanners.base import Scanner
from merlin.scanners.brew import BrewCaskScanner, BrewFormulaScanner
from merlin.scanners.mas import MasScanner
from merlin.utils.formatting import print_error, print_info, print_success, print_warning
from merlin.vcs.git import CommitOutcome, auto_commit


def get_option(ctx: typer.Context, name: str) -> bool:
    """Read a global option stored by the main callback."""
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return bool(obj.get(name, False))


def is_dry_run(ctx: typer.Context, local: bool = False) -> bool:
    """Combine a command's --dry-run with the global one."""
    return local or get_option(ctx, "dry_run")


def get_repo() -> DotfilesRepo:
    """Locate the dotfiles repository or exit with an error."""
    try:
        return DotfilesRepo.discover()
    except RepoError as e:
        print_error(str(e))
        print_info("Run merlin inside your dotfiles repository or set MERLIN_DOTFILES.")
        raise typer.Exit(code=1) from e


def get_model(repo: DotfilesRepo | None = None) -> RepoModel:
    """Load the resolved model or exit with an error."""
    repo = repo or get_repo()
    try:
        return load_model(repo)
    except ParseError as e:
        print_error(f"Failed to load declarations: {e}")
        raise typer.Exit(code=1) from e


def get_scanners() -> tuple[Scanner, Scanner, Scanner]:
    """Return the formula, cask and App Store scanners."""
    return BrewFormulaScanner(), BrewCaskScanner(), MasScanner()


def run_auto_commit(
    model: RepoModel,
    allow_prefixes: Sequence[str],
    message: str,
    *,
    no_auto_commit: bool = False,
    dry_run: bool = False,
) -> None:
    """Run the auto-commit guard when the repository enables it.

    Args:
        model: Loaded repository model.
        allow_prefixes: Repository-relative paths the command touched.
        message: Commit message.
        no_auto_commit: Per-invocation override.
        dry_run: Skip committing entirely.
    """
    if not model.root.settings.auto_commit or no_auto_commit or dry_run:
        return

    result = auto_commit(model.repo.root, allow_prefixes, message)
    if result.outcome == CommitOutcome.COMMITTED:
        print_success(f"Committed: {result.message}")
    elif result.outcome == CommitOutcome.EMPTY_COMMIT:
        print_info(f"Committed (no changes): {result.message}")
    elif result.outcome == CommitOutcome.REFUSED:
        print_warning(result.detail)
        for path in result.unrelated:
            print_info(f"  {path}")
    elif result.outcome == CommitOutcome.FAILED:
        print_warning(f"auto-commit failed: {result.detail}")
