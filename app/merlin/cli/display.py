"""Shared Rich display functions for link, install and script results.

Provides reusable table builders and summary printers used by the link,
unlink, install and run commands.
"""

from rich.table import Table

from merlin.operators.base import InstallResult, InstallStatus
from merlin.symlinks.engine import LinkResult, LinkStatus
from merlin.utils.formatting import console, create_table, print_success

_LINK_STYLES = {
    LinkStatus.SUCCESS: "success",
    LinkStatus.ALREADY_LINKED: "linked",
    LinkStatus.SKIPPED: "muted",
    LinkStatus.CONFLICT: "conflict",
    LinkStatus.ERROR: "error",
}

_INSTALL_STYLES = {
    InstallStatus.INSTALLED: "success",
    InstallStatus.SKIPPED: "muted",
    InstallStatus.ERROR: "error",
}


def link_status_text(result: LinkResult) -> str:
    """Render a link result's status as styled markup."""
    style = _LINK_STYLES[result.status]
    label = result.message or result.status.value
    return f"[{style}]{label}[/{style}]"


def create_link_results_table(results: list[LinkResult], title: str = "Links") -> Table:
    """Create a Rich table displaying link results.

    Args:
        results: Per-link results.
        title: Table title.

    Returns:
        Rich Table configured for link display.
    """
    if results and all(r.dry_run for r in results):
        title = f"{title} (Dry Run)"

    table = create_table(title, "Tool", "Target", "Result")
    for result in results:
        message = link_status_text(result)
        if result.backup_id:
            message += f" [muted](backup {result.backup_id})[/muted]"
        table.add_row(result.link.tool, str(result.link.target), message)
    return table


def print_link_summary(results: list[LinkResult]) -> None:
    """Print counts of link outcomes.

    Args:
        results: Per-link results.
    """
    counts = {status: sum(1 for r in results if r.status == status) for status in LinkStatus}
    failed = counts[LinkStatus.ERROR]
    done = counts[LinkStatus.SUCCESS] + counts[LinkStatus.ALREADY_LINKED]

    if failed == 0 and counts[LinkStatus.CONFLICT] == 0 and counts[LinkStatus.SKIPPED] == 0:
        print_success(f"All {done} link(s) in place.")
        return

    parts = [f"[success]{done} ok[/success]"]
    if counts[LinkStatus.SKIPPED]:
        parts.append(f"[muted]{counts[LinkStatus.SKIPPED]} skipped[/muted]")
    if counts[LinkStatus.CONFLICT]:
        parts.append(f"[conflict]{counts[LinkStatus.CONFLICT]} conflict(s)[/conflict]")
    if failed:
        parts.append(f"[error]{failed} failed[/error]")
    console.print(f"\nSummary: {', '.join(parts)}")


def create_install_results_table(results: list[InstallResult]) -> Table:
    """Create a Rich table displaying install results.

    Args:
        results: Per-package results.

    Returns:
        Rich Table configured for install display.
    """
    title = "Install (Dry Run)" if results and results[0].dry_run else "Install"
    table = create_table(title, "Status", "Source", "Package", "Message")
    for result in results:
        style = _INSTALL_STYLES[result.status]
        table.add_row(
            f"[{style}]{result.status.value}[/{style}]",
            result.source.value,
            result.name,
            f"[muted]{result.message}[/muted]",
        )
    return table


def print_install_summary(results: list[InstallResult]) -> None:
    """Print a summary of install results.

    Args:
        results: Per-package results.
    """
    installed = sum(1 for r in results if r.status == InstallStatus.INSTALLED)
    skipped = sum(1 for r in results if r.status == InstallStatus.SKIPPED)
    failed = sum(1 for r in results if r.failed)

    if failed == 0:
        print_success(f"{installed} installed, {skipped} already present.")
    else:
        console.print(
            f"\n[success]{installed} installed[/success], [muted]{skipped} skipped[/muted], "
            f"[error]{failed} failed[/error]"
        )
