"""Console output helpers.

Results and tables go to ``console`` (stdout). Warnings and errors go to
``err_console`` (stderr) so that ``merlin diff --json`` stays parseable
even when something goes wrong.
"""

import sys

from rich.console import Console
from rich.table import Table

from merlin.core.theme import get_theme


def _make_console(*, stderr: bool) -> Console:
    stream = sys.stderr if stderr else sys.stdout
    # Hex theme colors need truecolor; otherwise let Rich detect (or disable) color
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console(stderr=False)
err_console = _make_console(stderr=True)


def create_table(title: str, *columns: str) -> Table:
    """Create a table in the merlin style with the given column headers."""
    table = Table(title=title, header_style="bold_header", border_style="border")
    for column in columns:
        table.add_column(column)
    return table


def print_info(message: str) -> None:
    """Print an informational line."""
    console.print(message, style="info")


def print_success(message: str) -> None:
    """Print a success line."""
    console.print(message, style="success")


def print_warning(message: str) -> None:
    """Print ``Warning: message`` to stderr."""
    err_console.print(f"[warning]Warning:[/warning] {message}")


def print_error(message: str) -> None:
    """Print ``Error: message`` to stderr."""
    err_console.print(f"[error]Error:[/error] {message}")


def print_plain(message: str) -> None:
    """Print text verbatim: no markup, highlighting or wrapping."""
    console.print(message, markup=False, highlight=False, soft_wrap=True)
