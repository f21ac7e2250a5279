"""CLI package for merlin.

This package contains the Typer application and all subcommands.
"""

from merlin.cli.main import app

__all__ = ["app"]
