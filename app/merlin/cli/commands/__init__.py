"""CLI commands for merlin.

This package contains all subcommand implementations.
"""

from merlin.cli.commands import backup, diff, doctor, install, link, listing, run, validate

__all__ = ["backup", "diff", "doctor", "install", "link", "listing", "run", "validate"]
