"""Symlink reconciliation.

This module exports the engine that links and unlinks tool configs.
"""

from merlin.symlinks.engine import (
    ConflictError,
    LinkResult,
    LinkStatus,
    SourceMissingError,
    SymlinkEngine,
    points_to,
    symlink_destination,
)

__all__ = [
    "ConflictError",
    "LinkResult",
    "LinkStatus",
    "SourceMissingError",
    "SymlinkEngine",
    "points_to",
    "symlink_destination",
]
