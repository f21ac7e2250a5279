"""Live system snapshot.

Gathers the installed package sets from the installed-set providers and
the symlinks present in the user's config locations. Collection is
read-only and never fails; unavailable providers contribute empty sets.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from merlin.core.links import canonical_path

if TYPE_CHECKING:
    from merlin.scanners.base import Scanner

logger = logging.getLogger(__name__)

# Top-level dotfiles inspected in the home directory
HOME_DOTFILES = (".zshrc", ".bashrc", ".gitconfig", ".tmux.conf", ".wezterm.lua")


@dataclass(frozen=True, slots=True)
class SymlinkEntry:
    """A symlink found on the system.

    Attributes:
        link_path: Canonical path of the symlink itself.
        resolved_target: Canonical destination the link points to.
        broken: True if the destination does not exist.
    """

    link_path: Path
    resolved_target: Path
    broken: bool


@dataclass(frozen=True, slots=True)
class SystemSnapshot:
    """Point-in-time view of the live system.

    Attributes:
        formulae: Installed Homebrew formula names.
        casks: Installed Homebrew cask names.
        mas_apps: Installed App Store identifiers.
        symlinks: Discovered symlinks, sorted by link path.
    """

    formulae: frozenset[str] = frozenset()
    casks: frozenset[str] = frozenset()
    mas_apps: frozenset[str] = frozenset()
    symlinks: tuple[SymlinkEntry, ...] = field(default=())

    def symlink_at(self, path: Path) -> SymlinkEntry | None:
        """Return the discovered symlink at ``path``, if any."""
        for entry in self.symlinks:
            if entry.link_path == path:
                return entry
        return None


def inspect_symlink(path: Path) -> SymlinkEntry | None:
    """Describe ``path`` if it is a symlink, else return None."""
    if not path.is_symlink():
        return None
    try:
        raw = os.readlink(path)
    except OSError as e:
        logger.debug("Cannot read symlink %s: %s", path, e)
        return None
    link_path = canonical_path(path)
    return SymlinkEntry(
        link_path=link_path,
        resolved_target=canonical_path(raw, base=link_path.parent),
        broken=not path.exists(),
    )


def discover_symlinks(
    roots: Iterable[Path], extra_paths: Iterable[Path] = ()
) -> list[SymlinkEntry]:
    """Find symlinks under directory roots and at specific paths.

    Directory symlinks are reported but not descended into.

    Args:
        roots: Directories walked recursively.
        extra_paths: Individual paths probed directly.

    Returns:
        Unique entries sorted by link path.
    """
    found: dict[Path, SymlinkEntry] = {}

    for root in roots:
        if not root.is_dir():
            continue
        for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
            for name in (*dirnames, *filenames):
                entry = inspect_symlink(Path(dirpath) / name)
                if entry is not None:
                    found[entry.link_path] = entry

    for path in extra_paths:
        entry = inspect_symlink(path)
        if entry is not None:
            found[entry.link_path] = entry

    return [found[key] for key in sorted(found)]


def collect_snapshot(
    *,
    formula_scanner: Scanner,
    cask_scanner: Scanner,
    mas_scanner: Scanner,
    home_dir: Path,
    config_dir: Path,
    extra_paths: Iterable[Path] = (),
) -> SystemSnapshot:
    """Build a snapshot of the live system.

    Args:
        formula_scanner: Provider of installed formulae.
        cask_scanner: Provider of installed casks.
        mas_scanner: Provider of installed App Store ids.
        home_dir: Home directory holding top-level dotfiles.
        config_dir: Config directory walked for symlinks.
        extra_paths: Additional paths to probe, typically declared link targets.

    Returns:
        The collected SystemSnapshot.
    """
    dotfiles = [home_dir / name for name in HOME_DOTFILES]
    symlinks = discover_symlinks([config_dir], [*dotfiles, *extra_paths])
    return SystemSnapshot(
        formulae=frozenset(formula_scanner.scan()),
        casks=frozenset(cask_scanner.scan()),
        mas_apps=frozenset(mas_scanner.scan()),
        symlinks=tuple(symlinks),
    )
