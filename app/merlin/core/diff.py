"""Drift computation between the declared model and the live system.

This module provides the DriftEngine class that compares a RepoModel with
a SystemSnapshot across packages, symlinks and setup scripts.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from merlin.backup.store import sha256_file

if TYPE_CHECKING:
    from merlin.core.model import RepoModel
    from merlin.core.snapshot import SystemSnapshot


@dataclass(frozen=True, slots=True)
class PackageDiff:
    """Difference for one package category.

    Attributes:
        added: Installed but not declared.
        missing: Declared but not installed.
    """

    added: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()

    @property
    def total_changes(self) -> int:
        """Number of differing entries."""
        return len(self.added) + len(self.missing)

    def to_dict(self) -> dict[str, list[str]]:
        """Convert to dictionary for JSON serialization."""
        return {"added": list(self.added), "missing": list(self.missing)}


@dataclass(frozen=True, slots=True)
class SymlinkDiff:
    """Difference between declared links and live symlinks.

    Attributes:
        missing: Declared targets that are not symlinks.
        orphaned: Symlinks into the repository that nothing declares.
        broken: Symlinks whose destination does not exist.
        divergent: Declared targets whose content differs from the source.
    """

    missing: tuple[str, ...] = ()
    orphaned: tuple[str, ...] = ()
    broken: tuple[str, ...] = ()
    divergent: tuple[str, ...] = ()

    @property
    def total_changes(self) -> int:
        """Number of differing entries."""
        return len(self.missing) + len(self.orphaned) + len(self.broken) + len(self.divergent)

    def to_dict(self) -> dict[str, list[str]]:
        """Convert to dictionary for JSON serialization."""
        return {
            "missing_links": list(self.missing),
            "orphaned_links": list(self.orphaned),
            "broken_links": list(self.broken),
            "divergent_links": list(self.divergent),
        }


@dataclass(frozen=True, slots=True)
class DiffReport:
    """Complete drift report.

    Attributes:
        brew_formulae: Formula differences.
        brew_casks: Cask differences.
        mas_apps: App Store differences, by id.
        symlinks: Symlink differences.
        scripts: Script differences, namespaced ``tool/script``.
    """

    brew_formulae: PackageDiff = field(default_factory=PackageDiff)
    brew_casks: PackageDiff = field(default_factory=PackageDiff)
    mas_apps: PackageDiff = field(default_factory=PackageDiff)
    symlinks: SymlinkDiff = field(default_factory=SymlinkDiff)
    scripts: PackageDiff = field(default_factory=PackageDiff)

    @property
    def total_changes(self) -> int:
        """Total number of differences found."""
        return (
            self.brew_formulae.total_changes
            + self.brew_casks.total_changes
            + self.mas_apps.total_changes
            + self.symlinks.total_changes
            + self.scripts.total_changes
        )

    @property
    def is_in_sync(self) -> bool:
        """Check if the live system matches the declared model."""
        return self.total_changes == 0

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "brew_formulae": self.brew_formulae.to_dict(),
            "brew_casks": self.brew_casks.to_dict(),
            "mas_apps": self.mas_apps.to_dict(),
            "symlinks": self.symlinks.to_dict(),
            "scripts": self.scripts.to_dict(),
        }

    def render_text(
        self,
        *,
        packages: bool = True,
        configs: bool = True,
        scripts: bool = True,
    ) -> str:
        """Render the report as plain sectioned text.

        Args:
            packages: Include the package sections.
            configs: Include the symlink section.
            scripts: Include the scripts section.

        Returns:
            The rendered report.
        """
        sections: list[list[str]] = []
        if packages:
            sections.append(_render_packages("Brew Formulae", self.brew_formulae))
            sections.append(_render_packages("Brew Casks", self.brew_casks))
            sections.append(_render_packages("MAS Apps", self.mas_apps))
        if configs:
            sections.append(
                [
                    "== Symlinks ==",
                    *render_set("Missing", self.symlinks.missing),
                    *render_set("Orphaned", self.symlinks.orphaned),
                    *render_set("Broken", self.symlinks.broken),
                    *render_set("Divergent", self.symlinks.divergent),
                ]
            )
        if scripts:
            sections.append(_render_packages("Scripts", self.scripts))
        return "\n\n".join("\n".join(lines) for lines in sections) + "\n"


def render_set(label: str, items: Iterable[str]) -> list[str]:
    """Render one labelled list as ``Label: none`` or a bulleted block."""
    values = list(items)
    if not values:
        return [f"{label}: none"]
    return [f"{label} ({len(values)}):", *(f"  - {value}" for value in values)]


def _render_packages(title: str, diff: PackageDiff) -> list[str]:
    return [
        f"== {title} ==",
        *render_set("Added", diff.added),
        *render_set("Missing", diff.missing),
    ]


def diff_sets(declared: Iterable[str], installed: Iterable[str]) -> PackageDiff:
    """Compare a declared set against an installed set."""
    declared_set = set(declared)
    installed_set = set(installed)
    return PackageDiff(
        added=tuple(sorted(installed_set - declared_set)),
        missing=tuple(sorted(declared_set - installed_set)),
    )


def _same_content(left: Path, right: Path) -> bool:
    try:
        return sha256_file(left) == sha256_file(right)
    except OSError:
        return False


class DriftEngine:
    """Engine for computing drift between a RepoModel and a live snapshot.

    The engine never touches the package managers itself; the snapshot
    carries everything observed on the system. Declared script files and
    link sources are read from the repository.

    Example:
        >>> model = load_model(DotfilesRepo.discover())
        >>> report = DriftEngine(model).compute(snapshot)
        >>> report.is_in_sync
        True
    """

    def __init__(self, model: RepoModel) -> None:
        """Initialize the engine.

        Args:
            model: The resolved declared state.
        """
        self.model = model

    def compute(self, snapshot: SystemSnapshot) -> DiffReport:
        """Compare the declared model against a snapshot.

        Args:
            snapshot: Live system state.

        Returns:
            DiffReport with every list sorted.
        """
        return DiffReport(
            brew_formulae=diff_sets(self.model.brew.formula_names, snapshot.formulae),
            brew_casks=diff_sets(self.model.brew.cask_names, snapshot.casks),
            mas_apps=diff_sets(self.model.mas.app_ids, snapshot.mas_apps),
            symlinks=self.compute_symlinks(snapshot),
            scripts=self.compute_scripts(),
        )

    def compute_symlinks(self, snapshot: SystemSnapshot) -> SymlinkDiff:
        """Classify declared and discovered symlinks.

        Args:
            snapshot: Live system state.

        Returns:
            SymlinkDiff with every list sorted.
        """
        missing: set[str] = set()
        broken: set[str] = set()
        divergent: set[str] = set()
        declared_targets = {link.target for link in self.model.links}

        for link in self.model.links:
            entry = snapshot.symlink_at(link.target)
            if entry is None:
                missing.add(str(link.target))
            elif entry.broken:
                broken.add(str(link.target))
            elif entry.resolved_target != link.source:
                if (
                    link.source.is_file()
                    and entry.resolved_target.is_file()
                    and not _same_content(link.source, entry.resolved_target)
                ):
                    divergent.add(str(link.target))

        orphaned: set[str] = set()
        repo_root = self.model.repo.root
        for entry in snapshot.symlinks:
            if entry.link_path in declared_targets:
                continue
            if not entry.resolved_target.is_relative_to(repo_root):
                continue
            if entry.broken:
                broken.add(str(entry.link_path))
            else:
                orphaned.add(str(entry.link_path))

        return SymlinkDiff(
            missing=tuple(sorted(missing)),
            orphaned=tuple(sorted(orphaned)),
            broken=tuple(sorted(broken)),
            divergent=tuple(sorted(divergent)),
        )

    def compute_scripts(self) -> PackageDiff:
        """Compare declared scripts against the scripts directories.

        Returns:
            PackageDiff of ``tool/script`` names.
        """
        added: set[str] = set()
        missing: set[str] = set()

        for tool in self.model.tools:
            scripts_dir = tool.scripts_dir
            declared = {item.file for item in tool.config.scripts.scripts} if tool.config else set()

            for name in declared:
                path = scripts_dir / name
                if not (path.is_file() and os.access(path, os.X_OK)):
                    missing.add(f"{tool.name}/{name}")

            if not scripts_dir.is_dir():
                continue
            for path in scripts_dir.iterdir():
                if path.name in declared or not path.is_file():
                    continue
                if os.access(path, os.X_OK):
                    added.add(f"{tool.name}/{path.name}")

        return PackageDiff(added=tuple(sorted(added)), missing=tuple(sorted(missing)))
