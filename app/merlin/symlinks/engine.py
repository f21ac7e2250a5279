"""Symlink engine.

Creates and removes the symlinks declared by tools. Linking follows a
fixed decision table driven by the target's current state and the
conflict strategy; unlinking only ever removes a symlink that points at
the declared source. Every operation returns a LinkResult instead of
raising, so batches continue past individual failures.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from merlin.backup.store import BackupError, BackupStore
from merlin.core.links import canonical_path
from merlin.models.root import ConflictStrategy

if TYPE_CHECKING:
    from merlin.core.links import ResolvedLink, Tool

logger = logging.getLogger(__name__)

_PARENT_DIR_MODE = 0o755


class LinkStatus(str, Enum):
    """Outcome of a link, unlink or status operation."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"
    ALREADY_LINKED = "already_linked"
    CONFLICT = "conflict"


class SourceMissingError(Exception):
    """Raised (or recorded) when a link source does not exist.

    Attributes:
        path: The missing source path.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"source does not exist: {path}")


class ConflictError(Exception):
    """Recorded when a target is occupied and the strategy does not replace it.

    Attributes:
        target: The occupied target path.
        reason: Why the target counts as a conflict.
    """

    def __init__(self, target: Path, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"{target}: {reason}")


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Result of a single symlink operation.

    Attributes:
        link: The link operated on.
        status: Outcome.
        message: Short human-readable explanation.
        error: Underlying exception for conflicts and errors.
        dry_run: Whether the operation was only simulated.
        backup_id: Backup taken before replacing the target, if any.
    """

    link: ResolvedLink
    status: LinkStatus
    message: str = ""
    error: Exception | None = None
    dry_run: bool = False
    backup_id: str | None = None

    @property
    def failed(self) -> bool:
        """Whether this result counts as a failure for exit status."""
        return self.status == LinkStatus.ERROR


def symlink_destination(path: Path) -> Path:
    """Read a symlink and return its canonical destination.

    Relative destinations are resolved against the link's parent directory.

    Raises:
        OSError: If the path is not a symlink.
    """
    raw = os.readlink(path)
    return canonical_path(raw, base=path.parent)


def points_to(target: Path, source: Path) -> bool:
    """Check whether ``target`` is a symlink to ``source`` after canonicalization."""
    if not target.is_symlink():
        return False
    try:
        return symlink_destination(target) == canonical_path(source)
    except OSError:
        return False


def _files_to_capture(target: Path) -> list[Path]:
    """List the regular files a backup of ``target`` must capture."""
    if target.is_symlink():
        return [target] if target.is_file() else []
    if target.is_dir():
        return sorted(p for p in target.rglob("*") if p.is_file() and not p.is_symlink())
    return [target]


def _source_missing(link: ResolvedLink) -> LinkResult:
    error = SourceMissingError(link.source)
    return LinkResult(link, LinkStatus.ERROR, "source does not exist", error)


def _planned(link: ResolvedLink, action: str) -> LinkResult:
    return LinkResult(link, LinkStatus.SUCCESS, f"{action} (dry-run)", dry_run=True)


def _remove(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


class SymlinkEngine:
    """Links and unlinks resolved links under a conflict strategy.

    Attributes:
        dry_run: If True, decide and report without touching the filesystem.
    """

    def __init__(self, *, dry_run: bool = False, backup_store: BackupStore | None = None) -> None:
        """Initialize the engine.

        Args:
            dry_run: If True, report what would be done without doing it.
            backup_store: Store used by the backup strategy. Defaults to
                the store under ~/.merlin/backups, created on first use.
        """
        self.dry_run = dry_run
        self._backup_store = backup_store

    @property
    def backup_store(self) -> BackupStore:
        """Backup store used by the backup strategy."""
        if self._backup_store is None:
            self._backup_store = BackupStore()
        return self._backup_store

    def link(self, link: ResolvedLink, strategy: ConflictStrategy) -> LinkResult:
        """Create the symlink for a resolved link.

        Args:
            link: Link to create.
            strategy: Policy for occupied targets.

        Returns:
            LinkResult with SUCCESS, ALREADY_LINKED, SKIPPED, CONFLICT or ERROR.
        """
        source, target = link.source, link.target

        if not source.exists():
            return _source_missing(link)

        if not os.path.lexists(target):
            if self.dry_run:
                return _planned(link, "would create symlink")
            return self._create(link)

        if points_to(target, source):
            return LinkResult(link, LinkStatus.ALREADY_LINKED, "already linked")

        reason = "target exists"
        if target.is_symlink():
            reason = "target is a symlink to another location"
        conflict = ConflictError(target, reason)

        if strategy == ConflictStrategy.SKIP:
            return LinkResult(link, LinkStatus.SKIPPED, reason, conflict)
        if strategy == ConflictStrategy.INTERACTIVE:
            return LinkResult(link, LinkStatus.CONFLICT, reason, conflict)
        if strategy == ConflictStrategy.OVERWRITE:
            if self.dry_run:
                return _planned(link, "would overwrite and link")
            return self._overwrite(link)
        if self.dry_run:
            return _planned(link, "would backup and link")
        return self._backup_and_link(link)

    def _create(self, link: ResolvedLink, message: str = "linked") -> LinkResult:
        try:
            link.target.parent.mkdir(mode=_PARENT_DIR_MODE, parents=True, exist_ok=True)
            os.symlink(link.source, link.target, target_is_directory=link.is_directory)
        except OSError as e:
            return LinkResult(link, LinkStatus.ERROR, f"failed to create symlink: {e}", e)
        logger.info("Linked %s -> %s", link.target, link.source)
        return LinkResult(link, LinkStatus.SUCCESS, message)

    def _overwrite(self, link: ResolvedLink) -> LinkResult:
        try:
            _remove(link.target)
        except OSError as e:
            return LinkResult(link, LinkStatus.ERROR, f"failed to remove existing target: {e}", e)
        return self._create(link, "overwritten and linked")

    def _backup_and_link(self, link: ResolvedLink) -> LinkResult:
        target = link.target
        files = _files_to_capture(target)
        backup_id: str | None = None

        if files:
            try:
                manifest = self.backup_store.create(files, f"Before linking {link.source}")
            except BackupError as e:
                return LinkResult(link, LinkStatus.ERROR, f"backup failed: {e}", e)
            backup_id = manifest.id

        try:
            _remove(target)
        except OSError as e:
            return LinkResult(
                link,
                LinkStatus.ERROR,
                f"failed to remove existing target: {e}",
                e,
                backup_id=backup_id,
            )

        created = self._create(link, "backed up and linked")
        if created.status == LinkStatus.SUCCESS:
            return LinkResult(link, LinkStatus.SUCCESS, created.message, backup_id=backup_id)

        if backup_id is not None:
            try:
                self.backup_store.restore(backup_id)
                logger.warning("Restored %s from backup %s after failed link", target, backup_id)
            except BackupError as e:
                logger.error("Automatic restore of %s from %s failed: %s", target, backup_id, e)
        return LinkResult(
            link, LinkStatus.ERROR, created.message, created.error, backup_id=backup_id
        )

    def unlink(self, link: ResolvedLink) -> LinkResult:
        """Remove the symlink for a resolved link.

        Only a symlink whose canonical destination equals the declared
        source is removed. Regular files and directories are never touched.

        Args:
            link: Link to remove.

        Returns:
            LinkResult with SUCCESS, SKIPPED or ERROR.
        """
        target = link.target
        if not os.path.lexists(target):
            return LinkResult(link, LinkStatus.SKIPPED, "not present")
        if not target.is_symlink():
            return LinkResult(link, LinkStatus.SKIPPED, "not a symlink")
        if not points_to(target, link.source):
            return LinkResult(link, LinkStatus.SKIPPED, "points elsewhere")

        if self.dry_run:
            return _planned(link, "would remove symlink")
        try:
            target.unlink()
        except OSError as e:
            return LinkResult(link, LinkStatus.ERROR, f"failed to remove symlink: {e}", e)
        logger.info("Unlinked %s", target)
        return LinkResult(link, LinkStatus.SUCCESS, "unlinked")

    def status(self, link: ResolvedLink) -> LinkResult:
        """Inspect a link without mutating anything.

        Returns:
            ALREADY_LINKED, CONFLICT (target occupied), SKIPPED (target
            absent) or ERROR (source missing or unreadable target).
        """
        try:
            if not link.source.exists():
                return _source_missing(link)
            if not os.path.lexists(link.target):
                return LinkResult(link, LinkStatus.SKIPPED, "not linked")
            if points_to(link.target, link.source):
                return LinkResult(link, LinkStatus.ALREADY_LINKED, "linked")
        except OSError as e:
            return LinkResult(link, LinkStatus.ERROR, str(e), e)
        conflict = ConflictError(link.target, "target exists")
        return LinkResult(link, LinkStatus.CONFLICT, "target exists", conflict)

    def link_all(
        self, links: Iterable[ResolvedLink], strategy: ConflictStrategy
    ) -> list[LinkResult]:
        """Link several links in order, continuing past failures."""
        return [self.link(link, strategy) for link in links]

    def unlink_all(self, links: Iterable[ResolvedLink]) -> list[LinkResult]:
        """Unlink several links in order, continuing past failures."""
        return [self.unlink(link) for link in links]

    def status_all(self, links: Iterable[ResolvedLink]) -> list[LinkResult]:
        """Inspect several links in order."""
        return [self.status(link) for link in links]

    def link_tool(self, tool: Tool, strategy: ConflictStrategy) -> list[LinkResult]:
        """Link every resolved link of a tool in declaration order."""
        logger.debug("Linking %s with strategy %s", tool.name, strategy.value)
        return self.link_all(tool.links, strategy)

    def unlink_tool(self, tool: Tool) -> list[LinkResult]:
        """Unlink every resolved link of a tool in declaration order."""
        logger.debug("Unlinking %s (%d link(s))", tool.name, len(tool.links))
        return self.unlink_all(tool.links)
