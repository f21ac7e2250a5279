"""Manifest-based backup store.

Each backup is a directory ``<backup-root>/<id>/`` holding copies of the
captured files (laid out by their path relative to the user's home) and a
``manifest.json`` describing them. The manifest is written last, so a
directory without one is an aborted backup and is never listed.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from merlin.core.paths import get_backup_dir, get_state_dir

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
BACKUP_ID_FORMAT = "%Y%m%d_%H%M%S"
_CHUNK_SIZE = 64 * 1024


class BackupError(Exception):
    """Base exception for backup store errors."""


class BackupNotFoundError(BackupError):
    """Raised when a backup id has no readable manifest."""


class BackupCorruptError(BackupError):
    """Raised when a backup copy fails its integrity check.

    Attributes:
        backup_id: The backup being restored.
        entry: Original path of the failing entry.
        reason: What did not match.
    """

    def __init__(self, backup_id: str, entry: str, reason: str) -> None:
        self.backup_id = backup_id
        self.entry = entry
        self.reason = reason
        super().__init__(f"backup {backup_id} is corrupt: {entry}: {reason}")


class BackupFileEntry(BaseModel):
    """A single captured file.

    Attributes:
        original_path: Absolute path the file was captured from.
        backup_path: Absolute path of the copy inside the backup directory.
        size: Size of the copy in bytes.
        checksum: Hex-encoded SHA-256 of the copy.
    """

    model_config = ConfigDict(extra="ignore")

    original_path: Annotated[str, Field(description="Captured file path")]
    backup_path: Annotated[str, Field(description="Copy location")]
    size: Annotated[int, Field(ge=0, description="Copy size in bytes")]
    checksum: Annotated[str, Field(description="SHA-256 of the copy")]


class BackupManifest(BaseModel):
    """Metadata describing one backup.

    Attributes:
        id: Timestamp identifier, second granularity.
        timestamp: Creation time.
        reason: Why the backup was taken.
        merlin_dir: Merlin state directory at creation time.
        files: Captured files.
    """

    model_config = ConfigDict(extra="ignore")

    id: Annotated[str, Field(description="Backup identifier")]
    timestamp: Annotated[datetime, Field(description="Creation time")]
    reason: Annotated[str, Field(description="Backup reason")] = ""
    merlin_dir: Annotated[str, Field(description="Merlin state directory")] = ""
    files: Annotated[list[BackupFileEntry], Field(default_factory=list)]

    @property
    def total_size(self) -> int:
        """Sum of captured file sizes in bytes."""
        return sum(entry.size for entry in self.files)


def sha256_file(path: Path) -> str:
    """Compute the hex SHA-256 digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def _copy_with_checksum(source: Path, dest: Path) -> tuple[int, str]:
    """Copy a file, hashing the bytes as they are written, and copy its mode."""
    digest = hashlib.sha256()
    size = 0
    with open(source, "rb") as src, open(dest, "wb") as dst:
        while chunk := src.read(_CHUNK_SIZE):
            digest.update(chunk)
            dst.write(chunk)
            size += len(chunk)
    shutil.copymode(source, dest)
    return size, digest.hexdigest()


def _relative_location(path: Path, home: Path) -> Path:
    try:
        return path.relative_to(home)
    except ValueError:
        # Outside home: keep the full path structure
        return Path(str(path).lstrip(os.sep))


def _replace_symlinked_parents(target: Path) -> None:
    """Turn symlinked directories between home and ``target`` into real ones.

    A linked directory target leaves a symlink into the repository where
    the captured files used to live; copying through it would overwrite
    repository files. Home itself and its ancestors are left alone.
    """
    home = Path(os.path.abspath(Path.home()))
    for parent in reversed(target.parents):
        if parent == home or not parent.is_relative_to(home):
            continue
        if parent.is_symlink():
            logger.debug("Replacing symlinked directory %s before restore", parent)
            parent.unlink()
            parent.mkdir()


class BackupStore:
    """Creates, lists, restores and deletes backups under one root.

    Attributes:
        root: Directory holding one subdirectory per backup.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Backup root. Defaults to ~/.merlin/backups.
            clock: Returns the current aware datetime; injectable for tests.
        """
        self.root = root or get_backup_dir()
        self._clock = clock or (lambda: datetime.now().astimezone())

    def _manifest_path(self, backup_id: str) -> Path:
        return self.root / backup_id / MANIFEST_NAME

    def _allocate_id(self, now: datetime) -> str:
        """Pick the first free second-granularity id at or after ``now``."""
        candidate = now
        while True:
            backup_id = candidate.strftime(BACKUP_ID_FORMAT)
            if not (self.root / backup_id).exists():
                return backup_id
            candidate += timedelta(seconds=1)

    def create(self, files: Iterable[str | Path], reason: str) -> BackupManifest:
        """Capture files into a new backup.

        A leading ``~`` is expanded. Missing paths and directories are
        skipped. Each copy keeps its mode bits and is hashed while copied.

        Args:
            files: Paths to capture.
            reason: Free-form reason recorded in the manifest.

        Returns:
            The written manifest.

        Raises:
            BackupError: If nothing was requested, or any copy/write fails.
                A failed call leaves no manifest behind.
        """
        requested = [Path(os.path.expanduser(str(f))) for f in files]
        if not requested:
            raise BackupError("no files specified for backup")

        now = self._clock()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            backup_id = self._allocate_id(now)
            backup_dir = self.root / backup_id
            backup_dir.mkdir(parents=True)
        except OSError as e:
            raise BackupError(f"cannot create backup directory: {e}") from e

        home = Path.home()
        manifest = BackupManifest(
            id=backup_id,
            timestamp=now,
            reason=reason,
            merlin_dir=str(get_state_dir()),
        )

        for original in requested:
            original = Path(os.path.abspath(original))
            if not original.exists():
                logger.debug("Backup %s: skipping missing %s", backup_id, original)
                continue
            if original.is_dir():
                logger.debug("Backup %s: skipping directory %s", backup_id, original)
                continue

            dest = backup_dir / _relative_location(original, home)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                size, checksum = _copy_with_checksum(original, dest)
            except OSError as e:
                raise BackupError(f"cannot copy {original}: {e}") from e

            manifest.files.append(
                BackupFileEntry(
                    original_path=str(original),
                    backup_path=str(dest),
                    size=size,
                    checksum=checksum,
                )
            )

        self._write_manifest(manifest, backup_dir / MANIFEST_NAME)
        logger.info("Created backup %s with %d file(s)", backup_id, len(manifest.files))
        return manifest

    def _write_manifest(self, manifest: BackupManifest, path: Path) -> None:
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
            ) as f:
                tmp_path = Path(f.name)
                f.write(manifest.model_dump_json(indent=2))
            os.replace(str(tmp_path), str(path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise BackupError(f"cannot write manifest: {e}") from e

    def get(self, backup_id: str) -> BackupManifest:
        """Load one manifest.

        Raises:
            BackupNotFoundError: If the manifest is missing or unreadable.
        """
        path = self._manifest_path(backup_id)
        try:
            return BackupManifest.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise BackupNotFoundError(f"backup not found: {backup_id}") from e
        except (OSError, ValidationError) as e:
            raise BackupNotFoundError(f"backup {backup_id} has an invalid manifest: {e}") from e

    def list_backups(self) -> list[BackupManifest]:
        """List backups, newest first.

        Directories with unreadable or malformed manifests are skipped.
        """
        if not self.root.is_dir():
            return []

        manifests: list[BackupManifest] = []
        for entry in self.root.iterdir():
            if not entry.is_dir():
                continue
            try:
                manifests.append(self.get(entry.name))
            except BackupNotFoundError as e:
                logger.debug("Skipping %s: %s", entry, e)

        manifests.sort(key=lambda m: (m.timestamp, m.id), reverse=True)
        return manifests

    def verify(self, manifest: BackupManifest, entries: Iterable[BackupFileEntry]) -> None:
        """Check existence, size and checksum of backup copies.

        Raises:
            BackupCorruptError: On the first entry that does not match.
        """
        for entry in entries:
            copy = Path(entry.backup_path)
            if not copy.is_file():
                raise BackupCorruptError(manifest.id, entry.original_path, "backup copy missing")
            actual_size = copy.stat().st_size
            if actual_size != entry.size:
                raise BackupCorruptError(
                    manifest.id,
                    entry.original_path,
                    f"size mismatch: expected {entry.size}, got {actual_size}",
                )
            if sha256_file(copy) != entry.checksum:
                raise BackupCorruptError(manifest.id, entry.original_path, "checksum mismatch")

    def restore(self, backup_id: str, only: Iterable[str] | None = None) -> list[Path]:
        """Copy captured files back to their original locations.

        Every selected entry is verified before anything is written, so a
        corrupt backup never produces partial output. A symlink occupying
        an original path, or one of its directories below the home
        directory, is replaced by a real file or directory and is never
        written through.

        Args:
            backup_id: Backup to restore.
            only: Restrict to these original paths (``~`` is expanded).

        Returns:
            Restored original paths.

        Raises:
            BackupNotFoundError: If the backup does not exist.
            BackupCorruptError: If any selected copy fails verification.
            BackupError: If copying fails.
        """
        manifest = self.get(backup_id)
        selected = manifest.files
        if only is not None:
            wanted = {os.path.abspath(os.path.expanduser(str(p))) for p in only}
            selected = [e for e in manifest.files if e.original_path in wanted]

        self.verify(manifest, selected)

        restored: list[Path] = []
        for entry in selected:
            target = Path(entry.original_path)
            try:
                _replace_symlinked_parents(target)
                target.parent.mkdir(parents=True, exist_ok=True)
                if target.is_symlink():
                    target.unlink()
                shutil.copy2(entry.backup_path, target)
            except OSError as e:
                raise BackupError(f"cannot restore {target}: {e}") from e
            restored.append(target)

        logger.info("Restored %d file(s) from backup %s", len(restored), backup_id)
        return restored

    def delete(self, backup_id: str) -> None:
        """Remove a backup directory.

        The directory is first renamed aside so that a half-deleted backup
        is never listed.

        Raises:
            BackupNotFoundError: If the backup directory does not exist.
            BackupError: If removal fails.
        """
        backup_dir = self.root / backup_id
        if not backup_dir.is_dir():
            raise BackupNotFoundError(f"backup not found: {backup_id}")

        doomed = self.root / f".{backup_id}.deleting"
        try:
            os.replace(backup_dir, doomed)
            shutil.rmtree(doomed)
        except OSError as e:
            raise BackupError(f"cannot delete backup {backup_id}: {e}") from e
        logger.info("Deleted backup %s", backup_id)

    def select_for_clean(
        self,
        *,
        keep: int | None = None,
        older_than_days: int | None = None,
    ) -> list[BackupManifest]:
        """Pick backups matching either clean rule.

        Args:
            keep: Keep this many newest backups; older ones are selected.
            older_than_days: Select backups older than this many days.

        Returns:
            Selected manifests, newest first, without duplicates.
        """
        backups = self.list_backups()
        selected: dict[str, BackupManifest] = {}

        if keep is not None and keep > 0:
            for manifest in backups[keep:]:
                selected[manifest.id] = manifest

        if older_than_days is not None and older_than_days > 0:
            cutoff = self._clock() - timedelta(days=older_than_days)
            for manifest in backups:
                if manifest.timestamp.astimezone() < cutoff.astimezone():
                    selected.setdefault(manifest.id, manifest)

        return sorted(selected.values(), key=lambda m: (m.timestamp, m.id), reverse=True)

    def clean(
        self,
        *,
        keep: int | None = None,
        older_than_days: int | None = None,
    ) -> list[str]:
        """Delete backups matching either clean rule.

        Returns:
            Ids that were deleted.
        """
        deleted: list[str] = []
        for manifest in self.select_for_clean(keep=keep, older_than_days=older_than_days):
            try:
                self.delete(manifest.id)
            except BackupError as e:
                logger.warning("Failed to delete backup %s: %s", manifest.id, e)
                continue
            deleted.append(manifest.id)
        return deleted
