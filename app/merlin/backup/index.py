"""In-repository backup index.

Records one line of metadata per backup in .merlin-meta/backups.json so
that backups leave an audit trail in version control. The backup copies
themselves never enter the repository.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from merlin.core.paths import get_backup_index_path

if TYPE_CHECKING:
    from merlin.backup.store import BackupManifest

logger = logging.getLogger(__name__)


class BackupIndexEntry(BaseModel):
    """Summary of one backup.

    Attributes:
        id: Backup identifier.
        timestamp: RFC 3339 creation time.
        reason: Backup reason.
        files: Number of captured files.
    """

    model_config = ConfigDict(extra="ignore")

    id: Annotated[str, Field(description="Backup identifier")]
    timestamp: Annotated[str, Field(description="RFC 3339 creation time")] = ""
    reason: Annotated[str, Field(description="Backup reason")] = ""
    files: Annotated[int, Field(ge=0, description="Captured file count")] = 0


class BackupIndex(BaseModel):
    """Contents of .merlin-meta/backups.json."""

    model_config = ConfigDict(extra="ignore")

    entries: Annotated[list[BackupIndexEntry], Field(default_factory=list)]


def load_index(path: Path) -> BackupIndex:
    """Load the index, treating a missing or unreadable file as empty."""
    try:
        return BackupIndex.model_validate_json(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return BackupIndex()
    except (OSError, ValidationError) as e:
        logger.warning("Ignoring unreadable backup index %s: %s", path, e)
        return BackupIndex()


def record_backup(repo_root: Path, manifest: BackupManifest) -> str:
    """Append a backup to the repository index.

    Appending is idempotent by backup id: an id already present leaves
    the file untouched.

    Args:
        repo_root: Dotfiles repository root.
        manifest: The backup to record.

    Returns:
        The index path relative to the repository root (POSIX form).

    Raises:
        OSError: If the index cannot be written.
    """
    path = get_backup_index_path(repo_root)
    relative = path.relative_to(repo_root).as_posix()
    index = load_index(path)

    if any(entry.id == manifest.id for entry in index.entries):
        logger.debug("Backup %s already recorded in %s", manifest.id, relative)
        return relative

    index.entries.append(
        BackupIndexEntry(
            id=manifest.id,
            timestamp=manifest.timestamp.isoformat(timespec="seconds"),
            reason=manifest.reason,
            files=len(manifest.files),
        )
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
        ) as f:
            tmp_path = Path(f.name)
            f.write(index.model_dump_json(indent=2))
            f.write("\n")
        os.replace(str(tmp_path), str(path))
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise

    return relative
