"""Backup store and in-repository backup index.

Public API:
- BackupStore: create, list, restore, delete and clean backups
- BackupManifest / BackupFileEntry: manifest.json schema
- record_backup: append a backup to .merlin-meta/backups.json
"""

from merlin.backup.index import BackupIndex, BackupIndexEntry, load_index, record_backup
from merlin.backup.store import (
    BackupCorruptError,
    BackupError,
    BackupFileEntry,
    BackupManifest,
    BackupNotFoundError,
    BackupStore,
    sha256_file,
)

__all__ = [
    "BackupCorruptError",
    "BackupError",
    "BackupFileEntry",
    "BackupIndex",
    "BackupIndexEntry",
    "BackupManifest",
    "BackupNotFoundError",
    "BackupStore",
    "load_index",
    "record_backup",
    "sha256_file",
]
