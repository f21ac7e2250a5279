"""Unit tests for path management.

Tests for the paths module that locates merlin's state directory.
"""

from pathlib import Path

from merlin.core.paths import (
    ensure_backup_dir,
    ensure_state_dir,
    get_backup_dir,
    get_backup_index_path,
    get_log_path,
    get_state_dir,
)


class TestStatePaths:
    """Tests for the ~/.merlin layout."""

    def test_state_dir_under_home(self, home: Path) -> None:
        """State directory is ~/.merlin."""
        assert get_state_dir() == home / ".merlin"

    def test_backup_dir_under_state(self, home: Path) -> None:
        """Backups live in ~/.merlin/backups."""
        assert get_backup_dir() == home / ".merlin" / "backups"

    def test_log_path(self, home: Path) -> None:
        """Log file is ~/.merlin/merlin.log."""
        assert get_log_path() == home / ".merlin" / "merlin.log"

    def test_ensure_creates_directories(self, home: Path) -> None:
        """ensure_* helpers create missing directories."""
        assert ensure_state_dir().is_dir()
        assert ensure_backup_dir().is_dir()


class TestBackupIndexPath:
    """Tests for the in-repository backup index path."""

    def test_index_path(self, tmp_path: Path) -> None:
        """Index lives in .merlin-meta/backups.json."""
        assert get_backup_index_path(tmp_path) == tmp_path / ".merlin-meta" / "backups.json"
