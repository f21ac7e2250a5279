"""Unit tests for the symlink engine.

Tests for the link decision table, unlink safety, status inspection and
dry-run behavior.
"""

import os
from pathlib import Path

import pytest

from merlin.backup.store import BackupStore
from merlin.core.links import ResolvedLink, Tool
from merlin.models.root import ConflictStrategy
from merlin.symlinks.engine import (
    ConflictError,
    LinkStatus,
    SourceMissingError,
    SymlinkEngine,
    points_to,
)


@pytest.fixture
def source(tmp_path: Path) -> Path:
    """A source file inside a fake repository."""
    path = tmp_path / "repo" / "config" / "zsh" / "config" / "omp.toml"
    path.parent.mkdir(parents=True)
    path.write_text("source content\n")
    return path


@pytest.fixture
def target(home: Path) -> Path:
    """The declared target path, initially absent."""
    return home / ".config" / "zsh" / "omp.toml"


@pytest.fixture
def link(source: Path, target: Path) -> ResolvedLink:
    """A resolved file link."""
    return ResolvedLink(tool="zsh", source=source, target=target, is_directory=False)


@pytest.fixture
def store(tmp_path: Path) -> BackupStore:
    """Backup store under a temporary root."""
    return BackupStore(tmp_path / "backups")


@pytest.fixture
def engine(store: BackupStore) -> SymlinkEngine:
    """Engine using the temporary backup store."""
    return SymlinkEngine(backup_store=store)


class TestLink:
    """Tests for SymlinkEngine.link."""

    def test_creates_symlink_and_parents(
        self, engine: SymlinkEngine, link: ResolvedLink, source: Path, target: Path
    ) -> None:
        """An absent target is linked and missing parents are created."""
        result = engine.link(link, ConflictStrategy.SKIP)

        assert result.status == LinkStatus.SUCCESS
        assert target.is_symlink()
        assert Path(os.readlink(target)) == source
        assert target.read_text() == "source content\n"

    def test_relink_is_noop(self, engine: SymlinkEngine, link: ResolvedLink, target: Path) -> None:
        """Linking twice leaves the symlink untouched."""
        engine.link(link, ConflictStrategy.SKIP)
        before = target.lstat()

        result = engine.link(link, ConflictStrategy.SKIP)

        assert result.status == LinkStatus.ALREADY_LINKED
        after = target.lstat()
        assert (after.st_ino, after.st_mtime_ns) == (before.st_ino, before.st_mtime_ns)

    def test_relative_symlink_counts_as_linked(
        self, engine: SymlinkEngine, link: ResolvedLink, source: Path, target: Path
    ) -> None:
        """A relative symlink to the source is recognized."""
        target.parent.mkdir(parents=True)
        target.symlink_to(os.path.relpath(source, target.parent))

        assert engine.link(link, ConflictStrategy.SKIP).status == LinkStatus.ALREADY_LINKED

    def test_missing_source(self, engine: SymlinkEngine, target: Path, tmp_path: Path) -> None:
        """A missing source is an error and nothing is created."""
        missing = ResolvedLink("zsh", tmp_path / "nope", target, False)

        result = engine.link(missing, ConflictStrategy.OVERWRITE)

        assert result.status == LinkStatus.ERROR
        assert isinstance(result.error, SourceMissingError)
        assert result.failed is True
        assert not os.path.lexists(target)

    def test_skip_leaves_existing_file(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path
    ) -> None:
        """The skip strategy never touches an occupied target."""
        target.parent.mkdir(parents=True)
        target.write_text("X")

        result = engine.link(link, ConflictStrategy.SKIP)

        assert result.status == LinkStatus.SKIPPED
        assert isinstance(result.error, ConflictError)
        assert result.failed is False
        assert target.read_text() == "X"

    def test_interactive_reports_conflict(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path, tmp_path: Path
    ) -> None:
        """The interactive strategy returns a conflict for the caller to resolve."""
        target.parent.mkdir(parents=True)
        target.symlink_to(tmp_path / "other")

        result = engine.link(link, ConflictStrategy.INTERACTIVE)

        assert result.status == LinkStatus.CONFLICT
        assert result.message == "target is a symlink to another location"
        assert Path(os.readlink(target)) == tmp_path / "other"

    def test_overwrite_replaces_directory(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path, source: Path
    ) -> None:
        """Overwrite removes whatever occupies the target."""
        (target / "nested").mkdir(parents=True)
        (target / "nested" / "file").write_text("old")

        result = engine.link(link, ConflictStrategy.OVERWRITE)

        assert result.status == LinkStatus.SUCCESS
        assert points_to(target, source)

    def test_backup_then_link_then_restore(
        self,
        engine: SymlinkEngine,
        store: BackupStore,
        link: ResolvedLink,
        target: Path,
    ) -> None:
        """Backup captures the old file so it can be restored later."""
        target.parent.mkdir(parents=True)
        target.write_text("X")

        result = engine.link(link, ConflictStrategy.BACKUP)

        assert result.status == LinkStatus.SUCCESS
        assert result.backup_id is not None
        manifest = store.get(result.backup_id)
        assert [entry.original_path for entry in manifest.files] == [str(target)]
        assert target.is_symlink()
        assert target.read_text() == "source content\n"

        store.restore(result.backup_id)

        assert not target.is_symlink()
        assert target.read_text() == "X"

    def test_backup_of_directory_captures_files(
        self, engine: SymlinkEngine, store: BackupStore, link: ResolvedLink, target: Path
    ) -> None:
        """A directory target is backed up file by file."""
        (target / "sub").mkdir(parents=True)
        (target / "a").write_text("a")
        (target / "sub" / "b").write_text("b")

        result = engine.link(link, ConflictStrategy.BACKUP)

        assert result.backup_id is not None
        captured = [entry.original_path for entry in store.get(result.backup_id).files]
        assert captured == [str(target / "a"), str(target / "sub" / "b")]

    def test_restore_after_directory_link_keeps_repo_intact(
        self, engine: SymlinkEngine, store: BackupStore, tmp_path: Path, home: Path
    ) -> None:
        """Restoring a linked directory recreates it instead of writing into the repo."""
        repo_dir = tmp_path / "repo" / "config" / "nvim" / "config"
        repo_dir.mkdir(parents=True)
        (repo_dir / "init.lua").write_text("REPO CONTENT\n")
        target = home / ".config" / "nvim"
        target.mkdir(parents=True)
        (target / "init.lua").write_text("USER OLD\n")
        dir_link = ResolvedLink(tool="nvim", source=repo_dir, target=target, is_directory=True)

        result = engine.link(dir_link, ConflictStrategy.BACKUP)
        assert result.backup_id is not None
        assert target.is_symlink()

        store.restore(result.backup_id)

        assert (repo_dir / "init.lua").read_text() == "REPO CONTENT\n"
        assert not target.is_symlink()
        assert target.is_dir()
        assert (target / "init.lua").read_text() == "USER OLD\n"

    def test_failed_link_restores_backup(
        self,
        engine: SymlinkEngine,
        link: ResolvedLink,
        target: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """When the symlink cannot be created the backed-up target comes back."""
        target.parent.mkdir(parents=True)
        target.write_text("X")

        def refuse(*args: object, **kwargs: object) -> None:
            raise OSError("read-only file system")

        monkeypatch.setattr("merlin.symlinks.engine.os.symlink", refuse)

        result = engine.link(link, ConflictStrategy.BACKUP)

        assert result.status == LinkStatus.ERROR
        assert result.backup_id is not None
        assert "read-only file system" in result.message
        assert not target.is_symlink()
        assert target.read_text() == "X"

    @pytest.mark.parametrize(
        ("strategy", "message"),
        [
            (ConflictStrategy.OVERWRITE, "would overwrite and link (dry-run)"),
            (ConflictStrategy.BACKUP, "would backup and link (dry-run)"),
        ],
    )
    def test_dry_run_changes_nothing(
        self,
        store: BackupStore,
        link: ResolvedLink,
        target: Path,
        strategy: ConflictStrategy,
        message: str,
    ) -> None:
        """Dry-run reports the planned action without side effects."""
        target.parent.mkdir(parents=True)
        target.write_text("X")
        engine = SymlinkEngine(dry_run=True, backup_store=store)

        result = engine.link(link, strategy)

        assert result.status == LinkStatus.SUCCESS
        assert result.dry_run is True
        assert result.message == message
        assert target.read_text() == "X"
        assert store.list_backups() == []

    def test_dry_run_absent_target(self, store: BackupStore, link: ResolvedLink) -> None:
        """Dry-run on an absent target does not create parents."""
        engine = SymlinkEngine(dry_run=True, backup_store=store)

        result = engine.link(link, ConflictStrategy.SKIP)

        assert result.message == "would create symlink (dry-run)"
        assert not link.target.parent.exists()


class TestUnlink:
    """Tests for SymlinkEngine.unlink."""

    def test_removes_own_symlink(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path, source: Path
    ) -> None:
        """A symlink to the declared source is removed; the source survives."""
        engine.link(link, ConflictStrategy.SKIP)

        result = engine.unlink(link)

        assert result.status == LinkStatus.SUCCESS
        assert not os.path.lexists(target)
        assert source.exists()

    def test_refuses_foreign_symlink(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path, tmp_path: Path
    ) -> None:
        """A symlink pointing elsewhere is left alone."""
        target.parent.mkdir(parents=True)
        target.symlink_to(tmp_path / "other")

        result = engine.unlink(link)

        assert result.status == LinkStatus.SKIPPED
        assert result.message == "points elsewhere"
        assert Path(os.readlink(target)) == tmp_path / "other"

    def test_regular_file_untouched(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path
    ) -> None:
        """A regular file at the target is never removed."""
        target.parent.mkdir(parents=True)
        target.write_text("mine")

        result = engine.unlink(link)

        assert result.status == LinkStatus.SKIPPED
        assert result.message == "not a symlink"
        assert target.read_text() == "mine"

    def test_absent_target(self, engine: SymlinkEngine, link: ResolvedLink) -> None:
        """Unlinking an absent target is skipped."""
        assert engine.unlink(link).message == "not present"

    def test_dry_run(self, store: BackupStore, link: ResolvedLink, target: Path) -> None:
        """Dry-run unlink keeps the symlink."""
        SymlinkEngine(backup_store=store).link(link, ConflictStrategy.SKIP)

        result = SymlinkEngine(dry_run=True, backup_store=store).unlink(link)

        assert result.message == "would remove symlink (dry-run)"
        assert target.is_symlink()


class TestStatus:
    """Tests for status inspection."""

    def test_status_values(
        self, engine: SymlinkEngine, link: ResolvedLink, target: Path, tmp_path: Path
    ) -> None:
        """status maps target states without mutating anything."""
        assert engine.status(link).status == LinkStatus.SKIPPED

        engine.link(link, ConflictStrategy.SKIP)
        assert engine.status(link).status == LinkStatus.ALREADY_LINKED

        target.unlink()
        target.write_text("X")
        assert engine.status(link).status == LinkStatus.CONFLICT

        missing = ResolvedLink("zsh", tmp_path / "nope", target, False)
        assert engine.status(missing).status == LinkStatus.ERROR
        assert target.read_text() == "X"


class TestToolBatches:
    """Tests for link_tool and unlink_tool."""

    def test_batch_continues_past_failures(
        self, engine: SymlinkEngine, link: ResolvedLink, tmp_path: Path, home: Path
    ) -> None:
        """A failing link does not stop the rest of the tool."""
        broken = ResolvedLink("zsh", tmp_path / "nope", home / ".broken", False)
        tool = Tool(
            name="zsh",
            root=tmp_path / "repo" / "config" / "zsh",
            config=None,
            links=(broken, link),
        )

        linked = engine.link_tool(tool, ConflictStrategy.SKIP)
        unlinked = engine.unlink_tool(tool)

        assert [r.status for r in linked] == [LinkStatus.ERROR, LinkStatus.SUCCESS]
        assert [r.status for r in unlinked] == [LinkStatus.SKIPPED, LinkStatus.SUCCESS]
