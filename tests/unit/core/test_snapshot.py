"""Unit tests for the live system snapshot.

Tests for symlink discovery and snapshot collection.
"""

from pathlib import Path

from merlin.core.snapshot import collect_snapshot, discover_symlinks, inspect_symlink
from merlin.models.packages import PackageSource
from merlin.scanners.base import StaticScanner


class TestInspectSymlink:
    """Tests for inspect_symlink."""

    def test_regular_file_is_none(self, tmp_path: Path) -> None:
        """Non-symlinks are not reported."""
        path = tmp_path / "file"
        path.write_text("x")

        assert inspect_symlink(path) is None
        assert inspect_symlink(tmp_path / "absent") is None

    def test_relative_link_resolved_against_parent(self, tmp_path: Path) -> None:
        """Relative link text is resolved against the link's directory."""
        (tmp_path / "real").write_text("x")
        (tmp_path / "sub").mkdir()
        link = tmp_path / "sub" / "link"
        link.symlink_to("../real")

        entry = inspect_symlink(link)

        assert entry is not None
        assert entry.link_path == link
        assert entry.resolved_target == tmp_path / "real"
        assert entry.broken is False

    def test_broken_link(self, tmp_path: Path) -> None:
        """A link to a missing destination is broken."""
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "gone")

        entry = inspect_symlink(link)

        assert entry is not None
        assert entry.broken is True
        assert entry.resolved_target == tmp_path / "gone"


class TestDiscoverSymlinks:
    """Tests for discover_symlinks."""

    def test_walks_roots_without_descending_links(self, tmp_path: Path) -> None:
        """Directory symlinks are reported but not walked."""
        target_dir = tmp_path / "target"
        target_dir.mkdir()
        (target_dir / "inner").symlink_to(tmp_path / "x")
        root = tmp_path / "root"
        (root / "nested").mkdir(parents=True)
        (root / "dirlink").symlink_to(target_dir)
        (root / "nested" / "filelink").symlink_to(tmp_path / "x")

        entries = discover_symlinks([root])

        assert [entry.link_path for entry in entries] == [
            root / "dirlink",
            root / "nested" / "filelink",
        ]

    def test_extra_paths_and_missing_root(self, tmp_path: Path) -> None:
        """Extra paths are probed directly; absent roots are ignored."""
        link = tmp_path / ".zshrc"
        link.symlink_to(tmp_path / "zshrc")

        entries = discover_symlinks([tmp_path / "nope"], [link, tmp_path / "absent"])

        assert [entry.link_path for entry in entries] == [link]

    def test_duplicates_collapsed(self, tmp_path: Path) -> None:
        """A link seen by the walk and as an extra path appears once."""
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "x")

        assert len(discover_symlinks([tmp_path], [link])) == 1


class TestCollectSnapshot:
    """Tests for collect_snapshot."""

    def test_collects_packages_and_links(self, home: Path) -> None:
        """Scanner results and home dotfile links land in the snapshot."""
        config_dir = home / ".config"
        config_dir.mkdir()
        (home / ".zshrc").symlink_to(home / "dotfiles-zshrc")
        (config_dir / "nvim").symlink_to(home / "nvim-src")

        snapshot = collect_snapshot(
            formula_scanner=StaticScanner(PackageSource.BREW_FORMULA, {"git"}),
            cask_scanner=StaticScanner(PackageSource.BREW_CASK, {"wezterm"}),
            mas_scanner=StaticScanner(PackageSource.MAS, {"497799835"}),
            home_dir=home,
            config_dir=config_dir,
        )

        assert snapshot.formulae == frozenset({"git"})
        assert snapshot.casks == frozenset({"wezterm"})
        assert snapshot.mas_apps == frozenset({"497799835"})
        assert [entry.link_path for entry in snapshot.symlinks] == [
            home / ".config" / "nvim",
            home / ".zshrc",
        ]
        assert snapshot.symlink_at(home / ".zshrc") is not None
        assert snapshot.symlink_at(home / ".bashrc") is None
