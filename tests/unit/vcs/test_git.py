"""Unit tests for git integration.

Tests for status parsing, allow-prefix matching, commit messages and the
auto-commit guard against a real repository in a temporary directory.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from merlin.vcs.git import (
    UNRELATED_CHANGES_WARNING,
    CommitOutcome,
    GitRepo,
    NotAGitRepoError,
    UnrelatedChangesError,
    auto_commit,
    backup_commit_message,
    is_allowed,
    link_commit_message,
    parse_status,
    unlink_commit_message,
)


def _git(root: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(root), *args], capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git_repo(repo_root: Path, git_available: None) -> Path:
    """The test repository as a git work tree with one commit."""
    _git(repo_root, "init", "-q")
    _git(repo_root, "config", "user.email", "test@example.com")
    _git(repo_root, "config", "user.name", "Test")
    _git(repo_root, "config", "commit.gpgsign", "false")
    (repo_root / "config" / "zsh").mkdir()
    (repo_root / "config" / "zsh" / "merlin.toml").write_text("[tool]\nname = 'zsh'\n")
    _git(repo_root, "add", "-A")
    _git(repo_root, "commit", "-q", "-m", "initial")
    return repo_root


def _commit_count(root: Path) -> int:
    return int(_git(root, "rev-list", "--count", "HEAD").strip())


class TestParseStatus:
    """Tests for parse_status."""

    def test_classifies_codes(self) -> None:
        """Porcelain codes map onto the four path groups."""
        output = "\n".join(
            [
                "?? NOTES.md",
                "M  config/zsh/merlin.toml",
                " M config/git/merlin.toml",
                "MM config/nvim/init.lua",
                "UU conflicted.txt",
                "AA both-added.txt",
                "R  old.txt -> config/new.txt",
                "!! ignored.log",
            ]
        )

        status = parse_status(output)

        assert status.untracked == ["NOTES.md"]
        assert status.staged == [
            "config/zsh/merlin.toml",
            "config/nvim/init.lua",
            "config/new.txt",
        ]
        assert status.unstaged == ["config/git/merlin.toml", "config/nvim/init.lua"]
        assert status.conflicted == ["conflicted.txt", "both-added.txt"]
        assert status.dirty_paths == [
            "NOTES.md",
            "config/git/merlin.toml",
            "config/nvim/init.lua",
            "conflicted.txt",
            "both-added.txt",
        ]

    def test_empty_is_clean(self) -> None:
        """No output means a clean tree."""
        assert parse_status("").is_clean is True


class TestIsAllowed:
    """Tests for is_allowed."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("config/zsh", True),
            ("config/zsh/merlin.toml", True),
            ("config/zsh/", True),
            ("config/zshrc", False),
            ("NOTES.md", False),
        ],
    )
    def test_prefix_matching(self, path: str, expected: bool) -> None:
        """Prefixes match the path itself and anything below it."""
        assert is_allowed(path, ["config/zsh"]) is expected

    def test_empty_prefix_matches_nothing(self) -> None:
        """An empty prefix never allows everything."""
        assert is_allowed("NOTES.md", [""]) is False


class TestCommitMessages:
    """Tests for commit message formatting."""

    def test_link_messages(self) -> None:
        """Messages summarize one, few or many tools."""
        assert link_commit_message(["zsh"]) == "chore(link): link zsh"
        assert link_commit_message(["zsh", "git"]) == "chore(link): link zsh, git (2 tools)"
        assert (
            link_commit_message(["a", "b", "c", "d"])
            == "chore(link): link 4 tools (a, b, c, …)"
        )
        assert link_commit_message([]) == "chore(link): no tools"

    def test_unlink_and_backup_messages(self) -> None:
        """Unlink and backup messages use their own scopes."""
        assert unlink_commit_message(["zsh"]) == "chore(unlink): unlink zsh"
        assert (
            backup_commit_message("20260301_120000", 2)
            == "chore(backup): record 20260301_120000 (2 files)"
        )


class TestGitRepo:
    """Tests for GitRepo against a real repository."""

    def test_not_a_repo(self, tmp_path: Path) -> None:
        """A directory without .git is rejected."""
        with pytest.raises(NotAGitRepoError):
            GitRepo(tmp_path)

    def test_unrelated_changes(self, git_repo: Path) -> None:
        """Dirty paths outside the allow-prefixes are reported."""
        (git_repo / "NOTES.md").write_text("notes")
        (git_repo / "config" / "zsh" / "extra").write_text("x")
        repo = GitRepo(git_repo)

        assert repo.unrelated_changes(["config/zsh"]) == ["NOTES.md"]
        with pytest.raises(UnrelatedChangesError) as exc_info:
            repo.ensure_no_unrelated_changes(["config/zsh"])
        assert exc_info.value.paths == ("NOTES.md",)


class TestAutoCommit:
    """Tests for the auto-commit guard."""

    def test_commits_allowed_changes(self, git_repo: Path) -> None:
        """Changes inside the allowed tool directory are committed."""
        (git_repo / "config" / "zsh" / "merlin.toml").write_text("[tool]\nname = 'zsh2'\n")

        result = auto_commit(git_repo, ["config/zsh"], "chore(link): link zsh")

        assert result.outcome == CommitOutcome.COMMITTED
        assert result.committed is True
        assert _commit_count(git_repo) == 2
        assert _git(git_repo, "log", "-1", "--format=%s").strip() == "chore(link): link zsh"
        assert _git(git_repo, "status", "--porcelain").strip() == ""

    def test_refuses_unrelated_untracked_file(self, git_repo: Path) -> None:
        """An untracked file outside the tool directories blocks the commit."""
        (git_repo / "NOTES.md").write_text("notes")

        result = auto_commit(git_repo, ["config/zsh"], "chore(link): link zsh")

        assert result.outcome == CommitOutcome.REFUSED
        assert result.detail == UNRELATED_CHANGES_WARNING
        assert result.unrelated == ("NOTES.md",)
        assert _commit_count(git_repo) == 1
        assert "?? NOTES.md" in _git(git_repo, "status", "--porcelain")

    def test_empty_commit_when_nothing_changed(self, git_repo: Path) -> None:
        """With no changes an empty commit records the operation."""
        result = auto_commit(git_repo, ["config/zsh"], "chore(link): link zsh")

        assert result.outcome == CommitOutcome.EMPTY_COMMIT
        assert _commit_count(git_repo) == 2

    def test_other_staged_work_stays_staged(self, git_repo: Path) -> None:
        """Staged changes outside the allowed paths are not committed."""
        (git_repo / "config" / "git").mkdir()
        (git_repo / "config" / "git" / "merlin.toml").write_text("")
        _git(git_repo, "add", "config/git/merlin.toml")
        (git_repo / "config" / "zsh" / "new").write_text("x")

        result = auto_commit(git_repo, ["config/zsh"], "msg")

        assert result.outcome == CommitOutcome.COMMITTED
        assert "A  config/git/merlin.toml" in _git(git_repo, "status", "--porcelain")

    def test_not_a_repository(self, repo_root: Path) -> None:
        """A non-git repository makes auto-commit unavailable."""
        with patch("merlin.vcs.git.is_git_available", return_value=True):
            result = auto_commit(repo_root, ["config/zsh"], "msg")

        assert result.outcome == CommitOutcome.UNAVAILABLE
        assert result.committed is False

    def test_git_missing(self, repo_root: Path) -> None:
        """Without git the guard reports unavailability."""
        with patch("merlin.vcs.git.is_git_available", return_value=False):
            result = auto_commit(repo_root, ["config/zsh"], "msg")

        assert result.outcome == CommitOutcome.UNAVAILABLE
        assert result.detail == "git is not installed"
