"""Git integration and the auto-commit guard.

After a mutating command, merlin may record its changes in the dotfiles
repository. The guard only commits when every untracked, unstaged or
conflicted path lies inside the paths the operation was allowed to touch,
so the user's unrelated work is never swept into an automated commit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from merlin.utils.shell import CommandResult, ExternalToolError, command_exists, run_command

logger = logging.getLogger(__name__)

UNRELATED_CHANGES_WARNING = (
    "auto-commit skipped: unrelated changes detected outside tool directories"
)

_CONFLICT_CODES = frozenset({"DD", "AA"})


class GitError(Exception):
    """Base exception for git errors."""


class NotAGitRepoError(GitError):
    """Raised when the dotfiles repository is not a git work tree."""


class UnrelatedChangesError(GitError):
    """Raised when changes exist outside the allowed paths.

    Attributes:
        paths: Offending repository-relative paths.
    """

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = tuple(paths)
        super().__init__(f"unrelated changes detected: {', '.join(self.paths)}")


class NothingStagedError(GitError):
    """Raised when a commit is requested but nothing is staged."""


@dataclass(slots=True)
class GitStatus:
    """Parsed ``git status --porcelain`` output.

    Attributes:
        staged: Paths with staged changes.
        unstaged: Paths modified in the work tree but not staged.
        untracked: Untracked paths.
        conflicted: Paths with unresolved merge conflicts.
    """

    staged: list[str] = field(default_factory=list)
    unstaged: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)
    conflicted: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True if there are no changes of any kind."""
        return not (self.staged or self.unstaged or self.untracked or self.conflicted)

    @property
    def dirty_paths(self) -> list[str]:
        """Untracked, unstaged and conflicted paths (staged excluded)."""
        return [*self.untracked, *self.unstaged, *self.conflicted]


def parse_status(output: str) -> GitStatus:
    """Parse porcelain v1 status output.

    A path staged and also modified in the work tree appears in both
    ``staged`` and ``unstaged``. Renames record the destination path.

    Args:
        output: Raw ``git status --porcelain`` text.

    Returns:
        GitStatus with classified paths.
    """
    status = GitStatus()
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code, path = line[:2], line[3:].strip()
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        path = path.strip('"')

        if code == "??":
            status.untracked.append(path)
        elif code == "!!":
            continue
        elif "U" in code or code in _CONFLICT_CODES:
            status.conflicted.append(path)
        else:
            if code[0] != " ":
                status.staged.append(path)
            if code[1] != " ":
                status.unstaged.append(path)
    return status


def is_allowed(path: str, allow_prefixes: Iterable[str]) -> bool:
    """Check whether a repository path lies under one of the allow-prefixes.

    A prefix matches the identical path or anything below it.
    """
    path = path.rstrip("/")
    for prefix in allow_prefixes:
        prefix = prefix.rstrip("/")
        if not prefix:
            continue
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def is_git_available() -> bool:
    """Check if the git binary is on PATH."""
    return command_exists("git")


class GitRepo:
    """A git work tree rooted at the dotfiles repository.

    Attributes:
        root: Absolute work tree root.
    """

    def __init__(self, root: Path) -> None:
        """Open the work tree.

        Args:
            root: Repository root.

        Raises:
            NotAGitRepoError: If ``root/.git`` does not exist.
        """
        self.root = root.resolve()
        if not (self.root / ".git").exists():
            raise NotAGitRepoError(f"not a git repository: {self.root}")

    def _git(self, *args: str) -> CommandResult:
        logger.debug("git %s", " ".join(args))
        return run_command(["git", "-C", str(self.root), *args])

    def status(self) -> GitStatus:
        """Query the work tree status.

        Raises:
            ExternalToolError: If git status fails.
        """
        result = self._git("status", "--porcelain", "--untracked-files=all")
        result.raise_for_status("git")
        return parse_status(result.stdout)

    def unrelated_changes(self, allow_prefixes: Iterable[str]) -> list[str]:
        """Return dirty paths lying outside the allow-prefixes."""
        prefixes = list(allow_prefixes)
        return [p for p in self.status().dirty_paths if not is_allowed(p, prefixes)]

    def ensure_no_unrelated_changes(self, allow_prefixes: Iterable[str]) -> None:
        """Raise if any dirty path lies outside the allow-prefixes.

        Raises:
            UnrelatedChangesError: Listing the offending paths.
            ExternalToolError: If git status fails.
        """
        unrelated = self.unrelated_changes(allow_prefixes)
        if unrelated:
            raise UnrelatedChangesError(unrelated)

    def existing_paths(self, paths: Iterable[str]) -> list[str]:
        """Keep only repository-relative paths that exist on disk."""
        return [p for p in paths if (self.root / p).exists()]

    def commit(self, message: str, paths: Sequence[str], *, allow_empty: bool = False) -> None:
        """Stage ``paths`` and commit them.

        Args:
            message: Commit message.
            paths: Repository-relative paths to stage.
            allow_empty: Create an empty commit when nothing ends up staged.

        Raises:
            NothingStagedError: If nothing is staged and allow_empty is False.
            ExternalToolError: If a git command fails.
        """
        if paths:
            self._git("add", "--", *paths).raise_for_status("git")

        staged = [p for p in self.status().staged if is_allowed(p, paths)] if paths else []
        if not staged:
            if not allow_empty:
                raise NothingStagedError("no staged changes to commit")
            self._git("commit", "--allow-empty", "--only", "-m", message).raise_for_status("git")
            return

        # Restrict the commit to the given paths; other staged work stays staged
        self._git("commit", "-m", message, "--", *paths).raise_for_status("git")


class CommitOutcome(str, Enum):
    """What the auto-commit guard did."""

    COMMITTED = "committed"
    EMPTY_COMMIT = "empty_commit"
    REFUSED = "refused"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of an auto-commit attempt.

    Attributes:
        outcome: What happened.
        message: Commit message used (or that would have been used).
        detail: Explanation for refusals and failures.
        unrelated: Offending paths when refused.
    """

    outcome: CommitOutcome
    message: str
    detail: str = ""
    unrelated: tuple[str, ...] = ()

    @property
    def committed(self) -> bool:
        """True if a commit (possibly empty) was created."""
        return self.outcome in (CommitOutcome.COMMITTED, CommitOutcome.EMPTY_COMMIT)


def auto_commit(root: Path, allow_prefixes: Sequence[str], message: str) -> CommitResult:
    """Commit the allowed paths if no unrelated work would be touched.

    Args:
        root: Dotfiles repository root.
        allow_prefixes: Repository-relative paths the operation may affect.
        message: Commit message.

    Returns:
        CommitResult describing the outcome; never raises for git problems.
    """
    if not is_git_available():
        return CommitResult(CommitOutcome.UNAVAILABLE, message, "git is not installed")
    try:
        repo = GitRepo(root)
    except NotAGitRepoError as e:
        return CommitResult(CommitOutcome.UNAVAILABLE, message, str(e))

    try:
        try:
            repo.ensure_no_unrelated_changes(allow_prefixes)
        except UnrelatedChangesError as e:
            logger.warning("%s: %s", UNRELATED_CHANGES_WARNING, ", ".join(e.paths))
            return CommitResult(
                CommitOutcome.REFUSED,
                message,
                UNRELATED_CHANGES_WARNING,
                unrelated=e.paths,
            )

        paths = repo.existing_paths(allow_prefixes)
        try:
            repo.commit(message, paths)
        except NothingStagedError:
            repo.commit(message, [], allow_empty=True)
            return CommitResult(CommitOutcome.EMPTY_COMMIT, message)
    except (ExternalToolError, OSError) as e:
        logger.warning("auto-commit failed: %s", e)
        return CommitResult(CommitOutcome.FAILED, message, str(e))

    logger.info("Auto-commit created: %s", message)
    return CommitResult(CommitOutcome.COMMITTED, message)


def _commit_message(scope: str, verb: str, names: Sequence[str]) -> str:
    if not names:
        return f"chore({scope}): no tools"
    if len(names) == 1:
        return f"chore({scope}): {verb} {names[0]}"
    if len(names) <= 3:
        return f"chore({scope}): {verb} {', '.join(names)} ({len(names)} tools)"
    preview = ", ".join(names[:3])
    return f"chore({scope}): {verb} {len(names)} tools ({preview}, …)"


def link_commit_message(tools: Sequence[str]) -> str:
    """Commit message after linking tools."""
    return _commit_message("link", "link", tools)


def unlink_commit_message(tools: Sequence[str]) -> str:
    """Commit message after unlinking tools."""
    return _commit_message("unlink", "unlink", tools)


def backup_commit_message(backup_id: str, file_count: int) -> str:
    """Commit message after recording a backup in the repository index."""
    return f"chore(backup): record {backup_id} ({file_count} files)"
