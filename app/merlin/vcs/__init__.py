"""Version control integration for the dotfiles repository."""

from merlin.vcs.git import (
    UNRELATED_CHANGES_WARNING,
    CommitOutcome,
    CommitResult,
    GitError,
    GitRepo,
    GitStatus,
    NotAGitRepoError,
    NothingStagedError,
    UnrelatedChangesError,
    auto_commit,
    backup_commit_message,
    is_allowed,
    link_commit_message,
    parse_status,
    unlink_commit_message,
)

__all__ = [
    "UNRELATED_CHANGES_WARNING",
    "CommitOutcome",
    "CommitResult",
    "GitError",
    "GitRepo",
    "GitStatus",
    "NotAGitRepoError",
    "NothingStagedError",
    "UnrelatedChangesError",
    "auto_commit",
    "backup_commit_message",
    "is_allowed",
    "link_commit_message",
    "parse_status",
    "unlink_commit_message",
]
