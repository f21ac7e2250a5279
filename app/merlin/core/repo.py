"""Dotfiles repository discovery and layout.

A directory is a dotfiles repository iff it contains a root merlin.toml
and a config/ directory holding one subdirectory per tool.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from merlin.core.paths import CONFIG_DIR_NAME, DOTFILES_ENV_VAR, ROOT_DECLARATION

logger = logging.getLogger(__name__)


class RepoError(Exception):
    """Base exception for repository discovery errors."""


class RepoNotFoundError(RepoError):
    """Raised when no dotfiles repository can be located."""


class NotADotfilesRepoError(RepoError):
    """Raised when a directory lacks the repository markers.

    Attributes:
        path: The directory that was inspected.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"{path} is not a dotfiles repository "
            f"(expected {ROOT_DECLARATION} and {CONFIG_DIR_NAME}/)"
        )


def is_dotfiles_repo(path: Path) -> bool:
    """Check whether a directory carries both repository markers.

    Args:
        path: Directory to inspect.

    Returns:
        True if root declaration and config directory both exist.
    """
    return (path / ROOT_DECLARATION).is_file() and (path / CONFIG_DIR_NAME).is_dir()


@dataclass(frozen=True, slots=True)
class DotfilesRepo:
    """A located dotfiles repository.

    Attributes:
        root: Absolute repository root.
    """

    root: Path

    @classmethod
    def open(cls, path: Path) -> DotfilesRepo:
        """Open a repository at an explicit path.

        Args:
            path: Candidate repository root.

        Returns:
            DotfilesRepo for the resolved path.

        Raises:
            NotADotfilesRepoError: If the markers are missing.
        """
        root = path.expanduser().resolve()
        if not is_dotfiles_repo(root):
            raise NotADotfilesRepoError(root)
        return cls(root=root)

    @classmethod
    def discover(cls, start: Path | None = None) -> DotfilesRepo:
        """Locate the repository.

        Order: the MERLIN_DOTFILES environment variable, then the start
        directory (default: current directory), then its ancestors. An
        override that is not a repository is logged and ignored. While
        walking, a directory whose parent is named ``config`` is skipped so
        that a tool directory (which has its own merlin.toml) is never
        mistaken for the repository root. A repository that itself sits
        directly inside a directory named ``config`` is therefore only found
        through MERLIN_DOTFILES.

        Args:
            start: Directory to start walking from.

        Returns:
            The located DotfilesRepo.

        Raises:
            RepoNotFoundError: If no ancestor qualifies.
        """
        override = os.environ.get(DOTFILES_ENV_VAR)
        if override:
            logger.debug("Using %s=%s", DOTFILES_ENV_VAR, override)
            try:
                return cls.open(Path(override))
            except NotADotfilesRepoError as e:
                logger.warning("Ignoring %s: %s", DOTFILES_ENV_VAR, e)

        current = (start or Path.cwd()).resolve()
        for candidate in (current, *current.parents):
            if candidate.parent.name == CONFIG_DIR_NAME and candidate.parent != candidate:
                continue
            if is_dotfiles_repo(candidate):
                logger.debug("Found dotfiles repository at %s", candidate)
                return cls(root=candidate)

        msg = (
            f"No dotfiles repository found from {current} upwards; "
            f"set {DOTFILES_ENV_VAR} or run inside the repository"
        )
        raise RepoNotFoundError(msg)

    @property
    def declaration_path(self) -> Path:
        """Path to the root merlin.toml."""
        return self.root / ROOT_DECLARATION

    @property
    def config_root(self) -> Path:
        """Path to the config/ directory holding tool directories."""
        return self.root / CONFIG_DIR_NAME

    def tool_root(self, tool: str) -> Path:
        """Path to config/<tool>."""
        return self.config_root / tool

    def tool_config_dir(self, tool: str) -> Path:
        """Path to config/<tool>/config."""
        return self.tool_root(tool) / CONFIG_DIR_NAME

    def tool_declaration(self, tool: str) -> Path:
        """Path to config/<tool>/merlin.toml."""
        return self.tool_root(tool) / ROOT_DECLARATION

    def has_tool(self, tool: str) -> bool:
        """Check whether config/<tool> exists as a directory."""
        return self.tool_root(tool).is_dir()

    def relative(self, path: Path) -> str:
        """Express a path relative to the repository root (POSIX form)."""
        return path.relative_to(self.root).as_posix()

    def list_tools(self) -> list[str]:
        """List tool names in directory enumeration order.

        Every direct subdirectory of config/ is a tool; plain files are
        ignored. No ordering is guaranteed.

        Returns:
            Tool directory names.
        """
        try:
            entries = list(os.scandir(self.config_root))
        except OSError as e:
            logger.warning("Cannot list tools in %s: %s", self.config_root, e)
            return []
        return [entry.name for entry in entries if entry.is_dir()]
