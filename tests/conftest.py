"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. Every test
runs with HOME pointing at a temporary directory, so nothing touches the
real ~/.merlin or ~/.config.
"""

import logging
import shutil
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from merlin.core.repo import DotfilesRepo
from merlin.utils import formatting

ROOT_TOML = """\
[metadata]
name = "test-dotfiles"

[settings]
conflict_strategy = "skip"
"""


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated home directory for every test."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv("MERLIN_DOTFILES", raising=False)
    return home_dir


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers the CLI callback attaches, so streams never outlive a test."""
    yield
    logger = logging.getLogger("merlin")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render CLI output wide enough that paths and table cells never wrap."""
    monkeypatch.setattr(formatting.console, "width", 200)
    monkeypatch.setattr(formatting.err_console, "width", 200)


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """A minimal dotfiles repository on disk."""
    root = tmp_path / "dotfiles"
    (root / "config").mkdir(parents=True)
    (root / "merlin.toml").write_text(ROOT_TOML)
    return root


@pytest.fixture
def repo(repo_root: Path) -> DotfilesRepo:
    """The minimal repository, opened."""
    return DotfilesRepo.open(repo_root)


@pytest.fixture
def use_repo(repo_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point repository discovery at the test repository."""
    monkeypatch.setenv("MERLIN_DOTFILES", str(repo_root))
    return repo_root


@pytest.fixture
def add_tool(repo_root: Path) -> Callable[..., Path]:
    """Factory creating config/<tool> with files and an optional declaration.

    Usage:
        add_tool("zsh", declaration='[[link]]\\ntarget = "~/.zshrc"',
                 files={"config/.zshrc": "export A=1"})
    """

    def _add(
        name: str,
        declaration: str | None = None,
        files: dict[str, str] | None = None,
        scripts: dict[str, str] | None = None,
    ) -> Path:
        tool_root = repo_root / "config" / name
        tool_root.mkdir(parents=True, exist_ok=True)
        if declaration is not None:
            (tool_root / "merlin.toml").write_text(textwrap.dedent(declaration))
        for relative, content in (files or {}).items():
            path = tool_root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        for relative, content in (scripts or {}).items():
            path = tool_root / "scripts" / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            path.chmod(0o755)
        return tool_root

    return _add


@pytest.fixture
def git_available() -> None:
    """Skip the test when git is not installed."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
