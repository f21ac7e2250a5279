"""Link resolution.

Turns a tool's declared links into concrete (source, target, is_directory)
triples with absolute paths. Declared sources that do not exist on disk
are dropped here; the validator reports them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from merlin.core.declarations import load_optional_tool_config
from merlin.models.tool import LinkDecl

if TYPE_CHECKING:
    from merlin.core.repo import DotfilesRepo
    from merlin.core.variables import Variables
    from merlin.models.tool import ToolConfig

logger = logging.getLogger(__name__)


def canonical_path(path: str | Path, base: Path | None = None) -> Path:
    """Return the canonical absolute form of a path.

    ``~`` is expanded, relative paths are joined onto ``base`` (or the
    current directory), and ``.``/``..`` segments are collapsed. Symlinks
    are not resolved.

    Args:
        path: Path to normalize.
        base: Directory that relative paths are relative to.

    Returns:
        Normalized absolute Path.
    """
    expanded = Path(os.path.expanduser(str(path)))
    if not expanded.is_absolute():
        expanded = (base or Path.cwd()) / expanded
    return Path(os.path.normpath(expanded))


@dataclass(frozen=True, slots=True)
class ResolvedLink:
    """A declared link with absolute paths.

    Attributes:
        tool: Owning tool name.
        source: Absolute path inside the repository.
        target: Absolute path the symlink is created at.
        is_directory: Whether the source is a directory.
    """

    tool: str
    source: Path
    target: Path
    is_directory: bool


@dataclass(frozen=True, slots=True)
class Tool:
    """A tool directory with its declaration and resolved links.

    Attributes:
        name: Tool directory name.
        root: Absolute path to config/<tool>.
        config: Parsed declaration, or None when the tool has none.
        links: Resolved links in declaration order.
    """

    name: str
    root: Path
    config: ToolConfig | None
    links: tuple[ResolvedLink, ...]

    @property
    def scripts_dir(self) -> Path:
        """Directory holding the tool's setup scripts."""
        directory = self.config.scripts.directory if self.config else "scripts"
        return self.root / (directory or "scripts")


def _make_link(tool: str, source: Path, target: str, variables: Variables) -> ResolvedLink | None:
    if not source.exists():
        logger.debug("Skipping link for %s: source %s does not exist", tool, source)
        return None
    return ResolvedLink(
        tool=tool,
        source=canonical_path(source),
        target=canonical_path(variables.expand(target)),
        is_directory=source.is_dir(),
    )


def resolve_link(
    tool: str,
    link: LinkDecl,
    tool_root: Path,
    config_dir: Path,
    variables: Variables,
) -> list[ResolvedLink]:
    """Resolve a single declared link.

    Args:
        tool: Tool name.
        link: The declared link.
        tool_root: Absolute path to config/<tool>.
        config_dir: Absolute path to config/<tool>/config.
        variables: Variable binding for target templates.

    Returns:
        Resolved links; one per existing file for multi-file links.
    """
    resolved: list[ResolvedLink] = []
    if link.files:
        for entry in link.files:
            target = f"{variables.expand(link.target).rstrip('/')}/{entry.target}"
            item = _make_link(tool, tool_root / entry.source, target, variables)
            if item is not None:
                resolved.append(item)
        return resolved

    source = tool_root / link.source if link.source else config_dir
    item = _make_link(tool, source, link.target, variables)
    if item is not None:
        resolved.append(item)
    return resolved


def resolve_links(
    tool: str,
    config: ToolConfig | None,
    tool_root: Path,
    variables: Variables,
) -> list[ResolvedLink]:
    """Resolve every link a tool declares.

    A tool without a declaration but with a config/ directory gets a
    synthesized link from that directory to ``{config_dir}/<tool>``.

    Args:
        tool: Tool name.
        config: Parsed declaration, or None.
        tool_root: Absolute path to config/<tool>.
        variables: Variable binding for target templates.

    Returns:
        Resolved links in declaration order.
    """
    config_dir = tool_root / "config"

    if config is None:
        if config_dir.is_dir():
            default = LinkDecl(target=f"{{config_dir}}/{tool}")
            return resolve_link(tool, default, tool_root, config_dir, variables)
        return []

    resolved: list[ResolvedLink] = []
    for link in config.links:
        resolved.extend(resolve_link(tool, link, tool_root, config_dir, variables))
    return resolved


def load_tool(repo: DotfilesRepo, name: str, variables: Variables) -> Tool:
    """Load a tool's declaration and resolve its links.

    Args:
        repo: The dotfiles repository.
        name: Tool directory name.
        variables: Variable binding.

    Returns:
        The loaded Tool.

    Raises:
        ParseError: If the tool's declaration is malformed.
    """
    root = repo.tool_root(name)
    config = load_optional_tool_config(repo, name)
    links = resolve_links(name, config, root, variables)
    return Tool(name=name, root=root, config=config, links=tuple(links))
