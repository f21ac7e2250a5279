"""The resolved repository model.

Loads the root declaration, the package lists and every tool, resolves
variables and links, and hands the result to commands as one value.
The model is rebuilt per command and never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from merlin.core.declarations import load_brew_config, load_mas_config, load_root_config
from merlin.core.links import ResolvedLink, Tool, load_tool
from merlin.core.repo import DotfilesRepo
from merlin.core.variables import Variables
from merlin.models.packages import BrewConfig, MasConfig
from merlin.models.root import RootConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepoModel:
    """Declared state of a dotfiles repository.

    Attributes:
        repo: The repository on disk.
        root: Parsed root declaration.
        variables: Resolved variable binding.
        tools: Tools in directory enumeration order.
        brew: Declared formulae and casks.
        mas: Declared App Store apps.
    """

    repo: DotfilesRepo
    root: RootConfig
    variables: Variables
    tools: tuple[Tool, ...]
    brew: BrewConfig
    mas: MasConfig

    @property
    def tool_names(self) -> list[str]:
        """Tool names in model order."""
        return [tool.name for tool in self.tools]

    @property
    def links(self) -> list[ResolvedLink]:
        """Every resolved link across all tools."""
        return [link for tool in self.tools for link in tool.links]

    def get_tool(self, name: str) -> Tool | None:
        """Return the named tool, if present."""
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None


def load_model(repo: DotfilesRepo, *, home: Path | None = None) -> RepoModel:
    """Load and resolve the full declared state.

    Args:
        repo: The dotfiles repository.
        home: Home directory used for ``~``. Defaults to Path.home().

    Returns:
        The resolved RepoModel.

    Raises:
        ParseError: If any declaration file is malformed.
    """
    root = load_root_config(repo.declaration_path)
    variables = Variables.from_settings(root.settings, home=home)
    logger.debug("Variables: home_dir=%s config_dir=%s", variables.home_dir, variables.config_dir)

    tools = tuple(load_tool(repo, name, variables) for name in repo.list_tools())
    return RepoModel(
        repo=repo,
        root=root,
        variables=variables,
        tools=tools,
        brew=load_brew_config(repo),
        mas=load_mas_config(repo),
    )
