"""Declaration file I/O.

This module loads the repository's TOML declarations into Pydantic models
and writes them back. Parsing is lax: missing keys take defaults and
unknown keys are ignored. Structural problems raise ParseError carrying
the offending file path.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import TYPE_CHECKING, Any, TypeVar

import tomli_w
from pydantic import BaseModel, ValidationError

from merlin.models.packages import BrewConfig, MasConfig
from merlin.models.root import RootConfig
from merlin.models.tool import ToolConfig

if TYPE_CHECKING:
    from merlin.core.repo import DotfilesRepo

ModelT = TypeVar("ModelT", bound=BaseModel)

BREW_TOOL = "brew"
MAS_TOOL = "mas"


class ParseError(Exception):
    """Raised when a declaration file cannot be read or parsed.

    Attributes:
        path: The declaration file that failed.
    """

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


def _load_model(path: Path, model: type[ModelT]) -> ModelT:
    """Read a TOML file and validate it into a model.

    Args:
        path: File to read.
        model: Pydantic model class.

    Returns:
        Validated model instance.

    Raises:
        ParseError: On missing file, invalid TOML or schema mismatch.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ParseError(path, "file not found") from e
    except tomllib.TOMLDecodeError as e:
        raise ParseError(path, f"invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ParseError(path, f"cannot read file: {e}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ParseError(path, f"invalid content: {e}") from e


def load_root_config(path: Path) -> RootConfig:
    """Load the root merlin.toml.

    Args:
        path: Path to the root declaration.

    Returns:
        Parsed RootConfig.

    Raises:
        ParseError: If the file is missing or malformed.
    """
    return _load_model(path, RootConfig)


def load_tool_config(path: Path) -> ToolConfig:
    """Load a per-tool merlin.toml.

    Raises:
        ParseError: If the file is missing or malformed.
    """
    return _load_model(path, ToolConfig)


def load_optional_tool_config(repo: DotfilesRepo, tool: str) -> ToolConfig | None:
    """Load a tool's declaration if it has one.

    Args:
        repo: The dotfiles repository.
        tool: Tool directory name.

    Returns:
        Parsed ToolConfig, or None when config/<tool>/merlin.toml is absent.

    Raises:
        ParseError: If the declaration exists but is malformed.
    """
    path = repo.tool_declaration(tool)
    if not path.is_file():
        return None
    return load_tool_config(path)


def get_brew_config_path(repo: DotfilesRepo) -> Path:
    """Path to config/brew/config/brew.toml."""
    return repo.tool_config_dir(BREW_TOOL) / "brew.toml"


def get_mas_config_path(repo: DotfilesRepo) -> Path:
    """Path to config/mas/config/mas.toml."""
    return repo.tool_config_dir(MAS_TOOL) / "mas.toml"


def load_brew_config(repo: DotfilesRepo) -> BrewConfig:
    """Load declared formulae and casks; an absent file declares nothing.

    Raises:
        ParseError: If brew.toml exists but is malformed.
    """
    path = get_brew_config_path(repo)
    if not path.is_file():
        return BrewConfig()
    return _load_model(path, BrewConfig)


def load_mas_config(repo: DotfilesRepo) -> MasConfig:
    """Load declared App Store apps; an absent file declares nothing.

    Raises:
        ParseError: If mas.toml exists but is malformed.
    """
    path = get_mas_config_path(repo)
    if not path.is_file():
        return MasConfig()
    return _load_model(path, MasConfig)


def dump_declaration(model: BaseModel) -> str:
    """Serialize a declaration model to TOML text.

    Args:
        model: Any declaration model.

    Returns:
        TOML document using the on-disk key names.
    """
    data: dict[str, Any] = model.model_dump(mode="json", by_alias=True)
    return tomli_w.dumps(data)


def save_declaration(model: BaseModel, path: Path) -> Path:
    """Write a declaration model to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        model: Declaration model to write.
        path: Destination file.

    Returns:
        Path where the declaration was saved.

    Raises:
        ParseError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = model.model_dump(mode="json", by_alias=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ParseError(path, f"cannot write file: {e}") from e

    return path
