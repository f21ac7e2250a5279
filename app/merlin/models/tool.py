"""Per-tool declaration models.

This module defines the Pydantic models for config/<tool>/merlin.toml:
tool metadata, declared links and setup scripts.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_SCRIPTS_DIR = "scripts"


class ToolInfo(BaseModel):
    """The [tool] table.

    Attributes:
        name: Tool name, expected to match the directory name.
        description: Free-form description.
        dependencies: Names of tools this tool depends on.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(description="Tool name")] = ""
    description: Annotated[str, Field(description="Tool description")] = ""
    dependencies: Annotated[list[str], Field(default_factory=list, description="Tool dependencies")]


class LinkFile(BaseModel):
    """One entry of a multi-file link.

    Attributes:
        source: Path relative to the tool root.
        target: Path relative to the link's base target.
    """

    model_config = ConfigDict(extra="ignore")

    source: Annotated[str, Field(description="Source relative to tool root")]
    target: Annotated[str, Field(description="Target relative to base target")]


class LinkDecl(BaseModel):
    """A declared [[link]] entry.

    Either a single source/target pair (source defaults to the tool's
    config directory) or a base target with a list of files.

    Attributes:
        source: Source path relative to the tool root; empty means config/.
        target: Templated absolute target (or base target when files is set).
        files: Per-file source/target pairs.
    """

    model_config = ConfigDict(extra="ignore")

    source: Annotated[str, Field(description="Source relative to tool root")] = ""
    target: Annotated[str, Field(description="Templated target path")] = ""
    files: Annotated[list[LinkFile], Field(default_factory=list, description="File pairs")]


class ScriptItem(BaseModel):
    """A declared setup script.

    Declarations may list a script as a bare filename or as a table with
    ``file`` (or ``name``) and ``tags``. Both shapes are normalized into
    this model at parse time, so consumers always see ``file`` and ``tags``.

    Attributes:
        file: Script filename relative to the tool's scripts directory.
        tags: Free-form tags used for filtering.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    file: Annotated[str, Field(min_length=1, description="Script filename")]
    tags: Annotated[tuple[str, ...], Field(default=(), description="Script tags")]

    @model_validator(mode="before")
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        """Accept a bare string or a table using ``name`` in lieu of ``file``."""
        if isinstance(data, str):
            return {"file": data}
        if isinstance(data, dict) and "file" not in data and "name" in data:
            return {**data, "file": data["name"]}
        return data

    def has_tag(self, tag: str) -> bool:
        """Check whether this script carries the given tag."""
        return tag in self.tags


class ScriptsDecl(BaseModel):
    """The [scripts] table.

    Attributes:
        directory: Scripts directory relative to the tool root.
        scripts: Declared scripts, in execution order.
    """

    model_config = ConfigDict(extra="ignore")

    directory: Annotated[str, Field(description="Scripts directory")] = DEFAULT_SCRIPTS_DIR
    scripts: Annotated[list[ScriptItem], Field(default_factory=list, description="Scripts")]


class ToolConfig(BaseModel):
    """Complete per-tool declaration.

    Attributes:
        tool: The [tool] table.
        links: Declared links, in file order.
        scripts: The [scripts] table.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tool: Annotated[ToolInfo, Field(default_factory=ToolInfo)]
    links: Annotated[list[LinkDecl], Field(default_factory=list, alias="link")]
    scripts: Annotated[ScriptsDecl, Field(default_factory=ScriptsDecl)]
