"""Package-list models.

Homebrew formulae and casks live in config/brew/config/brew.toml, Mac App
Store apps in config/mas/config/mas.toml.
"""

from enum import Enum
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PackageSource(str, Enum):
    """Installed-set provider identifiers."""

    BREW_FORMULA = "brew_formula"
    BREW_CASK = "brew_cask"
    MAS = "mas"


class BrewPackage(BaseModel):
    """A declared formula or cask.

    Attributes:
        name: Package name as known to brew.
        description: Free-form description.
        category: Grouping label for display.
        dependencies: Informational dependency names.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(description="Package name")] = ""
    description: Annotated[str, Field(description="Package description")] = ""
    category: Annotated[str, Field(description="Display category")] = ""
    dependencies: Annotated[list[str], Field(default_factory=list, description="Dependencies")]


class BrewConfig(BaseModel):
    """Contents of brew.toml.

    Attributes:
        formulae: Declared formulae ([[formulae]], legacy [[brew]]).
        casks: Declared casks ([[casks]], legacy [[cask]]).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    formulae: Annotated[
        list[BrewPackage],
        Field(default_factory=list, validation_alias=AliasChoices("formulae", "brew")),
    ]
    casks: Annotated[
        list[BrewPackage],
        Field(default_factory=list, validation_alias=AliasChoices("casks", "cask")),
    ]

    @property
    def formula_names(self) -> set[str]:
        """Declared formula names."""
        return {p.name for p in self.formulae if p.name}

    @property
    def cask_names(self) -> set[str]:
        """Declared cask names."""
        return {p.name for p in self.casks if p.name}


class MasApp(BaseModel):
    """A declared Mac App Store application.

    Attributes:
        id: Numeric App Store identifier.
        name: Display name.
        description: Free-form description.
        category: Grouping label for display.
        dependencies: Informational dependency names.
    """

    model_config = ConfigDict(extra="ignore")

    id: Annotated[int, Field(description="App Store identifier")] = 0
    name: Annotated[str, Field(description="Application name")] = ""
    description: Annotated[str, Field(description="Application description")] = ""
    category: Annotated[str, Field(description="Display category")] = ""
    dependencies: Annotated[list[str], Field(default_factory=list, description="Dependencies")]


class MasConfig(BaseModel):
    """Contents of mas.toml.

    Attributes:
        apps: Declared apps ([[apps]], legacy [[app]]).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    apps: Annotated[
        list[MasApp],
        Field(default_factory=list, validation_alias=AliasChoices("apps", "app")),
    ]

    @property
    def app_ids(self) -> set[str]:
        """Declared app identifiers as strings."""
        return {str(app.id) for app in self.apps if app.id}
