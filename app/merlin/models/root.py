"""Root declaration models.

This module defines the Pydantic models representing the repository's
top-level merlin.toml: metadata, settings, preinstall tools and profiles.
"""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ConflictStrategy(str, Enum):
    """Policy applied when a link target is occupied.

    Attributes:
        SKIP: Leave the existing target alone.
        BACKUP: Snapshot the target, remove it, then link.
        OVERWRITE: Remove the target, then link.
        INTERACTIVE: Ask the user (reported as a conflict by the engine).
    """

    SKIP = "skip"
    BACKUP = "backup"
    OVERWRITE = "overwrite"
    INTERACTIVE = "interactive"


class Metadata(BaseModel):
    """Repository metadata.

    Attributes:
        name: Human-readable repository name.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(description="Repository name")] = ""


class Settings(BaseModel):
    """Global behavior settings.

    The conflict strategy is kept as a raw string so that an invalid value
    is reported by the validator instead of failing the parse.

    Attributes:
        auto_link: Link tools automatically after install.
        confirm_before_install: Prompt before installing packages.
        conflict_strategy: Default conflict strategy name.
        home_dir: Home directory template.
        config_dir: Config directory template, may reference {home_dir}.
        auto_commit: Commit repository changes after mutating commands.
    """

    model_config = ConfigDict(extra="ignore")

    auto_link: Annotated[bool, Field(description="Link tools after install")] = False
    confirm_before_install: Annotated[bool, Field(description="Prompt before install")] = True
    conflict_strategy: Annotated[str, Field(description="Default conflict strategy")] = (
        ConflictStrategy.INTERACTIVE.value
    )
    home_dir: Annotated[str, Field(description="Home directory template")] = "~"
    config_dir: Annotated[str, Field(description="Config directory template")] = (
        "{home_dir}/.config"
    )
    auto_commit: Annotated[bool, Field(description="Auto-commit repo changes")] = False

    @property
    def strategy(self) -> ConflictStrategy:
        """Parsed conflict strategy.

        Raises:
            ValueError: If the configured name is not a known strategy.
        """
        return ConflictStrategy(self.conflict_strategy)


class Preinstall(BaseModel):
    """Tools installed before anything else.

    Attributes:
        tools: Tool names, in install order.
    """

    model_config = ConfigDict(extra="ignore")

    tools: Annotated[list[str], Field(default_factory=list, description="Preinstall tools")]


class Profile(BaseModel):
    """A named subset of tools, optionally bound to a hostname.

    Attributes:
        name: Profile name (unique within the repository).
        hostname: Machine hostname this profile applies to.
        default: Whether this profile is used when nothing else matches.
        description: Free-form description.
        tools: Tool names in this profile.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(description="Profile name")] = ""
    hostname: Annotated[str, Field(description="Bound hostname")] = ""
    default: Annotated[bool, Field(description="Default profile flag")] = False
    description: Annotated[str, Field(description="Profile description")] = ""
    tools: Annotated[list[str], Field(default_factory=list, description="Profile tools")]


class RootConfig(BaseModel):
    """Complete root declaration (merlin.toml at the repository root).

    Attributes:
        metadata: Repository metadata.
        settings: Behavior settings.
        preinstall: Preinstall tool list.
        profiles: Declared profiles, in file order.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    metadata: Annotated[Metadata, Field(default_factory=Metadata)]
    settings: Annotated[Settings, Field(default_factory=Settings)]
    preinstall: Annotated[Preinstall, Field(default_factory=Preinstall)]
    profiles: Annotated[
        list[Profile],
        Field(default_factory=list, alias="profile", description="Profiles"),
    ]

    def get_default_profile(self) -> Profile | None:
        """Return the first profile marked default, if any."""
        for profile in self.profiles:
            if profile.default:
                return profile
        return None

    def get_profile(self, name: str) -> Profile | None:
        """Return the profile with the given name, if any."""
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None

    def get_profile_by_hostname(self, hostname: str) -> Profile | None:
        """Return the first profile bound to the given hostname, if any."""
        for profile in self.profiles:
            if profile.hostname and profile.hostname == hostname:
                return profile
        return None
