"""Data models for merlin.

This module exports the declaration models parsed from the dotfiles repo.
"""

from merlin.models.packages import BrewConfig, BrewPackage, MasApp, MasConfig, PackageSource
from merlin.models.root import (
    ConflictStrategy,
    Metadata,
    Preinstall,
    Profile,
    RootConfig,
    Settings,
)
from merlin.models.tool import LinkDecl, LinkFile, ScriptItem, ScriptsDecl, ToolConfig, ToolInfo

__all__ = [
    "BrewConfig",
    "BrewPackage",
    "ConflictStrategy",
    "LinkDecl",
    "LinkFile",
    "MasApp",
    "MasConfig",
    "Metadata",
    "PackageSource",
    "Preinstall",
    "Profile",
    "RootConfig",
    "ScriptItem",
    "ScriptsDecl",
    "Settings",
    "ToolConfig",
    "ToolInfo",
]
