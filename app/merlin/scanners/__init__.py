"""Installed-set providers for different package managers.

This module exports the scanner classes for querying installed packages.
"""

from merlin.scanners.base import Scanner, StaticScanner
from merlin.scanners.brew import BrewCaskScanner, BrewFormulaScanner
from merlin.scanners.mas import MasScanner, parse_mas_list

__all__ = [
    "BrewCaskScanner",
    "BrewFormulaScanner",
    "MasScanner",
    "Scanner",
    "StaticScanner",
    "parse_mas_list",
]
