"""Package installers for Homebrew and the Mac App Store.

This module exports the operator classes that install declared packages.
"""

from merlin.operators.base import InstallResult, InstallStatus, Operator
from merlin.operators.brew import BrewOperator
from merlin.operators.mas import MasOperator

__all__ = [
    "BrewOperator",
    "InstallResult",
    "InstallStatus",
    "MasOperator",
    "Operator",
]
