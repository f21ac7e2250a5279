"""Homebrew installed-set providers.

Lists installed formulae and casks using ``brew list``.
"""

import logging

from merlin.models.packages import PackageSource
from merlin.scanners.base import Scanner
from merlin.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


def _parse_names(output: str) -> set[str]:
    """Parse one-name-per-line output, ignoring blanks."""
    return {line.strip() for line in output.splitlines() if line.strip()}


class _BrewScanner(Scanner):
    """Shared logic for ``brew list --formula`` / ``brew list --cask``."""

    _FLAG = ""

    def is_available(self) -> bool:
        """Check if brew is on PATH."""
        return command_exists("brew")

    def _list_installed(self) -> set[str]:
        result = run_command(["brew", "list", self._FLAG, "-1"], timeout=120.0)
        result.raise_for_status("brew")
        return _parse_names(result.stdout)


class BrewFormulaScanner(_BrewScanner):
    """Scanner for installed Homebrew formulae."""

    _FLAG = "--formula"

    @property
    def source(self) -> PackageSource:
        """Return BREW_FORMULA as the package source."""
        return PackageSource.BREW_FORMULA


class BrewCaskScanner(_BrewScanner):
    """Scanner for installed Homebrew casks."""

    _FLAG = "--cask"

    @property
    def source(self) -> PackageSource:
        """Return BREW_CASK as the package source."""
        return PackageSource.BREW_CASK
