"""Homebrew package operator.

Installs formulae and casks using ``brew install``.
"""

from merlin.models.packages import PackageSource
from merlin.operators.base import Operator
from merlin.scanners.base import Scanner
from merlin.scanners.brew import BrewCaskScanner, BrewFormulaScanner
from merlin.utils.shell import CommandResult, command_exists, run_command


class BrewOperator(Operator):
    """Operator for Homebrew formulae or casks.

    Attributes:
        cask: Install casks instead of formulae.
        dry_run: If True, only report what would be installed.
    """

    def __init__(self, *, cask: bool = False, dry_run: bool = False) -> None:
        """Initialize the operator.

        Args:
            cask: If True, operate on casks.
            dry_run: If True, only simulate actions without executing them.
        """
        super().__init__(dry_run=dry_run)
        self.cask = cask

    @property
    def source(self) -> PackageSource:
        """Return BREW_CASK or BREW_FORMULA as the package source."""
        return PackageSource.BREW_CASK if self.cask else PackageSource.BREW_FORMULA

    @property
    def tool(self) -> str:
        """Return the brew executable name."""
        return "brew"

    def is_available(self) -> bool:
        """Check if brew is on PATH."""
        return command_exists("brew")

    def scanner(self) -> Scanner:
        """Return the matching brew scanner."""
        return BrewCaskScanner() if self.cask else BrewFormulaScanner()

    def _install_args(self, name: str) -> list[str]:
        args = ["brew", "install"]
        if self.cask:
            args.append("--cask")
        args.append(name)
        return args

    def _run(self, args: list[str]) -> CommandResult:
        return run_command(args, timeout=self._INSTALL_TIMEOUT)
