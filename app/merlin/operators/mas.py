"""Mac App Store package operator.

Installs App Store applications by numeric id using ``mas install``.
Installing requires a signed-in App Store account.
"""

import logging
import subprocess

from merlin.models.packages import PackageSource
from merlin.operators.base import Operator
from merlin.scanners.base import Scanner
from merlin.scanners.mas import MasScanner
from merlin.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "not signed in to the App Store (open the App Store app and sign in)"


class MasOperator(Operator):
    """Operator for Mac App Store applications."""

    @property
    def source(self) -> PackageSource:
        """Return MAS as the package source."""
        return PackageSource.MAS

    @property
    def tool(self) -> str:
        """Return the mas executable name."""
        return "mas"

    def is_available(self) -> bool:
        """Check if mas is on PATH."""
        return command_exists("mas")

    def scanner(self) -> Scanner:
        """Return the App Store scanner."""
        return MasScanner()

    def is_signed_in(self) -> bool:
        """Check for a signed-in account via ``mas account``."""
        try:
            result = run_command(["mas", "account"], timeout=30.0)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Cannot check App Store account: %s", e)
            return False
        return result.success and bool(result.stdout.strip())

    def preflight(self) -> str | None:
        """Report a missing App Store account."""
        if not self.is_signed_in():
            return NOT_SIGNED_IN
        return None

    def _install_args(self, name: str) -> list[str]:
        return ["mas", "install", name]

    def _run(self, args: list[str]) -> CommandResult:
        return run_command(args, timeout=self._INSTALL_TIMEOUT)
