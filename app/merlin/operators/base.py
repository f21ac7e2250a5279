"""Abstract base class for package installers.

This module defines the Operator interface that every package manager
installer implements, plus the per-package result it reports.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from merlin.models.packages import PackageSource
from merlin.scanners.base import Scanner
from merlin.utils.shell import CommandResult, ExternalToolError

logger = logging.getLogger(__name__)


class InstallStatus(str, Enum):
    """Outcome of installing a single package."""

    INSTALLED = "installed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Result of installing a single package.

    Attributes:
        name: Package name or App Store id.
        source: Package source.
        status: Outcome.
        message: Short human-readable description.
        error: Why installation failed, if it did.
        dry_run: Whether the install was only simulated.
    """

    name: str
    source: PackageSource
    status: InstallStatus
    message: str = ""
    error: Exception | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Whether this package errored."""
        return self.status == InstallStatus.ERROR


class Operator(ABC):
    """Abstract base class for all package installers.

    Installs packages one at a time so that each name gets its own
    result. Names the paired scanner already reports as installed are
    skipped without invoking the package manager.

    Attributes:
        dry_run: If True, only report what would be installed.

    Example:
        >>> operator = BrewOperator(dry_run=True)
        >>> if operator.is_available():
        ...     for result in operator.install(["fzf", "jq"]):
        ...         print(f"{result.name}: {result.status.value}")
    """

    # Timeout for a single install (30 minutes)
    _INSTALL_TIMEOUT: float = 1800.0

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the operator.

        Args:
            dry_run: If True, only simulate actions without executing them.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the package source this operator handles."""

    @property
    @abstractmethod
    def tool(self) -> str:
        """Executable name reported in errors."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    @abstractmethod
    def scanner(self) -> Scanner:
        """Return the scanner reporting what is already installed."""

    @abstractmethod
    def _install_args(self, name: str) -> list[str]:
        """Build the install command line for one package."""

    @abstractmethod
    def _run(self, args: list[str]) -> CommandResult:
        """Run an install command."""

    def preflight(self) -> str | None:
        """Check preconditions before installing.

        Returns:
            A reason every install would fail, or None if ready.
        """
        return None

    def _result(
        self,
        name: str,
        status: InstallStatus,
        message: str,
        error: Exception | None = None,
    ) -> InstallResult:
        return InstallResult(
            name=name,
            source=self.source,
            status=status,
            message=message,
            error=error,
            dry_run=self.dry_run,
        )

    def install(self, packages: list[str]) -> list[InstallResult]:
        """Install packages that are not yet installed.

        Args:
            packages: Package names (or App Store ids) to install.

        Returns:
            One InstallResult per requested name, in request order.

        Raises:
            RuntimeError: If the package manager is not available.
        """
        if not self.is_available():
            msg = f"{self.tool} is not available on this system"
            raise RuntimeError(msg)

        if not packages:
            return []

        installed = self.scanner().scan()
        pending = [name for name in packages if name not in installed]

        problem = self.preflight() if pending and not self.dry_run else None

        results: list[InstallResult] = []
        for name in packages:
            if name in installed:
                results.append(self._result(name, InstallStatus.SKIPPED, "already installed"))
            elif self.dry_run:
                results.append(
                    self._result(name, InstallStatus.INSTALLED, "would install (dry-run)")
                )
            elif problem is not None:
                results.append(
                    self._result(name, InstallStatus.ERROR, problem, error=RuntimeError(problem))
                )
            else:
                results.append(self._install_one(name))
        return results

    def _install_one(self, name: str) -> InstallResult:
        args = self._install_args(name)
        logger.info("Executing %s", " ".join(args))
        try:
            result = self._run(args)
            result.raise_for_status(self.tool)
        except (ExternalToolError, OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Failed to install %s: %s", name, e)
            return self._result(name, InstallStatus.ERROR, str(e), error=e)
        return self._result(name, InstallStatus.INSTALLED, "installed")
