"""Abstract base class for installed-set providers.

This module defines the Scanner interface that every package source
must implement. A scanner answers one question: which names are
installed right now.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from merlin.models.packages import PackageSource
from merlin.utils.shell import ExternalToolError

logger = logging.getLogger(__name__)


class Scanner(ABC):
    """Abstract base class for all installed-set providers.

    Scanners never fail: an absent or broken package manager yields an
    empty set, so drift detection keeps working on machines without it.

    Example:
        >>> scanner = BrewFormulaScanner()
        >>> if scanner.is_available():
        ...     print(sorted(scanner.scan()))
    """

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the package source this scanner handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system.

        Returns:
            True if the package manager can be used, False otherwise.
        """

    @abstractmethod
    def _list_installed(self) -> set[str]:
        """Query the package manager.

        Raises:
            ExternalToolError: If the package manager exits nonzero.
            OSError: If the package manager cannot be executed.
        """

    def scan(self) -> set[str]:
        """Return the installed names, or an empty set if unavailable.

        Returns:
            Set of installed package names or identifiers.
        """
        if not self.is_available():
            logger.debug("%s is not available; treating as nothing installed", self.source.value)
            return set()
        try:
            return self._list_installed()
        except (ExternalToolError, OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Failed to list %s packages: %s", self.source.value, e)
            return set()


class StaticScanner(Scanner):
    """Scanner over a fixed set of names.

    Used to feed snapshots built elsewhere (or in tests) through the
    same interface as the real providers.
    """

    def __init__(self, source: PackageSource, names: set[str]) -> None:
        self._source = source
        self._names = set(names)

    @property
    def source(self) -> PackageSource:
        """Return the configured source."""
        return self._source

    def is_available(self) -> bool:
        """Always available."""
        return True

    def _list_installed(self) -> set[str]:
        return set(self._names)
