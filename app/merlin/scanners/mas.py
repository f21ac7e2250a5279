"""Mac App Store installed-set provider.

Lists installed App Store applications using ``mas list``, whose lines
look like ``497799835  Xcode  (15.0)``.
"""

from merlin.models.packages import PackageSource
from merlin.scanners.base import Scanner
from merlin.utils.shell import command_exists, run_command


def parse_mas_list(output: str) -> set[str]:
    """Extract app identifiers from ``mas list`` output.

    Args:
        output: Raw command output.

    Returns:
        Set of numeric identifiers as strings.
    """
    ids: set[str] = set()
    for line in output.splitlines():
        fields = line.split()
        if fields and fields[0].isdigit():
            ids.add(fields[0])
    return ids


class MasScanner(Scanner):
    """Scanner for installed App Store applications."""

    @property
    def source(self) -> PackageSource:
        """Return MAS as the package source."""
        return PackageSource.MAS

    def is_available(self) -> bool:
        """Check if mas is on PATH."""
        return command_exists("mas")

    def _list_installed(self) -> set[str]:
        result = run_command(["mas", "list"], timeout=120.0)
        result.raise_for_status("mas")
        return parse_mas_list(result.stdout)
