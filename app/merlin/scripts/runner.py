"""Per-tool setup script execution.

Scripts run one at a time, in declaration order, from the tool's scripts
directory. The sequence stops at the first script that cannot be run or
exits nonzero.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from merlin.utils.shell import ExternalToolError, stream_command

if TYPE_CHECKING:
    from merlin.core.variables import Variables
    from merlin.models.tool import ScriptItem

logger = logging.getLogger(__name__)


class ScriptError(Exception):
    """Base exception for script execution errors."""


class ScriptNotFoundError(ScriptError):
    """Raised (or recorded) when a declared script file does not exist.

    Attributes:
        path: The missing script path.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"script not found: {path}")


class ScriptNotExecutableError(ScriptError):
    """Raised (or recorded) when a script lacks execute permission.

    Attributes:
        path: The script path.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"script is not executable (run: chmod +x {path})")


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """Result of running a single script.

    Attributes:
        script: Script filename.
        success: Whether the script ran and exited zero.
        exit_code: Process exit code (None if it never ran).
        duration: Wall-clock seconds spent running.
        output: Captured stdout and stderr lines.
        error: Why the script failed, if it did.
        dry_run: Whether the run was only simulated.
    """

    script: str
    success: bool
    exit_code: int | None = None
    duration: float = 0.0
    output: str = ""
    error: Exception | None = None
    dry_run: bool = False


def default_environment(tool: str, tool_root: Path, variables: Variables) -> dict[str, str]:
    """Build the extra environment exposed to a tool's scripts.

    Args:
        tool: Tool name.
        tool_root: Absolute path to config/<tool>.
        variables: Resolved variable binding.

    Returns:
        Mapping merged over the inherited environment.
    """
    return {
        "MERLIN_TOOL": tool,
        "MERLIN_TOOL_ROOT": str(tool_root),
        "MERLIN_HOME": variables.home_dir,
        "MERLIN_CONFIG_DIR": variables.config_dir,
        "HOME": variables.home_dir,
    }


def check_script(path: Path) -> ScriptError | None:
    """Return why a script cannot run, or None if it can."""
    if not path.is_file():
        return ScriptNotFoundError(path)
    if not os.access(path, os.X_OK):
        return ScriptNotExecutableError(path)
    return None


def validate_scripts(scripts_dir: Path, items: Iterable[ScriptItem]) -> list[ScriptError]:
    """Check every declared script without running anything.

    Args:
        scripts_dir: Tool scripts directory.
        items: Declared scripts.

    Returns:
        One error per missing or non-executable script.
    """
    errors: list[ScriptError] = []
    for item in items:
        error = check_script(scripts_dir / item.file)
        if error is not None:
            errors.append(error)
    return errors


def format_script_result(result: ScriptResult, *, verbose: bool = False) -> str:
    """Render a script result as a single status line."""
    if result.success:
        line = f"  ✓ {result.script}"
        if verbose and not result.dry_run:
            line += f" ({result.duration:.2f}s)"
        return line
    line = f"  ✗ {result.script}"
    if result.error is not None:
        line += f" - {result.error}"
    return line


class ScriptRunner:
    """Runs a tool's scripts with the merlin environment.

    Attributes:
        scripts_dir: Directory scripts are resolved against and run from.
        environment: Extra variables merged over os.environ.
        dry_run: Report planned executions without running them.
        verbose: Forward each output line to ``on_output``.
    """

    def __init__(
        self,
        scripts_dir: Path,
        environment: dict[str, str],
        *,
        dry_run: bool = False,
        verbose: bool = False,
        on_output: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            scripts_dir: Tool scripts directory.
            environment: Extra environment, see default_environment().
            dry_run: If True, only announce what would run.
            verbose: If True, stream script output to ``on_output``.
            on_output: Line sink for dry-run notices and verbose output.
        """
        self.scripts_dir = scripts_dir
        self.environment = environment
        self.dry_run = dry_run
        self.verbose = verbose
        self._on_output = on_output or (lambda line: logger.info("%s", line))

    def run_script(self, item: ScriptItem) -> ScriptResult:
        """Run one declared script.

        Returns:
            ScriptResult; never raises for script failures.
        """
        path = self.scripts_dir / item.file
        problem = check_script(path)
        if problem is not None:
            return ScriptResult(script=item.file, success=False, error=problem)

        if self.dry_run:
            self._on_output(f"  [DRY RUN] Would execute: {item.file}")
            return ScriptResult(script=item.file, success=True, dry_run=True)

        env = {**os.environ, **self.environment}
        on_line = (lambda line: self._on_output(f"    {line}")) if self.verbose else None
        started = time.monotonic()
        try:
            completed = stream_command(
                [str(path)], cwd=str(self.scripts_dir), env=env, on_line=on_line
            )
        except OSError as e:
            return ScriptResult(
                script=item.file,
                success=False,
                duration=time.monotonic() - started,
                error=e,
            )
        duration = time.monotonic() - started

        output = completed.output
        if not completed.success:
            logger.warning("Script %s exited with status %d", item.file, completed.returncode)
            return ScriptResult(
                script=item.file,
                success=False,
                exit_code=completed.returncode,
                duration=duration,
                output=output,
                error=ExternalToolError(item.file, completed.returncode, output),
            )

        logger.info("Script %s completed in %.2fs", item.file, duration)
        return ScriptResult(
            script=item.file,
            success=True,
            exit_code=0,
            duration=duration,
            output=output,
        )

    def run_scripts(
        self, items: Sequence[ScriptItem], *, tag: str | None = None
    ) -> list[ScriptResult]:
        """Run scripts in order, stopping at the first failure.

        Args:
            items: Declared scripts.
            tag: If given, run only scripts carrying this tag.

        Returns:
            Results for every script attempted.
        """
        results: list[ScriptResult] = []
        for item in items:
            if tag is not None and not item.has_tag(tag):
                continue
            result = self.run_script(item)
            results.append(result)
            if not result.success:
                break
        return results
