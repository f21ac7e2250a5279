"""Shell execution utilities.

Provides safe subprocess execution with proper error handling.
"""

import shutil
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import IO


class ExternalToolError(Exception):
    """Raised (or recorded) when an external tool exits with a nonzero status.

    Attributes:
        tool: Name of the executable that failed.
        exit_code: Process exit code.
        output: Combined stdout/stderr text captured from the process.
    """

    def __init__(self, tool: str, exit_code: int, output: str = "") -> None:
        self.tool = tool
        self.exit_code = exit_code
        self.output = output
        detail = output.strip().splitlines()[-1] if output.strip() else "no output"
        super().__init__(f"{tool} exited with status {exit_code}: {detail}")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr text."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr

    def raise_for_status(self, tool: str) -> None:
        """Raise ExternalToolError if the command failed.

        Args:
            tool: Tool name to report in the error.

        Raises:
            ExternalToolError: If returncode is nonzero.
        """
        if not self.success:
            raise ExternalToolError(tool, self.returncode, self.output)


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Both pipes are drained by subprocess.run before the child is reaped,
    so large outputs never deadlock. Output is decoded as UTF-8 with
    undecodable bytes replaced.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        env: Complete environment for the child. If None, inherits os.environ.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
        env=env,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def _drain(pipe: IO[str], sink: list[str], on_line: Callable[[str], None] | None) -> None:
    for line in pipe:
        text = line.rstrip("\n")
        sink.append(text)
        if on_line is not None:
            on_line(text)
    pipe.close()


def stream_command(
    args: list[str],
    *,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    on_line: Callable[[str], None] | None = None,
) -> CommandResult:
    """Execute a command, capturing its output while streaming it line by line.

    One reader thread per pipe drains stdout and stderr to completion
    before the child is reaped, so a chatty child never blocks on a full
    pipe buffer. If the caller is interrupted the child is killed and the
    interrupt propagates. Decoding matches run_command.

    Args:
        args: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Complete environment for the child. If None, inherits os.environ.
        on_line: Called with every output line as it arrives.

    Returns:
        CommandResult with the captured stdout, stderr, and returncode.

    Raises:
        FileNotFoundError: If command executable is not found.
        OSError: If command cannot be executed.
    """
    stdout_lines: list[str] = []
    stderr_lines: list[str] = []
    process = subprocess.Popen(
        args,
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    if process.stdout is None or process.stderr is None:
        process.kill()
        process.wait()
        raise RuntimeError(f"no output pipes for {args[0]}")
    readers = [
        threading.Thread(target=_drain, args=(process.stdout, stdout_lines, on_line), daemon=True),
        threading.Thread(target=_drain, args=(process.stderr, stderr_lines, on_line), daemon=True),
    ]
    for reader in readers:
        reader.start()
    try:
        for reader in readers:
            reader.join()
        returncode = process.wait()
    except BaseException:
        process.kill()
        process.wait()
        raise

    return CommandResult(
        stdout="\n".join(stdout_lines),
        stderr="\n".join(stderr_lines),
        returncode=returncode,
    )
