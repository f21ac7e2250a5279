"""Console output and subprocess helpers shared by every merlin module."""

from merlin.utils.formatting import (
    console,
    create_table,
    err_console,
    print_error,
    print_info,
    print_plain,
    print_success,
    print_warning,
)
from merlin.utils.shell import (
    CommandResult,
    ExternalToolError,
    command_exists,
    run_command,
    stream_command,
)

__all__ = [
    "CommandResult",
    "ExternalToolError",
    "command_exists",
    "console",
    "create_table",
    "err_console",
    "print_error",
    "print_info",
    "print_plain",
    "print_success",
    "print_warning",
    "run_command",
    "stream_command",
]
