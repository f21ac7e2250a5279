"""Per-tool setup scripts."""

from merlin.scripts.runner import (
    ScriptError,
    ScriptNotExecutableError,
    ScriptNotFoundError,
    ScriptResult,
    ScriptRunner,
    check_script,
    default_environment,
    format_script_result,
    validate_scripts,
)

__all__ = [
    "ScriptError",
    "ScriptNotExecutableError",
    "ScriptNotFoundError",
    "ScriptResult",
    "ScriptRunner",
    "check_script",
    "default_environment",
    "format_script_result",
    "validate_scripts",
]
