"""Logging configuration for the merlin CLI.

Library modules only create module loggers; handlers are attached once
by the CLI entry point. Log output goes to stderr and to the log file,
never to stdout, so JSON output stays machine-readable.
"""

import logging
import sys
from pathlib import Path

from merlin.core.paths import ensure_state_dir, get_log_path

_STDERR_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure the ``merlin`` logger hierarchy.

    Args:
        verbose: Emit DEBUG records on stderr instead of WARNING and above.
        log_file: File to append records to. Defaults to ~/.merlin/merlin.log.
            Skipped when the state directory cannot be created.
    """
    root = logging.getLogger("merlin")
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stderr_handler.setFormatter(logging.Formatter(_STDERR_FORMAT))
    root.addHandler(stderr_handler)

    try:
        if log_file is None:
            ensure_state_dir()
            log_file = get_log_path()
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except (OSError, RuntimeError) as e:
        root.debug("File logging disabled: %s", e)
        return

    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(file_handler)
