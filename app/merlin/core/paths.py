"""Path management for merlin.

Merlin keeps its private state in a single directory under the user's
home, independent of the dotfiles repository:

- State root: ~/.merlin/
- Backups: ~/.merlin/backups/<id>/
- Log file: ~/.merlin/merlin.log

The repository itself contributes the in-repo metadata directory
(.merlin-meta/) used for the auto-commit audit trail.
"""

from pathlib import Path

# Application identifier for directory naming
APP_NAME = "merlin"

# Repository layout constants
ROOT_DECLARATION = "merlin.toml"
CONFIG_DIR_NAME = "config"
META_DIR_NAME = ".merlin-meta"
BACKUP_INDEX_NAME = "backups.json"

# Environment variable overriding repository discovery
DOTFILES_ENV_VAR = "MERLIN_DOTFILES"


def get_state_dir() -> Path:
    """Get the merlin state directory path.

    Returns:
        Path to ~/.merlin/.
    """
    return Path.home() / f".{APP_NAME}"


def get_backup_dir() -> Path:
    """Get the backup store root.

    Each backup creates a timestamped subdirectory within this location.

    Returns:
        Path to ~/.merlin/backups/.
    """
    return get_state_dir() / "backups"


def get_log_path() -> Path:
    """Get the log file path.

    Returns:
        Path to ~/.merlin/merlin.log.
    """
    return get_state_dir() / f"{APP_NAME}.log"


def get_backup_index_path(repo_root: Path) -> Path:
    """Get the in-repo backup index path.

    Args:
        repo_root: Dotfiles repository root.

    Returns:
        Path to <repo>/.merlin-meta/backups.json.
    """
    return repo_root / META_DIR_NAME / BACKUP_INDEX_NAME


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Returns:
        Path to the state directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")


def ensure_backup_dir() -> Path:
    """Create the backup directory if it doesn't exist.

    Returns:
        Path to the backup directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_backup_dir(), "backup")
