"""Console styles for merlin output.

Every style name used in console markup (``[linked]``, ``[conflict]``,
``[muted]`` ...) is defined here. Colors can be overridden per user in
``~/.config/merlin/theme.toml``::

    [colors]
    linked = "#00ff88"
    conflict = "#ffaa00"
"""

import logging
import tomllib
from functools import cache
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from rich.theme import Theme

logger = logging.getLogger(__name__)


def _check_hex(value: str) -> str:
    color = value.strip()
    digits = color.removeprefix("#")
    if color == digits:
        raise ValueError(f"color {value!r} must start with '#'")
    if len(digits) not in (3, 6):
        raise ValueError(f"color {value!r} must be #RGB or #RRGGBB")
    try:
        int(digits, 16)
    except ValueError:
        raise ValueError(f"color {value!r} is not a hex color") from None
    return color


HexColor = Annotated[str, AfterValidator(_check_hex)]


class ThemeColors(BaseModel):
    """Colors behind each console style.

    Unknown keys are rejected so that a typo in the override file is
    reported instead of silently ignored.
    """

    model_config = ConfigDict(extra="forbid")

    muted: HexColor = "#b2bec3"
    header: HexColor = "#a78bfa"
    border: HexColor = "#4c3a75"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    # Link states without a semantic color of their own
    linked: HexColor = "#5fd7af"
    conflict: HexColor = "#faf870"


def get_user_theme_path() -> Path:
    """Return ~/.config/merlin/theme.toml."""
    return Path.home() / ".config" / "merlin" / "theme.toml"


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load colors, applying the user's overrides when present.

    A missing override file is normal. An unreadable or invalid one is
    logged and the built-in colors are used instead.

    Args:
        path: Override file. Defaults to get_user_theme_path().

    Returns:
        The effective ThemeColors.
    """
    path = path or get_user_theme_path()
    try:
        with path.open("rb") as f:
            overrides = tomllib.load(f).get("colors", {})
        colors = ThemeColors.model_validate(overrides)
    except FileNotFoundError:
        return ThemeColors()
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        logger.warning("Ignoring theme overrides in %s: %s", path, e)
        return ThemeColors()

    logger.debug("Loaded theme overrides from %s", path)
    return colors


def get_rich_theme(colors: ThemeColors) -> Theme:
    """Build the Rich theme for a set of colors."""
    styles = colors.model_dump()
    styles["error"] = f"bold {colors.error}"
    styles["bold_header"] = f"bold {colors.header}"
    return Theme(styles)


@cache
def get_theme() -> Theme:
    """Return the Rich theme for this process, loading it on first use."""
    return get_rich_theme(load_theme())
