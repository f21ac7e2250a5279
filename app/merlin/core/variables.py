"""Path template expansion.

Templates may reference ``{home_dir}`` and ``{config_dir}`` and may start
with ``~``. Any other ``{placeholder}`` is left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from merlin.models.root import Settings


def _expand_home(value: str, home: str) -> str:
    if value == "~":
        return home
    if value.startswith("~/"):
        return f"{home.rstrip('/')}/{value[2:]}"
    return value


@dataclass(frozen=True, slots=True)
class Variables:
    """Resolved variable binding.

    Attributes:
        home_dir: Absolute home directory.
        config_dir: Absolute config directory.
    """

    home_dir: str
    config_dir: str

    @classmethod
    def from_settings(cls, settings: Settings, home: Path | None = None) -> Variables:
        """Resolve the binding from root settings.

        ``home_dir`` is expanded first (against the real home), then
        ``config_dir`` is expanded with the resolved ``home_dir``.

        Args:
            settings: Root declaration settings.
            home: Home directory used for ``~``. Defaults to Path.home().

        Returns:
            Fully resolved Variables.
        """
        real_home = str(home or Path.home())
        seed = cls(home_dir=real_home, config_dir=f"{real_home}/.config")
        home_dir = seed.expand(settings.home_dir or "~")
        with_home = cls(home_dir=home_dir, config_dir=f"{home_dir}/.config")
        config_dir = with_home.expand(settings.config_dir or "{home_dir}/.config")
        return cls(home_dir=home_dir, config_dir=config_dir)

    def expand(self, template: str) -> str:
        """Expand a path template.

        Pure function of the template and this binding; applying it to
        an already-expanded path returns the path unchanged.

        Args:
            template: Template string.

        Returns:
            Expanded string.
        """
        result = template.replace("{home_dir}", self.home_dir)
        result = result.replace("{config_dir}", self.config_dir)
        return _expand_home(result, self.home_dir)

    def expand_path(self, template: str) -> Path:
        """Expand a template and return it as a Path."""
        return Path(self.expand(template))
