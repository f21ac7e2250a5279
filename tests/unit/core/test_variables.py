"""Unit tests for path template expansion.

Tests for resolving {home_dir}/{config_dir} and ~ in templates.
"""

from pathlib import Path

import pytest

from merlin.core.variables import Variables
from merlin.models.root import Settings


class TestFromSettings:
    """Tests for Variables.from_settings."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Default settings bind home to ~ and config to ~/.config."""
        variables = Variables.from_settings(Settings(), home=tmp_path)

        assert variables.home_dir == str(tmp_path)
        assert variables.config_dir == f"{tmp_path}/.config"

    def test_config_dir_sees_resolved_home(self, tmp_path: Path) -> None:
        """config_dir is expanded with the already-resolved home_dir."""
        settings = Settings(home_dir="/Users/alt", config_dir="{home_dir}/.cfg")

        variables = Variables.from_settings(settings, home=tmp_path)

        assert variables.home_dir == "/Users/alt"
        assert variables.config_dir == "/Users/alt/.cfg"

    def test_tilde_in_settings(self, tmp_path: Path) -> None:
        """A ~ in settings expands against the real home."""
        settings = Settings(config_dir="~/dotconfig")

        variables = Variables.from_settings(settings, home=tmp_path)

        assert variables.config_dir == f"{tmp_path}/dotconfig"


class TestExpand:
    """Tests for Variables.expand."""

    @pytest.fixture
    def variables(self) -> Variables:
        """A fixed binding."""
        return Variables(home_dir="/Users/me", config_dir="/Users/me/.config")

    def test_placeholders(self, variables: Variables) -> None:
        """Known placeholders are substituted."""
        assert variables.expand("{config_dir}/nvim") == "/Users/me/.config/nvim"
        assert variables.expand("{home_dir}/.zshrc") == "/Users/me/.zshrc"

    def test_tilde(self, variables: Variables) -> None:
        """A leading ~ or ~/ expands to home_dir."""
        assert variables.expand("~") == "/Users/me"
        assert variables.expand("~/.gitconfig") == "/Users/me/.gitconfig"

    def test_unknown_placeholder_untouched(self, variables: Variables) -> None:
        """Unknown placeholders survive expansion."""
        assert variables.expand("{xdg_data}/x") == "{xdg_data}/x"

    def test_tilde_inside_path_untouched(self, variables: Variables) -> None:
        """Only a leading ~ is expanded."""
        assert variables.expand("/opt/~backup") == "/opt/~backup"

    @pytest.mark.parametrize(
        "template",
        ["{config_dir}/nvim", "~/.zshrc", "{home_dir}", "/etc/hosts", "relative/path"],
    )
    def test_expansion_is_idempotent(self, variables: Variables, template: str) -> None:
        """Expanding an expanded path returns it unchanged."""
        once = variables.expand(template)
        assert variables.expand(once) == once

    def test_expand_path(self, variables: Variables) -> None:
        """expand_path returns a Path."""
        assert variables.expand_path("~/.zshrc") == Path("/Users/me/.zshrc")
