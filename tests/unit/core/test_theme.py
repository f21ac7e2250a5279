"""Unit tests for theme module.

Tests for color validation, user overrides and Rich theme generation.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError
from rich.theme import Theme

from merlin.core.theme import ThemeColors, get_rich_theme, get_user_theme_path, load_theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_accepts_short_and_long_hex(self) -> None:
        """#RGB and #RRGGBB are both valid."""
        colors = ThemeColors(linked="#AABBCC", muted=" #abc ")

        assert colors.linked == "#AABBCC"
        assert colors.muted == "#abc"

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("ffffff", "must start with '#'"),
            ("#ff", "must be #RGB or #RRGGBB"),
            ("#gggggg", "is not a hex color"),
        ],
    )
    def test_rejects_invalid_colors(self, value: str, message: str) -> None:
        """Malformed colors are rejected with a reason."""
        with pytest.raises(ValidationError, match=message):
            ThemeColors(conflict=value)

    def test_unknown_style_rejected(self) -> None:
        """A misspelled style name is an error."""
        with pytest.raises(ValidationError):
            ThemeColors.model_validate({"linkd": "#ffffff"})


class TestLoadTheme:
    """Tests for load_theme function."""

    def test_defaults_without_user_file(self, tmp_path: Path) -> None:
        """A missing override file yields the built-in colors."""
        assert load_theme(tmp_path / "missing.toml") == ThemeColors()

    def test_overrides_only_what_is_set(self, tmp_path: Path) -> None:
        """Overrides replace just the colors they name."""
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[colors]\nlinked = "#00ff88"\n')

        colors = load_theme(theme_file)

        assert colors.linked == "#00ff88"
        assert colors.conflict == ThemeColors().conflict

    @pytest.mark.parametrize(
        "content",
        ['[colors]\nheader = "red"\n', "not valid [ toml", '[colors]\nbogus = "#fff"\n'],
    )
    def test_bad_overrides_fall_back(
        self, tmp_path: Path, content: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Unusable override files are logged and ignored."""
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text(content)

        assert load_theme(theme_file) == ThemeColors()
        assert "Ignoring theme overrides" in caplog.text

    def test_user_theme_path_under_home(self, home: Path) -> None:
        """The override file lives under ~/.config/merlin."""
        assert get_user_theme_path() == home / ".config" / "merlin" / "theme.toml"


class TestGetRichTheme:
    """Tests for get_rich_theme function."""

    def test_defines_every_markup_style(self) -> None:
        """Every style used in console markup is defined."""
        theme = get_rich_theme(ThemeColors())

        assert isinstance(theme, Theme)
        for name in ("linked", "conflict", "muted", "bold_header", "border", "info"):
            assert name in theme.styles

    def test_errors_are_bold(self) -> None:
        """The error style is bold."""
        theme = get_rich_theme(ThemeColors())

        assert theme.styles["error"].bold
