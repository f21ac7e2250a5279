"""Unit tests for the main CLI application.

Tests for global options and command registration.
"""

from typer.testing import CliRunner

from merlin import __version__
from merlin.cli.main import app

runner = CliRunner()


class TestMainApp:
    """Tests for the top-level app."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"merlin version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        """Every command is registered."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in (
            "doctor",
            "validate",
            "list",
            "install",
            "link",
            "unlink",
            "run",
            "diff",
            "backup",
        ):
            assert command in result.output

    def test_outside_repository(self, tmp_path, monkeypatch) -> None:
        """Commands needing a repository fail cleanly without one."""
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["list", "configs"])

        assert result.exit_code == 1
        assert "No dotfiles repository found" in result.output
