"""Unit tests for the setup script runner.

Scripts are real shell scripts written into a temporary directory.
"""

from pathlib import Path

import pytest

from merlin.core.variables import Variables
from merlin.models.tool import ScriptItem
from merlin.scripts.runner import (
    ScriptNotExecutableError,
    ScriptNotFoundError,
    ScriptResult,
    ScriptRunner,
    default_environment,
    format_script_result,
    validate_scripts,
)


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    """Empty scripts directory."""
    path = tmp_path / "scripts"
    path.mkdir()
    return path


def _write(scripts_dir: Path, name: str, body: str, mode: int = 0o755) -> Path:
    path = scripts_dir / name
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(mode)
    return path


def _items(*names: str) -> list[ScriptItem]:
    return [ScriptItem(file=name) for name in names]


class TestDefaultEnvironment:
    """Tests for default_environment."""

    def test_exposes_tool_and_variables(self, tmp_path: Path) -> None:
        """Tool identity and resolved directories are exported."""
        variables = Variables(home_dir="/h", config_dir="/h/.config")

        env = default_environment("zsh", tmp_path / "zsh", variables)

        assert env == {
            "MERLIN_TOOL": "zsh",
            "MERLIN_TOOL_ROOT": str(tmp_path / "zsh"),
            "MERLIN_HOME": "/h",
            "MERLIN_CONFIG_DIR": "/h/.config",
            "HOME": "/h",
        }


class TestValidateScripts:
    """Tests for validate_scripts."""

    def test_reports_missing_and_non_executable(self, scripts_dir: Path) -> None:
        """Each unusable script yields one error."""
        _write(scripts_dir, "ok.sh", "true")
        _write(scripts_dir, "plain.sh", "true", mode=0o644)

        errors = validate_scripts(scripts_dir, _items("ok.sh", "plain.sh", "absent.sh"))

        assert [type(e) for e in errors] == [ScriptNotExecutableError, ScriptNotFoundError]
        assert "chmod +x" in str(errors[0])


class TestScriptRunner:
    """Tests for ScriptRunner."""

    def test_runs_in_order_with_environment(self, scripts_dir: Path) -> None:
        """Scripts see the merlin environment and run from the scripts directory."""
        _write(scripts_dir, "one.sh", 'echo "one $MERLIN_TOOL $(basename "$(pwd)")"')
        _write(scripts_dir, "two.sh", "echo two >&2")
        runner = ScriptRunner(scripts_dir, {"MERLIN_TOOL": "zsh"})

        results = runner.run_scripts(_items("one.sh", "two.sh"))

        assert [r.success for r in results] == [True, True]
        assert results[0].output == "one zsh scripts"
        assert results[1].output == "two"
        assert results[0].exit_code == 0

    def test_stops_at_first_failure(self, scripts_dir: Path) -> None:
        """A nonzero exit stops the sequence."""
        _write(scripts_dir, "fail.sh", "echo boom\nexit 3")
        _write(scripts_dir, "after.sh", "true")

        results = ScriptRunner(scripts_dir, {}).run_scripts(_items("fail.sh", "after.sh"))

        assert len(results) == 1
        assert results[0].success is False
        assert results[0].exit_code == 3
        assert "exited with status 3: boom" in str(results[0].error)

    def test_missing_script_stops_sequence(self, scripts_dir: Path) -> None:
        """A missing script is a failure that nothing runs past."""
        marker = scripts_dir / "ran"
        _write(scripts_dir, "after.sh", f"touch {marker}")

        results = ScriptRunner(scripts_dir, {}).run_scripts(_items("absent.sh", "after.sh"))

        assert len(results) == 1
        assert isinstance(results[0].error, ScriptNotFoundError)
        assert not marker.exists()

    def test_tag_filter(self, scripts_dir: Path) -> None:
        """Only scripts carrying the tag run."""
        _write(scripts_dir, "fonts.sh", "true")
        _write(scripts_dir, "other.sh", "exit 1")
        items = [ScriptItem(file="fonts.sh", tags=("fonts",)), ScriptItem(file="other.sh")]

        results = ScriptRunner(scripts_dir, {}).run_scripts(items, tag="fonts")

        assert [r.script for r in results] == ["fonts.sh"]

    def test_dry_run_announces_only(self, scripts_dir: Path) -> None:
        """Dry-run checks scripts but does not execute them."""
        marker = scripts_dir / "ran"
        _write(scripts_dir, "touch.sh", f"touch {marker}")
        lines: list[str] = []
        runner = ScriptRunner(scripts_dir, {}, dry_run=True, on_output=lines.append)

        results = runner.run_scripts(_items("touch.sh"))

        assert results[0].dry_run is True
        assert lines == ["  [DRY RUN] Would execute: touch.sh"]
        assert not marker.exists()

    def test_verbose_streams_output(self, scripts_dir: Path) -> None:
        """Verbose mode forwards every line, indented."""
        _write(scripts_dir, "talk.sh", "echo hello\necho world")
        lines: list[str] = []
        runner = ScriptRunner(scripts_dir, {}, verbose=True, on_output=lines.append)

        runner.run_scripts(_items("talk.sh"))

        assert lines == ["    hello", "    world"]


class TestFormatScriptResult:
    """Tests for format_script_result."""

    def test_success_and_failure_lines(self) -> None:
        """Lines carry a status mark and, on failure, the reason."""
        ok = ScriptResult(script="a.sh", success=True, duration=1.5)
        failed = ScriptResult(script="b.sh", success=False, error=ScriptNotFoundError(Path("/b")))

        assert format_script_result(ok) == "  ✓ a.sh"
        assert format_script_result(ok, verbose=True) == "  ✓ a.sh (1.50s)"
        assert format_script_result(failed) == "  ✗ b.sh - script not found: /b"
