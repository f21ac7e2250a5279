"""Repository validation.

Checks the declarations of a dotfiles repository for structural problems
and classifies each finding as an error or a warning. Validation reads the
repository but never changes it, and keeps going past malformed files so
that one run reports every problem.
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from merlin.core.declarations import (
    BREW_TOOL,
    MAS_TOOL,
    ParseError,
    get_brew_config_path,
    get_mas_config_path,
    load_brew_config,
    load_mas_config,
    load_optional_tool_config,
    load_root_config,
)
from merlin.core.links import resolve_links
from merlin.core.repo import DotfilesRepo
from merlin.core.variables import Variables
from merlin.models.root import ConflictStrategy, RootConfig
from merlin.models.tool import ToolConfig

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validation finding.

    Attributes:
        file: Repository-relative path of the offending file.
        message: Human-readable description.
        severity: Error or warning.
    """

    file: str
    message: str
    severity: Severity

    @property
    def is_error(self) -> bool:
        """Whether this finding is an error."""
        return self.severity == Severity.ERROR

    def __str__(self) -> str:
        return f"{self.file}: {self.message}"


@dataclass(slots=True)
class ValidationReport:
    """All findings for one repository.

    Attributes:
        issues: Findings in discovery order.
    """

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        """Findings classified as errors."""
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        """Findings classified as warnings."""
        return [issue for issue in self.issues if not issue.is_error]

    def failed(self, *, strict: bool = False) -> bool:
        """Check whether validation failed.

        Args:
            strict: Treat warnings as errors.

        Returns:
            True if there is any error (or any warning when strict).
        """
        if strict:
            return bool(self.issues)
        return bool(self.errors)

    def error(self, file: str, message: str) -> None:
        """Record an error."""
        self.issues.append(ValidationIssue(file, message, Severity.ERROR))

    def warning(self, file: str, message: str) -> None:
        """Record a warning."""
        self.issues.append(ValidationIssue(file, message, Severity.WARNING))


def _duplicates(names: Iterable[str]) -> list[str]:
    counts = Counter(names)
    return sorted(name for name, count in counts.items() if count > 1)


def _validate_root(report: ValidationReport, file: str, root: RootConfig) -> None:
    if not root.metadata.name:
        report.warning(file, "metadata.name is empty")

    valid = [strategy.value for strategy in ConflictStrategy]
    if root.settings.conflict_strategy not in valid:
        report.error(
            file,
            f"invalid conflict_strategy '{root.settings.conflict_strategy}' "
            f"(expected one of: {', '.join(valid)})",
        )

    for index, profile in enumerate(root.profiles):
        if not profile.name:
            report.error(file, f"profile #{index + 1} has no name")
        elif not profile.tools:
            report.warning(file, f"profile '{profile.name}' lists no tools")

    for name in _duplicates(p.name for p in root.profiles if p.name):
        report.error(file, f"duplicate profile name '{name}'")

    defaults = [p.name or "?" for p in root.profiles if p.default]
    if len(defaults) > 1:
        report.error(file, f"multiple default profiles: {', '.join(defaults)}")


def _validate_brew(report: ValidationReport, repo: DotfilesRepo) -> None:
    path = get_brew_config_path(repo)
    file = repo.relative(path)
    try:
        config = load_brew_config(repo)
    except ParseError as e:
        report.error(file, str(e))
        return

    declared = (
        ("formula", [p.name for p in config.formulae]),
        ("cask", [p.name for p in config.casks]),
    )
    for kind, names in declared:
        if any(not name.strip() for name in names):
            report.error(file, f"{kind} with empty name")
        for name in _duplicates(n for n in names if n.strip()):
            report.error(file, f"duplicate {kind} '{name}'")


def _validate_mas(report: ValidationReport, repo: DotfilesRepo) -> None:
    path = get_mas_config_path(repo)
    file = repo.relative(path)
    try:
        config = load_mas_config(repo)
    except ParseError as e:
        report.error(file, str(e))
        return

    for app in config.apps:
        if app.id == 0:
            report.error(file, f"app '{app.name or '?'}' has no id")
        if not app.name.strip():
            report.error(file, f"app {app.id} has no name")

    for app_id in _duplicates(str(app.id) for app in config.apps if app.id != 0):
        report.error(file, f"duplicate app id {app_id}")


def _validate_tool(
    report: ValidationReport,
    repo: DotfilesRepo,
    name: str,
    config: ToolConfig,
    known_tools: set[str],
) -> None:
    file = repo.relative(repo.tool_declaration(name))
    root = repo.tool_root(name)

    if config.tool.name and config.tool.name != name:
        report.warning(file, f"tool name '{config.tool.name}' does not match directory '{name}'")

    for dependency in config.tool.dependencies:
        if dependency not in known_tools:
            report.warning(file, f"dependency '{dependency}' is not a known tool")

    for index, link in enumerate(config.links):
        if not link.target:
            report.error(file, f"link #{index + 1} has no target")
        if link.files:
            for entry in link.files:
                if not (root / entry.source).exists():
                    report.warning(file, f"link source does not exist: {entry.source}")
        else:
            source = root / link.source if link.source else repo.tool_config_dir(name)
            if not source.exists():
                report.warning(file, f"link source does not exist: {repo.relative(source)}")

    scripts_dir = root / config.scripts.directory
    for item in config.scripts.scripts:
        path = scripts_dir / item.file
        if not path.is_file():
            report.error(file, f"script not found: {item.file}")
        elif not os.access(path, os.X_OK):
            report.error(file, f"script is not executable (run: chmod +x {path})")


def validate_repo(repo: DotfilesRepo, *, home: Path | None = None) -> ValidationReport:
    """Validate every declaration in a repository.

    Args:
        repo: The dotfiles repository.
        home: Home directory used to expand link targets.

    Returns:
        ValidationReport with all findings.
    """
    report = ValidationReport()
    root_file = repo.relative(repo.declaration_path)

    try:
        root = load_root_config(repo.declaration_path)
    except ParseError as e:
        report.error(root_file, str(e))
        return report

    _validate_root(report, root_file, root)
    _validate_brew(report, repo)
    _validate_mas(report, repo)

    variables = Variables.from_settings(root.settings, home=home)
    tool_names = sorted(repo.list_tools())
    known_tools = set(tool_names)
    target_owners: dict[Path, str] = {}

    for name in tool_names:
        try:
            config = load_optional_tool_config(repo, name)
        except ParseError as e:
            report.error(repo.relative(repo.tool_declaration(name)), str(e))
            continue

        if config is not None:
            _validate_tool(report, repo, name, config, known_tools)

        for link in resolve_links(name, config, repo.tool_root(name), variables):
            owner = target_owners.get(link.target)
            if owner is not None and owner != name:
                report.warning(
                    repo.relative(repo.tool_root(name)),
                    f"link target {link.target} is also declared by '{owner}'",
                )
            target_owners.setdefault(link.target, name)

    for profile in root.profiles:
        for tool in profile.tools:
            if tool not in known_tools:
                report.warning(root_file, f"profile '{profile.name}' names unknown tool '{tool}'")

    for tool in root.preinstall.tools:
        if tool not in known_tools and tool not in (BREW_TOOL, MAS_TOOL):
            report.warning(root_file, f"preinstall names unknown tool '{tool}'")

    logger.info(
        "Validated %s: %d error(s), %d warning(s)",
        repo.root,
        len(report.errors),
        len(report.warnings),
    )
    return report
