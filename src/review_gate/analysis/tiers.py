"""Review tier classification of a change set."""

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from review_gate.analysis.globs import first_match, normalize_path
from review_gate.config import DEFAULT_CRITICAL_PATHS, Config
from review_gate.models.changes import (
    ChangedFile,
    ChangeMetrics,
    FileType,
    ReviewTier,
    ReviewTierResult,
)

logger = logging.getLogger(__name__)

TEST_DIRECTORIES = {"test", "tests", "__tests__", "spec"}

DOCUMENTATION_EXTENSIONS = {".md", ".mdx", ".rst", ".adoc"}

CONFIG_FILENAMES = {
    "package.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "tox.ini",
    "pytest.ini",
    "mypy.ini",
    "Makefile",
    "Dockerfile",
    "go.mod",
    "go.sum",
    "Cargo.toml",
    "Cargo.lock",
    ".gitignore",
    ".editorconfig",
    ".env.example",
}

CONFIG_EXTENSIONS = {".toml", ".ini", ".cfg", ".yaml", ".yml", ".json"}

SOURCE_EXTENSIONS = {
    ".py",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".go",
    ".rs",
    ".java",
    ".kt",
    ".rb",
    ".php",
    ".c",
    ".h",
    ".cpp",
    ".hpp",
    ".cs",
    ".swift",
    ".scala",
    ".sh",
    ".vue",
    ".svelte",
}


def _is_test_path(path: str) -> bool:
    posix = PurePosixPath(path)
    name = posix.name

    if ".test." in name or ".spec." in name:
        return True
    if name == "conftest.py":
        return True
    if name.startswith("test_") and name.endswith(".py"):
        return True
    if name.endswith(("_test.py", "_test.go", "_spec.rb")):
        return True
    return any(part in TEST_DIRECTORIES for part in posix.parts[:-1])


def _is_config_path(path: str) -> bool:
    posix = PurePosixPath(path)
    name = posix.name
    if name in CONFIG_FILENAMES:
        return True
    if ".config." in name or name.startswith(("tsconfig", ".eslintrc", ".prettierrc")):
        return True
    if name.startswith("requirements") and name.endswith(".txt"):
        return True
    return posix.suffix.lower() in CONFIG_EXTENSIONS


def analyze_file_type(path: str, test_patterns: Iterable[str] = ()) -> FileType:
    """Classify a file from its path alone.

    Args:
        path: Project-relative path
        test_patterns: Extra globs that mark test files (from testing profiles)

    Returns:
        File type, checked in order test, documentation, config, implementation
    """
    path = normalize_path(path)
    suffix = PurePosixPath(path).suffix.lower()

    if first_match(path, test_patterns) or _is_test_path(path):
        return FileType.TEST
    if suffix in DOCUMENTATION_EXTENSIONS:
        return FileType.DOCUMENTATION
    if _is_config_path(path):
        return FileType.CONFIG
    if suffix in SOURCE_EXTENSIONS:
        return FileType.IMPLEMENTATION
    return FileType.OTHER


@dataclass
class TierConfig:
    """Configuration for tier classification."""

    critical_paths: list[str] = field(default_factory=lambda: list(DEFAULT_CRITICAL_PATHS))
    max_standard_files: int = 10
    test_patterns: list[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: Config, test_patterns: Iterable[str] = ()) -> "TierConfig":
        """Build from the loaded review configuration."""
        return cls(
            critical_paths=list(config.critical_paths),
            max_standard_files=config.tiers.max_standard_files,
            test_patterns=list(test_patterns),
        )


class ReviewTierClassifier:
    """Recommends a review tier from changed files and critical paths."""

    def __init__(self, config: TierConfig | None = None) -> None:
        """Initialize the classifier.

        Args:
            config: Critical paths, thresholds and test globs
        """
        self.config = config or TierConfig()

    def analyze_file_type(self, path: str) -> FileType:
        """Classify a file using the configured test globs."""
        return analyze_file_type(path, self.config.test_patterns)

    def critical_path_match(self, path: str) -> str | None:
        """The configured critical-path glob a file falls under, if any."""
        return first_match(path, self.config.critical_paths)

    def is_critical_path(self, path: str) -> bool:
        return self.critical_path_match(path) is not None

    def annotate(self, changed_files: Iterable[ChangedFile]) -> list[ChangedFile]:
        """Copies of the changed files with file type and critical-path membership set."""
        return [
            dataclasses.replace(
                f,
                file_type=self.analyze_file_type(f.path),
                critical=self.is_critical_path(f.path),
            )
            for f in changed_files
        ]

    def calculate_metrics(self, changed_files: list[ChangedFile]) -> ChangeMetrics:
        """Aggregate file, line and file-type counts."""
        breakdown = {file_type: 0 for file_type in FileType}
        critical_files: list[str] = []
        total_lines = 0

        for f in changed_files:
            file_type = f.file_type or self.analyze_file_type(f.path)
            breakdown[file_type] += 1
            total_lines += f.lines_changed
            if f.critical or self.is_critical_path(f.path):
                critical_files.append(f.path)

        return ChangeMetrics(
            total_files=len(changed_files),
            total_lines=total_lines,
            file_type_breakdown=breakdown,
            critical_files=critical_files,
        )

    def classify_changes(self, changed_files: Iterable[ChangedFile]) -> ReviewTierResult:
        """Classify a change set into a review tier.

        Rules, first match wins:
        1. Any critical-path file -> full
        2. More files than max_standard_files -> full
        3. Empty change set, or only test files -> quick
        4. Otherwise -> standard

        Args:
            changed_files: Files in the change set

        Returns:
            Tier with reason and metrics
        """
        files = list(changed_files)
        metrics = self.calculate_metrics(files)
        tier, reason = self._determine_tier(metrics)
        logger.debug(f"Classified {metrics.total_files} files as {tier.value}: {reason}")
        return ReviewTierResult(tier=tier, reason=reason, metrics=metrics)

    def _determine_tier(self, metrics: ChangeMetrics) -> tuple[ReviewTier, str]:
        total = metrics.total_files

        if metrics.has_critical_paths:
            return ReviewTier.FULL, f"Critical path touched: {', '.join(metrics.critical_files)}"

        if total > self.config.max_standard_files:
            return (
                ReviewTier.FULL,
                f"Large change surface: {total} files "
                f"(threshold: {self.config.max_standard_files})",
            )

        if total == 0:
            return ReviewTier.QUICK, "No changes detected"

        plural = "s" if total != 1 else ""
        if metrics.file_type_breakdown[FileType.TEST] == total:
            return (
                ReviewTier.QUICK,
                f"Test-only changes: {total} file{plural}, {metrics.total_lines} lines",
            )

        return (
            ReviewTier.STANDARD,
            f"Standard changes: {total} file{plural}, {metrics.total_lines} lines",
        )
