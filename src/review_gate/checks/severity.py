"""Keyword-based severity classification of raw tool output.

This is a fallback for tools that report no structured counts. It buckets
lines by keyword and never attempts to parse a real log format.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from review_gate.models.results import EnrichedToolResult

logger = logging.getLogger(__name__)


class SeverityLevel(Enum):
    """Coarse diagnostic severity buckets."""

    BLOCKER = "blocker"
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


# Checked in order; the first match claims the line
_KEYWORDS = [
    (SeverityLevel.BLOCKER, re.compile(r"error|blocker|critical|fail", re.IGNORECASE)),
    (SeverityLevel.WARNING, re.compile(r"warn|warning", re.IGNORECASE)),
    (SeverityLevel.INFO, re.compile(r"info|note|hint", re.IGNORECASE)),
]


def _path_pattern(path: str) -> re.Pattern[str]:
    """Match a path as a whole name in tool output.

    A leading directory is allowed so absolute paths still attribute, but
    `src/a.ts` does not match `src/a.tsx` or `mysrc/a.ts`.
    """
    return re.compile(rf"(?<![\w.-]){re.escape(path)}(?![\w/-]|\.\w)")


def empty_counts() -> dict[SeverityLevel, int]:
    """Zero count for every severity level."""
    return {level: 0 for level in SeverityLevel}


def classify_line(line: str) -> SeverityLevel | None:
    """Severity bucket of a single output line, or None."""
    for level, pattern in _KEYWORDS:
        if pattern.search(line):
            return level
    return None


def extract_severity(raw_output: str | None) -> dict[SeverityLevel, int]:
    """Count output lines per severity bucket.

    Args:
        raw_output: Combined tool output (may be empty or None)

    Returns:
        Count for every severity level; all zero for empty input
    """
    counts = empty_counts()
    if not raw_output:
        return counts

    for line in raw_output.splitlines():
        level = classify_line(line)
        if level is not None:
            counts[level] += 1
    return counts


@dataclass
class FileDiagnostics:
    """Severity counts attributed to a single file."""

    path: str
    counts: dict[SeverityLevel, int] = field(default_factory=empty_counts)

    @property
    def blocker(self) -> int:
        return self.counts.get(SeverityLevel.BLOCKER, 0)

    @property
    def critical(self) -> int:
        return self.counts.get(SeverityLevel.CRITICAL, 0)

    @property
    def warning(self) -> int:
        return self.counts.get(SeverityLevel.WARNING, 0)


def diagnostics_from_results(
    results: Iterable[EnrichedToolResult],
    paths: Iterable[str],
) -> dict[str, FileDiagnostics]:
    """Attribute severity counts from tool output to changed files.

    Only output lines that mention a file's path are counted for that file.
    Skipped results carry no diagnostics.

    Args:
        results: Enriched tool results
        paths: Changed file paths

    Returns:
        Diagnostics per path, with an entry for every path
    """
    diagnostics = {path: FileDiagnostics(path=path) for path in paths}
    if not diagnostics:
        return diagnostics

    matchers = {path: _path_pattern(path) for path in diagnostics}
    for result in results:
        if result.skipped or not result.output:
            continue
        for line in result.output.splitlines():
            level = classify_line(line)
            if level is None:
                continue
            for path, entry in diagnostics.items():
                if matchers[path].search(line):
                    entry.counts[level] += 1

    attributed = sum(1 for d in diagnostics.values() if any(d.counts.values()))
    logger.debug(f"Attributed diagnostics to {attributed} of {len(diagnostics)} files")
    return diagnostics
