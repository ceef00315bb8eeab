"""Risk-weighted selection of the changed files that deserve deep review."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from review_gate.analysis.globs import first_match
from review_gate.analysis.imports import ImportGraph
from review_gate.analysis.tiers import analyze_file_type
from review_gate.checks.severity import FileDiagnostics
from review_gate.config import ScoringSettings
from review_gate.models.changes import ChangedFile, FileType
from review_gate.models.manifest import CriticalFileEntry, CriticalFilesSection

logger = logging.getLogger(__name__)

ALGORITHM = "risk-weighted-v1.0"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


@dataclass
class ScoringConfig:
    """Scoring weights and thresholds for critical file selection."""

    blocker_weight: float = 100.0
    critical_weight: float = 75.0
    warning_weight: float = 25.0
    fan_in_weight: float = 2.0
    fan_in_threshold: int = 20
    line_weight: float = 0.5
    large_change_threshold: int = 100
    large_change_bonus: float = 25.0
    new_file_bonus: float = 50.0
    critical_path_bonus: float = 50.0
    test_file_penalty: float = 50.0
    top_n: int = 10
    critical_paths: list[str] = field(default_factory=list)
    test_patterns: list[str] = field(default_factory=list)

    @classmethod
    def from_settings(
        cls,
        settings: ScoringSettings,
        critical_paths: Iterable[str] = (),
        test_patterns: Iterable[str] = (),
    ) -> "ScoringConfig":
        """Build from the loaded scoring settings."""
        return cls(
            blocker_weight=settings.blocker_weight,
            critical_weight=settings.critical_weight,
            warning_weight=settings.warning_weight,
            fan_in_weight=settings.fan_in_weight,
            fan_in_threshold=settings.fan_in_threshold,
            line_weight=settings.line_weight,
            large_change_threshold=settings.large_change_threshold,
            large_change_bonus=settings.large_change_bonus,
            new_file_bonus=settings.new_file_bonus,
            critical_path_bonus=settings.critical_path_bonus,
            test_file_penalty=settings.test_file_penalty,
            top_n=settings.top_n,
            critical_paths=list(critical_paths),
            test_patterns=list(test_patterns),
        )


@dataclass(frozen=True)
class CriticalPathMatch:
    """Which critical-path set matched a file, and on what."""

    source: str  # "configured" or "inferred"
    pattern: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "pattern": self.pattern}


@dataclass
class FileScore:
    """Risk score of one changed file."""

    path: str
    score: float
    risk_factors: list[str]
    lines_changed: int
    import_fan_in: int
    blocker_count: int = 0
    critical_count: int = 0
    warning_count: int = 0
    critical_match: CriticalPathMatch | None = None
    rank: int = 0

    @property
    def display_score(self) -> int:
        """Score rounded and clamped at zero."""
        return max(0, round(self.score))

    def to_entry(self) -> CriticalFileEntry:
        return CriticalFileEntry(
            path=self.path,
            rank=self.rank,
            score=self.display_score,
            risk_factors=tuple(self.risk_factors),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "rank": self.rank,
            "score": self.display_score,
            "raw_score": self.score,
            "risk_factors": list(self.risk_factors),
            "lines_changed": self.lines_changed,
            "import_fan_in": self.import_fan_in,
            "severity": {
                "blocker": self.blocker_count,
                "critical": self.critical_count,
                "warning": self.warning_count,
            },
        }
        if self.critical_match is not None:
            data["critical_path_match"] = self.critical_match.to_dict()
        return data


@dataclass
class CriticalFilesReport:
    """Scored and ranked changed files."""

    top_files: list[FileScore]
    all_files: list[FileScore]
    inferred_critical_paths: list[str]
    configured_critical_paths: list[str]
    top_n: int
    algorithm: str = ALGORITHM

    def to_section(self) -> CriticalFilesSection:
        """Manifest section with the top files."""
        return CriticalFilesSection(
            algorithm=self.algorithm,
            total_files=len(self.all_files),
            top_n=self.top_n,
            files=tuple(f.to_entry() for f in self.top_files),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "top_n": self.top_n,
            "total_files": len(self.all_files),
            "top_files": [f.to_dict() for f in self.top_files],
            "all_files": [f.to_dict() for f in self.all_files],
            "inferred_critical_paths": list(self.inferred_critical_paths),
            "configured_critical_paths": list(self.configured_critical_paths),
        }


class CriticalFileSelector:
    """Scores every changed file and ranks them for deep review."""

    def __init__(
        self,
        import_graph: ImportGraph | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        """Initialize the selector.

        Args:
            import_graph: Project import graph (empty graph when not given)
            config: Scoring weights, critical paths and test globs
        """
        self.import_graph = import_graph or ImportGraph()
        self.config = config or ScoringConfig()

    def select_critical_files(
        self,
        changed_files: list[ChangedFile],
        diagnostics: Mapping[str, FileDiagnostics] | None = None,
        top_n: int | None = None,
    ) -> CriticalFilesReport:
        """Score, rank and truncate the changed files.

        Ties keep the input order. Ranks are dense, starting at 1.

        Args:
            changed_files: Files in the change set
            diagnostics: Severity counts per path
            top_n: Number of files to select (default from config)

        Returns:
            Report with the top files, all scored files and critical path sets
        """
        top_n = top_n if top_n is not None else self.config.top_n
        diagnostics = diagnostics or {}

        fan_in = self.import_graph.fan_in_map()
        threshold = self.config.fan_in_threshold
        inferred = sorted(
            (path for path, count in fan_in.items() if count > threshold),
            key=lambda path: (-fan_in[path], path),
        )
        inferred_set = set(inferred)

        scored = [
            self._score_file(f, diagnostics.get(f.path), fan_in.get(f.path, 0), inferred_set)
            for f in changed_files
        ]

        # sorted() is stable, ties keep input order
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)
        for rank, file_score in enumerate(ranked, start=1):
            file_score.rank = rank

        top_files = ranked[: max(0, top_n)]
        logger.info(
            f"Critical file selection complete: {len(top_files)} of {len(ranked)} files, "
            f"{len(inferred)} inferred critical paths"
        )

        return CriticalFilesReport(
            top_files=top_files,
            all_files=ranked,
            inferred_critical_paths=inferred,
            configured_critical_paths=list(self.config.critical_paths),
            top_n=top_n,
        )

    def _score_file(
        self,
        file: ChangedFile,
        diagnostics: FileDiagnostics | None,
        import_fan_in: int,
        inferred: set[str],
    ) -> FileScore:
        cfg = self.config
        score = 0.0
        factors: list[str] = []

        blocker = diagnostics.blocker if diagnostics else 0
        critical = diagnostics.critical if diagnostics else 0
        warning = diagnostics.warning if diagnostics else 0

        # Diagnostics
        if blocker:
            score += blocker * cfg.blocker_weight
            factors.append(_plural(blocker, "blocker issue"))
        if critical:
            score += critical * cfg.critical_weight
            factors.append(_plural(critical, "critical issue"))
        if warning:
            score += warning * cfg.warning_weight
            factors.append(_plural(warning, "warning"))

        # Import fan-in
        if import_fan_in:
            score += import_fan_in * cfg.fan_in_weight
            if import_fan_in > cfg.fan_in_threshold:
                factors.append(f"high impact ({import_fan_in} imports)")
            else:
                factors.append(f"imported by {_plural(import_fan_in, 'file')}")

        # Change size
        lines = file.lines_changed
        score += lines * cfg.line_weight
        if lines > cfg.large_change_threshold:
            score += cfg.large_change_bonus
            factors.append(f"large change ({lines} lines)")

        if file.newly_added:
            score += cfg.new_file_bonus
            factors.append("new file")

        # Critical paths: configured globs first, then imports of inferred critical files
        match = self._critical_path_match(file.path, inferred)
        if match is not None:
            score += cfg.critical_path_bonus
            if match.source == "configured":
                factors.append(f"critical path: {match.pattern}")
            else:
                factors.append(f"imports inferred critical: {match.pattern}")
        if file.path in inferred:
            factors.append("inferred critical (high fan-in)")

        file_type = file.file_type or analyze_file_type(file.path, cfg.test_patterns)
        if file_type is FileType.TEST:
            score -= cfg.test_file_penalty
            factors.append("test file (lower priority)")

        return FileScore(
            path=file.path,
            score=score,
            risk_factors=factors,
            lines_changed=lines,
            import_fan_in=import_fan_in,
            blocker_count=blocker,
            critical_count=critical,
            warning_count=warning,
            critical_match=match,
        )

    def _critical_path_match(self, path: str, inferred: set[str]) -> CriticalPathMatch | None:
        pattern = first_match(path, self.config.critical_paths)
        if pattern is not None:
            return CriticalPathMatch(source="configured", pattern=pattern)

        for imported in sorted(self.import_graph.imports_of(path)):
            if imported in inferred and imported != path:
                return CriticalPathMatch(source="inferred", pattern=imported)
        return None


def select_critical_files(
    changed_files: list[ChangedFile],
    diagnostics: Mapping[str, FileDiagnostics] | None = None,
    top_n: int | None = None,
    import_graph: ImportGraph | None = None,
    config: ScoringConfig | None = None,
) -> CriticalFilesReport:
    """Rank changed files with a one-off selector."""
    selector = CriticalFileSelector(import_graph=import_graph, config=config)
    return selector.select_critical_files(changed_files, diagnostics, top_n)
