"""Change analysis: file types, review tiers, import fan-in and critical files."""

from review_gate.analysis.critical_files import (
    CriticalFileSelector,
    CriticalFilesReport,
    FileScore,
    ScoringConfig,
    select_critical_files,
)
from review_gate.analysis.globs import matches_glob
from review_gate.analysis.imports import ImportAnalyzer, ImportGraph
from review_gate.analysis.tiers import ReviewTierClassifier, TierConfig, analyze_file_type

__all__ = [
    "CriticalFileSelector",
    "CriticalFilesReport",
    "FileScore",
    "ImportAnalyzer",
    "ImportGraph",
    "ReviewTierClassifier",
    "ScoringConfig",
    "TierConfig",
    "analyze_file_type",
    "matches_glob",
    "select_critical_files",
]
