"""Quality check execution and output severity classification."""

from review_gate.checks.executor import (
    ExecutorConfig,
    QualityCheckExecutor,
    QualityCheckRun,
    build_command,
    run_quality_checks,
)
from review_gate.checks.severity import (
    FileDiagnostics,
    SeverityLevel,
    diagnostics_from_results,
    extract_severity,
)

__all__ = [
    "ExecutorConfig",
    "FileDiagnostics",
    "QualityCheckExecutor",
    "QualityCheckRun",
    "SeverityLevel",
    "build_command",
    "diagnostics_from_results",
    "extract_severity",
    "run_quality_checks",
]
