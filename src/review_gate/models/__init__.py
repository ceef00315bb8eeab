"""Data models for Review Gate."""

from review_gate.models.changes import (
    ChangedFile,
    ChangeMetrics,
    FileType,
    ReviewTier,
    ReviewTierResult,
    parse_numstat,
)
from review_gate.models.findings import FileScope, ReviewFindings, ReviewOptions
from review_gate.models.manifest import (
    ContextReference,
    CriticalFileEntry,
    ManifestContext,
    ReviewManifest,
    ScopeMetadata,
    ScopeType,
)
from review_gate.models.results import (
    EnrichedToolResult,
    RawToolResult,
    ResultKind,
    all_passed,
    failed_categories,
)
from review_gate.models.toolchain import (
    DetectionKind,
    DetectionRule,
    QualityCategory,
    ResolvedToolchain,
    ToolCommand,
    ToolDescriptor,
)

__all__ = [
    "ChangeMetrics",
    "ChangedFile",
    "ContextReference",
    "CriticalFileEntry",
    "DetectionKind",
    "DetectionRule",
    "EnrichedToolResult",
    "FileScope",
    "FileType",
    "ManifestContext",
    "QualityCategory",
    "RawToolResult",
    "ResolvedToolchain",
    "ResultKind",
    "ReviewFindings",
    "ReviewManifest",
    "ReviewOptions",
    "ReviewTier",
    "ReviewTierResult",
    "ScopeMetadata",
    "ScopeType",
    "ToolCommand",
    "ToolDescriptor",
    "all_passed",
    "failed_categories",
    "parse_numstat",
]
