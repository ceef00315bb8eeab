"""Review engine input options and output findings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from review_gate.models.changes import ChangedFile, ReviewTier
from review_gate.models.manifest import ReviewManifest, ScopeMetadata, ScopeType
from review_gate.models.results import (
    EnrichedToolResult,
    RawToolResult,
    all_passed,
    failed_categories,
)

if TYPE_CHECKING:
    from review_gate.analysis.critical_files import CriticalFilesReport


class FileScope(Enum):
    """Which files quality tools are pointed at."""

    UNCOMMITTED = "uncommitted"  # the changed files only
    ALL = "all"  # the entire tree


@dataclass
class ReviewOptions:
    """Configuration for a single review invocation."""

    scope_type: ScopeType
    target: str
    changed_files: list[ChangedFile]
    enable_critical_selection: bool = False
    file_scope: FileScope = FileScope.UNCOMMITTED
    top_n: int | None = None


@dataclass
class ReviewFindings:
    """Everything the findings consumer needs from one review."""

    tool_results: list[EnrichedToolResult]
    raw_tool_results: list[RawToolResult]
    manifest: ReviewManifest
    scope: ScopeMetadata
    timestamp: str
    critical_files: "CriticalFilesReport | None" = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def tier(self) -> ReviewTier:
        """Recommended review tier."""
        return self.manifest.recommended_tier

    @property
    def all_passed(self) -> bool:
        """Whether every tool that ran reported no failures."""
        return all_passed(self.raw_tool_results)

    @property
    def failed_categories(self) -> list[str]:
        """Categories with at least one failing tool."""
        return failed_categories(self.raw_tool_results)

    @property
    def skipped_tools(self) -> list[str]:
        """Tools that did not run, with their reasons."""
        return [f"{r.tool} ({r.reason})" for r in self.raw_tool_results if r.is_skipped]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON/YAML output."""
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "tier": self.tier.value,
            "scope": self.scope.to_dict(),
            "all_passed": self.all_passed,
            "failed_categories": self.failed_categories,
            "tool_results": [r.to_dict() for r in self.tool_results],
            "raw_tool_results": [r.to_dict() for r in self.raw_tool_results],
            "manifest": self.manifest.to_dict(),
        }
        if self.critical_files is not None:
            data["critical_files"] = self.critical_files.to_dict()
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data
