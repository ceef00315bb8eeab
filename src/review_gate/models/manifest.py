"""Review manifest models.

The manifest describes what a downstream reviewer must load for a change set:
the recommended tier, the change analysis, and the context files ordered by
precedence (lower number = loaded first).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from review_gate.models.changes import FileType, ReviewTier

MANIFEST_VERSION = "1.0"


class ScopeType(Enum):
    """What kind of target a review covers."""

    FILE = "file"
    DIRECTORY = "directory"
    COMMITS = "commits"
    FEATURE = "feature"


@dataclass(frozen=True)
class ScopeMetadata:
    """Scope of a review: type, target identifier and file count."""

    type: ScopeType
    target: str
    file_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "target": self.target, "file_count": self.file_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScopeMetadata":
        return cls(
            type=ScopeType(data["type"]),
            target=str(data["target"]),
            file_count=int(data["file_count"]),
        )


@dataclass(frozen=True)
class ContextReference:
    """A context file (or list of files) the reviewer must load."""

    key: str
    precedence: int
    required_for_tiers: tuple[ReviewTier, ...]
    path: str | None = None
    files: tuple[str, ...] | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.path is not None:
            data["path"] = self.path
        data["precedence"] = self.precedence
        data["required_for_tiers"] = [tier.value for tier in self.required_for_tiers]
        if self.files is not None:
            data["files"] = list(self.files)
        if self.note:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "ContextReference":
        files = data.get("files")
        return cls(
            key=key,
            precedence=int(data["precedence"]),
            required_for_tiers=tuple(ReviewTier(t) for t in data.get("required_for_tiers", [])),
            path=data.get("path"),
            files=tuple(files) if files is not None else None,
            note=data.get("note"),
        )


@dataclass(frozen=True)
class ManifestContext:
    """Context references in precedence order."""

    references: tuple[ContextReference, ...]

    def __post_init__(self) -> None:
        """Keep references sorted and enforce the precedence invariant."""
        ordered = tuple(sorted(self.references, key=lambda ref: ref.precedence))
        object.__setattr__(self, "references", ordered)
        keys = [ref.key for ref in ordered]
        if "project_standards" in keys and keys[0] != "project_standards":
            raise ValueError("project_standards must have the lowest precedence number")
        if "lessons_learned" in keys and keys[-1] != "lessons_learned":
            raise ValueError("lessons_learned must have the highest precedence number")

    def get(self, key: str) -> ContextReference | None:
        for ref in self.references:
            if ref.key == key:
                return ref
        return None

    def required_for(self, tier: ReviewTier) -> list[ContextReference]:
        """References required for a tier, in load order."""
        return [ref for ref in self.references if tier in ref.required_for_tiers]

    def to_dict(self) -> dict[str, Any]:
        return {ref.key: ref.to_dict() for ref in self.references}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManifestContext":
        return cls(
            references=tuple(ContextReference.from_dict(key, value) for key, value in data.items())
        )


@dataclass(frozen=True)
class ChangedFileEntry:
    """Changed file as listed in the manifest."""

    path: str
    lines_changed: int
    change_type: FileType

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "lines_changed": self.lines_changed,
            "change_type": self.change_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangedFileEntry":
        return cls(
            path=data["path"],
            lines_changed=int(data["lines_changed"]),
            change_type=FileType(data["change_type"]),
        )


@dataclass(frozen=True)
class ChangeAnalysis:
    """Change summary: totals and per-type breakdown."""

    total_files: int
    total_lines: int
    breakdown: dict[FileType, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_lines": self.total_lines,
            "breakdown": {ftype.value: count for ftype, count in self.breakdown.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeAnalysis":
        return cls(
            total_files=int(data["total_files"]),
            total_lines=int(data["total_lines"]),
            breakdown={FileType(k): int(v) for k, v in data.get("breakdown", {}).items()},
        )


@dataclass(frozen=True)
class CriticalFileEntry:
    """A ranked file selected for deep review."""

    path: str
    rank: int
    score: float
    risk_factors: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "rank": self.rank,
            "score": self.score,
            "risk_factors": list(self.risk_factors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CriticalFileEntry":
        return cls(
            path=data["path"],
            rank=int(data["rank"]),
            score=data["score"],
            risk_factors=tuple(data.get("risk_factors", [])),
        )


@dataclass(frozen=True)
class CriticalFilesSection:
    """Critical files section of the manifest."""

    algorithm: str
    total_files: int
    top_n: int
    files: tuple[CriticalFileEntry, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "total_files": self.total_files,
            "top_n": self.top_n,
            "files": [entry.to_dict() for entry in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CriticalFilesSection":
        return cls(
            algorithm=data["algorithm"],
            total_files=int(data["total_files"]),
            top_n=int(data["top_n"]),
            files=tuple(CriticalFileEntry.from_dict(item) for item in data.get("files", [])),
        )


@dataclass(frozen=True)
class ReviewManifest:
    """Complete review manifest."""

    feature: str
    generated_at: str
    recommended_tier: ReviewTier
    change_analysis: ChangeAnalysis
    changed_files: tuple[ChangedFileEntry, ...]
    context: ManifestContext
    scope: ScopeMetadata | None = None
    critical_files: CriticalFilesSection | None = None
    version: str = MANIFEST_VERSION
    tier_reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "feature": self.feature,
            "generated_at": self.generated_at,
            "recommended_tier": self.recommended_tier.value,
            "tier_reason": self.tier_reason,
            "change_analysis": self.change_analysis.to_dict(),
            "changed_files": [entry.to_dict() for entry in self.changed_files],
            "context": self.context.to_dict(),
        }
        if self.scope is not None:
            data["scope"] = self.scope.to_dict()
        if self.critical_files is not None:
            data["critical_files"] = self.critical_files.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewManifest":
        scope = data.get("scope")
        critical = data.get("critical_files")
        return cls(
            version=str(data.get("version", MANIFEST_VERSION)),
            feature=data["feature"],
            generated_at=data["generated_at"],
            recommended_tier=ReviewTier(data["recommended_tier"]),
            tier_reason=data.get("tier_reason", ""),
            change_analysis=ChangeAnalysis.from_dict(data["change_analysis"]),
            changed_files=tuple(
                ChangedFileEntry.from_dict(f) for f in data.get("changed_files", [])
            ),
            context=ManifestContext.from_dict(data.get("context", {})),
            scope=ScopeMetadata.from_dict(scope) if scope else None,
            critical_files=CriticalFilesSection.from_dict(critical) if critical else None,
        )
