"""Change set models: changed files, file types and review tiers."""

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class FileType(Enum):
    """Coarse classification of a changed file by its path."""

    TEST = "test"
    IMPLEMENTATION = "implementation"
    DOCUMENTATION = "documentation"
    CONFIG = "config"
    OTHER = "other"


class ReviewTier(Enum):
    """Review intensity levels, lowest to highest."""

    QUICK = "quick"
    STANDARD = "standard"
    FULL = "full"


@dataclass(frozen=True)
class ChangedFile:
    """A file in the change set with its line-delta statistics."""

    path: str
    lines_added: int = 0
    lines_deleted: int = 0
    is_new: bool | None = None  # None: infer from line deltas
    file_type: FileType | None = None
    critical: bool = False

    def __post_init__(self) -> None:
        """Validate line counts."""
        if self.lines_added < 0 or self.lines_deleted < 0:
            raise ValueError(f"Line counts must be >= 0 for {self.path}")

    @property
    def lines_changed(self) -> int:
        """Total lines added plus deleted."""
        return self.lines_added + self.lines_deleted

    @property
    def newly_added(self) -> bool:
        """Whether the file has no prior history.

        Without an explicit flag, a file with additions and no deletions is
        treated as new.
        """
        if self.is_new is not None:
            return self.is_new
        return self.lines_deleted == 0 and self.lines_added > 0


@dataclass(frozen=True)
class ChangeMetrics:
    """Aggregate metrics of a change set."""

    total_files: int
    total_lines: int
    file_type_breakdown: dict[FileType, int]
    critical_files: list[str] = field(default_factory=list)

    @property
    def has_critical_paths(self) -> bool:
        """Whether any changed file is on a critical path."""
        return bool(self.critical_files)


@dataclass(frozen=True)
class ReviewTierResult:
    """Tier recommendation with its reason and metrics."""

    tier: ReviewTier
    reason: str
    metrics: ChangeMetrics


def parse_numstat(text: str) -> list[ChangedFile]:
    """Parse `git diff --numstat` output into changed files.

    Binary files (reported as ``-\\t-\\tpath``) are kept with zero line counts.
    Rename rows (``old => new``) keep the new path.
    """
    files: list[ChangedFile] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) < 3:
            logger.warning(f"Ignoring malformed numstat line: {line!r}")
            continue
        added_raw, deleted_raw, path = parts[0], parts[1], "\t".join(parts[2:])
        path = _rename_target(path)
        try:
            added = 0 if added_raw == "-" else int(added_raw)
            deleted = 0 if deleted_raw == "-" else int(deleted_raw)
        except ValueError:
            logger.warning(f"Ignoring numstat line with bad counts: {line!r}")
            continue
        files.append(ChangedFile(path=path, lines_added=added, lines_deleted=deleted))
    return files


def _rename_target(path: str) -> str:
    """Resolve `a => b` and `dir/{a => b}/file` rename notations to the new path."""
    if " => " not in path:
        return path
    if "{" in path and "}" in path:
        prefix, rest = path.split("{", 1)
        inner, suffix = rest.split("}", 1)
        new_inner = inner.split(" => ", 1)[1]
        return (prefix + new_inner + suffix).replace("//", "/")
    return path.split(" => ", 1)[1]
