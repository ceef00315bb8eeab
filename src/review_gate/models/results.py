"""Quality tool result models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResultKind(Enum):
    """Which pass/fail signal a tool result carries.

    - EXIT_STATUS: the tool ran; pass/fail comes from its exit code.
    - ERROR_COUNT: the tool ran; pass/fail comes from a structured error count.
    - SKIPPED: the tool did not run (spawn failure, timeout, not configured).
    """

    EXIT_STATUS = "exit_status"
    ERROR_COUNT = "error_count"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RawToolResult:
    """Unprocessed outcome of a single tool invocation for one category."""

    category: str
    tool: str
    kind: ResultKind
    success: bool | None = None
    error_count: int | None = None
    warning_count: int | None = None
    stdout: str = ""
    stderr: str = ""
    reason: str | None = None
    exit_code: int | None = None
    duration_ms: int = 0

    def __post_init__(self) -> None:
        """Enforce that exactly one pass/fail signal is present."""
        if self.kind is ResultKind.SKIPPED:
            if self.success is not None or self.error_count is not None:
                raise ValueError(f"Skipped result for {self.tool} cannot carry a pass/fail signal")
            if not self.reason:
                raise ValueError(f"Skipped result for {self.tool} requires a reason")
        elif self.kind is ResultKind.EXIT_STATUS:
            if self.success is None or self.error_count is not None:
                raise ValueError(f"Exit-status result for {self.tool} requires success only")
        elif self.kind is ResultKind.ERROR_COUNT:
            if self.error_count is None or self.success is not None:
                raise ValueError(f"Error-count result for {self.tool} requires error_count only")
            if self.error_count < 0:
                raise ValueError(f"error_count must be >= 0, got {self.error_count}")

    @classmethod
    def completed(
        cls,
        category: str,
        tool: str,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        duration_ms: int = 0,
    ) -> "RawToolResult":
        """Result for a tool whose exit code is the pass/fail signal."""
        return cls(
            category=category,
            tool=tool,
            kind=ResultKind.EXIT_STATUS,
            success=exit_code == 0,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )

    @classmethod
    def counted(
        cls,
        category: str,
        tool: str,
        error_count: int,
        warning_count: int | None = None,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        duration_ms: int = 0,
    ) -> "RawToolResult":
        """Result for a tool that reported a structured error count."""
        return cls(
            category=category,
            tool=tool,
            kind=ResultKind.ERROR_COUNT,
            error_count=error_count,
            warning_count=warning_count,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )

    @classmethod
    def skipped(
        cls,
        category: str,
        tool: str,
        reason: str,
        stdout: str = "",
        stderr: str = "",
        duration_ms: int = 0,
    ) -> "RawToolResult":
        """Result for a tool that could not be run."""
        return cls(
            category=category,
            tool=tool,
            kind=ResultKind.SKIPPED,
            reason=reason,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
        )

    @property
    def is_skipped(self) -> bool:
        """Whether the tool did not run."""
        return self.kind is ResultKind.SKIPPED

    @property
    def failed(self) -> bool:
        """Whether the tool ran and reported a failure."""
        if self.kind is ResultKind.EXIT_STATUS:
            return not self.success
        if self.kind is ResultKind.ERROR_COUNT:
            return (self.error_count or 0) > 0
        return False

    @property
    def output(self) -> str:
        """Combined stdout and stderr, trimmed and separated by a blank line."""
        parts = [text.strip() for text in (self.stdout, self.stderr) if text and text.strip()]
        return "\n\n".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON/YAML output."""
        data: dict[str, Any] = {
            "category": self.category,
            "tool": self.tool,
            "kind": self.kind.value,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": self.duration_ms,
        }
        if self.success is not None:
            data["success"] = self.success
        if self.error_count is not None:
            data["error_count"] = self.error_count
        if self.warning_count is not None:
            data["warning_count"] = self.warning_count
        if self.exit_code is not None:
            data["exit_code"] = self.exit_code
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class EnrichedToolResult:
    """Tool result projected for the findings consumer."""

    tool: str
    category: str
    kind: ResultKind
    success: bool
    output: str
    auto_fixable: bool
    skipped: bool = False
    reason: str | None = None
    error_count: int | None = None
    warning_count: int | None = None

    @classmethod
    def from_raw(cls, result: RawToolResult, auto_fixable: bool) -> "EnrichedToolResult":
        """Project a raw result, attaching the registry's auto-fix capability."""
        return cls(
            tool=result.tool,
            category=result.category,
            kind=result.kind,
            success=not result.failed,
            output=result.output,
            auto_fixable=auto_fixable,
            skipped=result.is_skipped,
            reason=result.reason,
            error_count=result.error_count,
            warning_count=result.warning_count,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON/YAML output."""
        data: dict[str, Any] = {
            "tool": self.tool,
            "category": self.category,
            "kind": self.kind.value,
            "success": self.success,
            "output": self.output,
            "auto_fixable": self.auto_fixable,
            "skipped": self.skipped,
        }
        if self.reason:
            data["reason"] = self.reason
        if self.error_count is not None:
            data["error_count"] = self.error_count
        if self.warning_count is not None:
            data["warning_count"] = self.warning_count
        return data


def all_passed(results: list[RawToolResult]) -> bool:
    """True when no non-skipped result reports a failure."""
    return not any(result.failed for result in results)


def failed_categories(results: list[RawToolResult]) -> list[str]:
    """Categories with at least one failing tool, in result order."""
    categories: list[str] = []
    for result in results:
        if result.failed and result.category not in categories:
            categories.append(result.category)
    return categories
