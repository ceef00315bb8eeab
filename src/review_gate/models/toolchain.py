"""Tool registry and resolved toolchain models."""

from dataclasses import dataclass, field
from enum import Enum


class QualityCategory(Enum):
    """Quality check categories a tool can provide."""

    TYPE_CHECKING = "type_checking"
    LINTING = "linting"
    TESTING = "testing"
    FORMATTING = "formatting"
    COMPLEXITY = "complexity"
    CODE_SMELLS = "code_smells"
    DUPLICATION = "duplication"
    ARCHITECTURE = "architecture"
    SECURITY = "security"
    PATTERNS = "patterns"


# Categories that are always reported, even when no tool is configured
CORE_CATEGORIES = (
    QualityCategory.TYPE_CHECKING,
    QualityCategory.LINTING,
    QualityCategory.TESTING,
    QualityCategory.FORMATTING,
)


class DetectionKind(Enum):
    """How a tool is detected in a project."""

    CONFIG_FILE = "config_file"  # any of the listed files exists
    PACKAGE_DEPENDENCY = "package_dependency"  # declared in a dependency manifest
    PATH_PROBE = "path_probe"  # executable found on PATH
    CONFIG_MENTION = "config_mention"  # name mentioned inside a config file


@dataclass(frozen=True)
class DetectionRule:
    """A single detection rule for a registry tool."""

    kind: DetectionKind
    value: str
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class ToolDescriptor:
    """Registry entry describing a quality tool."""

    name: str
    languages: frozenset[str]
    detection: tuple[DetectionRule, ...]
    categories: tuple[str, ...]
    default_command: str | None
    fix_command: str | None = None
    version_command: str | None = None
    error_pattern: str | None = None
    warning_pattern: str | None = None

    @property
    def auto_fixable(self) -> bool:
        """Whether the registry declares a fix command for this tool."""
        return bool(self.fix_command)


@dataclass(frozen=True)
class ToolCommand:
    """Invocation binding of a tool in a resolved toolchain."""

    command: str
    provides: tuple[str, ...]
    error_pattern: str | None = None
    warning_pattern: str | None = None


@dataclass
class ResolvedToolchain:
    """Per-project mapping of categories to tools and tools to commands."""

    language: str
    quality_checks: dict[str, list[str]] = field(default_factory=dict)
    commands: dict[str, ToolCommand] = field(default_factory=dict)
    version: str = "1.0"

    def bindings(self) -> list[tuple[str, str]]:
        """Canonical (category, tool) order used for execution and results."""
        pairs = []
        for category, tools in self.quality_checks.items():
            for tool in tools:
                pairs.append((category, tool))
        return pairs

    def to_dict(self) -> dict:
        """Serialize to the persisted toolchain.yaml shape."""
        commands = {}
        for name, cmd in self.commands.items():
            entry: dict = {"command": cmd.command, "provides": list(cmd.provides)}
            if cmd.error_pattern:
                entry["error_pattern"] = cmd.error_pattern
            if cmd.warning_pattern:
                entry["warning_pattern"] = cmd.warning_pattern
            commands[name] = entry
        return {
            "version": self.version,
            "language": self.language,
            "commands": commands,
            "quality_checks": {k: list(v) for k, v in self.quality_checks.items()},
        }
