"""Project probing: detect registry tools and resolve a toolchain.

Detection only reads the filesystem and PATH. Missing or unparsable files
are treated as "not detected".
"""

import json
import logging
import re
import shutil
import tomllib
from dataclasses import dataclass
from pathlib import Path

from review_gate.models.toolchain import (
    DetectionKind,
    DetectionRule,
    ResolvedToolchain,
    ToolCommand,
)
from review_gate.toolchain.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Checked in order; first marker present wins
LANGUAGE_MARKERS = [
    ("tsconfig.json", "typescript"),
    ("package.json", "javascript"),
    ("pyproject.toml", "python"),
    ("setup.py", "python"),
    ("setup.cfg", "python"),
    ("requirements.txt", "python"),
    ("go.mod", "go"),
    ("Cargo.toml", "rust"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
    ("build.gradle.kts", "java"),
]

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass(frozen=True)
class DetectedTool:
    """A registry tool found in the project."""

    name: str
    rule: DetectionKind


def normalize_package(name: str) -> str:
    return name.strip().lower().replace("_", "-")


def _table(data: dict, key: str) -> dict:
    """A nested TOML table, or an empty one when absent or not a table."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class ProjectProbe:
    """Read-only view of a project used by detection rules."""

    def __init__(self, project_root: Path) -> None:
        """Initialize the probe.

        Args:
            project_root: Root directory of the project to inspect
        """
        self.project_root = project_root
        self._dependencies: set[str] | None = None

    def file_exists(self, relative: str) -> bool:
        return (self.project_root / relative).is_file()

    def read_text(self, relative: str) -> str | None:
        try:
            return (self.project_root / relative).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def on_path(self, command: str) -> bool:
        return shutil.which(command) is not None

    @property
    def dependencies(self) -> set[str]:
        """Declared dependency names across the project's manifests."""
        if self._dependencies is None:
            deps: set[str] = set()
            deps.update(self._package_json_dependencies())
            deps.update(self._pyproject_dependencies())
            deps.update(self._requirements_dependencies())
            self._dependencies = deps
        return self._dependencies

    def _package_json_dependencies(self) -> set[str]:
        content = self.read_text("package.json")
        if content is None:
            return set()
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.debug("package.json is not valid JSON, ignoring")
            return set()
        if not isinstance(data, dict):
            return set()
        names: set[str] = set()
        for key in ("dependencies", "devDependencies", "peerDependencies"):
            section = data.get(key)
            if isinstance(section, dict):
                names.update(normalize_package(n) for n in section)
        return names

    def _pyproject_dependencies(self) -> set[str]:
        content = self.read_text("pyproject.toml")
        if content is None:
            return set()
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError:
            logger.debug("pyproject.toml is not valid TOML, ignoring")
            return set()

        specs: list[str] = []
        project = _table(data, "project")
        groups = [project.get("dependencies")]
        groups.extend(_table(project, "optional-dependencies").values())
        groups.extend(_table(data, "dependency-groups").values())
        for group in groups:
            if isinstance(group, list):
                specs.extend(item for item in group if isinstance(item, str))

        names = {normalize_package(m.group(1)) for s in specs if (m := _REQUIREMENT_NAME.match(s))}

        poetry = _table(_table(data, "tool"), "poetry")
        tables = [_table(poetry, "dependencies"), _table(poetry, "dev-dependencies")]
        for group in _table(poetry, "group").values():
            if isinstance(group, dict):
                tables.append(_table(group, "dependencies"))
        for table in tables:
            names.update(normalize_package(str(n)) for n in table)
        return names

    def _requirements_dependencies(self) -> set[str]:
        names: set[str] = set()
        for path in sorted(self.project_root.glob("requirements*.txt")):
            content = self.read_text(path.name)
            if content is None:
                continue
            for line in content.splitlines():
                line = line.split("#", 1)[0]
                if line.strip().startswith("-"):
                    continue
                match = _REQUIREMENT_NAME.match(line)
                if match:
                    names.add(normalize_package(match.group(1)))
        return names


def run_detection_rule(rule: DetectionRule, probe: ProjectProbe) -> bool:
    """Evaluate a single detection rule against the project."""
    if rule.kind is DetectionKind.CONFIG_FILE:
        return any(probe.file_exists(path) for path in rule.files)
    if rule.kind is DetectionKind.PACKAGE_DEPENDENCY:
        return normalize_package(rule.value) in probe.dependencies
    if rule.kind is DetectionKind.PATH_PROBE:
        return probe.on_path(rule.value)
    if rule.kind is DetectionKind.CONFIG_MENTION:
        for relative in rule.files:
            content = probe.read_text(relative)
            if content is not None and rule.value in content:
                logger.debug(f"Found {rule.value} mentioned in {relative}")
                return True
        return False
    logger.warning(f"Unknown detection rule kind: {rule.kind}")
    return False


def detect_tools(project_root: Path, registry: ToolRegistry) -> list[DetectedTool]:
    """Detect registry tools present in a project, in registry order.

    Args:
        project_root: Root directory of the project
        registry: Tool registry to detect against

    Returns:
        Detected tools with the rule kind that matched first
    """
    probe = ProjectProbe(project_root)
    detected: list[DetectedTool] = []

    for name, tool in registry.tools.items():
        for rule in tool.detection:
            if run_detection_rule(rule, probe):
                detected.append(DetectedTool(name=name, rule=rule.kind))
                break

    logger.info(f"Tool detection complete: {', '.join(t.name for t in detected) or 'none'}")
    return detected


def detect_language(project_root: Path) -> str:
    """Primary language of a project from its marker files."""
    for marker, language in LANGUAGE_MARKERS:
        if (project_root / marker).is_file():
            return language
    return "unknown"


def resolve_toolchain(project_root: Path, registry: ToolRegistry) -> ResolvedToolchain:
    """Probe a project and bind every detected tool to the categories it declares.

    Category membership is a union: a tool declaring several categories is
    listed under each of them. Tools without a default command are detected
    but not bound.

    Args:
        project_root: Root directory of the project
        registry: Tool registry to resolve against

    Returns:
        Resolved toolchain for the project
    """
    toolchain = ResolvedToolchain(language=detect_language(project_root))

    for detected in detect_tools(project_root, registry):
        tool = registry.get(detected.name)
        if tool is None:
            continue
        if not tool.default_command:
            logger.debug(f"Tool {tool.name} runs through another tool, not binding a command")
            continue

        toolchain.commands[tool.name] = ToolCommand(
            command=tool.default_command,
            provides=tool.categories,
            error_pattern=tool.error_pattern,
            warning_pattern=tool.warning_pattern,
        )
        for category in tool.categories:
            tools = toolchain.quality_checks.setdefault(category, [])
            if tool.name not in tools:
                tools.append(tool.name)

    logger.info(
        f"Resolved {toolchain.language} toolchain: {len(toolchain.commands)} tools across "
        f"{len(toolchain.quality_checks)} categories"
    )
    return toolchain
