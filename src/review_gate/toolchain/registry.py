"""Tool registry loading and queries."""

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from review_gate.config import ConfigurationError
from review_gate.models.toolchain import DetectionKind, DetectionRule, ToolDescriptor

logger = logging.getLogger(__name__)

BUNDLED_REGISTRY = "tool_registry.yaml"


@dataclass(frozen=True)
class ToolRegistry:
    """Read-only catalog of known quality tools, in declaration order."""

    tools: dict[str, ToolDescriptor]

    def get(self, name: str) -> ToolDescriptor | None:
        """Look up a tool by name."""
        return self.tools.get(name)

    def is_auto_fixable(self, name: str) -> bool:
        """Whether the named tool declares a fix command. Unknown tools are not."""
        tool = self.tools.get(name)
        return tool.auto_fixable if tool else False

    def tools_for_language(self, language: str) -> list[str]:
        """Names of tools that support a language."""
        return [name for name, tool in self.tools.items() if language in tool.languages]

    def tools_for_category(self, category: str) -> list[str]:
        """Names of tools that provide a quality check category."""
        return [name for name, tool in self.tools.items() if category in tool.categories]

    def __len__(self) -> int:
        return len(self.tools)


def parse_registry(raw: Any, source: str = "<registry>") -> ToolRegistry:
    """Build a registry from a parsed YAML document.

    Raises:
        ConfigurationError: If the document is not a mapping with a `tools` mapping,
            or an entry is malformed
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("Tool registry is not a valid mapping", path=source)
    tools_raw = raw.get("tools")
    if not isinstance(tools_raw, dict):
        raise ConfigurationError("Tool registry is missing tools mapping", path=source)

    tools: dict[str, ToolDescriptor] = {}
    for name, entry in tools_raw.items():
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Registry entry for {name} must be a mapping", path=source)
        try:
            tools[str(name)] = _parse_tool(str(name), entry)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid registry entry for {name}: {e}", path=source) from e
    return ToolRegistry(tools=tools)


def _parse_tool(name: str, entry: dict[str, Any]) -> ToolDescriptor:
    """Parse one registry entry."""
    categories = entry.get("categories") or []
    if not isinstance(categories, list):
        raise TypeError("categories must be a list")
    languages = entry.get("languages") or []
    if not isinstance(languages, list):
        raise TypeError("languages must be a list")

    return ToolDescriptor(
        name=name,
        languages=frozenset(str(lang) for lang in languages),
        detection=tuple(_parse_rule(rule) for rule in entry.get("detection") or []),
        categories=tuple(str(c) for c in categories),
        default_command=entry.get("default_command"),
        fix_command=entry.get("fix_command"),
        version_command=entry.get("version_command"),
        error_pattern=entry.get("error_pattern"),
        warning_pattern=entry.get("warning_pattern"),
    )


def _parse_rule(rule: dict[str, Any]) -> DetectionRule:
    """Parse one detection rule."""
    kind = DetectionKind(rule["type"])
    if kind is DetectionKind.CONFIG_FILE:
        paths = tuple(str(p) for p in rule["paths"])
        return DetectionRule(kind=kind, value=paths[0] if paths else "", files=paths)
    if kind is DetectionKind.PACKAGE_DEPENDENCY:
        return DetectionRule(kind=kind, value=str(rule["package"]))
    if kind is DetectionKind.PATH_PROBE:
        return DetectionRule(kind=kind, value=str(rule["command"]))
    return DetectionRule(
        kind=kind,
        value=str(rule["name"]),
        files=tuple(str(f) for f in rule.get("files", [])),
    )


class RegistryLoader:
    """Loads the tool registry once and caches it."""

    def __init__(self, registry_path: Path | None = None) -> None:
        """Initialize the loader.

        Args:
            registry_path: Registry document to load (default: bundled registry)
        """
        self.registry_path = registry_path
        self._cached: ToolRegistry | None = None

    def load(self) -> ToolRegistry:
        """Load the registry (cached after first load).

        Raises:
            ConfigurationError: If the registry is unreadable or malformed
        """
        if self._cached is not None:
            return self._cached

        source = str(self.registry_path) if self.registry_path else f"bundled:{BUNDLED_REGISTRY}"
        try:
            content = self._read()
            raw = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load tool registry from {source}: {e}")
            raise ConfigurationError(f"Failed to load tool registry: {e}", path=source) from e

        registry = parse_registry(raw, source)
        logger.debug(f"Loaded tool registry with {len(registry)} tools from {source}")
        self._cached = registry
        return registry

    def clear_cache(self) -> None:
        """Drop the cached registry."""
        self._cached = None

    def _read(self) -> str:
        if self.registry_path is not None:
            return self.registry_path.read_text(encoding="utf-8")
        return (
            resources.files("review_gate")
            .joinpath("bundled", BUNDLED_REGISTRY)
            .read_text(encoding="utf-8")
        )


def load_registry(registry_path: Path | None = None) -> ToolRegistry:
    """Load a tool registry document without caching."""
    return RegistryLoader(registry_path).load()
