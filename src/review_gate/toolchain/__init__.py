"""Tool registry, project detection and toolchain persistence."""

from review_gate.toolchain.detector import detect_language, detect_tools, resolve_toolchain
from review_gate.toolchain.registry import RegistryLoader, ToolRegistry, load_registry
from review_gate.toolchain.store import find_toolchain, load_toolchain, write_toolchain

__all__ = [
    "RegistryLoader",
    "ToolRegistry",
    "detect_language",
    "detect_tools",
    "find_toolchain",
    "load_registry",
    "load_toolchain",
    "resolve_toolchain",
    "write_toolchain",
]
