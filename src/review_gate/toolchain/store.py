"""Persistence of the resolved toolchain in `.review-gate/toolchain.yaml`."""

import logging
from pathlib import Path
from typing import Any

import yaml

from review_gate.config import STATE_DIR, ConfigurationError
from review_gate.models.toolchain import ResolvedToolchain, ToolCommand

logger = logging.getLogger(__name__)

TOOLCHAIN_FILENAME = "toolchain.yaml"
DETECT_REMEDIATION = "review-gate toolchain detect --write"


def toolchain_path(project_root: Path) -> Path:
    """Location of the project's resolved toolchain."""
    return project_root / STATE_DIR / TOOLCHAIN_FILENAME


def _string_list(value: Any, field_name: str, source: Path | str | None) -> list[str]:
    """A list of strings from a list, a single string or nothing."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationError(
            f"Toolchain {field_name} must be a list of names",
            path=source,
            remediation=DETECT_REMEDIATION,
        )
    return [str(item) for item in value]


def parse_toolchain(raw: Any, source: Path | str | None = None) -> ResolvedToolchain:
    """Build a resolved toolchain from a parsed YAML document.

    Raises:
        ConfigurationError: If the document is malformed
    """
    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Toolchain file is not a valid mapping", path=source, remediation=DETECT_REMEDIATION
        )

    commands_raw = raw.get("commands") or {}
    checks_raw = raw.get("quality_checks") or {}
    if not isinstance(commands_raw, dict) or not isinstance(checks_raw, dict):
        raise ConfigurationError(
            "Toolchain commands and quality_checks must be mappings",
            path=source,
            remediation=DETECT_REMEDIATION,
        )

    commands: dict[str, ToolCommand] = {}
    for name, entry in commands_raw.items():
        if isinstance(entry, str):
            entry = {"command": entry}
        if not isinstance(entry, dict) or not entry.get("command"):
            raise ConfigurationError(
                f"Toolchain command for {name} is missing a command string",
                path=source,
                remediation=DETECT_REMEDIATION,
            )
        commands[str(name)] = ToolCommand(
            command=str(entry["command"]),
            provides=tuple(_string_list(entry.get("provides"), f"provides for {name}", source)),
            error_pattern=entry.get("error_pattern"),
            warning_pattern=entry.get("warning_pattern"),
        )

    quality_checks: dict[str, list[str]] = {}
    for category, tools in checks_raw.items():
        quality_checks[str(category)] = _string_list(
            tools, f"quality_checks.{category}", source
        )

    return ResolvedToolchain(
        language=str(raw.get("language") or "unknown"),
        quality_checks=quality_checks,
        commands=commands,
        version=str(raw.get("version") or "1.0"),
    )


def load_toolchain(project_root: Path) -> ResolvedToolchain:
    """Load the project's resolved toolchain.

    Args:
        project_root: Root directory of the project

    Returns:
        The persisted toolchain

    Raises:
        ConfigurationError: If the toolchain file is missing or malformed
    """
    path = toolchain_path(project_root)
    if not path.exists():
        raise ConfigurationError(
            "Toolchain not found", path=path, remediation=DETECT_REMEDIATION
        )

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read toolchain: {e}", path=path, remediation=DETECT_REMEDIATION
        ) from e

    toolchain = parse_toolchain(raw, path)
    logger.debug(f"Loaded toolchain with {len(toolchain.commands)} commands from {path}")
    return toolchain


def find_toolchain(project_root: Path) -> ResolvedToolchain | None:
    """Load the project's toolchain, or None when it has not been resolved yet.

    A present but malformed file still raises ConfigurationError.
    """
    if not toolchain_path(project_root).exists():
        return None
    return load_toolchain(project_root)


def write_toolchain(project_root: Path, toolchain: ResolvedToolchain) -> Path:
    """Persist a resolved toolchain, creating the state directory if needed."""
    path = toolchain_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(toolchain.to_dict(), f, sort_keys=False)
    logger.info(f"Wrote toolchain to {path}")
    return path
