"""Matching of review profiles and patterns against changed files."""

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from review_gate.analysis.globs import matches_glob
from review_gate.config import STATE_DIR
from review_gate.toolchain.detector import ProjectProbe, normalize_package

logger = logging.getLogger(__name__)

PATTERNS_DIR = "patterns"
PROFILES_DIR = "review-profiles"
TESTING_PROFILES = "testing/"

_FRONTMATTER = re.compile(r"\A---\s*\n(.*?)\n---", re.DOTALL)


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    return []


class ContextMatcher:
    """Finds the patterns and review profiles that apply to a change set."""

    def __init__(self, project_root: Path) -> None:
        """Initialize the matcher.

        Args:
            project_root: Root directory of the project
        """
        self.project_root = project_root
        self.state_dir = project_root / STATE_DIR
        self._profiles: dict[str, dict[str, Any]] | None = None

    def match_patterns(self, paths: Iterable[str]) -> list[str]:
        """Pattern files whose frontmatter `applies_to` globs match a changed file.

        Returns:
            Project-relative pattern paths, sorted
        """
        patterns_dir = self.state_dir / PATTERNS_DIR
        if not patterns_dir.is_dir():
            logger.debug(f"Patterns directory not found: {patterns_dir}")
            return []

        paths = list(paths)
        matched = []
        for pattern_file in sorted(patterns_dir.glob("*.md")):
            applies_to = self._frontmatter_applies_to(pattern_file)
            if applies_to and self._any_match(paths, applies_to):
                matched.append(pattern_file.relative_to(self.project_root).as_posix())

        logger.debug(f"Matched {len(matched)} patterns")
        return matched

    def match_profiles(self, paths: Iterable[str]) -> list[str]:
        """Review profiles that apply to the changed files and project dependencies.

        Returns:
            Project-relative profile paths, sorted
        """
        paths = list(paths)
        profiles = self._load_profiles()
        if not profiles:
            return []

        dependencies = ProjectProbe(self.project_root).dependencies
        matched = []
        for relative, meta in profiles.items():
            detection = meta.get("detection")
            if not isinstance(detection, dict):
                detection = {}
            required = _string_list(detection.get("dependencies") or detection.get("deps"))
            if required and not any(normalize_package(dep) in dependencies for dep in required):
                continue
            if self._any_match(paths, _string_list(meta.get("applies_to"))):
                matched.append(f"{STATE_DIR}/{PROFILES_DIR}/{relative}")

        logger.debug(f"Matched {len(matched)} review profiles")
        return matched

    def testing_patterns(self) -> list[str]:
        """`applies_to` globs of profiles under testing/, used to recognize test files."""
        patterns: list[str] = []
        for relative, meta in self._load_profiles().items():
            if relative.startswith(TESTING_PROFILES):
                patterns.extend(_string_list(meta.get("applies_to")))
        return patterns

    def _load_profiles(self) -> dict[str, dict[str, Any]]:
        """Profile `meta` sections keyed by path relative to the profiles directory."""
        if self._profiles is not None:
            return self._profiles

        profiles: dict[str, dict[str, Any]] = {}
        profiles_dir = self.state_dir / PROFILES_DIR
        if not profiles_dir.is_dir():
            logger.debug(f"Review profiles directory not found: {profiles_dir}")
            self._profiles = profiles
            return profiles

        for profile_file in sorted(profiles_dir.rglob("*.yaml")):
            try:
                with open(profile_file) as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to parse profile {profile_file}: {e}")
                continue
            meta = data.get("meta") if isinstance(data, dict) else None
            if isinstance(meta, dict):
                profiles[profile_file.relative_to(profiles_dir).as_posix()] = meta

        self._profiles = profiles
        return profiles

    def _frontmatter_applies_to(self, path: Path) -> list[str]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read pattern {path}: {e}")
            return []

        match = _FRONTMATTER.match(content)
        if not match:
            return []
        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            logger.warning(f"Invalid frontmatter in {path}: {e}")
            return []
        if not isinstance(frontmatter, dict):
            return []
        return _string_list(frontmatter.get("applies_to"))

    @staticmethod
    def _any_match(paths: list[str], globs: list[str]) -> bool:
        return any(matches_glob(path, glob) for path in paths for glob in globs)
