"""Configuration loading and validation for Review Gate."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

STATE_DIR = ".review-gate"
CONFIG_FILENAME = "config.yaml"

DEFAULT_CRITICAL_PATHS = [
    "src/commands/**",
    "src/lib/core/**",
    "**/orchestrator/**",
    ".claude/commands/**",
    f"{STATE_DIR}/standards.md",
    f"{STATE_DIR}/principles.md",
]


class ConfigurationError(Exception):
    """Raised when a registry, toolchain or config document is missing or malformed."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        remediation: str | None = None,
    ) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        self.remediation = remediation
        super().__init__(str(self))

    def __str__(self) -> str:
        text = self.message
        if self.path is not None:
            text = f"{text} ({self.path})"
        if self.remediation:
            text = f"{text}. Run: {self.remediation}"
        return text


@dataclass
class TierSettings:
    """Review tier thresholds."""

    max_standard_files: int = 10


@dataclass
class ScoringSettings:
    """Critical file scoring constants."""

    blocker_weight: float = 100.0
    critical_weight: float = 75.0
    warning_weight: float = 25.0
    fan_in_weight: float = 2.0
    fan_in_threshold: int = 20
    line_weight: float = 0.5
    large_change_threshold: int = 100
    large_change_bonus: float = 25.0
    new_file_bonus: float = 50.0
    critical_path_bonus: float = 50.0
    test_file_penalty: float = 50.0
    top_n: int = 10


@dataclass
class ExecutorSettings:
    """Quality check execution settings."""

    timeout_seconds: float = 300.0
    max_parallel: int = 4
    sequential: bool = False


@dataclass
class Config:
    """Complete review configuration."""

    critical_paths: list[str] = field(default_factory=lambda: list(DEFAULT_CRITICAL_PATHS))
    tiers: TierSettings = field(default_factory=TierSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    registry_path: str | None = None


def default_config_path(project_root: Path) -> Path:
    """Location of the project's review config."""
    return project_root / STATE_DIR / CONFIG_FILENAME


def load_config(config_path: Path | None = None, project_root: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: .review-gate/config.yaml)
        project_root: Project root used to locate the default config file

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping
    """
    if config_path is None:
        config_path = default_config_path(project_root or Path.cwd())

    # Load from file if exists
    raw_config: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in review config: {e}", path=config_path) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError("Review config must be a mapping", path=config_path)
        raw_config = loaded or {}

    # Expand environment variables
    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} references in config values."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            return os.environ.get(obj[2:-1], "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    critical_paths = raw.get("critical_paths")
    if critical_paths is None:
        critical_paths = list(DEFAULT_CRITICAL_PATHS)

    tiers_raw = raw.get("tiers", {}) or {}
    tiers = TierSettings(
        max_standard_files=int(tiers_raw.get("max_standard_files", 10)),
    )

    scoring_raw = raw.get("scoring", {}) or {}
    scoring = ScoringSettings(
        blocker_weight=float(scoring_raw.get("blocker_weight", 100)),
        critical_weight=float(scoring_raw.get("critical_weight", 75)),
        warning_weight=float(scoring_raw.get("warning_weight", 25)),
        fan_in_weight=float(scoring_raw.get("fan_in_weight", 2)),
        fan_in_threshold=int(scoring_raw.get("fan_in_threshold", 20)),
        line_weight=float(scoring_raw.get("line_weight", 0.5)),
        large_change_threshold=int(scoring_raw.get("large_change_threshold", 100)),
        large_change_bonus=float(scoring_raw.get("large_change_bonus", 25)),
        new_file_bonus=float(scoring_raw.get("new_file_bonus", 50)),
        critical_path_bonus=float(scoring_raw.get("critical_path_bonus", 50)),
        test_file_penalty=float(scoring_raw.get("test_file_penalty", 50)),
        top_n=int(scoring_raw.get("top_n", 10)),
    )

    exec_raw = raw.get("executor", {}) or {}
    executor = ExecutorSettings(
        timeout_seconds=float(exec_raw.get("timeout_seconds", 300)),
        max_parallel=int(exec_raw.get("max_parallel", 4)),
        sequential=bool(exec_raw.get("sequential", False)),
    )

    return Config(
        critical_paths=[str(p) for p in critical_paths],
        tiers=tiers,
        scoring=scoring,
        executor=executor,
        registry_path=raw.get("registry_path") or None,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if config.tiers.max_standard_files < 1:
        errors.append(
            f"tiers.max_standard_files must be >= 1, got {config.tiers.max_standard_files}"
        )

    if config.scoring.top_n < 1:
        errors.append(f"scoring.top_n must be >= 1, got {config.scoring.top_n}")

    if config.scoring.fan_in_threshold < 0:
        errors.append("scoring.fan_in_threshold must be >= 0")

    if config.executor.timeout_seconds <= 0:
        errors.append(
            f"executor.timeout_seconds must be > 0, got {config.executor.timeout_seconds}"
        )

    if config.executor.max_parallel < 1:
        errors.append(f"executor.max_parallel must be >= 1, got {config.executor.max_parallel}")

    if config.registry_path and not Path(config.registry_path).exists():
        errors.append(f"registry_path does not exist: {config.registry_path}")

    return errors
