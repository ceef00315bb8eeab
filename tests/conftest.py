"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

SAMPLE_NUMSTAT = """\
12\t3\tsrc/lib/parser.ts
40\t0\tsrc/lib/new-feature.ts
30\t0\tsrc/foo.test.ts
-\t-\tassets/logo.png
5\t1\tREADME.md
"""

SAMPLE_REGISTRY = {
    "tools": {
        "eslint": {
            "languages": ["typescript", "javascript"],
            "detection": [
                {"type": "config_file", "paths": ["eslint.config.js", ".eslintrc.json"]},
                {"type": "package_dependency", "package": "eslint"},
            ],
            "categories": ["linting"],
            "default_command": "npx eslint ${files}",
            "fix_command": "npx eslint --fix ${files}",
        },
        "eslint-plugin-sonarjs": {
            "languages": ["typescript", "javascript"],
            "detection": [
                {"type": "config_mention", "name": "sonarjs", "files": ["eslint.config.js"]},
            ],
            "categories": ["complexity", "code_smells"],
            "default_command": None,
        },
        "semgrep": {
            "languages": ["typescript", "python"],
            "detection": [{"type": "config_file", "paths": [".semgrep.yml"]}],
            "categories": ["security", "patterns"],
            "default_command": "semgrep scan ${files}",
        },
        "vitest": {
            "languages": ["typescript"],
            "detection": [{"type": "package_dependency", "package": "vitest"}],
            "categories": ["testing"],
            "default_command": "npx vitest run",
        },
        "ruff": {
            "languages": ["python"],
            "detection": [
                {"type": "config_mention", "name": "tool.ruff", "files": ["pyproject.toml"]},
            ],
            "categories": ["linting", "formatting"],
            "default_command": "ruff check ${files}",
            "fix_command": "ruff check --fix ${files}",
        },
    }
}


@pytest.fixture
def sample_numstat() -> str:
    """git diff --numstat output with a binary file and a test file."""
    return SAMPLE_NUMSTAT


@pytest.fixture
def sample_registry():
    """A small registry built from an in-memory document."""
    from review_gate.toolchain.registry import parse_registry

    return parse_registry(SAMPLE_REGISTRY, "test-registry")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project directory with a .review-gate state directory."""
    (tmp_path / ".review-gate").mkdir()
    return tmp_path


@pytest.fixture
def make_toolchain():
    """Factory for resolved toolchains from (category, tool, command) triples."""
    from review_gate.models.toolchain import ResolvedToolchain, ToolCommand

    def _make(*bindings, language: str = "typescript", patterns=None):
        patterns = patterns or {}
        toolchain = ResolvedToolchain(language=language)
        for category, tool, command in bindings:
            toolchain.quality_checks.setdefault(category, []).append(tool)
            if command is not None:
                error_pattern, warning_pattern = patterns.get(tool, (None, None))
                existing = toolchain.commands.get(tool)
                provides = (existing.provides if existing else ()) + (category,)
                toolchain.commands[tool] = ToolCommand(
                    command=command,
                    provides=provides,
                    error_pattern=error_pattern,
                    warning_pattern=warning_pattern,
                )
        return toolchain

    return _make


@pytest.fixture
def write_files():
    """Helper that creates files (and parent directories) under a root."""

    def _write(root: Path, files: dict[str, str]) -> None:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    return _write
