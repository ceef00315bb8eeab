"""Import fan-in analysis across a project's source files."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from review_gate.analysis.tiers import analyze_file_type
from review_gate.models.changes import FileType

logger = logging.getLogger(__name__)

IGNORED_DIRECTORIES = {
    "node_modules",
    "dist",
    "build",
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "coverage",
}

JS_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
PYTHON_EXTENSIONS = (".py",)

_JS_FROM = re.compile(r"""from\s+['"]([^'"]+)['"]""")
_JS_REQUIRE = re.compile(r"""require\(\s*['"]([^'"]+)['"]\s*\)""")
_JS_SIDE_EFFECT = re.compile(r"""^\s*import\s+['"]([^'"]+)['"]""", re.MULTILINE)
_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+(?:\s*,\s*[\w.]+)*)", re.MULTILINE)
_PY_FROM = re.compile(r"^\s*from\s+(\.*)([\w.]*)\s+import\s+(\([^)]*\)|[^\n#]+)", re.MULTILINE)


@dataclass
class ImportGraph:
    """Local import edges: importer path -> set of imported paths."""

    edges: dict[str, set[str]] = field(default_factory=dict)

    def add(self, importer: str, imported: str) -> None:
        if importer == imported:
            return
        self.edges.setdefault(importer, set()).add(imported)

    def imports_of(self, path: str) -> set[str]:
        """Files a given file imports."""
        return self.edges.get(path, set())

    def fan_in(self, path: str) -> int:
        """Number of distinct files importing a given file."""
        return sum(1 for imported in self.edges.values() if path in imported)

    def fan_in_map(self) -> dict[str, int]:
        """Fan-in of every imported file."""
        counts: dict[str, int] = {}
        for imported in self.edges.values():
            for path in imported:
                counts[path] = counts.get(path, 0) + 1
        return counts

    def high_fan_in(self, threshold: int) -> set[str]:
        """Files imported by strictly more than `threshold` files."""
        return {path for path, count in self.fan_in_map().items() if count > threshold}


class ImportAnalyzer:
    """Scans Python and JS/TS sources to build an import graph."""

    def __init__(self, project_root: Path) -> None:
        """Initialize the analyzer.

        Args:
            project_root: Root directory of the project
        """
        self.project_root = project_root

    def analyze(self) -> ImportGraph:
        """Build the import graph of the project.

        Test files are neither scanned nor counted as importers. Unreadable
        files are skipped.

        Returns:
            Graph of local imports between project files
        """
        graph = ImportGraph()
        sources = self._source_files()
        logger.debug(f"Analyzing imports in {len(sources)} source files")

        for relative in sources:
            try:
                content = (self.project_root / relative).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping unreadable source {relative}: {e}")
                continue

            if relative.endswith(PYTHON_EXTENSIONS):
                targets = self._python_imports(relative, content)
            else:
                targets = self._js_imports(relative, content)

            for target in targets:
                graph.add(relative, target)

        logger.info(
            f"Import analysis complete: {len(sources)} files, "
            f"{len(graph.fan_in_map())} imported"
        )
        return graph

    def _source_files(self) -> list[str]:
        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.project_root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRECTORIES)
            for name in sorted(filenames):
                if not name.endswith(JS_EXTENSIONS + PYTHON_EXTENSIONS):
                    continue
                relative = Path(dirpath, name).relative_to(self.project_root).as_posix()
                if analyze_file_type(relative) is FileType.TEST:
                    continue
                files.append(relative)
        return files

    def _exists(self, relative: str) -> bool:
        return (self.project_root / relative).is_file()

    def _js_imports(self, importer: str, content: str) -> list[str]:
        specifiers = (
            _JS_FROM.findall(content)
            + _JS_REQUIRE.findall(content)
            + _JS_SIDE_EFFECT.findall(content)
        )
        resolved = []
        for specifier in specifiers:
            target = self._resolve_js(importer, specifier)
            if target:
                resolved.append(target)
        return resolved

    def _resolve_js(self, importer: str, specifier: str) -> str | None:
        """Resolve a relative JS/TS import to a project file. Bare packages are ignored."""
        if not specifier.startswith("."):
            return None

        base = os.path.normpath(str(PurePosixPath(importer).parent / specifier)).replace("\\", "/")
        if base.startswith(".."):
            return None

        candidates = [base]
        stem, ext = os.path.splitext(base)
        if ext in (".js", ".jsx", ".mjs"):
            # ESM TypeScript imports name the compiled extension
            candidates += [stem + ".ts", stem + ".tsx"]
        if not ext:
            candidates += [base + e for e in JS_EXTENSIONS]
            candidates += [f"{base}/index{e}" for e in JS_EXTENSIONS]

        for candidate in candidates:
            if self._exists(candidate):
                return candidate
        return None

    def _python_imports(self, importer: str, content: str) -> list[str]:
        resolved = []

        for match in _PY_IMPORT.finditer(content):
            for module in match.group(1).split(","):
                target = self._resolve_python_module(module.strip())
                if target:
                    resolved.append(target)

        for match in _PY_FROM.finditer(content):
            dots, module, names = match.group(1), match.group(2), match.group(3)
            if dots:
                package = PurePosixPath(importer).parent
                for _ in range(len(dots) - 1):
                    package = package.parent
                parts = (package.as_posix(), module.replace(".", "/"))
                base = "/".join(p for p in parts if p and p != ".")
                targets = self._resolve_python_path(base, names)
            else:
                targets = self._resolve_python_path(None, names, module)
            resolved.extend(targets)

        return resolved

    def _resolve_python_module(self, module: str) -> str | None:
        """Resolve an absolute dotted module under the root or src/."""
        relative = module.replace(".", "/")
        for prefix in ("", "src/"):
            for candidate in (f"{prefix}{relative}.py", f"{prefix}{relative}/__init__.py"):
                if self._exists(candidate):
                    return candidate
        return None

    def _resolve_python_path(
        self,
        base: str | None,
        names: str,
        module: str | None = None,
    ) -> list[str]:
        """Resolve `from X import a, b` where a and b may be submodules or attributes."""
        names = names.replace("(", "").replace(")", "")
        imported = [n.strip() for n in names.split(",") if n.strip()]
        imported = [n.split()[0] for n in imported if n != "*"]

        if base is None:
            if not module:
                return []
            target = self._resolve_python_module(module)
            submodules = [self._resolve_python_module(f"{module}.{n}") for n in imported]
        else:
            target = self._resolve_relative(base)
            submodules = [self._resolve_relative(f"{base}/{n}" if base else n) for n in imported]

        found = [s for s in submodules if s]
        if target and not found:
            found.append(target)
        return found

    def _resolve_relative(self, base: str) -> str | None:
        for candidate in (f"{base}.py", f"{base}/__init__.py"):
            if self._exists(candidate):
                return candidate
        return None
