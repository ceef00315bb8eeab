"""Tests for import fan-in analysis."""


class TestImportGraph:
    """Tests for ImportGraph."""

    def test_fan_in_counts_distinct_importers(self):
        """Test fan-in counts each importer once."""
        from review_gate.analysis.imports import ImportGraph

        graph = ImportGraph()
        graph.add("a.ts", "core.ts")
        graph.add("a.ts", "core.ts")
        graph.add("b.ts", "core.ts")

        assert graph.fan_in("core.ts") == 2
        assert graph.fan_in("a.ts") == 0

    def test_self_import_ignored(self):
        """Test a file importing itself adds no edge."""
        from review_gate.analysis.imports import ImportGraph

        graph = ImportGraph()
        graph.add("a.ts", "a.ts")

        assert graph.edges == {}

    def test_high_fan_in_is_strict(self):
        """Test the threshold is exclusive."""
        from review_gate.analysis.imports import ImportGraph

        graph = ImportGraph()
        for i in range(3):
            graph.add(f"m{i}.ts", "hub.ts")
        graph.add("m0.ts", "leaf.ts")

        assert graph.high_fan_in(2) == {"hub.ts"}
        assert graph.high_fan_in(3) == set()


class TestImportAnalyzer:
    """Tests for ImportAnalyzer."""

    def test_typescript_imports(self, tmp_path, write_files):
        """Test relative TS imports resolve, bare packages are ignored."""
        from review_gate.analysis.imports import ImportAnalyzer

        write_files(
            tmp_path,
            {
                "src/lib/core.ts": "export const x = 1;\n",
                "src/lib/index.ts": "export * from './core';\n",
                "src/a.ts": "import { x } from './lib/core';\nimport React from 'react';\n",
                "src/b.ts": "import { x } from './lib/core.js';\n",
                "src/c.ts": "const lib = require('./lib');\n",
                "src/a.test.ts": "import { x } from './lib/core';\n",
                "node_modules/pkg/index.js": "require('../../src/lib/core');\n",
            },
        )

        graph = ImportAnalyzer(tmp_path).analyze()

        assert graph.imports_of("src/a.ts") == {"src/lib/core.ts"}
        assert graph.imports_of("src/b.ts") == {"src/lib/core.ts"}
        assert graph.imports_of("src/c.ts") == {"src/lib/index.ts"}
        assert graph.fan_in("src/lib/core.ts") == 3
        assert "src/a.test.ts" not in graph.edges

    def test_python_imports(self, tmp_path, write_files):
        """Test absolute, from and relative Python imports."""
        from review_gate.analysis.imports import ImportAnalyzer

        write_files(
            tmp_path,
            {
                "src/app/__init__.py": "",
                "src/app/util.py": "def helper():\n    pass\n",
                "src/app/models.py": "from .util import helper\n",
                "src/app/api.py": "from app import util\nimport app.models\n",
                "src/app/cli.py": "from . import (\n    util,\n    models,\n)\n",
                "tests/test_api.py": "from app import util\n",
            },
        )

        graph = ImportAnalyzer(tmp_path).analyze()

        assert graph.imports_of("src/app/models.py") == {"src/app/util.py"}
        assert graph.imports_of("src/app/api.py") == {"src/app/util.py", "src/app/models.py"}
        assert graph.imports_of("src/app/cli.py") == {"src/app/util.py", "src/app/models.py"}
        assert graph.fan_in("src/app/util.py") == 3

    def test_empty_project(self, tmp_path):
        """Test a project without sources yields an empty graph."""
        from review_gate.analysis.imports import ImportAnalyzer

        graph = ImportAnalyzer(tmp_path).analyze()

        assert graph.fan_in_map() == {}
