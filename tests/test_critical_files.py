"""Tests for critical file selection."""

import pytest

from review_gate.models.changes import ChangedFile


def _diag(path, blocker=0, critical=0, warning=0):
    from review_gate.checks.severity import FileDiagnostics, SeverityLevel

    return FileDiagnostics(
        path=path,
        counts={
            SeverityLevel.BLOCKER: blocker,
            SeverityLevel.CRITICAL: critical,
            SeverityLevel.WARNING: warning,
            SeverityLevel.INFO: 0,
        },
    )


class TestScoring:
    """Tests for individual score components."""

    def test_lines_only(self):
        """Test a modified file scores half a point per line."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([ChangedFile("src/a.ts", lines_added=10, lines_deleted=10)])

        entry = report.all_files[0]
        assert entry.score == pytest.approx(10.0)
        assert entry.risk_factors == []

    def test_blocker_adds_hundred(self):
        """Test each blocker issue adds 100 points."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [ChangedFile("src/a.ts", lines_added=2, lines_deleted=2)]

        base = select_critical_files(files).all_files[0].score
        with_blocker = select_critical_files(
            files, diagnostics={"src/a.ts": _diag("src/a.ts", blocker=1)}
        ).all_files[0]

        assert with_blocker.score - base == pytest.approx(100.0)
        assert "1 blocker issue" in with_blocker.risk_factors

    def test_severity_weights(self):
        """Test critical and warning weights and labels."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [ChangedFile("src/a.ts", lines_deleted=1)]
        report = select_critical_files(
            files, diagnostics={"src/a.ts": _diag("src/a.ts", critical=2, warning=3)}
        )

        entry = report.all_files[0]
        assert entry.score == pytest.approx(2 * 75 + 3 * 25 + 0.5)
        assert entry.risk_factors == ["2 critical issues", "3 warnings"]

    def test_new_file_and_large_change(self):
        """Test new-file and large-change bonuses."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([ChangedFile("src/big.ts", lines_added=120)])

        entry = report.all_files[0]
        assert entry.score == pytest.approx(60 + 25 + 50)
        assert entry.risk_factors == ["large change (120 lines)", "new file"]

    def test_test_file_penalty(self):
        """Test test files lose 50 points and may go negative."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([ChangedFile("src/foo.test.ts", lines_deleted=4)])

        entry = report.all_files[0]
        assert entry.score == pytest.approx(2 - 50)
        assert entry.display_score == 0
        assert "test file (lower priority)" in entry.risk_factors

    def test_configured_critical_path(self):
        """Test a configured critical-path glob adds the bonus."""
        from review_gate.analysis.critical_files import ScoringConfig, select_critical_files

        config = ScoringConfig(critical_paths=["src/commands/**"])
        report = select_critical_files(
            [ChangedFile("src/commands/harden.ts", lines_deleted=2)], config=config
        )

        entry = report.all_files[0]
        assert entry.score == pytest.approx(1 + 50)
        assert entry.risk_factors == ["critical path: src/commands/**"]
        assert entry.critical_match.source == "configured"
        assert report.configured_critical_paths == ["src/commands/**"]


class TestFanIn:
    """Tests for import fan-in and inferred critical paths."""

    def _graph(self, hub, importers):
        from review_gate.analysis.imports import ImportGraph

        graph = ImportGraph()
        for importer in importers:
            graph.add(importer, hub)
        return graph

    def test_fan_in_points(self):
        """Test two points per importing file."""
        from review_gate.analysis.critical_files import select_critical_files

        graph = self._graph("src/util.ts", ["src/a.ts", "src/b.ts", "src/c.ts"])

        report = select_critical_files(
            [ChangedFile("src/util.ts", lines_deleted=2)], import_graph=graph
        )

        entry = report.all_files[0]
        assert entry.import_fan_in == 3
        assert entry.score == pytest.approx(6 + 1)
        assert entry.risk_factors == ["imported by 3 files"]
        assert report.inferred_critical_paths == []

    def test_inferred_critical(self):
        """Test a high fan-in file is inferred critical and boosts its importers."""
        from review_gate.analysis.critical_files import ScoringConfig, select_critical_files

        importers = [f"src/m{i}.ts" for i in range(4)]
        graph = self._graph("src/core.ts", importers)
        config = ScoringConfig(fan_in_threshold=3)

        report = select_critical_files(
            [
                ChangedFile("src/core.ts", lines_deleted=2),
                ChangedFile("src/m0.ts", lines_deleted=2),
            ],
            import_graph=graph,
            config=config,
        )

        by_path = {f.path: f for f in report.all_files}
        assert report.inferred_critical_paths == ["src/core.ts"]

        core = by_path["src/core.ts"]
        assert core.score == pytest.approx(8 + 1)
        assert "high impact (4 imports)" in core.risk_factors
        assert "inferred critical (high fan-in)" in core.risk_factors
        assert core.critical_match is None

        importer = by_path["src/m0.ts"]
        assert importer.score == pytest.approx(1 + 50)
        assert importer.risk_factors == ["imports inferred critical: src/core.ts"]
        assert importer.critical_match.source == "inferred"


class TestRanking:
    """Tests for ranking and truncation."""

    def test_ranks_dense_and_scores_descending(self):
        """Test ranks run 1..N with non-increasing scores."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [
            ChangedFile("docs/readme.md", lines_deleted=2),
            ChangedFile("src/new.ts", lines_added=30),
            ChangedFile("src/foo.test.ts", lines_deleted=10),
            ChangedFile("src/mod.ts", lines_added=5, lines_deleted=5),
        ]

        report = select_critical_files(files)

        assert [f.rank for f in report.all_files] == [1, 2, 3, 4]
        scores = [f.score for f in report.all_files]
        assert scores == sorted(scores, reverse=True)
        assert report.all_files[0].path == "src/new.ts"
        assert report.all_files[-1].path == "src/foo.test.ts"

    def test_ties_keep_input_order(self):
        """Test equal scores keep their input order."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [ChangedFile(f"src/f{i}.ts", lines_deleted=4) for i in range(3)]

        report = select_critical_files(files)

        assert [f.path for f in report.all_files] == ["src/f0.ts", "src/f1.ts", "src/f2.ts"]

    def test_test_file_ranks_below_matching_source_file(self):
        """Test a test file scores below a source file with the same profile."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [
            ChangedFile("src/x.test.ts", lines_added=20, lines_deleted=5),
            ChangedFile("src/x.ts", lines_added=20, lines_deleted=5),
        ]
        diagnostics = {
            "src/x.test.ts": _diag("src/x.test.ts", blocker=1, warning=2),
            "src/x.ts": _diag("src/x.ts", blocker=1, warning=2),
        }

        report = select_critical_files(files, diagnostics=diagnostics)

        source, test = report.all_files
        assert source.path == "src/x.ts"
        assert test.path == "src/x.test.ts"
        assert test.score < source.score
        assert test.rank > source.rank

    def test_top_n_truncates(self):
        """Test only the top N files are selected."""
        from review_gate.analysis.critical_files import select_critical_files

        files = [ChangedFile(f"src/f{i}.ts", lines_deleted=i + 1) for i in range(5)]

        report = select_critical_files(files, top_n=2)

        assert [f.path for f in report.top_files] == ["src/f4.ts", "src/f3.ts"]
        assert len(report.all_files) == 5
        assert report.to_section().total_files == 5
        assert report.to_section().top_n == 2

    def test_top_n_larger_than_files(self):
        """Test top N beyond the file count selects everything."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([ChangedFile("a.py", lines_deleted=1)], top_n=10)

        assert len(report.top_files) == 1

    def test_empty_change_set(self):
        """Test selection over no files."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([])

        assert report.top_files == []
        assert report.all_files == []

    def test_section_entries(self):
        """Test manifest entries carry display scores."""
        from review_gate.analysis.critical_files import select_critical_files

        report = select_critical_files([ChangedFile("src/a.ts", lines_deleted=3)])

        entry = report.to_section().files[0]
        assert entry.rank == 1
        assert entry.score == 2
        assert report.to_section().algorithm == "risk-weighted-v1.0"


class TestScoringConfig:
    """Tests for ScoringConfig."""

    def test_from_settings(self):
        """Test building from loaded settings."""
        from review_gate.analysis.critical_files import ScoringConfig
        from review_gate.config import ScoringSettings

        config = ScoringConfig.from_settings(
            ScoringSettings(blocker_weight=10, top_n=3), critical_paths=["x/**"]
        )

        assert config.blocker_weight == 10
        assert config.top_n == 3
        assert config.critical_paths == ["x/**"]
