"""Tests for context matching and review manifest generation."""

from datetime import datetime

import pytest

from review_gate.models.changes import ChangedFile, ReviewTier

PATTERN_DOC = """\
---
title: Error handling
applies_to:
  - "src/**/*.ts"
---

Always wrap async calls.
"""

REACT_PROFILE = """\
meta:
  name: react
  applies_to: ["**/*.tsx"]
  detection:
    dependencies: [react]
checks: []
"""

VITEST_PROFILE = """\
meta:
  name: vitest
  applies_to: ["e2e/**", "**/*.test.ts"]
"""


@pytest.fixture
def review_project(project_dir, write_files):
    """A project with patterns, profiles, decisions and lessons."""
    write_files(
        project_dir,
        {
            ".review-gate/standards.md": "# Standards\n",
            ".review-gate/principles.md": "# Principles\n",
            ".review-gate/decisions.md": "# Decisions\n",
            ".review-gate/lessons/2024-01-retry.md": "# Retry\n",
            ".review-gate/lessons/2024-02-cache.md": "# Cache\n",
            ".review-gate/patterns/errors.md": PATTERN_DOC,
            ".review-gate/patterns/no-frontmatter.md": "# Just text\n",
            ".review-gate/review-profiles/frameworks/react.yaml": REACT_PROFILE,
            ".review-gate/review-profiles/testing/vitest.yaml": VITEST_PROFILE,
            "package.json": '{"dependencies": {"react": "^18.0.0"}}',
        },
    )
    return project_dir


def _recommendation(files):
    from review_gate.analysis.tiers import ReviewTierClassifier

    return ReviewTierClassifier().classify_changes(files)


class TestContextMatcher:
    """Tests for ContextMatcher."""

    def test_match_patterns(self, review_project):
        """Test pattern frontmatter globs are matched."""
        from review_gate.orchestrator.context import ContextMatcher

        matcher = ContextMatcher(review_project)

        assert matcher.match_patterns(["src/lib/api.ts"]) == [".review-gate/patterns/errors.md"]
        assert matcher.match_patterns(["README.md"]) == []

    def test_match_profiles_requires_dependency(self, review_project):
        """Test profiles apply only when their dependency is declared."""
        from review_gate.orchestrator.context import ContextMatcher

        matched = ContextMatcher(review_project).match_profiles(["src/App.tsx"])

        assert matched == [".review-gate/review-profiles/frameworks/react.yaml"]

        (review_project / "package.json").write_text("{}")
        assert ContextMatcher(review_project).match_profiles(["src/App.tsx"]) == []

    def test_testing_patterns(self, review_project):
        """Test testing profile globs are exposed."""
        from review_gate.orchestrator.context import ContextMatcher

        assert ContextMatcher(review_project).testing_patterns() == ["e2e/**", "**/*.test.ts"]

    def test_missing_directories(self, tmp_path):
        """Test a project without a state directory matches nothing."""
        from review_gate.orchestrator.context import ContextMatcher

        matcher = ContextMatcher(tmp_path)

        assert matcher.match_patterns(["a.ts"]) == []
        assert matcher.match_profiles(["a.ts"]) == []
        assert matcher.testing_patterns() == []


class TestReviewManifestGenerator:
    """Tests for ReviewManifestGenerator."""

    def test_quick_tier_context(self, review_project):
        """Test quick-tier manifests skip decisions and lessons."""
        from review_gate.orchestrator.manifest import ReviewManifestGenerator

        files = [ChangedFile("src/foo.test.ts", lines_added=30)]
        manifest = ReviewManifestGenerator(review_project).generate(
            "feature-x", files, _recommendation(files)
        )

        assert manifest.recommended_tier == ReviewTier.QUICK
        keys = [ref.key for ref in manifest.context.references]
        assert keys == [
            "project_standards",
            "project_principles",
            "matched_patterns",
            "matched_profiles",
        ]
        assert [r.key for r in manifest.context.required_for(ReviewTier.QUICK)] == [
            "project_standards",
            "matched_patterns",
            "matched_profiles",
        ]

    def test_full_tier_context(self, review_project):
        """Test full-tier manifests add decisions and lessons in precedence order."""
        from review_gate.orchestrator.manifest import ReviewManifestGenerator

        files = [ChangedFile("src/commands/harden.ts", lines_added=5, lines_deleted=2)]
        manifest = ReviewManifestGenerator(review_project).generate(
            "harden", files, _recommendation(files)
        )

        assert manifest.recommended_tier == ReviewTier.FULL
        refs = manifest.context.references
        assert [r.key for r in refs] == [
            "project_standards",
            "project_principles",
            "project_decisions",
            "matched_patterns",
            "matched_profiles",
            "lessons_learned",
        ]
        assert [r.precedence for r in refs] == [1, 2, 3, 4, 5, 6]
        lessons = manifest.context.get("lessons_learned")
        assert lessons.files == (
            ".review-gate/lessons/2024-01-retry.md",
            ".review-gate/lessons/2024-02-cache.md",
        )
        assert manifest.context.get("matched_patterns").files == (
            ".review-gate/patterns/errors.md",
        )

    def test_full_tier_without_optional_files(self, project_dir):
        """Test decisions and lessons are omitted when absent."""
        from review_gate.orchestrator.manifest import ReviewManifestGenerator

        files = [ChangedFile("src/commands/harden.ts", lines_added=5)]
        manifest = ReviewManifestGenerator(project_dir).generate(
            "harden", files, _recommendation(files)
        )

        assert manifest.context.get("project_decisions") is None
        assert manifest.context.get("lessons_learned") is None

    def test_change_analysis(self, project_dir):
        """Test totals and changed file entries."""
        from review_gate.models.changes import FileType
        from review_gate.orchestrator.manifest import ReviewManifestGenerator

        files = [
            ChangedFile("src/lib/parser.ts", lines_added=12, lines_deleted=3),
            ChangedFile("README.md", lines_added=5, lines_deleted=1),
        ]
        manifest = ReviewManifestGenerator(project_dir).generate(
            "parser", files, _recommendation(files), generated_at="2024-05-01T10:00:00+00:00"
        )

        assert manifest.generated_at == "2024-05-01T10:00:00+00:00"
        assert manifest.change_analysis.total_files == 2
        assert manifest.change_analysis.total_lines == 21
        assert manifest.change_analysis.breakdown[FileType.DOCUMENTATION] == 1
        assert manifest.changed_files[0].change_type == FileType.IMPLEMENTATION
        assert manifest.changed_files[0].lines_changed == 15


class TestManifestPersistence:
    """Tests for manifest serialization and saving."""

    def _manifest(self, project_root):
        from review_gate.analysis.critical_files import select_critical_files
        from review_gate.models.manifest import ScopeMetadata, ScopeType
        from review_gate.orchestrator.manifest import ReviewManifestGenerator

        files = [
            ChangedFile("src/commands/harden.ts", lines_added=40),
            ChangedFile("src/foo.test.ts", lines_added=3, lines_deleted=1),
        ]
        return ReviewManifestGenerator(project_root).generate(
            "harden",
            files,
            _recommendation(files),
            scope=ScopeMetadata(type=ScopeType.FEATURE, target="harden", file_count=2),
            critical_files=select_critical_files(files, top_n=1),
            generated_at="2024-05-01T10:00:00+00:00",
        )

    def test_yaml_round_trip(self, review_project):
        """Test a dumped manifest loads back equal."""
        from review_gate.orchestrator.manifest import dump_manifest, load_manifest

        manifest = self._manifest(review_project)

        text = dump_manifest(manifest)
        loaded = load_manifest(text)

        assert loaded == manifest
        assert "recommended_tier: full" in text
        assert loaded.critical_files.files[0].path == "src/commands/harden.ts"

    @pytest.mark.parametrize("text", ["- a list\n", "feature: x\n", "{{{"])
    def test_load_invalid(self, text):
        """Test invalid manifests raise ConfigurationError."""
        from review_gate.config import ConfigurationError
        from review_gate.orchestrator.manifest import load_manifest

        with pytest.raises(ConfigurationError):
            load_manifest(text)

    def test_save_manifest(self, project_dir):
        """Test manifests are saved under the reviews directory with a timestamp."""
        from review_gate.orchestrator.manifest import load_manifest, save_manifest

        manifest = self._manifest(project_dir)

        path = save_manifest(manifest, project_dir, now=datetime(2024, 5, 1, 9, 5, 7))

        assert path == (
            project_dir / ".review-gate" / "reviews" / "review-manifest-2024-05-01-090507.yaml"
        )
        assert load_manifest(path.read_text()) == manifest
