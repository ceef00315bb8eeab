"""Review manifest generation and persistence."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

import yaml

from review_gate.analysis.critical_files import CriticalFilesReport
from review_gate.analysis.tiers import analyze_file_type
from review_gate.config import STATE_DIR, ConfigurationError
from review_gate.models.changes import ChangedFile, ReviewTier, ReviewTierResult
from review_gate.models.manifest import (
    ChangeAnalysis,
    ChangedFileEntry,
    ContextReference,
    ManifestContext,
    ReviewManifest,
    ScopeMetadata,
)
from review_gate.orchestrator.context import ContextMatcher

logger = logging.getLogger(__name__)

REVIEWS_DIR = "reviews"
ALL_TIERS = (ReviewTier.QUICK, ReviewTier.STANDARD, ReviewTier.FULL)


class ReviewManifestGenerator:
    """Builds the manifest describing what a reviewer must load, and in what order."""

    def __init__(self, project_root: Path, matcher: ContextMatcher | None = None) -> None:
        """Initialize the generator.

        Args:
            project_root: Root directory of the project
            matcher: Pattern and profile matcher (default: one for project_root)
        """
        self.project_root = project_root
        self.matcher = matcher or ContextMatcher(project_root)

    def generate(
        self,
        feature: str,
        changed_files: list[ChangedFile],
        recommendation: ReviewTierResult,
        scope: ScopeMetadata | None = None,
        critical_files: CriticalFilesReport | None = None,
        generated_at: str | None = None,
    ) -> ReviewManifest:
        """Generate the review manifest for a change set.

        Args:
            feature: Feature or target the review is for
            changed_files: Files in the change set
            recommendation: Tier classification of the change set
            scope: Optional scope metadata
            critical_files: Optional critical file analysis
            generated_at: Timestamp override (default: now, UTC)

        Returns:
            The manifest
        """
        metrics = recommendation.metrics
        manifest = ReviewManifest(
            feature=feature,
            generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
            recommended_tier=recommendation.tier,
            tier_reason=recommendation.reason,
            change_analysis=ChangeAnalysis(
                total_files=metrics.total_files,
                total_lines=metrics.total_lines,
                breakdown=dict(metrics.file_type_breakdown),
            ),
            changed_files=tuple(self._changed_file_entry(f) for f in changed_files),
            context=self.build_context([f.path for f in changed_files], recommendation.tier),
            scope=scope,
            critical_files=critical_files.to_section() if critical_files else None,
        )
        logger.debug(f"Generated manifest for {feature} ({recommendation.tier.value} tier)")
        return manifest

    def build_context(self, paths: Iterable[str], tier: ReviewTier) -> ManifestContext:
        """Precedence-ordered context references for a tier.

        Standards and principles are always listed; decisions and lessons only
        for the full tier, and only when they exist.
        """
        paths = list(paths)
        references = [
            ContextReference(
                key="project_standards",
                path=f"{STATE_DIR}/standards.md",
                precedence=1,
                required_for_tiers=ALL_TIERS,
            ),
            ContextReference(
                key="project_principles",
                path=f"{STATE_DIR}/principles.md",
                precedence=2,
                required_for_tiers=(ReviewTier.STANDARD, ReviewTier.FULL),
            ),
            ContextReference(
                key="matched_patterns",
                precedence=4,
                required_for_tiers=ALL_TIERS,
                files=tuple(self.matcher.match_patterns(paths)),
            ),
            ContextReference(
                key="matched_profiles",
                precedence=5,
                required_for_tiers=ALL_TIERS,
                files=tuple(self.matcher.match_profiles(paths)),
            ),
        ]

        if tier is ReviewTier.FULL:
            state_dir = self.project_root / STATE_DIR
            if (state_dir / "decisions.md").exists():
                references.append(
                    ContextReference(
                        key="project_decisions",
                        path=f"{STATE_DIR}/decisions.md",
                        precedence=3,
                        required_for_tiers=(ReviewTier.FULL,),
                        note="Large file - read selectively if needed",
                    )
                )

            lessons_dir = state_dir / "lessons"
            if lessons_dir.is_dir():
                lessons = sorted(
                    p.relative_to(self.project_root).as_posix() for p in lessons_dir.glob("*.md")
                )
                references.append(
                    ContextReference(
                        key="lessons_learned",
                        precedence=6,
                        required_for_tiers=(ReviewTier.FULL,),
                        files=tuple(lessons),
                        note="Read relevant lessons as needed",
                    )
                )

        return ManifestContext(references=tuple(references))

    def _changed_file_entry(self, file: ChangedFile) -> ChangedFileEntry:
        return ChangedFileEntry(
            path=file.path,
            lines_changed=file.lines_changed,
            change_type=file.file_type or analyze_file_type(file.path),
        )


def dump_manifest(manifest: ReviewManifest) -> str:
    """Serialize a manifest to YAML."""
    return yaml.safe_dump(manifest.to_dict(), sort_keys=False, allow_unicode=True)


def load_manifest(text: str) -> ReviewManifest:
    """Parse a manifest from YAML.

    Raises:
        ConfigurationError: If the document is not a valid manifest
    """
    try:
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ConfigurationError("Review manifest is not a mapping")
        return ReviewManifest.from_dict(data)
    except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid review manifest: {e}") from e


def save_manifest(
    manifest: ReviewManifest,
    project_root: Path,
    now: datetime | None = None,
) -> Path:
    """Write a manifest to `.review-gate/reviews/review-manifest-<timestamp>.yaml`."""
    now = now or datetime.now()
    reviews_dir = project_root / STATE_DIR / REVIEWS_DIR
    reviews_dir.mkdir(parents=True, exist_ok=True)

    path = reviews_dir / f"review-manifest-{now.strftime('%Y-%m-%d-%H%M%S')}.yaml"
    path.write_text(dump_manifest(manifest), encoding="utf-8")
    logger.info(f"Saved review manifest to {path}")
    return path
