"""Review engine: runs quality checks, ranks files, classifies the tier, builds the manifest."""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from review_gate.analysis.critical_files import (
    CriticalFileSelector,
    CriticalFilesReport,
    ScoringConfig,
)
from review_gate.analysis.imports import ImportAnalyzer, ImportGraph
from review_gate.analysis.tiers import ReviewTierClassifier, TierConfig
from review_gate.checks.executor import ExecutorConfig, QualityCheckExecutor, QualityCheckRun
from review_gate.checks.severity import diagnostics_from_results
from review_gate.config import Config, ConfigurationError
from review_gate.models.changes import ChangedFile
from review_gate.models.findings import ReviewFindings, ReviewOptions
from review_gate.models.manifest import ScopeMetadata
from review_gate.models.results import EnrichedToolResult, RawToolResult
from review_gate.models.toolchain import ResolvedToolchain
from review_gate.orchestrator.context import ContextMatcher
from review_gate.orchestrator.manifest import ReviewManifestGenerator
from review_gate.toolchain.registry import RegistryLoader, ToolRegistry
from review_gate.toolchain.store import DETECT_REMEDIATION, find_toolchain, toolchain_path

logger = logging.getLogger(__name__)


class ReviewEngine:
    """Composes the executor, selector, classifier and manifest generator into one review."""

    def __init__(
        self,
        registry: ToolRegistry,
        toolchain: ResolvedToolchain | None,
        project_root: Path,
        executor: QualityCheckExecutor | None = None,
        classifier: ReviewTierClassifier | None = None,
        manifest_generator: ReviewManifestGenerator | None = None,
        import_analyzer: ImportAnalyzer | None = None,
        scoring: ScoringConfig | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: Tool registry, used for auto-fix capability
            toolchain: Resolved toolchain (None when the project has none)
            project_root: Root directory of the project
            executor: Quality check executor
            classifier: Review tier classifier
            manifest_generator: Manifest generator
            import_analyzer: Import graph source for critical file scoring
            scoring: Critical file scoring configuration
        """
        self.registry = registry
        self.toolchain = toolchain
        self.project_root = project_root
        self.executor = executor or QualityCheckExecutor()
        self.classifier = classifier or ReviewTierClassifier()
        self.manifest_generator = manifest_generator or ReviewManifestGenerator(project_root)
        self.import_analyzer = import_analyzer or ImportAnalyzer(project_root)
        self.scoring = scoring or ScoringConfig(
            critical_paths=list(self.classifier.config.critical_paths)
        )

    @classmethod
    def from_project(cls, project_root: Path, config: Config) -> "ReviewEngine":
        """Wire an engine from the project's registry, toolchain and review config.

        A missing toolchain is not an error here; `review` reports it.

        Raises:
            ConfigurationError: If the registry or a present toolchain file is malformed
        """
        registry_path = Path(config.registry_path) if config.registry_path else None
        registry = RegistryLoader(registry_path).load()
        toolchain = find_toolchain(project_root)

        matcher = ContextMatcher(project_root)
        test_patterns = matcher.testing_patterns()

        return cls(
            registry=registry,
            toolchain=toolchain,
            project_root=project_root,
            executor=QualityCheckExecutor(
                ExecutorConfig(
                    timeout_seconds=config.executor.timeout_seconds,
                    max_parallel=config.executor.max_parallel,
                    sequential=config.executor.sequential,
                )
            ),
            classifier=ReviewTierClassifier(TierConfig.from_config(config, test_patterns)),
            manifest_generator=ReviewManifestGenerator(project_root, matcher),
            import_analyzer=ImportAnalyzer(project_root),
            scoring=ScoringConfig.from_settings(
                config.scoring, config.critical_paths, test_patterns
            ),
        )

    async def review(self, options: ReviewOptions) -> ReviewFindings:
        """Run a complete review.

        Args:
            options: Scope, changed files and feature switches

        Returns:
            Findings with tool results, optional critical files and the manifest

        Raises:
            ConfigurationError: If the project has no resolved toolchain
        """
        if self.toolchain is None:
            raise ConfigurationError(
                "Toolchain not found",
                path=toolchain_path(self.project_root),
                remediation=DETECT_REMEDIATION,
            )

        start = time.monotonic()
        scope = ScopeMetadata(
            type=options.scope_type,
            target=options.target,
            file_count=len(options.changed_files),
        )
        changed_files = self.classifier.annotate(options.changed_files)
        logger.info(f"Reviewing {scope.type.value} {scope.target} ({scope.file_count} files)")

        # Every tool completes (or is skipped) before anything is scored
        raw_results = await self.executor.run(
            QualityCheckRun(
                toolchain=self.toolchain,
                project_root=self.project_root,
                file_scope=options.file_scope,
                changed_files=[f.path for f in changed_files],
            )
        )
        tool_results = self._enrich(raw_results)

        critical_files = None
        if options.enable_critical_selection:
            critical_files = self._select_critical_files(changed_files, tool_results, options.top_n)

        recommendation = self.classifier.classify_changes(changed_files)
        logger.info(f"Recommended tier: {recommendation.tier.value} ({recommendation.reason})")

        manifest = self.manifest_generator.generate(
            feature=options.target,
            changed_files=changed_files,
            recommendation=recommendation,
            scope=scope,
            critical_files=critical_files,
        )

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Review complete in {duration_ms}ms")

        return ReviewFindings(
            tool_results=tool_results,
            raw_tool_results=raw_results,
            manifest=manifest,
            scope=scope,
            timestamp=datetime.now(timezone.utc).isoformat(),
            critical_files=critical_files,
            metadata={"duration_ms": duration_ms, "language": self.toolchain.language},
        )

    def _enrich(self, raw_results: list[RawToolResult]) -> list[EnrichedToolResult]:
        return [
            EnrichedToolResult.from_raw(result, self.registry.is_auto_fixable(result.tool))
            for result in raw_results
        ]

    def _select_critical_files(
        self,
        changed_files: list[ChangedFile],
        tool_results: list[EnrichedToolResult],
        top_n: int | None,
    ) -> CriticalFilesReport:
        diagnostics = diagnostics_from_results(tool_results, [f.path for f in changed_files])
        selector = CriticalFileSelector(self._import_graph(), self.scoring)
        return selector.select_critical_files(changed_files, diagnostics, top_n)

    def _import_graph(self) -> ImportGraph:
        try:
            return self.import_analyzer.analyze()
        except OSError as e:
            logger.warning(f"Import analysis failed, scoring without fan-in: {e}")
            return ImportGraph()
