"""Review orchestration: context matching, manifest generation and the review engine."""

from review_gate.orchestrator.context import ContextMatcher
from review_gate.orchestrator.engine import ReviewEngine
from review_gate.orchestrator.manifest import (
    ReviewManifestGenerator,
    dump_manifest,
    load_manifest,
    save_manifest,
)
from review_gate.orchestrator.report import render_critical_files_report, render_findings_report

__all__ = [
    "ContextMatcher",
    "ReviewEngine",
    "ReviewManifestGenerator",
    "dump_manifest",
    "load_manifest",
    "render_critical_files_report",
    "render_findings_report",
    "save_manifest",
]
