"""Markdown rendering of review findings and critical file analysis."""

from review_gate.analysis.critical_files import CriticalFilesReport, ScoringConfig
from review_gate.config import CONFIG_FILENAME, STATE_DIR
from review_gate.models.findings import ReviewFindings


def _weight(value: float) -> str:
    return f"{value:g}"


def render_critical_files_report(
    report: CriticalFilesReport,
    timestamp: str,
    scoring: ScoringConfig | None = None,
) -> str:
    """Render the critical file analysis with its scoring factors and tables."""
    cfg = scoring or ScoringConfig()
    top_paths = {f.path: f.rank for f in report.top_files}

    lines = [
        "# Critical Files for Review",
        "",
        f"**Generated**: {timestamp}",
        f"**Algorithm**: {report.algorithm}",
        f"**Scope**: {len(report.all_files)} files changed, "
        f"top {len(report.top_files)} selected for deep review",
        "",
        "## Scoring Factors",
        "",
        f"- Blocker issues: +{_weight(cfg.blocker_weight)} points each",
        f"- Critical issues: +{_weight(cfg.critical_weight)} points each",
        f"- Warnings: +{_weight(cfg.warning_weight)} points each",
        f"- Import fan-in: +{_weight(cfg.fan_in_weight)} points per importing file",
        f"- Lines changed: +{_weight(cfg.line_weight)} points per line, "
        f"+{_weight(cfg.large_change_bonus)} above {cfg.large_change_threshold} lines",
        f"- New files: +{_weight(cfg.new_file_bonus)} points",
        f"- Critical path match: +{_weight(cfg.critical_path_bonus)} points",
        f"- Test files: -{_weight(cfg.test_file_penalty)} points (lower priority)",
        "",
        "## Critical Path Analysis",
        "",
    ]

    if report.inferred_critical_paths:
        lines.append(f"**Inferred Critical Paths** (import fan-in > {cfg.fan_in_threshold}):")
        lines.extend(f"- {path}" for path in report.inferred_critical_paths)
    else:
        lines.append(
            f"**Inferred Critical Paths**: None (no files with more than "
            f"{cfg.fan_in_threshold} importers)"
        )
    lines.append("")

    if report.configured_critical_paths:
        lines.append(f"**Configured Critical Paths** (from {STATE_DIR}/{CONFIG_FILENAME}):")
        lines.extend(f"- {path}" for path in report.configured_critical_paths)
    else:
        lines.append(f"**Configured Critical Paths**: None (add to {STATE_DIR}/{CONFIG_FILENAME})")
    lines.append("")

    lines.extend([f"## Top {len(report.top_files)} Critical Files", ""])
    if not report.top_files:
        lines.append("No changed files to rank.")
    else:
        lines.append("| Rank | Score | File | Risk Factors |")
        lines.append("|------|-------|------|--------------|")
        for f in report.top_files:
            factors = ", ".join(f.risk_factors) or "low risk"
            lines.append(f"| {f.rank} | {f.display_score} | {f.path} | {factors} |")
    lines.append("")

    lines.extend([f"## All Changed Files ({len(report.all_files)} total)", ""])
    if not report.all_files:
        lines.append("No changed files found.")
    else:
        lines.append("| File | Score | Included in Review |")
        lines.append("|------|-------|--------------------|")
        for f in report.all_files:
            rank = top_paths.get(f.path)
            status = f"Yes (rank {rank})" if rank else "No"
            lines.append(f"| {f.path} | {f.display_score} | {status} |")
    lines.append("")

    lines.extend(
        [
            "---",
            f"**Note**: Focus deep review on the top {len(report.top_files)} files. "
            "Other files need basic checks only.",
        ]
    )
    return "\n".join(lines) + "\n"


def render_findings_report(findings: ReviewFindings) -> str:
    """Render a findings summary: tier, scope, tool results and context to load."""
    manifest = findings.manifest
    status = "All checks passed" if findings.all_passed else "Checks failed"

    lines = [
        f"# Review: {findings.scope.target}",
        "",
        f"**Scope**: {findings.scope.type.value} ({findings.scope.file_count} files)",
        f"**Recommended Tier**: {findings.tier.value.upper()}",
    ]
    if manifest.tier_reason:
        lines.append(f"**Reason**: {manifest.tier_reason}")
    lines.extend([f"**Status**: {status}", ""])

    if findings.failed_categories:
        lines.append(f"**Failed categories**: {', '.join(findings.failed_categories)}")
        lines.append("")

    lines.extend(
        [
            "## Quality Checks",
            "",
            "| Category | Tool | Result | Auto-fix |",
            "|----------|------|--------|----------|",
        ]
    )
    for result in findings.tool_results:
        if result.skipped:
            outcome = f"skipped ({result.reason})"
        elif result.error_count is not None:
            outcome = f"{'pass' if result.success else 'fail'} ({result.error_count} errors)"
        else:
            outcome = "pass" if result.success else "fail"
        fix = "yes" if result.auto_fixable else "no"
        lines.append(f"| {result.category} | {result.tool} | {outcome} | {fix} |")
    lines.append("")

    failing = [r for r in findings.tool_results if not r.success and r.output]
    if failing:
        lines.extend(["## Failure Output", ""])
        for result in failing:
            lines.extend([f"### {result.tool} ({result.category})", ""])
            lines.extend(["```", result.output, "```", ""])

    lines.extend(["## Context to Load", ""])
    for ref in manifest.context.required_for(findings.tier):
        target = ref.path or ", ".join(ref.files or ()) or "(none matched)"
        lines.append(f"{ref.precedence}. `{ref.key}`: {target}")
    lines.append("")

    if findings.critical_files is not None:
        lines.extend(["## Critical Files", ""])
        for f in findings.critical_files.top_files:
            factors = ", ".join(f.risk_factors) or "low risk"
            lines.append(f"{f.rank}. {f.path} (score {f.display_score}): {factors}")
        lines.append("")

    return "\n".join(lines)
