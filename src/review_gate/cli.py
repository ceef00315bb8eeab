"""Command-line interface for Review Gate."""

import asyncio
import functools
import json
import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from review_gate import __version__
from review_gate.analysis.tiers import ReviewTierClassifier, TierConfig
from review_gate.config import Config, ConfigurationError, load_config, validate_config
from review_gate.models.changes import ChangedFile, parse_numstat
from review_gate.models.findings import FileScope, ReviewFindings, ReviewOptions
from review_gate.models.manifest import ScopeType
from review_gate.orchestrator.context import ContextMatcher
from review_gate.orchestrator.engine import ReviewEngine
from review_gate.orchestrator.manifest import dump_manifest, save_manifest
from review_gate.orchestrator.report import render_critical_files_report, render_findings_report
from review_gate.toolchain.detector import resolve_toolchain
from review_gate.toolchain.registry import RegistryLoader
from review_gate.toolchain.store import load_toolchain, write_toolchain

console = Console()
log_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def handle_configuration_errors(func):
    """Print configuration errors with their remediation and exit 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            sys.exit(1)

    return wrapper


def _load_checked_config(config_path: str | None, project_root: Path) -> Config:
    config = load_config(Path(config_path) if config_path else None, project_root)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)
    return config


def _read_changed_files(numstat: str | None, files: tuple[str, ...]) -> list[ChangedFile]:
    changed: list[ChangedFile] = []
    if numstat:
        if numstat == "-":
            text = sys.stdin.read()
        else:
            text = Path(numstat).read_text(encoding="utf-8")
        changed.extend(parse_numstat(text))

    known = {f.path for f in changed}
    for path in files:
        if path not in known:
            changed.append(ChangedFile(path=path))
            known.add(path)
    return changed


project_root_option = click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root directory",
)
config_option = click.option(
    "--config", "config_path", type=click.Path(exists=True), help="Config file path"
)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Review Gate - quality-gate review engine."""
    setup_logging(verbose)


@cli.command("review")
@click.option("--numstat", help="git diff --numstat output file ('-' for stdin)")
@click.option("--file", "files", multiple=True, help="Changed file path (repeatable)")
@click.option(
    "--scope-type",
    type=click.Choice([s.value for s in ScopeType]),
    default=None,
    help="Review scope type (default: file for --file, else feature)",
)
@click.option("--target", help="Scope target (default: project directory name)")
@click.option("--critical/--no-critical", default=True, help="Rank critical files")
@click.option("--top-n", type=int, help="Number of critical files to select")
@click.option("--all-files", is_flag=True, help="Point tools at the whole tree")
@click.option("--sequential", is_flag=True, help="Run tools one at a time")
@click.option("--timeout", type=float, help="Per-tool timeout in seconds")
@click.option(
    "--output",
    type=click.Choice(["table", "json", "yaml", "markdown"]),
    default="table",
)
@click.option("--save", is_flag=True, help="Save the manifest under .review-gate/reviews/")
@project_root_option
@config_option
@handle_configuration_errors
def review(
    numstat: str | None,
    files: tuple[str, ...],
    scope_type: str | None,
    target: str | None,
    critical: bool,
    top_n: int | None,
    all_files: bool,
    sequential: bool,
    timeout: float | None,
    output: str,
    save: bool,
    project_root: Path,
    config_path: str | None,
) -> None:
    """Run quality checks and build a review manifest for a change set."""
    project_root = project_root.resolve()
    config = _load_checked_config(config_path, project_root)
    if sequential:
        config.executor.sequential = True
    if timeout is not None:
        config.executor.timeout_seconds = timeout

    changed_files = _read_changed_files(numstat, files)
    if not changed_files:
        log_console.print("[yellow]No changed files given (use --numstat or --file)[/yellow]")

    if scope_type is None:
        scope_type = ScopeType.FILE.value if files and not numstat else ScopeType.FEATURE.value

    options = ReviewOptions(
        scope_type=ScopeType(scope_type),
        target=target or project_root.name,
        changed_files=changed_files,
        enable_critical_selection=critical,
        file_scope=FileScope.ALL if all_files else FileScope.UNCOMMITTED,
        top_n=top_n,
    )

    engine = ReviewEngine.from_project(project_root, config)
    findings = asyncio.run(engine.review(options))

    if save:
        path = save_manifest(findings.manifest, project_root)
        log_console.print(f"📝 Saved manifest to {path}")

    if output == "json":
        print(json.dumps(findings.to_dict(), indent=2))
    elif output == "yaml":
        print(dump_manifest(findings.manifest), end="")
    elif output == "markdown":
        print(render_findings_report(findings))
        if findings.critical_files is not None:
            print(
                render_critical_files_report(
                    findings.critical_files, findings.timestamp, engine.scoring
                )
            )
    else:
        _print_findings(findings)


def _print_findings(findings: ReviewFindings) -> None:
    if findings.all_passed:
        status = "[green]✅ All checks passed[/green]"
    else:
        status = "[red]❌ Checks failed[/red]"
    console.print(f"\n[bold]Recommended tier:[/bold] {findings.tier.value.upper()}")
    console.print(f"   {findings.manifest.tier_reason}")
    console.print(f"   {status}")

    table = Table(title="Quality Checks")
    table.add_column("Category")
    table.add_column("Tool")
    table.add_column("Result")
    table.add_column("Auto-fix")
    for result in findings.tool_results:
        if result.skipped:
            outcome = f"[yellow]skipped[/yellow] ({result.reason})"
        elif result.success:
            outcome = "[green]pass[/green]"
        else:
            outcome = "[red]fail[/red]"
        if result.error_count is not None:
            outcome += f" ({result.error_count} errors)"
        table.add_row(result.category, result.tool, outcome, "yes" if result.auto_fixable else "")
    console.print(table)

    if findings.critical_files is not None and findings.critical_files.top_files:
        critical_table = Table(title="Critical Files")
        critical_table.add_column("Rank", justify="right")
        critical_table.add_column("Score", justify="right")
        critical_table.add_column("File")
        critical_table.add_column("Risk Factors")
        for f in findings.critical_files.top_files:
            critical_table.add_row(
                str(f.rank), str(f.display_score), f.path, ", ".join(f.risk_factors)
            )
        console.print(critical_table)


@cli.command("classify")
@click.option("--numstat", help="git diff --numstat output file ('-' for stdin)")
@click.option("--file", "files", multiple=True, help="Changed file path (repeatable)")
@project_root_option
@config_option
@handle_configuration_errors
def classify(
    numstat: str | None,
    files: tuple[str, ...],
    project_root: Path,
    config_path: str | None,
) -> None:
    """Recommend a review tier for a change set."""
    config = _load_checked_config(config_path, project_root)
    test_patterns = ContextMatcher(project_root).testing_patterns()
    classifier = ReviewTierClassifier(TierConfig.from_config(config, test_patterns))

    result = classifier.classify_changes(_read_changed_files(numstat, files))
    metrics = result.metrics

    console.print(f"[bold]Tier:[/bold] {result.tier.value}")
    console.print(f"[bold]Reason:[/bold] {result.reason}")
    console.print(f"[bold]Files:[/bold] {metrics.total_files}")
    console.print(f"[bold]Lines:[/bold] {metrics.total_lines}")
    breakdown = ", ".join(
        f"{file_type.value}: {count}"
        for file_type, count in metrics.file_type_breakdown.items()
        if count
    )
    if breakdown:
        console.print(f"[bold]Breakdown:[/bold] {breakdown}")


@cli.group("toolchain")
def toolchain_group() -> None:
    """Toolchain detection commands."""
    pass


@toolchain_group.command("detect")
@click.option("--write", is_flag=True, help="Write .review-gate/toolchain.yaml")
@project_root_option
@config_option
@handle_configuration_errors
def toolchain_detect(write: bool, project_root: Path, config_path: str | None) -> None:
    """Detect the project's quality tools."""
    config = load_config(Path(config_path) if config_path else None, project_root)
    registry_path = Path(config.registry_path) if config.registry_path else None
    registry = RegistryLoader(registry_path).load()

    toolchain = resolve_toolchain(project_root, registry)
    _print_toolchain(toolchain.language, toolchain.quality_checks, toolchain.commands)

    if write:
        path = write_toolchain(project_root, toolchain)
        console.print(f"[green]✓ Wrote {path}[/green]")


@toolchain_group.command("show")
@project_root_option
@handle_configuration_errors
def toolchain_show(project_root: Path) -> None:
    """Show the project's resolved toolchain."""
    toolchain = load_toolchain(project_root)
    _print_toolchain(toolchain.language, toolchain.quality_checks, toolchain.commands)


def _print_toolchain(language, quality_checks, commands) -> None:
    console.print(f"\n[bold]Language:[/bold] {language}\n")
    if not quality_checks:
        console.print("[yellow]No quality tools detected[/yellow]")
        return

    table = Table(title="Quality Checks")
    table.add_column("Category")
    table.add_column("Tool")
    table.add_column("Command")
    for category, tools in quality_checks.items():
        for tool in tools:
            command = commands.get(tool)
            table.add_row(category, tool, command.command if command else "[red]missing[/red]")
    console.print(table)


@cli.group("registry")
def registry_group() -> None:
    """Tool registry commands."""
    pass


@registry_group.command("list")
@click.option("--language", help="Only tools supporting this language")
@click.option("--category", help="Only tools providing this category")
@config_option
@handle_configuration_errors
def registry_list(language: str | None, category: str | None, config_path: str | None) -> None:
    """List tools in the registry."""
    config = load_config(Path(config_path) if config_path else None)
    registry_path = Path(config.registry_path) if config.registry_path else None
    registry = RegistryLoader(registry_path).load()

    names = list(registry.tools)
    if language:
        names = [n for n in names if n in registry.tools_for_language(language)]
    if category:
        names = [n for n in names if n in registry.tools_for_category(category)]

    table = Table(title=f"Tool Registry ({len(names)} tools)")
    table.add_column("Name")
    table.add_column("Languages")
    table.add_column("Categories")
    table.add_column("Auto-fix")
    for name in names:
        tool = registry.tools[name]
        table.add_row(
            name,
            ", ".join(sorted(tool.languages)),
            ", ".join(tool.categories),
            "yes" if tool.auto_fixable else "",
        )
    console.print(table)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@project_root_option
@config_option
def config_validate(project_root: Path, config_path: str | None) -> None:
    """Validate configuration file."""
    try:
        config = load_config(Path(config_path) if config_path else None, project_root)
    except ConfigurationError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        console.print("[red]Configuration is invalid:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        sys.exit(1)
    else:
        console.print("[green]✓ Configuration is valid[/green]")


@config_group.command("show")
@project_root_option
@config_option
@handle_configuration_errors
def config_show(project_root: Path, config_path: str | None) -> None:
    """Show current configuration."""
    config = load_config(Path(config_path) if config_path else None, project_root)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Critical Paths")
    table.add_column("Glob")
    for pattern in config.critical_paths:
        table.add_row(pattern)
    console.print(table)

    console.print(f"\n[bold]Max standard files:[/bold] {config.tiers.max_standard_files}")
    console.print(
        f"[bold]Executor:[/bold] timeout {config.executor.timeout_seconds:g}s, "
        f"max {config.executor.max_parallel} parallel"
        + (", sequential" if config.executor.sequential else "")
    )
    console.print("[bold]Scoring:[/bold]")
    console.print(yaml.safe_dump(vars(config.scoring), sort_keys=False).rstrip())


if __name__ == "__main__":
    cli()
