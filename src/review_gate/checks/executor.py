"""Quality check executor for parallel tool invocation."""

import asyncio
import logging
import os
import re
import shlex
import signal
import time
from dataclasses import dataclass, field
from pathlib import Path

from review_gate.models.findings import FileScope
from review_gate.models.results import RawToolResult
from review_gate.models.toolchain import CORE_CATEGORIES, ResolvedToolchain, ToolCommand

logger = logging.getLogger(__name__)

FILES_PLACEHOLDER = "${files}"

# Shell exit statuses for commands that never ran
_NOT_RUN_EXIT_CODES = {
    126: "command not executable",
    127: "command not found",
}


@dataclass
class ExecutorConfig:
    """Configuration for the quality check executor."""

    timeout_seconds: float = 300.0
    max_parallel: int = 4
    sequential: bool = False


@dataclass
class QualityCheckRun:
    """Everything needed to run a project's quality checks once."""

    toolchain: ResolvedToolchain
    project_root: Path
    file_scope: FileScope = FileScope.UNCOMMITTED
    changed_files: list[str] = field(default_factory=list)


def build_command(template: str, file_scope: FileScope, changed_files: list[str]) -> str:
    """Expand the ${files} placeholder of a command template.

    The uncommitted scope expands to the shell-quoted changed files; the all
    scope, or an empty file list, expands to the current directory.
    """
    if FILES_PLACEHOLDER not in template:
        return template
    if file_scope is FileScope.ALL or not changed_files:
        files = "."
    else:
        files = " ".join(shlex.quote(path) for path in changed_files)
    return template.replace(FILES_PLACEHOLDER, files)


def _count_matches(pattern: str, text: str) -> int:
    regex = re.compile(pattern)
    return sum(1 for line in text.splitlines() if regex.search(line))


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a tool process along with anything its shell spawned."""
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


class QualityCheckExecutor:
    """Runs every tool bound in a resolved toolchain and normalizes the outcomes."""

    def __init__(self, config: ExecutorConfig | None = None) -> None:
        """Initialize the executor.

        Args:
            config: Execution settings (timeouts, parallelism)
        """
        self.config = config or ExecutorConfig()

    async def run(self, run: QualityCheckRun) -> list[RawToolResult]:
        """Run all quality checks and collect one result per category/tool binding.

        A tool that cannot be started or exceeds its timeout becomes a skipped
        result; nothing a single tool does aborts the others. Results follow
        the toolchain's category/tool order regardless of completion order.

        Args:
            run: Toolchain, working directory and file scope

        Returns:
            Raw results in canonical order
        """
        jobs = self._plan(run)
        mode = f"max {self.config.max_parallel} parallel"
        if self.config.sequential:
            mode = "sequential"
        logger.info(f"Running {len(jobs)} quality checks ({mode})")

        if self.config.sequential:
            results = []
            for job in jobs:
                results.append(await job)
            return results

        semaphore = asyncio.Semaphore(max(1, self.config.max_parallel))

        async def bounded(job):
            async with semaphore:
                return await job

        # gather keeps results in submission order
        return list(await asyncio.gather(*(bounded(job) for job in jobs)))

    def _plan(self, run: QualityCheckRun) -> list:
        """Build one awaitable per result slot, in canonical order."""
        toolchain = run.toolchain
        jobs = []

        for category, tool in toolchain.bindings():
            command = toolchain.commands.get(tool)
            if command is None:
                jobs.append(
                    self._skip(category, tool, f"Tool {tool} has no command in the toolchain")
                )
                continue
            jobs.append(self._run_tool(category, tool, command, run))

        for core in CORE_CATEGORIES:
            if not toolchain.quality_checks.get(core.value):
                jobs.append(self._skip(core.value, "none", "No tool configured for this category"))

        return jobs

    async def _skip(self, category: str, tool: str, reason: str) -> RawToolResult:
        logger.warning(f"Skipping {category}/{tool}: {reason}")
        return RawToolResult.skipped(category, tool, reason)

    async def _run_tool(
        self,
        category: str,
        tool: str,
        binding: ToolCommand,
        run: QualityCheckRun,
    ) -> RawToolResult:
        """Run a single tool command with a timeout.

        Args:
            category: Quality check category being run
            tool: Tool name
            binding: Toolchain command binding
            run: Working directory and file scope

        Returns:
            Normalized result for this category/tool pair
        """
        command = build_command(binding.command, run.file_scope, run.changed_files)
        logger.debug(f"Starting {tool} for {category}: {command}")
        start = time.monotonic()

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=run.project_root,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=os.name == "posix",
            )
        except OSError as e:
            return await self._skip(category, tool, f"Failed to start: {e}")

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            _kill(process)
            await process.wait()
            return await self._skip(
                category, tool, f"timeout after {self.config.timeout_seconds:g}s"
            )

        duration_ms = int((time.monotonic() - start) * 1000)
        stdout = stdout_bytes.decode(errors="replace")
        stderr = stderr_bytes.decode(errors="replace")
        exit_code = process.returncode if process.returncode is not None else -1

        if exit_code in _NOT_RUN_EXIT_CODES:
            return RawToolResult.skipped(
                category,
                tool,
                f"{_NOT_RUN_EXIT_CODES[exit_code]}: {command.split()[0]}",
                stdout=stdout,
                stderr=stderr,
                duration_ms=duration_ms,
            )

        logger.debug(f"{tool} finished for {category}: exit {exit_code} in {duration_ms}ms")
        return self._normalize(category, tool, binding, exit_code, stdout, stderr, duration_ms)

    def _normalize(
        self,
        category: str,
        tool: str,
        binding: ToolCommand,
        exit_code: int,
        stdout: str,
        stderr: str,
        duration_ms: int,
    ) -> RawToolResult:
        """Pick the pass/fail signal for a finished tool."""
        if binding.error_pattern:
            combined = f"{stdout}\n{stderr}"
            try:
                error_count = _count_matches(binding.error_pattern, combined)
                warning_count = (
                    _count_matches(binding.warning_pattern, combined)
                    if binding.warning_pattern
                    else None
                )
            except re.error as e:
                logger.warning(f"Invalid output pattern for {tool}, using exit status: {e}")
            else:
                # A failing tool whose output matched nothing still failed
                if error_count > 0 or exit_code == 0:
                    return RawToolResult.counted(
                        category,
                        tool,
                        error_count=error_count,
                        warning_count=warning_count,
                        stdout=stdout,
                        stderr=stderr,
                        exit_code=exit_code,
                        duration_ms=duration_ms,
                    )

        return RawToolResult.completed(
            category,
            tool,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
        )


async def run_quality_checks(
    run: QualityCheckRun,
    config: ExecutorConfig | None = None,
) -> list[RawToolResult]:
    """Run a project's quality checks with a one-off executor."""
    return await QualityCheckExecutor(config).run(run)
