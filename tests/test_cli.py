"""Tests for CLI commands."""

import json
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner


def _json_payload(output: str) -> dict:
    """The JSON document printed after any log lines."""
    return json.loads(output[output.index('{\n  "timestamp"') :])


class TestCLI:
    """Tests for CLI commands."""

    def test_cli_help(self):
        """Test that CLI shows help."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "review" in result.output
        assert "toolchain" in result.output

    def test_classify_command(self, tmp_path):
        """Test tier classification of --file arguments."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["classify", "--file", "src/foo.test.ts", "--project-root", str(tmp_path)],
        )

        assert result.exit_code == 0
        assert "Tier: quick" in result.output
        assert "Files: 1" in result.output

    def test_classify_from_numstat(self, tmp_path, sample_numstat):
        """Test tier classification of numstat input from stdin."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["classify", "--numstat", "-", "--project-root", str(tmp_path)],
            input=sample_numstat,
        )

        assert result.exit_code == 0
        assert "Tier: standard" in result.output
        assert "Files: 5" in result.output
        assert "Lines: 91" in result.output

    def test_classify_critical_path(self, tmp_path):
        """Test a critical-path file gives the full tier."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["classify", "--file", "src/commands/harden.ts", "--project-root", str(tmp_path)],
        )

        assert result.exit_code == 0
        assert "Tier: full" in result.output

    def test_toolchain_detect_write(self, tmp_path, write_files):
        """Test detection writes the toolchain file."""
        from review_gate.cli import cli
        from review_gate.toolchain.store import load_toolchain

        write_files(tmp_path, {"pyproject.toml": "[tool.ruff]\n", "pytest.ini": "[pytest]\n"})

        runner = CliRunner()
        result = runner.invoke(
            cli, ["toolchain", "detect", "--write", "--project-root", str(tmp_path)]
        )

        assert result.exit_code == 0
        toolchain = load_toolchain(tmp_path)
        assert toolchain.language == "python"
        assert toolchain.quality_checks["linting"][0] == "ruff"
        assert "pytest" in toolchain.quality_checks["testing"]

    def test_toolchain_show_missing(self, tmp_path):
        """Test showing a missing toolchain exits 1 with the remediation."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(cli, ["toolchain", "show", "--project-root", str(tmp_path)])

        assert result.exit_code == 1
        assert "Toolchain not found" in result.output

    def test_registry_list_command(self):
        """Test listing registry tools filtered by category."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(cli, ["registry", "list", "--category", "security"])

        assert result.exit_code == 0
        assert "semgrep" in result.output
        assert "prettier" not in result.output

    def test_config_validate_command(self, tmp_path):
        """Test config validate command."""
        from review_gate.cli import cli

        config_path = tmp_path / "config.yaml"
        config_path.write_text("tiers:\n  max_standard_files: 8\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "valid" in result.output.lower()

    def test_config_validate_invalid(self, tmp_path):
        """Test config validate with invalid config."""
        from review_gate.cli import cli

        config_path = tmp_path / "config.yaml"
        config_path.write_text("executor:\n  max_parallel: 0\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "max_parallel" in result.output

    def test_config_show_command(self, tmp_path):
        """Test config show lists critical paths."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--project-root", str(tmp_path)])

        assert result.exit_code == 0
        assert "src/commands/**" in result.output


class TestReviewCommand:
    """Tests for the review command."""

    def test_review_without_toolchain(self, project_dir):
        """Test review exits 1 when the toolchain has not been detected."""
        from review_gate.cli import cli

        runner = CliRunner()
        result = runner.invoke(
            cli, ["review", "--file", "src/a.ts", "--project-root", str(project_dir)]
        )

        assert result.exit_code == 1
        assert "Toolchain not found" in result.output

    def test_review_json_output(self, project_dir, make_toolchain):
        """Test a review run end to end with JSON output."""
        from review_gate.cli import cli
        from review_gate.toolchain.store import write_toolchain

        write_toolchain(
            project_dir,
            make_toolchain(("linting", "eslint", "echo linted"), ("testing", "vitest", "exit 1")),
        )

        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "review",
                "--file",
                "src/commands/harden.ts",
                "--target",
                "harden",
                "--output",
                "json",
                "--project-root",
                str(project_dir),
            ],
        )

        assert result.exit_code == 0
        payload = _json_payload(result.output)
        assert payload["tier"] == "full"
        assert payload["scope"] == {"type": "file", "target": "harden", "file_count": 1}
        assert payload["all_passed"] is False
        assert payload["failed_categories"] == ["testing"]
        assert payload["critical_files"]["top_files"][0]["path"] == "src/commands/harden.ts"

    def test_review_save_manifest(self, project_dir, make_toolchain):
        """Test --save writes the manifest under the reviews directory."""
        from review_gate.cli import cli
        from review_gate.toolchain.store import write_toolchain

        write_toolchain(project_dir, make_toolchain(("linting", "eslint", "true")))

        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "review",
                "--file",
                "src/lib/a.ts",
                "--no-critical",
                "--save",
                "--output",
                "yaml",
                "--project-root",
                str(project_dir),
            ],
        )

        assert result.exit_code == 0
        saved = list((project_dir / ".review-gate" / "reviews").glob("review-manifest-*.yaml"))
        assert len(saved) == 1
        assert "recommended_tier: standard" in saved[0].read_text()

    def test_review_options_passed_to_engine(self, project_dir, make_toolchain):
        """Test CLI flags reach the engine."""
        from review_gate.cli import cli
        from review_gate.toolchain.store import write_toolchain

        write_toolchain(project_dir, make_toolchain(("linting", "eslint", "true")))

        runner = CliRunner()
        with patch(
            "review_gate.orchestrator.engine.ReviewEngine.review", new_callable=AsyncMock
        ) as mock_review:
            mock_review.side_effect = RuntimeError("stop")
            runner.invoke(
                cli,
                [
                    "review",
                    "--file",
                    "a.py",
                    "--file",
                    "a.py",
                    "--top-n",
                    "3",
                    "--all-files",
                    "--project-root",
                    str(project_dir),
                ],
            )

        mock_review.assert_called_once()
        options = mock_review.call_args.args[0]
        assert [f.path for f in options.changed_files] == ["a.py"]
        assert options.top_n == 3
        assert options.enable_critical_selection is True
        assert options.file_scope.value == "all"
        assert options.scope_type.value == "file"
