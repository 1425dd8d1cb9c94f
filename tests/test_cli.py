"""Tests for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FULL_ROLES, FakeRegistry, MockProvider, make_settings
from typer.testing import CliRunner

from content_council.cli import main as cli_main
from content_council.cli.main import app
from content_council.council import Council

runner = CliRunner()


@pytest.fixture(autouse=True)
def keep_logging_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Stop commands from installing handlers on the runner's captured stderr."""
    monkeypatch.setattr("content_council.logging.setup_logging", lambda *args, **kwargs: None)


@pytest.fixture
def patched_council(monkeypatch: pytest.MonkeyPatch) -> dict[str, MockProvider]:
    """Route every command to a council of mock providers."""
    adapters: dict[str, MockProvider] = {}

    def build(quality: bool = False, config_path: Path | None = None) -> Council:
        adapters.clear()
        adapters.update({name: MockProvider(f"{name} output") for name in FULL_ROLES})
        settings = make_settings(FULL_ROLES)
        return Council(settings, quality=quality, registry=FakeRegistry(adapters))

    monkeypatch.setattr(cli_main, "_build_council", build)
    return adapters


class TestCLIHelp:
    """Tests for CLI help commands."""

    def test_help(self):
        """Test --help displays correctly."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Role-based multi-LLM content pipelines" in result.stdout

    def test_run_help(self):
        result = runner.invoke(app, ["run", "--help"])
        assert result.exit_code == 0
        assert "workflow" in result.stdout.lower()

    def test_optimize_help(self):
        result = runner.invoke(app, ["optimize", "--help"])
        assert result.exit_code == 0
        assert "--keyword" in result.stdout


class TestCLIVersion:
    """Tests for version command."""

    def test_version(self):
        """Test version command output."""
        from content_council import __version__

        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"content-council v{__version__}" in result.stdout


class TestCLIConfig:
    """Tests for config command."""

    def test_config_show_no_file(self):
        result = runner.invoke(app, ["config", "--show"])
        assert result.exit_code == 0
        assert "No configuration file found" in result.stdout

    def test_config_init_and_show(self, tmp_path):
        """--init writes the template to $CONTENT_COUNCIL_CONFIG."""
        result = runner.invoke(app, ["config", "--init"])
        assert result.exit_code == 0
        assert (tmp_path / "config.yaml").exists()

        shown = runner.invoke(app, ["config", "--show"])
        assert "construction_timeout" in shown.stdout

    def test_config_init_keeps_existing_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("council: {}\n", encoding="utf-8")

        result = runner.invoke(app, ["config", "--init"])

        assert result.exit_code == 0
        assert "already exists" in result.stdout
        assert config_file.read_text(encoding="utf-8") == "council: {}\n"

    def test_config_usage(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "--show" in result.stdout


class TestCLIRun:
    """Tests for run command."""

    def test_run_create(self, patched_council):
        result = runner.invoke(app, ["run", "create", "Write about rice"])
        assert result.exit_code == 0
        assert "COMPLETED" in result.stdout
        assert "gemini output" in result.stdout

    def test_run_verbose(self, patched_council):
        result = runner.invoke(app, ["run", "full", "Write about rice", "--verbose"])
        assert result.exit_code == 0
        assert "Pipeline Steps" in result.stdout
        assert "chinda output" in result.stdout

    def test_run_json(self, patched_council):
        result = runner.invoke(app, ["run", "full", "Write about rice", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "completed"
        assert [step["provider_id"] for step in data["steps"]] == list(FULL_ROLES)

    def test_run_unknown_workflow(self, patched_council):
        result = runner.invoke(app, ["run", "nope", "prompt", "--json"])
        assert result.exit_code == 1
        assert "nope" in json.loads(result.stdout)["error"]

    def test_run_without_credentials(self):
        """The real builder reports missing keys as an error."""
        result = runner.invoke(app, ["run", "create", "prompt"])
        assert result.exit_code == 1
        assert "No enabled providers" in result.stdout


class TestCLIOptimize:
    """Tests for optimize command."""

    def test_optimize(self, patched_council):
        result = runner.invoke(app, ["optimize", "Thai food", "--keyword", "food", "-v"])
        assert result.exit_code == 0
        assert "Quality Score" in result.stdout
        assert "Combined" in result.stdout

    def test_optimize_json(self, patched_council):
        result = runner.invoke(app, ["optimize", "Thai food", "-k", "food", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["target_keyword"] == "food"
        assert data["score"]["combined_score"] >= 0


class TestCLIConsult:
    """Tests for consult command."""

    def test_consult(self, patched_council):
        result = runner.invoke(app, ["consult", "reviewer", "Is it accurate?"])
        assert result.exit_code == 0
        assert "openai output" in result.stdout
        assert patched_council["openai"].prompts == ["Is it accurate?"]

    def test_consult_unknown_role(self, patched_council):
        result = runner.invoke(app, ["consult", "editor", "Hello?"])
        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestCLIStatus:
    """Tests for status and doctor commands."""

    def test_status(self, patched_council):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Council Members" in result.stdout
        assert "fully_initialized" in result.stdout

    def test_status_detailed(self, patched_council):
        result = runner.invoke(app, ["status", "--detailed"])
        assert result.exit_code == 0
        assert "Overall health: 100%" in result.stdout

    def test_status_json(self, patched_council):
        result = runner.invoke(app, ["status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total_members"] == 5
        assert data["roles"]["creator"] == "gemini"

    def test_doctor(self, patched_council):
        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == 0
        assert "Provider Status" in result.stdout
        assert "OK" in result.stdout
