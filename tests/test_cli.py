"""Tests for the click commands in src/cli.py."""

import pytest
from click.testing import CliRunner

import src.cli as cli
from tests.conftest import APPROVAL_REQUEST, FINALIZED, LEADER_MODEL, MEMBER1_MODEL, MEMBER2_MODEL, MockProvider


@pytest.fixture
def patched_cli(monkeypatch, sample_app_config):
    """Point the CLI at the sample config and a scripted provider."""
    provider = MockProvider({
        LEADER_MODEL: [APPROVAL_REQUEST, FINALIZED],
        MEMBER1_MODEL: ["Approved"],
        MEMBER2_MODEL: ["Approved"],
    })
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": provider})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)
    return provider


def test_solve_requires_problem(patched_cli):
    result = CliRunner().invoke(cli.main, ["solve", "--skip-health-check"])
    assert result.exit_code == 1
    assert "cannot be empty" in result.output
    assert patched_cli.calls == []


def test_solve_rejects_whitespace_problem(patched_cli):
    result = CliRunner().invoke(cli.main, ["solve", "   ", "--skip-health-check"])
    assert result.exit_code == 1
    assert patched_cli.calls == []


def test_solve_runs_team_and_saves(patched_cli, tmp_path):
    result = CliRunner().invoke(
        cli.main,
        ["solve", "What is 2+2?", "--skip-health-check", "--output", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    assert "Solution Finalized" in result.output
    saved = list(tmp_path.glob("*.md"))
    assert len(saved) == 1
    assert "2+2 = 4" in saved[0].read_text(encoding="utf-8")


def test_solve_reads_problem_file(patched_cli, tmp_path):
    problem_file = tmp_path / "problem.md"
    problem_file.write_text("What is 2+2?\n", encoding="utf-8")
    result = CliRunner().invoke(cli.main, ["solve", "--file", str(problem_file), "--skip-health-check"])
    assert result.exit_code == 0, result.output
    assert patched_cli.calls[0]["messages"][0]["content"] == "What is 2+2?\n"


def test_solve_leader_failure_exits_nonzero(monkeypatch, sample_app_config):
    provider = MockProvider({LEADER_MODEL: [None]})
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": provider})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["solve", "What is 2+2?", "--skip-health-check"])
    assert result.exit_code == 1
    assert "Leader failed to respond" in result.output


def test_solve_rounds_option_limits_rounds(monkeypatch, sample_app_config):
    provider = MockProvider()
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": provider})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["solve", "2+2", "--rounds", "2", "--skip-health-check"])
    assert result.exit_code == 0, result.output
    assert len(provider.calls_for(LEADER_MODEL)) == 3


def test_check_reports_failures(monkeypatch, sample_app_config):
    from src.providers.base import ProviderError

    provider = MockProvider({MEMBER1_MODEL: [ProviderError("openai", "401 Unauthorized")]})
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": provider})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["check"])
    assert result.exit_code == 1
    assert "FAIL" in result.output
    assert "Member1" in result.output


def test_solve_aborts_when_leader_unhealthy(monkeypatch, sample_app_config):
    from src.providers.base import ProviderError

    provider = MockProvider({LEADER_MODEL: [ProviderError("openai", "401 Unauthorized")]})
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": provider})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["solve", "2+2"])
    assert result.exit_code == 1
    assert "Leader is unreachable" in result.output


def test_check_lists_backend_keys(monkeypatch, sample_app_config):
    sample_app_config.available_backends = {"openai"}
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": MockProvider()})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["check"])
    assert result.exit_code == 0, result.output
    assert "KEY" in result.output
    assert "openai" in result.output


def test_check_names_missing_key_variable(monkeypatch, sample_app_config):
    monkeypatch.setattr(cli, "load_config", lambda: sample_app_config)
    monkeypatch.setattr(cli, "build_providers", lambda config, team: {"openai": MockProvider()})
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)

    result = CliRunner().invoke(cli.main, ["check"])
    assert "TEST_OPENROUTER_KEY" in result.output
