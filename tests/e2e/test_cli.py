"""End-to-end CLI runs against the fake R2R backend."""

import json

import pytest
from typer.testing import CliRunner

from r2r_research.cli import main as cli_main
from r2r_research.integrations.r2r_client import R2RClient

runner = CliRunner()


@pytest.fixture
def backend(fake_r2r, monkeypatch):
    """Route the CLI's client to the fake backend and record the settings it used."""
    seen = []

    def fake_client(settings):
        seen.append(settings)
        return R2RClient(
            settings.base_url,
            api_key=settings.api_key,
            max_retries=settings.retry.max_attempts,
            backoff=0,
            transport=fake_r2r.transport(),
        )

    monkeypatch.setattr(cli_main, "_get_client", fake_client)
    fake_r2r.seen_settings = seen
    return fake_r2r


def test_search_json_output(backend):
    result = runner.invoke(
        cli_main.app,
        ["search", "react hooks", "-c", "framework-react", "--format", "json", "--no-fallback"],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [r["text"] for r in data["results"]] == [
        "useEffect runs after render.",
        "State machines make UI transitions explicit.",
    ]
    assert data["collections"] == ["framework-react"]


def test_search_text_output_with_fallback(backend):
    result = runner.invoke(cli_main.app, ["search", "state machines", "-c", "framework-react"])

    assert result.exit_code == 0, result.output
    assert "Results for:" in result.stdout
    assert "Hooks reference" in result.stdout
    assert "universal collections were added" in result.stdout
    assert len(backend.search_payloads) == 2


def test_search_markdown_and_limit(backend):
    result = runner.invoke(cli_main.app, ["search", "indexes", "-n", "1", "-f", "markdown"])

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("## Search: indexes")
    assert backend.search_payloads[0]["search_settings"]["limit"] == 1


def test_default_limit_from_environment(backend, monkeypatch):
    monkeypatch.setenv("R2R_RESEARCH_DEFAULT_LIMIT", "3")

    result = runner.invoke(cli_main.app, ["search", "anything", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert backend.search_payloads[0]["search_settings"]["limit"] == 3
    assert len(json.loads(result.stdout)["results"]) == 3


def test_global_options_override_environment(backend, monkeypatch):
    monkeypatch.setenv("R2R_RESEARCH_BASE_URL", "http://env-host:7272")
    monkeypatch.setenv("R2R_RESEARCH_API_KEY", "env-key")

    result = runner.invoke(
        cli_main.app,
        ["--base-url", "http://cli-host:9000", "--api-key", "cli-key", "health"],
    )

    assert result.exit_code == 0, result.output
    settings = backend.seen_settings[0]
    assert settings.base_url == "http://cli-host:9000"
    assert settings.api_key == "cli-key"
    assert backend.requests[0].headers["Authorization"] == "Bearer cli-key"
    assert "R2R reachable" in result.stdout


def test_unknown_collection_exits_with_error(backend):
    result = runner.invoke(cli_main.app, ["search", "hooks", "-c", "framework-vue"])

    assert result.exit_code == 1
    assert "Unknown collection(s): framework-vue" in result.output


def test_backend_auth_failure_exits_with_error(backend):
    backend.fail_with = [401]

    result = runner.invoke(cli_main.app, ["collections"])

    assert result.exit_code == 1
    assert "R2R_RESEARCH_API_KEY" in result.output


def test_invalid_limit_is_a_usage_error(backend):
    result = runner.invoke(cli_main.app, ["search", "hooks", "--limit", "0"])
    assert result.exit_code == 2
    assert backend.requests == []


def test_blank_query_is_a_usage_error(backend):
    result = runner.invoke(cli_main.app, ["search", "   "])
    assert result.exit_code == 2
    assert backend.requests == []


def test_invalid_configuration_exits_with_error(backend, monkeypatch):
    monkeypatch.setenv("R2R_RESEARCH_BASE_URL", "not-a-url")

    result = runner.invoke(cli_main.app, ["collections"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_collections_by_tier(backend):
    result = runner.invoke(cli_main.app, ["collections", "--tier", "tech-stack", "--format", "json"])

    assert result.exit_code == 0, result.output
    names = [c["name"] for c in json.loads(result.stdout)["collections"]]
    assert names == ["db-postgres", "framework-react"]


def test_collections_table(backend):
    result = runner.invoke(cli_main.app, ["collections"])

    assert result.exit_code == 0, result.output
    for name in ("universal-patterns", "framework-react", "project-acme"):
        assert name in result.stdout


def test_info_by_name_and_missing(backend):
    result = runner.invoke(cli_main.app, ["info", "db-postgres", "--format", "json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["id"] == "c-pg"

    result = runner.invoke(cli_main.app, ["info", "does-not-exist"])
    assert result.exit_code == 1
    assert "Unknown collection(s)" in result.output


@pytest.mark.parametrize("blank", ["", "  "])
def test_blank_collection_is_a_usage_error(backend, blank):
    result = runner.invoke(cli_main.app, ["search", "hooks", "-c", blank])
    assert result.exit_code == 2
    assert backend.requests == []
