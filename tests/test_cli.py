"""Tests for the `plum` command line."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from plum.cli import cli as cli_module
from plum.core.marketplace import MarketplaceRegistry

from tests.conftest import API_HOST, RAW_HOST, REGISTRY_PATH, listing, manifest_payload


@pytest.fixture
def service_factory(make_service, monkeypatch):
    monkeypatch.setattr(cli_module, "_build_service", lambda: make_service())
    return make_service


def _seed_registry(make_service, *names: str) -> None:
    service = make_service()
    service.registry.save_cached(MarketplaceRegistry(marketplaces=[listing(name) for name in names]))


def _run_cli(args: list[str]):
    runner = CliRunner()
    return runner.invoke(cli_module.cli, args)


def test_help_lists_commands() -> None:
    result = _run_cli(["--help"])

    assert result.exit_code == 0
    for command in ("discover", "plugins", "registry", "cache", "refresh"):
        assert command in result.output


def test_discover_json_reports_partial_results(service_factory, fake_github) -> None:
    _seed_registry(service_factory, "good", "broken")
    fake_github.manifest(
        "acme/good",
        manifest_payload(
            plugins=[
                {"name": "local", "source": "./local"},
                {"name": "remote", "source": {"source": "url", "url": "https://x.test/r.git"}},
            ]
        ),
    )

    result = _run_cli(["discover", "--json"])

    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert rows == [
        {
            "name": "good",
            "repo": "https://github.com/acme/good",
            "source": "acme/good",
            "pluginCount": 2,
            "installableCount": 1,
        }
    ]


def test_discover_with_stats(service_factory, fake_github) -> None:
    _seed_registry(service_factory, "good")
    fake_github.manifest("acme/good", manifest_payload())
    fake_github.json(API_HOST, "/repos/acme/good", {"stargazers_count": 99})

    result = _run_cli(["discover", "--json", "--stats"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0]["stars"] == 99


def test_discover_table_output(service_factory, fake_github) -> None:
    _seed_registry(service_factory, "good")
    fake_github.manifest("acme/good", manifest_payload())

    result = _run_cli(["discover"])

    assert result.exit_code == 0, result.output
    assert "good" in result.output
    assert "acme/good" in result.output


def test_discover_fails_when_every_marketplace_fails(service_factory) -> None:
    _seed_registry(service_factory, "one", "two")

    result = _run_cli(["discover"])

    assert result.exit_code == 1
    assert "all marketplace fetches failed" in result.output


def test_plugins_json(service_factory, fake_github) -> None:
    _seed_registry(service_factory, "good")
    fake_github.manifest(
        "acme/good",
        manifest_payload(plugins=[{"name": "lsp", "source": "./lsp", "lspServers": {"py": {}}}]),
    )

    result = _run_cli(["plugins", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload[0]["fullName"] == "lsp@good"
    assert payload[0]["installable"] is False
    assert payload[0]["installCommand"] == "/plugin install lsp@good"
    assert payload[0]["author"] == "Unknown"


def test_registry_check_reports_new_count(service_factory, fake_github) -> None:
    fake_github.json(
        RAW_HOST,
        REGISTRY_PATH,
        {"marketplaces": [listing("fresh").model_dump(mode="json", by_alias=True)]},
    )

    result = _run_cli(["registry", "--check", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["newCount"] == 1
    assert [entry["name"] for entry in payload["marketplaces"]] == ["fresh"]


def test_registry_plain_output_uses_builtin_fallback(service_factory, fake_github) -> None:
    fake_github.status(RAW_HOST, REGISTRY_PATH, 500)

    result = _run_cli(["registry"])

    assert result.exit_code == 0, result.output
    assert "claude-plugins-official" in result.output


def test_cache_clear(service_factory, settings) -> None:
    _seed_registry(service_factory, "good")
    assert settings.cache_dir.exists()

    result = _run_cli(["cache", "clear"])

    assert result.exit_code == 0, result.output
    assert "Cleared cache at" in result.output
    assert not settings.cache_dir.exists()


def test_refresh(service_factory, fake_github) -> None:
    fake_github.json(
        RAW_HOST,
        REGISTRY_PATH,
        {"marketplaces": [listing("fresh").model_dump(mode="json", by_alias=True)]},
    )
    fake_github.manifest("acme/fresh", manifest_payload())

    result = _run_cli(["refresh"])

    assert result.exit_code == 0, result.output
    assert "Refreshed 1 marketplace(s)." in result.output
