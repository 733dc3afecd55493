from __future__ import annotations

from typing import Any

import pytest

from plum.core.marketplace import (
    CatalogListing,
    DiscoveredMarketplace,
    MarketplaceManifest,
    MarketplacePlugin,
    RepoStats,
    flatten_plugins,
)


def test_plugin_string_source_is_local() -> None:
    plugin = MarketplacePlugin.model_validate({"name": "demo", "source": "./plugins/demo"})

    assert plugin.source == "./plugins/demo"
    assert plugin.is_external_url is False
    assert plugin.installable() is True
    assert plugin.installability_reason() == ""


def test_plugin_object_source_resolves_to_url() -> None:
    plugin = MarketplacePlugin.model_validate(
        {
            "name": "remote",
            "source": {"source": "url", "url": "https://github.com/acme/remote-plugin.git"},
        }
    )

    assert plugin.source == "https://github.com/acme/remote-plugin.git"
    assert plugin.is_external_url is True
    assert plugin.installable() is False
    assert plugin.installability_reason() == "external repository (requires manual installation)"


@pytest.mark.parametrize(
    ("lsp_servers", "expected"),
    [
        ({"python": {"command": "pylsp"}}, True),
        ([{"command": "gopls"}], True),
        ({}, False),
        ([], False),
        (None, False),
        ("pylsp", False),
    ],
)
def test_plugin_lsp_servers_flag(lsp_servers: Any, expected: bool) -> None:
    plugin = MarketplacePlugin.model_validate(
        {"name": "lsp", "source": "./lsp", "lspServers": lsp_servers}
    )

    assert plugin.has_lsp_servers is expected
    assert plugin.installable() is not expected


def test_lsp_reason_takes_precedence_over_external_url() -> None:
    plugin = MarketplacePlugin.model_validate(
        {
            "name": "both",
            "source": {"source": "url", "url": "https://example.com/x"},
            "lspServers": {"x": {}},
        }
    )

    assert plugin.installability_reason() == "LSP plugin (built into Claude Code)"


def test_plugin_string_author_and_null_fields() -> None:
    plugin = MarketplacePlugin.model_validate(
        {"name": "demo", "source": "./demo", "author": "Jane", "version": None, "keywords": None}
    )

    assert plugin.author.name == "Jane"
    assert plugin.version == ""
    assert plugin.keywords == []


def test_manifest_ignores_unknown_fields_and_round_trips_flags() -> None:
    manifest = MarketplaceManifest.model_validate(
        {
            "name": "market",
            "$schema": "https://example.com/schema.json",
            "metadata": {"pluginRoot": "./plugins"},
            "plugins": [
                {"name": "a", "source": {"source": "github", "url": "https://x.test/a"}},
            ],
        }
    )
    dumped = manifest.model_dump(mode="json", by_alias=True)
    restored = MarketplaceManifest.model_validate(dumped)

    assert manifest.metadata.plugin_root == "./plugins"
    assert dumped["plugins"][0]["isExternalURL"] is True
    assert restored.plugins[0].is_external_url is True
    assert restored.plugins[0].source == "https://x.test/a"


def test_manifest_with_name_returns_copy() -> None:
    manifest = MarketplaceManifest(name="self-reported")
    renamed = manifest.with_name("listing-key")

    assert renamed.name == "listing-key"
    assert manifest.name == "self-reported"


def test_listing_requires_name_and_repo() -> None:
    with pytest.raises(ValueError):
        CatalogListing(name="  ", repo="https://github.com/a/b")
    with pytest.raises(ValueError):
        CatalogListing.model_validate({"name": "x"})

    listing = CatalogListing.model_validate(
        {
            "name": "x",
            "displayName": "X",
            "repo": "https://github.com/a/b",
            "staticStats": {"stargazers_count": 3, "forks_count": 1},
        }
    )
    assert listing.display_name == "X"
    assert listing.static_stats == RepoStats(stars=3, forks=1)


def test_repo_stats_from_github_payload() -> None:
    stats = RepoStats.model_validate(
        {
            "stargazers_count": 42,
            "forks_count": 7,
            "pushed_at": "2025-12-31T06:30:55Z",
            "open_issues_count": 2,
            "full_name": "acme/market",
        }
    )

    assert stats.stars == 42
    assert stats.forks == 7
    assert stats.open_issues == 2
    assert stats.last_pushed_at is not None
    assert stats.last_pushed_at.year == 2025


def test_flatten_plugins_sorts_and_derives_fields() -> None:
    beta = MarketplaceManifest.model_validate(
        {
            "name": "beta",
            "plugins": [
                {"name": "Zeta", "source": "./z", "author": {"company": "Acme"}},
                {"name": "alpha", "source": "./a", "lspServers": {"py": {}}},
                {"name": "", "source": "./nameless"},
            ],
        }
    )
    alpha = MarketplaceManifest.model_validate(
        {"name": "alpha", "plugins": [{"name": "tool", "source": "./t"}]}
    )
    plugins = flatten_plugins(
        {
            "beta": DiscoveredMarketplace(manifest=beta, repo="https://github.com/o/beta", source="o/beta"),
            "alpha": DiscoveredMarketplace(manifest=alpha, repo="https://github.com/o/alpha", source="o/alpha"),
        }
    )

    assert [item.full_name for item in plugins] == ["tool@alpha", "alpha@beta", "Zeta@beta"]
    assert plugins[0].install_command == "/plugin install tool@alpha"
    assert plugins[0].author_name == "Unknown"
    assert plugins[0].marketplace_source == "o/alpha"
    assert plugins[1].installable is False
    assert plugins[1].installability_reason == "LSP plugin (built into Claude Code)"
    assert plugins[2].author_name == "Acme"
