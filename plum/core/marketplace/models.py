"""Wire and in-memory models for marketplace manifests, listings and stats."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _drop_nulls(data: Any) -> Any:
    # Manifests in the wild use null for "not set"; fall back to field defaults.
    if isinstance(data, dict):
        return {key: value for key, value in data.items() if value is not None}
    return data


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class Author(_WireModel):
    name: str = ""
    email: str = ""
    url: str = ""
    company: str = ""


class MarketplaceOwner(_WireModel):
    name: str = ""
    email: str = ""
    company: str = ""


class MarketplaceMetadata(_WireModel):
    description: str = ""
    version: str = ""
    plugin_root: str = Field(default="", alias="pluginRoot")


class MarketplacePlugin(_WireModel):
    """A plugin entry inside a marketplace manifest.

    On the wire ``source`` is either a relative path string or an object such
    as ``{"source": "url", "url": "https://..."}``. The object form is resolved
    here to its ``url`` and flagged with ``is_external_url``; nothing past this
    model ever sees the raw object.
    """

    name: str = ""
    source: str = ""
    description: str = ""
    version: str = ""
    author: Author = Field(default_factory=Author)
    category: str = ""
    homepage: str = ""
    repository: str = ""
    license: str = ""
    keywords: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    strict: bool = False
    is_external_url: bool = Field(default=False, alias="isExternalURL")
    has_lsp_servers: bool = Field(default=False, alias="hasLSPServers")

    @model_validator(mode="before")
    @classmethod
    def _resolve_wire_shapes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = _drop_nulls(data)
        raw_source = data.get("source")
        if isinstance(raw_source, dict):
            data["source"] = str(raw_source.get("url") or "")
            data["isExternalURL"] = True
        if "lspServers" in data:
            servers = data.pop("lspServers")
            data["hasLSPServers"] = isinstance(servers, (dict, list)) and len(servers) > 0
        if isinstance(data.get("author"), str):
            data["author"] = {"name": data["author"]}
        return data

    def installable(self) -> bool:
        """Whether ``/plugin install`` can handle this entry."""
        return not self.has_lsp_servers and not self.is_external_url

    def installability_reason(self) -> str:
        if self.has_lsp_servers:
            return "LSP plugin (built into Claude Code)"
        if self.is_external_url:
            return "external repository (requires manual installation)"
        return ""


class MarketplaceManifest(_WireModel):
    """Parsed ``.claude-plugin/marketplace.json``."""

    name: str = ""
    owner: MarketplaceOwner = Field(default_factory=MarketplaceOwner)
    metadata: MarketplaceMetadata = Field(default_factory=MarketplaceMetadata)
    plugins: List[MarketplacePlugin] = Field(default_factory=list)

    def with_name(self, name: str) -> "MarketplaceManifest":
        return self.model_copy(update={"name": name})


class RepoStats(_WireModel):
    """Point-in-time GitHub repository statistics."""

    stars: int = Field(default=0, alias="stargazers_count")
    forks: int = Field(default=0, alias="forks_count")
    last_pushed_at: Optional[datetime] = Field(default=None, alias="pushed_at")
    open_issues: int = Field(default=0, alias="open_issues_count")


class CatalogListing(_WireModel):
    """One known marketplace, from the built-in table or the remote registry."""

    name: str
    display_name: str = Field(default="", alias="displayName")
    repo: str
    description: str = ""
    static_stats: Optional[RepoStats] = Field(default=None, alias="staticStats")

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("marketplace name cannot be empty")
        return value


class MarketplaceRegistry(_WireModel):
    """Remote list of known marketplaces."""

    version: str = ""
    last_updated: str = Field(default="", alias="lastUpdated")
    description: str = ""
    marketplaces: List[CatalogListing] = Field(default_factory=list)


@dataclass(frozen=True)
class DiscoveredMarketplace:
    manifest: MarketplaceManifest
    repo: str
    # owner/repo on GitHub, full URL elsewhere
    source: str


__all__ = [
    "Author",
    "MarketplaceOwner",
    "MarketplaceMetadata",
    "MarketplacePlugin",
    "MarketplaceManifest",
    "RepoStats",
    "CatalogListing",
    "MarketplaceRegistry",
    "DiscoveredMarketplace",
]
