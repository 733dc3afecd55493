"""Flattened plugin records for list rendering and search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping

from plum.core.marketplace.models import Author, DiscoveredMarketplace


@dataclass(frozen=True)
class CatalogPlugin:
    name: str
    marketplace: str
    description: str = ""
    version: str = ""
    category: str = ""
    source: str = ""
    homepage: str = ""
    repository: str = ""
    license: str = ""
    author: Author = field(default_factory=Author)
    keywords: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    installable: bool = True
    installability_reason: str = ""
    marketplace_source: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name}@{self.marketplace}"

    @property
    def install_command(self) -> str:
        return f"/plugin install {self.full_name}"

    @property
    def author_name(self) -> str:
        if self.author.name:
            return self.author.name
        if self.author.company:
            return self.author.company
        return "Unknown"

    def filter_value(self) -> str:
        return f"{self.name} {self.description}"


def flatten_plugins(discovered: Mapping[str, DiscoveredMarketplace]) -> List[CatalogPlugin]:
    """One record per plugin, sorted by marketplace then plugin name."""
    plugins: List[CatalogPlugin] = []
    for marketplace_name, item in discovered.items():
        for plugin in item.manifest.plugins:
            if not plugin.name:
                continue
            plugins.append(
                CatalogPlugin(
                    name=plugin.name,
                    marketplace=marketplace_name,
                    description=plugin.description,
                    version=plugin.version,
                    category=plugin.category,
                    source=plugin.source,
                    homepage=plugin.homepage,
                    repository=plugin.repository,
                    license=plugin.license,
                    author=plugin.author,
                    keywords=list(plugin.keywords),
                    tags=list(plugin.tags),
                    installable=plugin.installable(),
                    installability_reason=plugin.installability_reason(),
                    marketplace_source=item.source,
                )
            )
    return sorted(plugins, key=lambda item: (item.marketplace, item.name.lower()))


__all__ = ["CatalogPlugin", "flatten_plugins"]
