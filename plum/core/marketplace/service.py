"""Entry point that wires the marketplace components together.

``MarketplaceService`` owns the single pooled HTTP client and the cache store
for its lifetime; every component receives them by reference.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from plum.core.config import PlumSettings, load_settings
from plum.core.marketplace.cache import CacheStore
from plum.core.marketplace.discovery import DiscoveryOrchestrator
from plum.core.marketplace.fetcher import CatalogFetcher
from plum.core.marketplace.models import CatalogListing, DiscoveredMarketplace, RepoStats
from plum.core.marketplace.plugins import CatalogPlugin, flatten_plugins
from plum.core.marketplace.registry import RegistryResolver
from plum.core.marketplace.retry import RetryPolicy
from plum.core.marketplace.stats import StatsFetcher
from plum.core.marketplace.transport import TransportClient
from plum.utils.log import get_logger

logger = get_logger()


class MarketplaceService:
    def __init__(
        self,
        settings: Optional[PlumSettings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        retry: Optional[RetryPolicy] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.transport = TransportClient(self.settings, client=http_client)
        self.cache = cache or CacheStore(self.settings)
        self.fetcher = CatalogFetcher(
            self.settings,
            self.transport,
            self.cache,
            retry or RetryPolicy(max_attempts=self.settings.max_attempts),
        )
        self.stats = StatsFetcher(self.settings, self.transport, self.cache)
        self.registry = RegistryResolver(self.settings, self.transport, self.cache)
        self.orchestrator = DiscoveryOrchestrator(
            self.fetcher, max_concurrent=self.settings.max_concurrent_fetches
        )

    async def resolve_listing(self) -> List[CatalogListing]:
        return await self.registry.resolve_listing()

    async def check_for_updates(
        self, prior: Optional[Iterable[CatalogListing]] = None
    ) -> Tuple[List[CatalogListing], int]:
        baseline = list(prior) if prior is not None else self.registry.active_listing()
        return await self.registry.resolve_with_new_count(baseline)

    async def discover_all(
        self,
        listing: Iterable[CatalogListing],
        *,
        force_refresh: bool = False,
    ) -> Dict[str, DiscoveredMarketplace]:
        return await self.orchestrator.discover_all(listing, force_refresh=force_refresh)

    async def discover_popular(self) -> Dict[str, DiscoveredMarketplace]:
        """Discover the active listing: cached registry if present, else built-in."""
        return await self.discover_all(self.registry.active_listing())

    async def discover_with_registry(self) -> Dict[str, DiscoveredMarketplace]:
        """Resolve the latest registry and fetch every entry fresh from GitHub."""
        listing = await self.registry.resolve_listing()
        return await self.discover_all(listing, force_refresh=True)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def refresh_all(self) -> Dict[str, DiscoveredMarketplace]:
        """Clear the cache, then re-discover every marketplace in the registry."""
        self.clear_cache()
        return await self.discover_with_registry()

    async def fetch_stats(self, listing: Iterable[CatalogListing]) -> Dict[str, RepoStats]:
        return await self.stats.fetch_all_stats(listing)

    @staticmethod
    def flatten(discovered: Dict[str, DiscoveredMarketplace]) -> List[CatalogPlugin]:
        return flatten_plugins(discovered)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "MarketplaceService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["MarketplaceService"]
