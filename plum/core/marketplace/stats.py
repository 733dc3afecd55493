"""GitHub repository statistics, cached independently of manifests.

Stats are decoration for the browser: every failure here degrades to the
listing's bundled snapshot and never blocks catalog discovery.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from plum.core.config import PlumSettings
from plum.core.marketplace.cache import CacheKind, CacheStore
from plum.core.marketplace.errors import CacheDecodeError, ManifestDecodeError, MarketplaceError
from plum.core.marketplace.models import CatalogListing, RepoStats
from plum.core.marketplace.source import extract_owner_repo
from plum.core.marketplace.transport import TransportClient
from plum.utils.log import get_logger

logger = get_logger()

GITHUB_API_ACCEPT = "application/vnd.github.v3+json"


class StatsFetcher:
    def __init__(
        self,
        settings: PlumSettings,
        transport: TransportClient,
        cache: CacheStore,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._cache = cache

    def api_url(self, repo_url: str) -> str:
        owner, repo = extract_owner_repo(repo_url)
        return f"{self._settings.api_base_url}/repos/{owner}/{repo}"

    async def fetch_remote(self, repo_url: str) -> RepoStats:
        """Single GET against the GitHub REST API; no retries."""
        url = self.api_url(repo_url)
        payload = await self._transport.get_json(url, headers={"Accept": GITHUB_API_ACCEPT})
        try:
            return RepoStats.model_validate(payload)
        except ValidationError as exc:
            raise ManifestDecodeError(f"failed to parse GitHub response: {exc}") from exc

    def load_cached(self, name: str) -> Optional[RepoStats]:
        payload = self._cache.load(name, CacheKind.STATS)
        if payload is None:
            return None
        try:
            return RepoStats.model_validate(payload)
        except ValidationError as exc:
            raise CacheDecodeError(str(self._cache.path_for(name, CacheKind.STATS)), str(exc)) from exc

    async def fetch_stats(self, listing: CatalogListing) -> RepoStats:
        """Return cached stats for ``listing`` or fetch and cache fresh ones."""
        cached = self.load_cached(listing.name)
        if cached is not None:
            return cached

        stats = await self.fetch_remote(listing.repo)
        try:
            self._cache.save(listing.name, stats.model_dump(mode="json", by_alias=True), CacheKind.STATS)
        except MarketplaceError as exc:
            logger.debug(
                "[stats] Failed to cache stats: %s",
                exc,
                extra={"marketplace": listing.name},
            )
        return stats

    async def stats_for(self, listing: CatalogListing) -> Optional[RepoStats]:
        """Live or cached stats, else the bundled snapshot, else None."""
        try:
            return await self.fetch_stats(listing)
        except MarketplaceError as exc:
            logger.debug(
                "[stats] Falling back to static stats: %s",
                exc,
                extra={"marketplace": listing.name},
            )
            return listing.static_stats

    async def fetch_all_stats(self, listings: Iterable[CatalogListing]) -> Dict[str, RepoStats]:
        """Fetch stats for every listing in parallel, bounded like discovery."""
        gate = asyncio.Semaphore(self._settings.max_concurrent_fetches)

        async def _one(listing: CatalogListing) -> Optional[RepoStats]:
            async with gate:
                return await self.stats_for(listing)

        entries = list(listings)
        results = await asyncio.gather(*(_one(listing) for listing in entries))
        return {
            listing.name: stats
            for listing, stats in zip(entries, results)
            if stats is not None
        }


__all__ = ["StatsFetcher", "GITHUB_API_ACCEPT"]
