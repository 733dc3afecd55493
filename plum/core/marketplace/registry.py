"""Remote marketplace registry with a cached snapshot and built-in fallback."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from plum.core.config import PlumSettings
from plum.core.marketplace.builtin import builtin_listing
from plum.core.marketplace.cache import REGISTRY_CACHE_NAME, CacheKind, CacheStore
from plum.core.marketplace.errors import ManifestDecodeError, MarketplaceError
from plum.core.marketplace.models import CatalogListing, MarketplaceRegistry
from plum.core.marketplace.transport import TransportClient
from plum.utils.log import get_logger

logger = get_logger()


class RegistryResolver:
    def __init__(
        self,
        settings: PlumSettings,
        transport: TransportClient,
        cache: CacheStore,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._cache = cache

    def load_cached(self) -> Optional[MarketplaceRegistry]:
        """Return the cached registry snapshot if present, fresh and readable."""
        try:
            payload = self._cache.load(REGISTRY_CACHE_NAME, CacheKind.REGISTRY)
            if payload is None:
                return None
            return MarketplaceRegistry.model_validate(payload)
        except (MarketplaceError, ValidationError) as exc:
            logger.warning(
                "[registry] Ignoring unreadable registry cache: %s",
                exc,
                extra={"path": str(self._cache.root)},
            )
            return None

    def save_cached(self, registry: MarketplaceRegistry) -> None:
        try:
            self._cache.save(
                REGISTRY_CACHE_NAME,
                registry.model_dump(mode="json", by_alias=True),
                CacheKind.REGISTRY,
            )
        except MarketplaceError as exc:
            logger.warning("[registry] Failed to save registry to cache: %s", exc)

    async def fetch_remote(self) -> MarketplaceRegistry:
        url = self._settings.registry_url
        payload = await self._transport.get_json(url)
        try:
            return MarketplaceRegistry.model_validate(payload)
        except ValidationError as exc:
            raise ManifestDecodeError(f"failed to parse registry: {exc}") from exc

    def active_listing(self) -> List[CatalogListing]:
        """The cached registry if one exists, otherwise the built-in table."""
        cached = self.load_cached()
        if cached is not None:
            return list(cached.marketplaces)
        return builtin_listing()

    async def resolve_listing(self) -> List[CatalogListing]:
        """Cached registry, else the remote one, else the built-in table."""
        cached = self.load_cached()
        if cached is not None:
            return list(cached.marketplaces)

        try:
            registry = await self.fetch_remote()
        except MarketplaceError as exc:
            logger.warning(
                "[registry] Failed to fetch registry, using built-in list: %s",
                exc,
                extra={"url": self._settings.registry_url},
            )
            return builtin_listing()

        self.save_cached(registry)
        return list(registry.marketplaces)

    async def resolve_with_new_count(
        self, prior: Iterable[CatalogListing]
    ) -> Tuple[List[CatalogListing], int]:
        """Fetch the latest registry and count entries absent from the baseline.

        The baseline is the cached registry when one exists, otherwise ``prior``.
        The fetched registry becomes the new cached snapshot, so asking again
        right away reports zero new entries.
        """
        cached = self.load_cached()
        baseline = list(cached.marketplaces) if cached is not None else list(prior)

        try:
            registry = await self.fetch_remote()
        except MarketplaceError:
            if cached is not None:
                return list(cached.marketplaces), 0
            raise

        known = {listing.name for listing in baseline}
        new_count = sum(1 for listing in registry.marketplaces if listing.name not in known)
        self.save_cached(registry)

        logger.debug(
            "[registry] Compared registry with baseline",
            extra={"new_count": new_count, "total": len(registry.marketplaces)},
        )
        return list(registry.marketplaces), new_count


__all__ = ["RegistryResolver"]
