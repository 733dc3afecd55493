"""Bounded, partial-failure-tolerant discovery across many marketplaces."""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

from plum.core.config import MAX_CONCURRENT_FETCHES
from plum.core.marketplace.errors import DiscoveryError
from plum.core.marketplace.fetcher import CatalogFetcher
from plum.core.marketplace.models import CatalogListing, DiscoveredMarketplace
from plum.utils.log import get_logger

logger = get_logger()


class DiscoveryOrchestrator:
    """Fan a ``CatalogFetcher`` out over a listing and merge the results.

    At most ``max_concurrent`` fetches are in flight at once. Every task runs to
    completion; one failing marketplace never cancels its siblings.
    """

    def __init__(self, fetcher: CatalogFetcher, *, max_concurrent: int = MAX_CONCURRENT_FETCHES) -> None:
        self._fetcher = fetcher
        self._max_concurrent = max(1, int(max_concurrent))

    async def discover_all(
        self,
        listing: Iterable[CatalogListing],
        *,
        force_refresh: bool = False,
    ) -> Dict[str, DiscoveredMarketplace]:
        entries = list(listing)
        discovered: Dict[str, DiscoveredMarketplace] = {}
        errors: List[Tuple[str, BaseException]] = []
        gate = asyncio.Semaphore(self._max_concurrent)
        merge_lock = asyncio.Lock()

        async def _fetch_one(entry: CatalogListing) -> None:
            result: Optional[DiscoveredMarketplace] = None
            failure: Optional[BaseException] = None
            async with gate:
                try:
                    result = await self._fetcher.fetch(entry, force_refresh=force_refresh)
                except Exception as exc:  # noqa: BLE001
                    failure = exc
            async with merge_lock:
                if failure is not None:
                    errors.append((entry.name, failure))
                elif result is not None:
                    discovered[entry.name] = result

        await asyncio.gather(*(_fetch_one(entry) for entry in entries))

        if not discovered and errors:
            raise DiscoveryError(errors)

        for name, exc in errors:
            logger.warning(
                "[marketplace] %s: %s",
                name,
                exc,
                extra={"marketplace": name, "error_type": type(exc).__name__},
            )
        logger.debug(
            "[marketplace] Discovery finished",
            extra={"discovered": len(discovered), "failed": len(errors), "total": len(entries)},
        )
        return discovered


__all__ = ["DiscoveryOrchestrator", "MAX_CONCURRENT_FETCHES"]
