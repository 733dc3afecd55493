"""Cache-first resolution of a single marketplace manifest."""

from __future__ import annotations

import json
from typing import Optional

from pydantic import ValidationError

from plum.core.config import PlumSettings
from plum.core.marketplace.cache import CacheKind, CacheStore
from plum.core.marketplace.errors import (
    CacheDecodeError,
    InvalidSourceError,
    ManifestDecodeError,
    MarketplaceError,
)
from plum.core.marketplace.models import CatalogListing, DiscoveredMarketplace, MarketplaceManifest
from plum.core.marketplace.retry import RetryPolicy
from plum.core.marketplace.source import derive_source, is_github_repo
from plum.core.marketplace.transport import TransportClient
from plum.utils.log import get_logger

logger = get_logger()

MARKETPLACE_MANIFEST_PATH = ".claude-plugin/marketplace.json"


def parse_manifest(body: bytes, *, origin: str = "marketplace.json") -> MarketplaceManifest:
    try:
        return MarketplaceManifest.model_validate(json.loads(body))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        raise ManifestDecodeError(f"failed to parse {origin}: {exc}") from exc


class CatalogFetcher:
    def __init__(
        self,
        settings: PlumSettings,
        transport: TransportClient,
        cache: CacheStore,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._cache = cache
        self._retry = retry or RetryPolicy(max_attempts=settings.max_attempts)

    def build_raw_url(self, owner_repo: str) -> str:
        """``<raw-base>/<owner>/<repo>/<branch>/.claude-plugin/marketplace.json``"""
        return (
            f"{self._settings.raw_base_url}/{owner_repo}/"
            f"{self._settings.default_branch}/{MARKETPLACE_MANIFEST_PATH}"
        )

    async def fetch_manifest(self, repo_url: str) -> MarketplaceManifest:
        """Download and parse a manifest, retrying transient failures."""
        source = derive_source(repo_url)
        if not is_github_repo(repo_url):
            raise InvalidSourceError(
                f"manifest fetch requires a github.com repository, got {repo_url}"
            )
        url = self.build_raw_url(source)

        async def _attempt() -> MarketplaceManifest:
            body = await self._transport.get_bytes(url)
            return parse_manifest(body, origin=url)

        return await self._retry.run(_attempt, label=source)

    def load_cached(self, name: str) -> Optional[MarketplaceManifest]:
        """Return the fresh cached manifest for ``name``, or None."""
        payload = self._cache.load(name, CacheKind.MANIFEST)
        if payload is None:
            return None
        try:
            return MarketplaceManifest.model_validate(payload)
        except ValidationError as exc:
            raise CacheDecodeError(
                str(self._cache.path_for(name, CacheKind.MANIFEST)), str(exc)
            ) from exc

    def save_cached(self, name: str, manifest: MarketplaceManifest) -> None:
        self._cache.save(
            name,
            manifest.model_dump(mode="json", by_alias=True),
            CacheKind.MANIFEST,
        )

    async def fetch(
        self, listing: CatalogListing, *, force_refresh: bool = False
    ) -> DiscoveredMarketplace:
        """Resolve one listing entry, from cache when fresh, else from GitHub."""
        source = derive_source(listing.repo)

        if not force_refresh:
            try:
                cached = self.load_cached(listing.name)
            except CacheDecodeError as exc:
                # Overwritten below once the network fetch succeeds.
                logger.warning(
                    "[marketplace] Ignoring corrupt cache entry for %s: %s",
                    listing.name,
                    exc,
                    extra={"marketplace": listing.name},
                )
                cached = None
            if cached is not None:
                logger.debug("[marketplace] Cache hit", extra={"marketplace": listing.name})
                return DiscoveredMarketplace(manifest=cached, repo=listing.repo, source=source)

        manifest = await self.fetch_manifest(listing.repo)
        # Self-reported names are not trusted; the listing key is authoritative.
        manifest = manifest.with_name(listing.name)

        try:
            self.save_cached(listing.name, manifest)
        except MarketplaceError as exc:
            logger.warning(
                "[marketplace] Failed to save %s to cache: %s",
                listing.name,
                exc,
                extra={"marketplace": listing.name},
            )

        logger.debug(
            "[marketplace] Fetched manifest",
            extra={"marketplace": listing.name, "plugins": len(manifest.plugins)},
        )
        return DiscoveredMarketplace(manifest=manifest, repo=listing.repo, source=source)


__all__ = ["CatalogFetcher", "MARKETPLACE_MANIFEST_PATH", "parse_manifest"]
