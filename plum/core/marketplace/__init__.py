"""Remote marketplace discovery: fetch, cache and aggregate plugin catalogs."""

from plum.core.marketplace.builtin import POPULAR_MARKETPLACES, builtin_listing
from plum.core.marketplace.cache import CacheKind, CacheStore, validate_cache_name
from plum.core.marketplace.discovery import DiscoveryOrchestrator
from plum.core.marketplace.errors import (
    CacheDecodeError,
    CacheWriteError,
    DiscoveryError,
    HTTPStatusError,
    InvalidNameError,
    InvalidSourceError,
    ManifestDecodeError,
    MarketplaceError,
    ResponseTooLargeError,
    RetryExhaustedError,
    TransportFailure,
)
from plum.core.marketplace.fetcher import CatalogFetcher
from plum.core.marketplace.models import (
    CatalogListing,
    DiscoveredMarketplace,
    MarketplaceManifest,
    MarketplacePlugin,
    MarketplaceRegistry,
    RepoStats,
)
from plum.core.marketplace.plugins import CatalogPlugin, flatten_plugins
from plum.core.marketplace.registry import RegistryResolver
from plum.core.marketplace.retry import RetryPolicy
from plum.core.marketplace.service import MarketplaceService
from plum.core.marketplace.source import derive_source, extract_owner_repo, is_github_repo
from plum.core.marketplace.stats import StatsFetcher
from plum.core.marketplace.transport import TransportClient

__all__ = [
    "POPULAR_MARKETPLACES",
    "builtin_listing",
    "CacheKind",
    "CacheStore",
    "validate_cache_name",
    "DiscoveryOrchestrator",
    "CacheDecodeError",
    "CacheWriteError",
    "DiscoveryError",
    "HTTPStatusError",
    "InvalidNameError",
    "InvalidSourceError",
    "ManifestDecodeError",
    "MarketplaceError",
    "ResponseTooLargeError",
    "RetryExhaustedError",
    "TransportFailure",
    "CatalogFetcher",
    "CatalogListing",
    "DiscoveredMarketplace",
    "MarketplaceManifest",
    "MarketplacePlugin",
    "MarketplaceRegistry",
    "RepoStats",
    "CatalogPlugin",
    "flatten_plugins",
    "RegistryResolver",
    "RetryPolicy",
    "MarketplaceService",
    "derive_source",
    "extract_owner_repo",
    "is_github_repo",
    "StatsFetcher",
    "TransportClient",
]
