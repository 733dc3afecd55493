"""Error types for marketplace discovery."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class MarketplaceError(Exception):
    """Base class for every marketplace discovery failure."""

    retryable: bool = False


class InvalidNameError(MarketplaceError):
    """Cache name failed validation (empty, traversal, bad characters, too long)."""


class InvalidSourceError(MarketplaceError):
    """Repository URL could not be normalized to a source identifier."""


class TransportFailure(MarketplaceError):
    """Network-level failure or timeout while talking to a remote host."""

    retryable = True


class HTTPStatusError(MarketplaceError):
    """Remote host answered with a non-200 status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"GitHub returned status {status_code} for {url}")
        self.status_code = status_code
        self.url = url

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code >= 500 or self.status_code == 429


class ResponseTooLargeError(MarketplaceError):
    """Response body exceeded the configured ceiling."""

    def __init__(self, limit: int, url: str) -> None:
        super().__init__(f"response body exceeded {limit} bytes for {url}")
        self.limit = limit
        self.url = url


class ManifestDecodeError(MarketplaceError):
    """Remote payload was not valid JSON of the expected shape."""


class RetryExhaustedError(MarketplaceError):
    """All attempts failed with retryable errors."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class CacheDecodeError(MarketplaceError):
    """A fresh-looking cache file could not be decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"corrupt cache entry {path}: {reason}")
        self.path = path


class CacheWriteError(MarketplaceError):
    """Persisting a cache entry failed."""


class DiscoveryError(MarketplaceError):
    """Every marketplace in a bulk discovery failed."""

    def __init__(self, errors: Sequence[Tuple[str, BaseException]]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{name}: {exc}" for name, exc in self.errors)
        super().__init__(f"all marketplace fetches failed: {summary}")

    def error_for(self, name: str) -> Optional[BaseException]:
        for entry_name, exc in self.errors:
            if entry_name == name:
                return exc
        return None


def is_retryable(exc: BaseException) -> bool:
    """Return True for transient failures: network errors, timeouts, 5xx and 429."""
    if isinstance(exc, MarketplaceError):
        return bool(exc.retryable)
    return False


__all__ = [
    "MarketplaceError",
    "InvalidNameError",
    "InvalidSourceError",
    "TransportFailure",
    "HTTPStatusError",
    "ResponseTooLargeError",
    "ManifestDecodeError",
    "RetryExhaustedError",
    "CacheDecodeError",
    "CacheWriteError",
    "DiscoveryError",
    "is_retryable",
]
