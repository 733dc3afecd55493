"""Single-attempt HTTP transport shared by every marketplace fetch."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

import httpx

from plum.core.config import PlumSettings
from plum.core.marketplace.errors import (
    HTTPStatusError,
    InvalidSourceError,
    ManifestDecodeError,
    MarketplaceError,
    ResponseTooLargeError,
    TransportFailure,
)
from plum.utils.log import get_logger

logger = get_logger()


class TransportClient:
    """Pooled async HTTP client with a fixed timeout and a body-size ceiling.

    One instance is created per service and shared by reference across all
    concurrent fetches so connections are reused. Retrying is the caller's job.
    """

    def __init__(
        self,
        settings: PlumSettings,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout),
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=90.0,
            ),
        )

    @property
    def max_body_bytes(self) -> int:
        return self._settings.max_response_bytes

    async def get_bytes(self, url: str, *, headers: Optional[Dict[str, str]] = None) -> bytes:
        """GET ``url`` once and return the body, bounded by the size ceiling."""
        request_headers = {"User-Agent": self._settings.user_agent}
        if headers:
            request_headers.update(headers)
        try:
            return await asyncio.wait_for(
                self._read_limited(url, request_headers),
                timeout=self._settings.http_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TransportFailure(
                f"request to {url} timed out after {self._settings.http_timeout:g}s"
            ) from exc
        except httpx.DecodingError as exc:
            raise ManifestDecodeError(f"failed to decode response body from {url}: {exc}") from exc
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidSourceError(f"cannot fetch {url}: {exc}") from exc
        except httpx.TooManyRedirects as exc:
            raise MarketplaceError(f"too many redirects fetching {url}") from exc
        except httpx.RequestError as exc:
            raise TransportFailure(f"failed to fetch {url}: {type(exc).__name__}: {exc}") from exc

    async def get_json(self, url: str, *, headers: Optional[Dict[str, str]] = None) -> Any:
        body = await self.get_bytes(url, headers=headers)
        try:
            return json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ManifestDecodeError(f"failed to parse JSON from {url}: {exc}") from exc

    async def _read_limited(self, url: str, headers: Dict[str, str]) -> bytes:
        limit = self.max_body_bytes
        async with self._client.stream(
            "GET", url, headers=headers, follow_redirects=True
        ) as response:
            if response.status_code != 200:
                raise HTTPStatusError(response.status_code, url)
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                # Anything past the limit means the body was larger, not exactly at it.
                if len(body) > limit:
                    logger.debug(
                        "[transport] Response exceeded size ceiling",
                        extra={"url": url, "limit": limit},
                    )
                    raise ResponseTooLargeError(limit, url)
            return bytes(body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TransportClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["TransportClient"]
