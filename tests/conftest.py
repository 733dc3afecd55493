"""Pytest configuration and fixtures for all tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from plum.core.config import PlumSettings
from plum.core.marketplace import CatalogListing, MarketplaceService, RetryPolicy

RAW_HOST = "raw.githubusercontent.com"
API_HOST = "api.github.com"
REGISTRY_PATH = "/itsdevcoffee/plum/main/marketplaces.json"


def manifest_path(owner_repo: str) -> str:
    return f"/{owner_repo}/main/.claude-plugin/marketplace.json"


def manifest_payload(name: str = "self-reported", plugins: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "name": name,
        "owner": {"name": "Owner"},
        "metadata": {"description": "demo", "version": "1.0.0"},
        "plugins": plugins
        if plugins is not None
        else [{"name": "demo-plugin", "source": "./plugins/demo", "description": "Demo"}],
    }


def listing(name: str, owner_repo: Optional[str] = None) -> CatalogListing:
    return CatalogListing(
        name=name,
        display_name=name.title(),
        repo=f"https://github.com/{owner_repo or 'acme/' + name}",
        description=f"{name} marketplace",
    )


class FakeGitHub:
    """Routes requests by (host, path) and records every request it sees."""

    def __init__(self) -> None:
        self.routes: Dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def json(self, host: str, path: str, payload: Any, status_code: int = 200) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.routes[(host, path)] = lambda request: httpx.Response(status_code, content=body)

    def status(self, host: str, path: str, status_code: int) -> None:
        self.routes[(host, path)] = lambda request: httpx.Response(status_code, content=b"")

    def route(self, host: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(host, path)] = handler

    def manifest(self, owner_repo: str, payload: Any) -> None:
        self.json(RAW_HOST, manifest_path(owner_repo), payload)

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.url.host, request.url.path))
        if route is None:
            return httpx.Response(404, content=b"Not Found")
        return route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings(tmp_path: Path) -> PlumSettings:
    return PlumSettings(cache_dir=tmp_path / "cache", user_agent="plum-tests/1.0")


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_service(settings: PlumSettings, fake_github: FakeGitHub, recording_sleep: RecordingSleep):
    def _make(
        client: Optional[httpx.AsyncClient] = None,
        service_settings: Optional[PlumSettings] = None,
    ) -> MarketplaceService:
        resolved = service_settings or settings
        return MarketplaceService(
            resolved,
            http_client=client or fake_github.client(),
            retry=RetryPolicy(max_attempts=resolved.max_attempts, sleep=recording_sleep),
        )

    return _make


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PLUM_CACHE_DIR", raising=False)
    monkeypatch.delenv("CLAUDE_CONFIG_DIR", raising=False)
    monkeypatch.delenv("PLUM_REGISTRY_URL", raising=False)
    monkeypatch.delenv("PLUM_HTTP_TIMEOUT", raising=False)
