"""Configuration management for Plum.

Settings are resolved once, when ``load_settings`` runs, and then passed by
reference to every component that needs them. In particular the cache root is
fixed for the lifetime of a ``PlumSettings`` instance.
"""

import json
import os
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from plum.utils.log import get_logger
from plum.utils.user_agent import build_user_agent


logger = get_logger()

PLUM_CACHE_DIR_ENV = "PLUM_CACHE_DIR"
PLUM_REGISTRY_URL_ENV = "PLUM_REGISTRY_URL"
PLUM_HTTP_TIMEOUT_ENV = "PLUM_HTTP_TIMEOUT"
CLAUDE_CONFIG_DIR_ENV = "CLAUDE_CONFIG_DIR"

DEFAULT_REGISTRY_URL = "https://raw.githubusercontent.com/itsdevcoffee/plum/main/marketplaces.json"
DEFAULT_RAW_BASE_URL = "https://raw.githubusercontent.com"
DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_BRANCH = "main"

HTTP_TIMEOUT_SECONDS = 30.0
MAX_RESPONSE_BODY_BYTES = 10 << 20
MAX_FETCH_ATTEMPTS = 3
MAX_CONCURRENT_FETCHES = 5
MANIFEST_CACHE_TTL = timedelta(hours=24)
STATS_CACHE_TTL = timedelta(hours=24)
REGISTRY_CACHE_TTL = timedelta(hours=6)


def resolve_cache_dir(
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return the marketplace cache directory.

    Precedence: ``PLUM_CACHE_DIR``, then ``$CLAUDE_CONFIG_DIR/plum/cache/marketplaces``,
    then ``~/.plum/cache/marketplaces``.
    """
    env = os.environ if environ is None else environ
    explicit = (env.get(PLUM_CACHE_DIR_ENV) or "").strip()
    if explicit:
        return Path(explicit).expanduser()
    config_dir = (env.get(CLAUDE_CONFIG_DIR_ENV) or "").strip()
    if config_dir:
        return Path(config_dir).expanduser() / "plum" / "cache" / "marketplaces"
    return (home or Path.home()).expanduser() / ".plum" / "cache" / "marketplaces"


class PlumSettings(BaseModel):
    """Runtime settings for marketplace discovery."""

    cache_dir: Path = Field(default_factory=resolve_cache_dir)
    registry_url: str = DEFAULT_REGISTRY_URL
    raw_base_url: str = DEFAULT_RAW_BASE_URL
    api_base_url: str = DEFAULT_API_BASE_URL
    default_branch: str = DEFAULT_BRANCH

    http_timeout: float = HTTP_TIMEOUT_SECONDS
    max_response_bytes: int = MAX_RESPONSE_BODY_BYTES
    max_attempts: int = MAX_FETCH_ATTEMPTS
    max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES

    manifest_ttl: timedelta = MANIFEST_CACHE_TTL
    stats_ttl: timedelta = STATS_CACHE_TTL
    registry_ttl: timedelta = REGISTRY_CACHE_TTL

    user_agent: str = Field(default_factory=build_user_agent)

    @field_validator("raw_base_url", "api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("http_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("http_timeout must be positive")
        return value

    @field_validator("max_attempts", "max_concurrent_fetches", "max_response_bytes")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be at least 1")
        return value


def settings_file_path(home: Optional[Path] = None) -> Path:
    return (home or Path.home()).expanduser() / ".plum" / "config.json"


def _load_settings_file(path: Path) -> dict:
    if not path.exists():
        logger.debug("[config] Settings file not found; using defaults", extra={"path": str(path)})
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
        logger.warning(
            "Error loading settings file: %s: %s",
            type(exc).__name__,
            exc,
            extra={"path": str(path)},
        )
        return {}
    if not isinstance(data, dict):
        logger.warning("Settings file must contain a JSON object", extra={"path": str(path)})
        return {}
    return data


def load_settings(
    home: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PlumSettings:
    """Build settings from ``~/.plum/config.json`` plus environment overrides."""
    env = os.environ if environ is None else environ
    data = _load_settings_file(settings_file_path(home))

    registry_url = (env.get(PLUM_REGISTRY_URL_ENV) or "").strip()
    if registry_url:
        data["registry_url"] = registry_url
    timeout = (env.get(PLUM_HTTP_TIMEOUT_ENV) or "").strip()
    if timeout:
        data["http_timeout"] = timeout

    # Environment always wins for the cache root; the file may set it otherwise.
    if env.get(PLUM_CACHE_DIR_ENV) or env.get(CLAUDE_CONFIG_DIR_ENV) or "cache_dir" not in data:
        data["cache_dir"] = resolve_cache_dir(env, home)

    try:
        settings = PlumSettings(**data)
    except ValueError as exc:
        logger.warning(
            "Invalid settings; using defaults: %s",
            exc,
            extra={"path": str(settings_file_path(home))},
        )
        settings = PlumSettings(cache_dir=resolve_cache_dir(env, home))

    logger.debug(
        "[config] Resolved settings",
        extra={"cache_dir": str(settings.cache_dir), "registry_url": settings.registry_url},
    )
    return settings
