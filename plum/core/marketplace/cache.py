"""On-disk JSON cache for manifests, repository stats and the registry.

Every entry lives in its own file under the cache root. Writes go to a temp
file in the same directory and are renamed into place, so a concurrent reader
sees either the previous complete entry or the new one, never a torn file.
"""

from __future__ import annotations

import json
import os
import re
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plum.core.config import PlumSettings
from plum.core.marketplace.errors import CacheDecodeError, CacheWriteError, InvalidNameError
from plum.utils.log import get_logger

logger = get_logger()

MAX_CACHE_NAME_LENGTH = 100
REGISTRY_CACHE_NAME = "_registry"
_SAFE_NAME_RE = re.compile(r"[A-Za-z0-9._-]+")
_DIR_MODE = 0o700
_FILE_MODE = 0o600


class CacheKind(str, Enum):
    MANIFEST = "manifest"
    STATS = "stats"
    REGISTRY = "registry"

    @property
    def suffix(self) -> str:
        return "_stats.json" if self is CacheKind.STATS else ".json"


class CacheEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payload: Any
    fetched_at: datetime = Field(alias="fetchedAt")
    source: str = ""


def validate_cache_name(name: str) -> None:
    """Reject names that could escape the cache directory."""
    if not name:
        raise InvalidNameError("marketplace name cannot be empty")
    if ".." in name:
        raise InvalidNameError(f"marketplace name contains path traversal: {name!r}")
    if "/" in name or "\\" in name:
        raise InvalidNameError(f"marketplace name contains path separator: {name!r}")
    if len(name) > MAX_CACHE_NAME_LENGTH:
        raise InvalidNameError(
            f"marketplace name too long (max {MAX_CACHE_NAME_LENGTH} characters): {len(name)}"
        )
    if not _SAFE_NAME_RE.fullmatch(name):
        raise InvalidNameError(f"marketplace name contains invalid characters: {name!r}")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class CacheStore:
    """TTL-gated JSON persistence rooted at ``settings.cache_dir``."""

    def __init__(
        self,
        settings: PlumSettings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._root = settings.cache_dir
        self._clock = clock
        self._ttls: Dict[CacheKind, timedelta] = {
            CacheKind.MANIFEST: settings.manifest_ttl,
            CacheKind.STATS: settings.stats_ttl,
            CacheKind.REGISTRY: settings.registry_ttl,
        }

    @property
    def root(self) -> Path:
        return self._root

    def ttl_for(self, kind: CacheKind) -> timedelta:
        return self._ttls[kind]

    def path_for(self, name: str, kind: CacheKind = CacheKind.MANIFEST) -> Path:
        validate_cache_name(name)
        return self._root / f"{name}{kind.suffix}"

    def load(self, name: str, kind: CacheKind = CacheKind.MANIFEST) -> Optional[Any]:
        """Return the cached payload, or None on a miss or an expired entry."""
        path = self.path_for(name, kind)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            entry = CacheEntry.model_validate(json.loads(raw))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            raise CacheDecodeError(str(path), f"{type(exc).__name__}: {exc}") from exc

        fetched_at = entry.fetched_at
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        if self._clock() - fetched_at >= self.ttl_for(kind):
            logger.debug(
                "[cache] Entry expired",
                extra={"entry": name, "kind": kind.value, "fetched_at": fetched_at.isoformat()},
            )
            return None
        return entry.payload

    def save(self, name: str, payload: Any, kind: CacheKind = CacheKind.MANIFEST) -> Path:
        """Atomically persist ``payload`` under ``name``."""
        path = self.path_for(name, kind)
        entry = CacheEntry(payload=payload, fetched_at=self._clock(), source=name)
        serialized = entry.model_dump_json(by_alias=True, indent=2)

        try:
            self._root.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheWriteError(f"failed to create cache directory: {exc}") from exc

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=str(self._root), prefix=f".tmp-{name}-", suffix=".json"
            )
        except OSError as exc:
            raise CacheWriteError(f"failed to create temp file: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(serialized)
                handle.write("\n")
            os.chmod(temp_path, _FILE_MODE)
            os.replace(temp_path, path)
        except OSError as exc:
            raise CacheWriteError(f"failed to write cache entry {path}: {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.debug("[cache] Failed to remove temp file", extra={"path": temp_path})

        logger.debug("[cache] Saved entry", extra={"entry": name, "kind": kind.value})
        return path

    def clear(self) -> None:
        """Remove every cached entry."""
        if not self._root.exists():
            return
        try:
            shutil.rmtree(self._root)
        except OSError as exc:
            raise CacheWriteError(f"failed to clear cache: {exc}") from exc
        logger.debug("[cache] Cleared cache directory", extra={"path": str(self._root)})


__all__ = [
    "CacheKind",
    "CacheEntry",
    "CacheStore",
    "MAX_CACHE_NAME_LENGTH",
    "REGISTRY_CACHE_NAME",
    "validate_cache_name",
]
