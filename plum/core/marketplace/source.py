"""Repository URL normalization."""

from __future__ import annotations

from typing import Tuple
from urllib.parse import urlparse

from plum.core.marketplace.errors import InvalidSourceError

GITHUB_HOST = "github.com"


def derive_source(repo_url: str) -> str:
    """Convert a repository URL to the Claude Code CLI source format.

    ``https://github.com/owner/repo`` becomes ``owner/repo``; repositories on
    any other host keep their full URL.
    """
    if not repo_url:
        raise InvalidSourceError("empty repo URL")
    try:
        parsed = urlparse(repo_url)
    except ValueError as exc:
        raise InvalidSourceError(f"invalid repo URL: {exc}") from exc
    if not parsed.scheme or not parsed.netloc:
        raise InvalidSourceError("invalid repo URL: missing scheme or host")

    if parsed.netloc == GITHUB_HOST:
        path = parsed.path.lstrip("/").removesuffix("/").removesuffix(".git")
        parts = path.split("/")
        if len(parts) >= 2 and parts[0] and parts[1]:
            return f"{parts[0]}/{parts[1]}"
        raise InvalidSourceError(f"invalid GitHub path: {parsed.path}")

    return repo_url


def is_github_repo(repo_url: str) -> bool:
    try:
        return urlparse(repo_url).netloc == GITHUB_HOST
    except ValueError:
        return False


def extract_owner_repo(repo_url: str) -> Tuple[str, str]:
    """Split a GitHub URL or ``owner/repo`` shorthand into its two parts."""
    value = (repo_url or "").strip()
    for prefix in ("https://github.com/", "http://github.com/"):
        value = value.removeprefix(prefix)
    value = value.removesuffix("/").removesuffix(".git")
    parts = value.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise InvalidSourceError(f"invalid GitHub repo URL: {repo_url}")
    return parts[0], parts[1]


__all__ = ["GITHUB_HOST", "derive_source", "is_github_repo", "extract_owner_repo"]
