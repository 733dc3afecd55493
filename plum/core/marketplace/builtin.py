"""Built-in marketplace table used when no registry snapshot is available.

Static GitHub stats snapshot: 2025-12-31.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from plum.core.marketplace.models import CatalogListing, RepoStats


def _stats(stars: int, forks: int, pushed_at: str, open_issues: int) -> RepoStats:
    return RepoStats(
        stars=stars,
        forks=forks,
        last_pushed_at=datetime.fromisoformat(pushed_at.replace("Z", "+00:00")),
        open_issues=open_issues,
    )


POPULAR_MARKETPLACES: List[CatalogListing] = [
    CatalogListing(
        name="claude-code-plugins-plus",
        display_name="Claude Code Plugins Plus",
        repo="https://github.com/jeremylongshore/claude-code-plugins-plus-skills",
        description="The largest collection with 254 plugins and 185 Agent Skills",
        static_stats=_stats(845, 96, "2025-12-31T06:30:55Z", 3),
    ),
    CatalogListing(
        name="claude-code-marketplace",
        display_name="Claude Code Marketplace",
        repo="https://github.com/ananddtyagi/cc-marketplace",
        description="Community-driven marketplace with granular installation",
        static_stats=_stats(577, 49, "2025-12-14T22:31:07Z", 5),
    ),
    CatalogListing(
        name="claude-code-plugins",
        display_name="Claude Code Plugins",
        repo="https://github.com/anthropics/claude-code",
        description="Official Anthropic plugins maintained by the Claude Code team",
        static_stats=_stats(50055, 3548, "2025-12-20T19:00:03Z", 6573),
    ),
    CatalogListing(
        name="mag-claude-plugins",
        display_name="MAG Claude Plugins",
        repo="https://github.com/MadAppGang/claude-code",
        description="Battle-tested workflows with 4 specialized plugins",
        static_stats=_stats(192, 17, "2025-12-30T12:23:11Z", 1),
    ),
    CatalogListing(
        name="dev-gom-plugins",
        display_name="Dev-GOM Plugins",
        repo="https://github.com/Dev-GOM/claude-code-marketplace",
        description="Automation-focused collection with 15 plugins",
        static_stats=_stats(41, 5, "2025-12-02T03:56:32Z", 0),
    ),
    CatalogListing(
        name="feedmob-claude-plugins",
        display_name="FeedMob Plugins",
        repo="https://github.com/feed-mob/claude-code-marketplace",
        description="Productivity and workflow tools with 6 specialized plugins",
        static_stats=_stats(2, 1, "2025-12-22T09:15:58Z", 1),
    ),
    CatalogListing(
        name="claude-plugins-official",
        display_name="Claude Plugins Official",
        repo="https://github.com/anthropics/claude-plugins-official",
        description="Official Anthropic plugins for Claude Code",
        static_stats=_stats(1158, 127, "2025-12-26T06:00:12Z", 69),
    ),
    CatalogListing(
        name="anthropic-agent-skills",
        display_name="Anthropic Agent Skills",
        repo="https://github.com/anthropics/skills",
        description="Official Anthropic Agent Skills reference repository",
        static_stats=_stats(30756, 2802, "2025-12-20T18:09:45Z", 118),
    ),
    CatalogListing(
        name="wshobson-agents",
        display_name="Hobson's Agent Collection",
        repo="https://github.com/wshobson/agents",
        description="Comprehensive production system with 65 plugins and multi-agent orchestration",
        static_stats=_stats(23995, 2669, "2025-12-30T21:40:12Z", 10),
    ),
    CatalogListing(
        name="docker-plugins",
        display_name="Docker Official Plugins",
        repo="https://github.com/docker/claude-plugins",
        description="Official Docker Inc. marketplace with Docker Desktop MCP Toolkit integration",
        static_stats=_stats(11, 3, "2025-12-19T19:10:46Z", 0),
    ),
    CatalogListing(
        name="ccplugins-marketplace",
        display_name="CC Plugins Curated",
        repo="https://github.com/ccplugins/marketplace",
        description="Curated collection of 200 plugins across 13 categories",
        static_stats=_stats(10, 7, "2025-10-14T03:38:20Z", 2),
    ),
    CatalogListing(
        name="claude-mem",
        display_name="Claude-Mem",
        repo="https://github.com/thedotmack/claude-mem",
        description="Persistent memory compression system for Claude Code with context preservation",
        static_stats=_stats(9729, 587, "2025-12-31T03:01:45Z", 21),
    ),
]


def builtin_listing() -> List[CatalogListing]:
    """Return a copy of the built-in table."""
    return list(POPULAR_MARKETPLACES)


__all__ = ["POPULAR_MARKETPLACES", "builtin_listing"]
