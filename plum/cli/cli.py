"""Command line entry point for Plum."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from plum import __version__
from plum.core.config import load_settings
from plum.core.marketplace import (
    CatalogListing,
    DiscoveredMarketplace,
    MarketplaceError,
    MarketplaceService,
    RepoStats,
    flatten_plugins,
)
from plum.utils.log import default_log_dir, get_logger, init_logger

console = Console()
logger = get_logger()

T = TypeVar("T")


def _build_service() -> MarketplaceService:
    return MarketplaceService(load_settings())


def _run(operation: Callable[[MarketplaceService], Awaitable[T]]) -> T:
    async def _main() -> T:
        async with _build_service() as service:
            return await operation(service)

    try:
        return asyncio.run(_main())
    except MarketplaceError as exc:
        raise click.ClickException(str(exc)) from exc


def _discovered_rows(
    discovered: Dict[str, DiscoveredMarketplace],
    stats: Dict[str, RepoStats],
) -> List[Dict[str, Any]]:
    rows = []
    for name in sorted(discovered):
        item = discovered[name]
        plugins = item.manifest.plugins
        row: Dict[str, Any] = {
            "name": name,
            "repo": item.repo,
            "source": item.source,
            "pluginCount": len(plugins),
            "installableCount": sum(1 for plugin in plugins if plugin.installable()),
        }
        if name in stats:
            row["stars"] = stats[name].stars
        rows.append(row)
    return rows


def _print_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Write debug logs to ~/.plum/logs")
def cli(debug: bool) -> None:
    """Plum - browse Claude Code plugin marketplaces"""
    if debug:
        init_logger(default_log_dir())


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--refresh", is_flag=True, help="Ignore cached manifests and fetch the latest registry")
@click.option("--stats", "with_stats", is_flag=True, help="Include GitHub star counts")
def discover(as_json: bool, refresh: bool, with_stats: bool) -> None:
    """Discover every known marketplace."""

    async def _op(service: MarketplaceService) -> List[Dict[str, Any]]:
        if refresh:
            discovered = await service.discover_with_registry()
            listing = await service.resolve_listing()
        else:
            listing = service.registry.active_listing()
            discovered = await service.discover_all(listing)
        stats: Dict[str, RepoStats] = {}
        if with_stats:
            stats = await service.fetch_stats(
                [entry for entry in listing if entry.name in discovered]
            )
        return _discovered_rows(discovered, stats)

    rows = _run(_op)
    if as_json:
        _print_json(rows)
        return

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Marketplace", style="bold")
    table.add_column("Source")
    table.add_column("Plugins", justify="right")
    table.add_column("Installable", justify="right")
    if with_stats:
        table.add_column("Stars", justify="right")
    for row in rows:
        cells = [
            escape(row["name"]),
            escape(row["source"]),
            str(row["pluginCount"]),
            str(row["installableCount"]),
        ]
        if with_stats:
            cells.append(str(row.get("stars", "-")))
        table.add_row(*cells)
    console.print(table)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--marketplace", "marketplace_name", default=None, help="Only list one marketplace")
def plugins(as_json: bool, marketplace_name: Optional[str]) -> None:
    """List every plugin across discovered marketplaces."""

    async def _op(service: MarketplaceService) -> Dict[str, DiscoveredMarketplace]:
        return await service.discover_popular()

    items = flatten_plugins(_run(_op))
    if marketplace_name:
        items = [item for item in items if item.marketplace == marketplace_name]

    if as_json:
        _print_json(
            [
                {
                    "name": item.name,
                    "marketplace": item.marketplace,
                    "fullName": item.full_name,
                    "description": item.description,
                    "version": item.version,
                    "author": item.author_name,
                    "installable": item.installable,
                    "installCommand": item.install_command,
                }
                for item in items
            ]
        )
        return

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Plugin", style="bold")
    table.add_column("Marketplace")
    table.add_column("Description")
    for item in items:
        name = escape(item.full_name)
        if not item.installable:
            name = f"{name} [dim]({escape(item.installability_reason)})[/dim]"
        table.add_row(name, escape(item.marketplace), escape(item.description))
    console.print(table)


@cli.command()
@click.option("--check", is_flag=True, help="Fetch the latest registry and count new marketplaces")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def registry(check: bool, as_json: bool) -> None:
    """Show the marketplace listing in use."""

    async def _op(service: MarketplaceService) -> tuple[List[CatalogListing], Optional[int]]:
        if check:
            listing, new_count = await service.check_for_updates()
            return listing, new_count
        return await service.resolve_listing(), None

    listing, new_count = _run(_op)
    if as_json:
        payload: Dict[str, Any] = {
            "marketplaces": [entry.model_dump(mode="json", by_alias=True) for entry in listing]
        }
        if new_count is not None:
            payload["newCount"] = new_count
        _print_json(payload)
        return

    for entry in listing:
        console.print(f"[bold]{escape(entry.name)}[/bold]  {escape(entry.repo)}")
    if new_count is not None:
        console.print(f"{new_count} new marketplace(s) available.")


@cli.group()
def cache() -> None:
    """Manage the on-disk marketplace cache."""


@cache.command("clear")
def cache_clear() -> None:
    """Delete every cached manifest, stats entry and registry snapshot."""

    async def _op(service: MarketplaceService) -> str:
        service.clear_cache()
        return str(service.cache.root)

    root = _run(_op)
    console.print(f"Cleared cache at {escape(root)}")


@cli.command()
def refresh() -> None:
    """Clear the cache and re-fetch every marketplace from the latest registry."""

    async def _op(service: MarketplaceService) -> int:
        return len(await service.refresh_all())

    count = _run(_op)
    console.print(f"Refreshed {count} marketplace(s).")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except SystemExit:
        raise
    except (RuntimeError, ValueError, OSError) as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        logger.warning("[cli] Fatal error in main CLI entrypoint: %s: %s", type(e).__name__, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
