"""Click CLI for imgcache: inspect and maintain the on-disk image cache."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from imgcache.cache.manager import ImageCache

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    level = logging.getLevelName(str(default_level).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _open_cache(ctx: click.Context) -> ImageCache:
    from imgcache.core import create_cache

    return create_cache(**ctx.obj)


def _format_bytes(size: float) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _format_age(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    if seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    return f"{seconds / 86400:.1f}d"


@click.group()
@click.version_option(package_name="imgcache")
@click.option(
    "--cache-root", type=click.Path(file_okay=False), default=None,
    help="Directory holding the cache namespaces.",
)
@click.option("--namespace", type=str, default=None, help="Cache namespace (subdirectory).")
@click.option("--ttl", type=float, default=None, help="Time to live in seconds.")
@click.option("--max-disk-bytes", type=int, default=None, help="Disk budget in bytes.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
@click.pass_context
def cli(
    ctx: click.Context,
    cache_root: str | None,
    namespace: str | None,
    ttl: float | None,
    max_disk_bytes: int | None,
    verbose: int,
) -> None:
    """imgcache: two-tier image cache keyed by URL."""
    from imgcache.config.hierarchy import load_config_hierarchy

    settings = load_config_hierarchy()
    _setup_logging(verbose, settings["log_level"])
    ctx.obj = {
        "cache_root": cache_root,
        "namespace": namespace,
        "time_to_live": ttl,
        "max_disk_bytes": max_disk_bytes,
    }


@cli.command("stats")
@click.pass_context
def cache_stats(ctx: click.Context) -> None:
    """Show cache statistics."""
    cache = _open_cache(ctx)
    config = cache.config
    stats = cache.stats()

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Directory", str(cache.directory))
    table.add_row("Entries", str(stats.disk_entries))
    table.add_row("Size", _format_bytes(stats.disk_bytes))
    table.add_row("Budget", _format_bytes(config.max_disk_bytes))
    table.add_row("Time to live", _format_age(config.time_to_live))

    console.print(table)


@cli.command("ls")
@click.option("--limit", type=int, default=None, help="Show at most this many entries.")
@click.pass_context
def list_entries(ctx: click.Context, limit: int | None) -> None:
    """List cached files, most recently used first."""
    cache = _open_cache(ctx)
    entries = cache.entries()
    if limit is not None:
        entries = entries[:limit]

    if not entries:
        console.print("[yellow]Cache is empty.[/yellow]")
        return

    now = time.time()
    table = Table(title="Cached Files", show_header=True)
    table.add_column("File", style="cyan", overflow="fold")
    table.add_column("Size", justify="right")
    table.add_column("Last used", justify="right")

    for info in entries:
        table.add_row(info.name, _format_bytes(info.size), _format_age(now - info.last_touched))

    console.print(table)


@cli.command("prune")
@click.pass_context
def prune(ctx: click.Context) -> None:
    """Delete expired files and enforce the disk budget now."""
    cache = _open_cache(ctx)
    report = cache.prune()
    console.print(
        f"[green]Removed {report.expired_files} expired and {report.evicted_files} "
        f"least-recently-used files; {_format_bytes(report.final_size)} remain.[/green]"
    )


@cli.command("remove")
@click.argument("url")
@click.pass_context
def remove(ctx: click.Context, url: str) -> None:
    """Remove the cached copy of URL."""
    cache = _open_cache(ctx)
    cache.remove(url)
    console.print(f"[green]Removed {url}[/green]")


@cli.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
@click.pass_context
def cache_clear(ctx: click.Context) -> None:
    """Clear all cached data."""
    cache = _open_cache(ctx)
    cache.clear()
    console.print("[green]Cache cleared.[/green]")


@cli.command("get")
@click.argument("url")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Save the image here.")
@click.option(
    "--quality", type=click.FloatRange(0.0, 1.0), default=None,
    help="Store as JPEG with this quality (0.0-1.0) instead of PNG.",
)
@click.pass_context
def get(ctx: click.Context, url: str, output: str | None, quality: float | None) -> None:
    """Load URL through the cache, downloading it on a miss."""
    from imgcache.core import create_loader

    cache = _open_cache(ctx)
    was_cached = cache.contains(url)
    loader = create_loader(cache)

    async def _run() -> object:
        try:
            return await loader.load(url, quality=quality)
        finally:
            await loader.close()

    image = asyncio.run(_run())
    if image is None:
        error_console.print(f"[red]Error:[/red] could not load {url}")
        sys.exit(1)

    source = "cache" if was_cached else "network"
    size = getattr(image, "size", None)
    detail = f" {size[0]}x{size[1]}" if size else ""
    console.print(f"[green]Loaded{detail} from {source}[/green]")

    if output:
        try:
            image.save(Path(output))  # type: ignore[attr-defined]
        except (OSError, ValueError, AttributeError) as e:
            error_console.print(f"[red]Error:[/red] cannot write {output}: {e}")
            sys.exit(1)
        console.print(f"[green]Written to {output}[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
