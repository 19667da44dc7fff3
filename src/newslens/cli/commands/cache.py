"""
CLI commands for managing the local video cache.

Provides ``newslens cache status``, ``purge``, ``evict`` and ``fetch`` for
inspecting, clearing, and warming the on-device video cache through the
same fetch coordinator the feed uses.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from newslens.config.settings import settings
from newslens.container import Container
from newslens.exceptions import (
    EXIT_CODE_FETCH_FAILED,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_INVALID_ARGS,
    NewslensError,
)
from newslens.models.feed_types import validate_remote_locator, validate_video_id

console = Console()

app = typer.Typer(
    name="cache",
    help="Manage the local video cache.",
    no_args_is_help=True,
)


def _build_container() -> Container:
    """Build a service container from application settings.

    Returns
    -------
    Container
        Container with lazily created cache services.
    """
    return Container(settings=settings)


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


@app.command(name="status")
def status() -> None:
    """
    Display cache statistics.

    Shows the number of cached videos, total size, and file ages.

    Examples:
        newslens cache status
    """
    container = _build_container()
    stats = container.video_store.stats()

    table = Table(title="Video Cache Status")
    table.add_column("Videos", style="green", justify="right")
    table.add_column("Size", style="blue", justify="right")
    table.add_row(f"{stats.video_count:,}", format_size(stats.total_size_bytes))

    console.print()
    console.print(table)
    console.print()

    console.print(f"  Cache directory: {container.video_store.root}")
    if stats.oldest_file is not None:
        console.print(f"  Oldest file:     {stats.oldest_file.strftime('%Y-%m-%d')}")
    if stats.newest_file is not None:
        console.print(f"  Newest file:     {stats.newest_file.strftime('%Y-%m-%d')}")
    console.print()


@app.command(name="purge")
def purge(
    force: bool = typer.Option(
        False,
        "--force",
        help="Skip confirmation prompt",
    ),
) -> None:
    """
    Delete every cached video.

    Use --force to skip the confirmation prompt.

    Examples:
        newslens cache purge
        newslens cache purge --force
    """
    container = _build_container()
    stats = container.video_store.stats()

    if stats.video_count == 0:
        console.print("[yellow]Cache is already empty[/yellow]")
        return

    if not force:
        confirmation = typer.confirm(
            f"Are you sure you want to purge {stats.video_count} cached video(s)?",
            default=False,
        )
        if not confirmation:
            console.print("[yellow]Purge cancelled by user[/yellow]")
            raise typer.Exit(code=1)

    removed = container.video_store.evict_all()

    console.print()
    console.print(
        f"[green]Purge complete: removed {removed} video(s), "
        f"freed {format_size(stats.total_size_bytes)}[/green]"
    )
    console.print()


@app.command(name="evict")
def evict(
    video_id: str = typer.Argument(..., help="Video identifier (cache key)"),
) -> None:
    """
    Remove one video from the cache.

    Examples:
        newslens cache evict 3F2A91C0
    """
    try:
        validate_video_id(video_id)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)

    container = _build_container()
    if container.fetch_coordinator.evict(video_id):
        console.print(f"[green]Evicted {video_id}[/green]")
    else:
        console.print(f"[yellow]Video {video_id} is not cached[/yellow]")


@app.command(name="fetch")
def fetch(
    video_id: str = typer.Argument(..., help="Video identifier (cache key)"),
    locator: str = typer.Argument(..., help="Remote locator, e.g. gs://bucket/videos/a.mp4"),
) -> None:
    """
    Download one video into the cache (no-op when already cached).

    Examples:
        newslens cache fetch 3F2A91C0 gs://newslens.appspot.com/videos/3F2A91C0.mp4
    """
    try:
        validate_video_id(video_id)
        validate_remote_locator(locator)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)

    try:
        path = asyncio.run(_fetch_async(video_id=video_id, locator=locator))
    except KeyboardInterrupt:
        console.print("\n[yellow]Fetch interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)
    except NewslensError as exc:
        console.print(f"[red]Fetch failed ({type(exc).__name__}): {exc.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_FETCH_FAILED)

    console.print(f"[green]Cached:[/green] {path}")


async def _fetch_async(*, video_id: str, locator: str) -> Path:
    """Async implementation of the cache fetch command."""
    container = _build_container()
    try:
        return await container.fetch_coordinator.ensure_local(video_id, locator)
    finally:
        await container.aclose()
