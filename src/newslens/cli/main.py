"""
Main CLI entry point for newslens.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from newslens import __version__
from newslens.cli.commands import cache as cache_commands
from newslens.cli.commands.cache import app as cache_app
from newslens.cli.logging_setup import configure_logging
from newslens.config.settings import settings

console = Console()

app = typer.Typer(
    name="newslens",
    help="Short-video news feed cache tools",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Add subcommands
app.add_typer(cache_app, name="cache", help="Video cache commands")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]newslens[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.command()
def status() -> None:
    """Show application status and cache occupancy."""
    container = cache_commands._build_container()
    stats = container.video_store.stats()
    console.print(
        Panel(
            f"[green]✓[/green] newslens is ready to use\n"
            f"[blue]i[/blue] Video cache: {container.video_store.root}\n"
            f"[blue]i[/blue] Cached videos: {stats.video_count:,} "
            f"({cache_commands.format_size(stats.total_size_bytes)})\n"
            f"[blue]i[/blue] Size ceiling: "
            f"{cache_commands.format_size(container.settings.max_video_bytes)}, "
            f"timeout {container.settings.download_timeout:g}s",
            title="Status",
            border_style="green",
        )
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable DEBUG logging"
    ),
) -> None:
    """
    newslens - Short-video news feed cache tools.

    Inspect, warm, and purge the on-device video cache used by the feed.
    """
    if version:
        console.print(f"newslens v{__version__}")
        raise typer.Exit(code=0)

    configure_logging(settings.log_level, verbose=verbose)

    if ctx.invoked_subcommand is None:
        console.print(
            "[yellow]Use 'newslens --help' for available commands[/yellow]"
        )
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
