"""Manage the detection cache."""

from datetime import timedelta

import typer
from rich.console import Console

from agentwatch.cli.common import get_config
from agentwatch.errors import CacheError
from agentwatch.platform import current_platform
from agentwatch.storage.cache import CACHE_FILENAME, JsonDetectionCache, is_cache_valid
from agentwatch.utils.context import Context
from agentwatch.utils.exit_codes import ExitCode

console = Console()

cache_app = typer.Typer(help="Manage the detection cache", no_args_is_help=True)


def _cache() -> JsonDetectionCache:
    return JsonDetectionCache(current_platform().cache_dir() / CACHE_FILENAME)


@cache_app.command("clear")
def clear_command() -> None:
    """Remove the cached detection result."""
    cache = _cache()
    try:
        cache.clear()
    except CacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e
    console.print(f"[green]Cleared detection cache[/green] {cache.path}")
    raise typer.Exit(ExitCode.SUCCESS)


@cache_app.command("info")
def info_command(ctx: typer.Context) -> None:
    """Show where the cache lives and whether it is fresh."""
    config = get_config(ctx)
    cache = _cache()
    console.print(f"[bold]Path:[/bold] {cache.path}")

    try:
        installations, timestamp = cache.get(Context.background())
    except CacheError as e:
        console.print(f"[red]Unreadable:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e

    if timestamp is None:
        console.print("[yellow]Empty[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)

    ttl = timedelta(seconds=config.cache_duration())
    state = "[green]fresh[/green]" if is_cache_valid(timestamp, ttl) else "[yellow]stale[/yellow]"
    stamp = timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"[bold]Detected:[/bold] {stamp} ({state})")
    console.print(f"[bold]Installations:[/bold] {len(installations)}")
    raise typer.Exit(ExitCode.SUCCESS)
