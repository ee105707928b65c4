"""Entry point for agentwatch CLI."""

import sys
from pathlib import Path

import typer
from rich.console import Console

from agentwatch import __version__
from agentwatch.cli.cache import cache_app
from agentwatch.cli.config import config_app
from agentwatch.cli.doctor import doctor_command
from agentwatch.cli.list import list_command
from agentwatch.config.manager import LOG_LEVELS, ConfigManager
from agentwatch.errors import ConfigurationError
from agentwatch.utils.exit_codes import ExitCode
from agentwatch.utils.logging import setup_logging

app = typer.Typer(
    name="agentwatch",
    help="Find installed AI coding agents and check them for updates",
    add_completion=True,
    no_args_is_help=True,
)
console = Console()

# Register commands
app.command("list")(list_command)
app.command("doctor")(doctor_command)
app.add_typer(cache_app, name="cache")
app.add_typer(config_app, name="config")


@app.callback()
def _global_options(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show the agentwatch version and exit",
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        case_sensitive=False,
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the configuration file",
        dir_okay=False,
    ),
) -> None:
    """Global options processed before subcommands."""
    if version:
        console.print(f"agentwatch {__version__}")
        raise typer.Exit()

    if log_level is not None and log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"must be one of {', '.join(LOG_LEVELS)}", param_hint="'--log-level'"
        )

    config = ConfigManager(config_path)
    try:
        config.load()
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(ExitCode.INVALID_CONFIG) from e

    # Initialize logging as early as possible
    level = (log_level or config.get("logging.level") or "WARNING").upper()
    setup_logging(level, config.get("logging.file"))

    ctx.obj = {"config": config}


def main() -> int:
    """Main entry point for the CLI."""
    try:
        app()
        return ExitCode.SUCCESS
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return ExitCode.INTERRUPTED
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        return ExitCode.GENERAL_ERROR


if __name__ == "__main__":
    sys.exit(main())
