"""Show and edit the agentwatch configuration."""

import json
import logging

import typer
from rich.console import Console

from agentwatch.cli.common import get_config
from agentwatch.config.manager import ConfigManager
from agentwatch.errors import ConfigurationError
from agentwatch.utils.exit_codes import ExitCode

console = Console()
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Show and edit the configuration", no_args_is_help=True)


def _save(config: ConfigManager) -> None:
    try:
        config.save()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e


@config_app.command("path")
def path_command(ctx: typer.Context) -> None:
    """Print the configuration file location."""
    typer.echo(str(get_config(ctx).config_path))


@config_app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Print the effective configuration as JSON."""
    config = get_config(ctx)
    typer.echo(json.dumps(config.load(), indent=2))


@config_app.command("init")
def init_command(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Force overwrite existing configuration"
    ),
) -> None:
    """Write a configuration file with the default settings."""
    config = get_config(ctx)
    if config.config_path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config.config_path}[/yellow]")
        console.print("[red]Use --force to overwrite existing configuration[/red]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    config.reset_to_defaults()
    _save(config)
    console.print(f"[green]Wrote default configuration to[/green] {config.config_path}")


def _set_agent_flag(ctx: typer.Context, agent_id: str, flag: str, value: bool) -> None:
    config = get_config(ctx)
    if flag == "hidden":
        config.set_agent_hidden(agent_id, value)
    else:
        config.set_agent_disabled(agent_id, value)
    _save(config)
    logger.info(f"Set agents.{agent_id}.{flag} to {value}")


@config_app.command("hide")
def hide_command(ctx: typer.Context, agent_id: str = typer.Argument(..., help="Agent id")) -> None:
    """Hide an agent from listings. It is still detected."""
    _set_agent_flag(ctx, agent_id, "hidden", True)
    console.print(f"[green]Hidden[/green] {agent_id}")


@config_app.command("unhide")
def unhide_command(ctx: typer.Context, agent_id: str = typer.Argument(..., help="Agent id")) -> None:
    """Show a hidden agent in listings again."""
    _set_agent_flag(ctx, agent_id, "hidden", False)
    console.print(f"[green]Unhidden[/green] {agent_id}")


@config_app.command("disable")
def disable_command(ctx: typer.Context, agent_id: str = typer.Argument(..., help="Agent id")) -> None:
    """Stop detecting an agent."""
    _set_agent_flag(ctx, agent_id, "disabled", True)
    console.print(f"[green]Disabled[/green] {agent_id}")


@config_app.command("enable")
def enable_command(ctx: typer.Context, agent_id: str = typer.Argument(..., help="Agent id")) -> None:
    """Detect a disabled agent again."""
    _set_agent_flag(ctx, agent_id, "disabled", False)
    console.print(f"[green]Enabled[/green] {agent_id}")
