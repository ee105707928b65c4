"""Check package managers and detection readiness."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from agentwatch.cli.common import detection_context, get_config
from agentwatch.detector.detector import new_detector
from agentwatch.platform import current_platform
from agentwatch.storage.cache import CACHE_FILENAME
from agentwatch.utils.dependencies import PACKAGE_MANAGERS, DependencyInfo, check_all
from agentwatch.utils.exit_codes import ExitCode

console = Console()


def _yes_no(value: bool) -> Text:
    return Text("Yes", style="green") if value else Text("No", style="red")


def _render_table(results: list[DependencyInfo]) -> Table:
    table = Table(title="agentwatch doctor")
    table.add_column("Tool", style="bold")
    table.add_column("Installed")
    table.add_column("Version")
    table.add_column("Path", overflow="fold")

    for info in results:
        table.add_row(info.name, _yes_no(info.installed), info.version or "-", info.path or "-")
    return table


def doctor_command(ctx: typer.Context) -> None:
    """Check package managers and which detection strategies can run."""
    config = get_config(ctx)
    platform = current_platform()

    results = check_all(detection_context(config), platform)
    console.print(_render_table(results))

    strategy_table = Table(title="detection strategies")
    strategy_table.add_column("Strategy", style="bold")
    strategy_table.add_column("Applicable")
    for strategy in new_detector(platform).strategies():
        strategy_table.add_row(strategy.name, _yes_no(strategy.is_applicable(platform)))
    console.print(strategy_table)

    console.print(f"[bold]Platform:[/bold] {platform.id.value}")
    console.print(f"[bold]Config:[/bold] {config.config_path}")
    if config.get("detection.cache_enabled", True):
        console.print(f"[bold]Cache:[/bold] {platform.cache_dir() / CACHE_FILENAME}")
    else:
        console.print("[bold]Cache:[/bold] disabled")

    managers = [r for r in results if r.name in PACKAGE_MANAGERS and r.installed]
    if not managers:
        console.print(
            "[yellow]Warning:[/yellow] no package managers found; "
            "only standalone binaries can be detected"
        )
    raise typer.Exit(ExitCode.SUCCESS)
