"""List installed agents."""

import json

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from agentwatch.agents.installation import Installation
from agentwatch.cli.common import detection_context, get_config
from agentwatch.errors import CatalogError, DetectionCancelled
from agentwatch.inventory import InventoryResult, build_inventory
from agentwatch.utils.exit_codes import ExitCode

console = Console()


def _render_table(installations: list[Installation], show_latest: bool) -> Table:
    table = Table(title="installed agents")
    table.add_column("Agent", style="bold")
    table.add_column("Method")
    table.add_column("Version")
    if show_latest:
        table.add_column("Latest")
    table.add_column("Path", overflow="fold")

    for inst in installations:
        row: list[str | Text] = [
            inst.agent_name,
            inst.method.value,
            str(inst.installed_version) or "-",
        ]
        if show_latest:
            if inst.latest_version is None:
                row.append("-")
            elif inst.has_update():
                row.append(Text(str(inst.latest_version), style="yellow"))
            else:
                row.append(Text(str(inst.latest_version), style="green"))
        row.append(inst.executable_path or inst.install_path or "-")
        table.add_row(*row)
    return table


def _to_json(result: InventoryResult, installations: list[Installation]) -> str:
    return json.dumps(
        {
            "from_cache": result.from_cache,
            "detected_at": result.detected_at.isoformat() if result.detected_at else None,
            "installations": [i.to_dict() for i in installations],
        },
        indent=2,
    )


def list_command(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Ignore the detection cache"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
    updates_only: bool = typer.Option(
        False, "--updates", "-u", help="Only show agents with an update available"
    ),
    check_updates: bool = typer.Option(
        False, "--check-updates", help="Look up the latest published versions"
    ),
    show_hidden: bool = typer.Option(False, "--hidden", help="Include agents hidden in the config"),
) -> None:
    """List AI coding agents installed on this machine."""
    config = get_config(ctx)

    try:
        service = build_inventory(config)
    except CatalogError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.INVALID_CONFIG) from e

    detect_ctx = detection_context(config)
    try:
        result = service.list_installations(
            detect_ctx,
            refresh=refresh,
            check_updates=check_updates or updates_only,
            include_hidden=show_hidden,
        )
    except DetectionCancelled as e:
        console.print(f"[red]Detection did not complete:[/red] {e}")
        raise typer.Exit(ExitCode.TIMEOUT) from e

    installations = result.updates if updates_only else result.installations

    if json_output:
        typer.echo(_to_json(result, installations))
        raise typer.Exit(ExitCode.SUCCESS)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if not installations:
        message = "No updates available" if updates_only else "No agents detected"
        console.print(f"[yellow]{message}[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)

    console.print(_render_table(installations, show_latest=check_updates or updates_only))
    if result.from_cache and result.detected_at:
        stamp = result.detected_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        console.print(f"[dim]Cached result from {stamp}; use --refresh to detect again[/dim]")
    raise typer.Exit(ExitCode.SUCCESS)
