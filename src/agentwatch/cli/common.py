"""Helpers shared by the CLI commands."""

import typer

from agentwatch.config.manager import DEFAULT_CONFIG, ConfigManager
from agentwatch.utils.context import Context


def get_config(ctx: typer.Context) -> ConfigManager:
    """ConfigManager loaded by the global options callback."""
    if ctx.obj and "config" in ctx.obj:
        return ctx.obj["config"]
    config = ConfigManager()
    config.load()
    return config


def detection_context(config: ConfigManager) -> Context:
    """Background context bounded by ``detection.timeout``."""
    timeout = config.get("detection.timeout", DEFAULT_CONFIG["detection"]["timeout"])
    return Context.background().with_timeout(float(timeout))
