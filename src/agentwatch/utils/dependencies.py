"""Package manager checks for the doctor command.

Each check resolves a tool on PATH and asks it for its version. Checks
never raise; a tool that is missing or fails to report is recorded as such.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

from agentwatch.errors import CommandError
from agentwatch.platform import Platform
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandRunner, run_command

# Tools consulted by the detection strategies
PACKAGE_MANAGERS = ["npm", "pip3", "pip", "pipx", "uv", "brew"]

VERSION_TIMEOUT = 10.0


@dataclass
class DependencyInfo:
    """Basic information about a system dependency."""

    name: str
    installed: bool
    version: str | None = None
    path: str | None = None


def check_tool(
    ctx: Context, platform: Platform, name: str, runner: CommandRunner | None = None
) -> DependencyInfo:
    """Check for a tool on PATH and record the first line of ``--version``."""
    path = platform.find_executable(name)
    if not path:
        return DependencyInfo(name=name, installed=False)

    runner = runner or run_command
    try:
        result = runner(ctx, [path, "--version"], timeout=VERSION_TIMEOUT, merge_stderr=True)
    except CommandError:
        return DependencyInfo(name=name, installed=True, path=path)

    lines = result.output.strip().splitlines() if result.ok else []
    return DependencyInfo(name=name, installed=True, version=lines[0] if lines else None, path=path)


def check_python() -> DependencyInfo:
    """Return current Python interpreter information."""
    version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    return DependencyInfo(name="python", installed=True, version=version, path=sys.executable)


def check_all(
    ctx: Context, platform: Platform, runner: CommandRunner | None = None
) -> list[DependencyInfo]:
    """Run all dependency checks and return results."""
    results = [check_tool(ctx, platform, name, runner) for name in PACKAGE_MANAGERS]
    results.append(check_python())
    return results
