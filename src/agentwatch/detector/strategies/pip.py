"""Detect agents installed with pip, pipx or uv."""

import json
import logging
import re

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import parse_version
from agentwatch.catalog.schema import AgentDef
from agentwatch.detector.base import Strategy
from agentwatch.errors import CommandError
from agentwatch.platform import Platform
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)

PIP_TOOLS = ["pip", "pip3", "pipx", "uv"]

# Catalog methods handled here, checked in this order
PIP_METHODS = ["pip", "pipx", "uv"]

_CONSTRAINT = re.compile(r"[=<>!~\[,;]")


def normalize_package_name(name: str) -> str:
    """Normalise a Python distribution name for comparisons."""
    return re.sub(r"[-_.]+", "-", name).lower()


def extract_pip_package_name(package: str, command: str) -> str:
    """Return ``package`` or the package installed by ``command``.

    The package is the first non-flag token after ``install``, with any
    version constraint (``==1.0``, ``>=1.0,<2.0``...) removed.
    """
    if package:
        return package

    parts = command.split()
    if "install" not in parts:
        return ""
    for token in parts[parts.index("install") + 1 :]:
        if token.startswith("-"):
            continue
        return _CONSTRAINT.split(token, 1)[0]
    return ""


def parse_pip_show(output: str) -> str:
    """Version from ``pip show`` output, or an empty string."""
    for line in output.splitlines():
        if line.startswith("Version:"):
            return line[len("Version:") :].strip()
    return ""


def parse_pipx_list(output: str) -> dict[str, str]:
    """Map package name to version from ``pipx list --json``."""
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        return {}
    venvs = data.get("venvs") if isinstance(data, dict) else None
    if not isinstance(venvs, dict):
        return {}

    packages: dict[str, str] = {}
    for venv_name, venv in venvs.items():
        try:
            main = venv["metadata"]["main_package"]
            version = main["package_version"]
        except (KeyError, TypeError):
            continue
        if not isinstance(version, str):
            continue
        packages[normalize_package_name(venv_name)] = version
        if isinstance(main.get("package"), str):
            packages[normalize_package_name(main["package"])] = version
    return packages


def parse_uv_tool_list(output: str) -> dict[str, str]:
    """Map tool name to version from ``uv tool list`` text output.

    Lines look like ``name v1.2.3`` or ``name 1.2.3``. Blank lines, lines
    starting with ``-`` (entry point listings) and single-word lines are
    ignored.
    """
    packages: dict[str, str] = {}
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("-"):
            continue
        fields = line.split()
        if len(fields) < 2:
            continue
        version = fields[1]
        if version[:1] in ("v", "V"):
            version = version[1:]
        packages[fields[0]] = version
    return packages


class PipStrategy(Strategy):
    """Find agents installed through the Python packaging tools."""

    @property
    def name(self) -> str:
        return "pip"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.PIP

    def is_applicable(self, platform: Platform) -> bool:
        return any(platform.is_executable_in_path(tool) for tool in PIP_TOOLS)

    def detect(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        ctx.raise_if_cancelled()

        listings: dict[str, dict[str, str]] = {}
        installations: list[Installation] = []

        for agent in agents:
            for method_name in PIP_METHODS:
                method = agent.get_install_method(method_name)
                if method is None:
                    continue
                package = extract_pip_package_name(method.package, method.command)
                if not package:
                    logger.debug(f"No package name for {agent.id} via {method_name}")
                    continue

                version = self._installed_version(ctx, method_name, package, listings)
                if not version:
                    continue

                installations.append(
                    Installation(
                        agent_id=agent.id,
                        agent_name=agent.name,
                        method=InstallMethod(method_name),
                        installed_version=parse_version(version),
                        executable_path=self.find_executable(agent),
                        metadata={"detected_by": self.name, "package": package},
                    )
                )

        return installations

    def _installed_version(
        self,
        ctx: Context,
        method_name: str,
        package: str,
        listings: dict[str, dict[str, str]],
    ) -> str:
        """Ask the tool behind ``method_name`` for the installed version."""
        if method_name == "pipx":
            if not self.platform.is_executable_in_path("pipx"):
                return ""
            if "pipx" not in listings:
                listings["pipx"] = parse_pipx_list(self._run(ctx, ["pipx", "list", "--json"]))
            return listings["pipx"].get(normalize_package_name(package), "")

        if method_name == "uv":
            if not self.platform.is_executable_in_path("uv"):
                return ""
            if "uv" not in listings:
                tools = parse_uv_tool_list(self._run(ctx, ["uv", "tool", "list"]))
                listings["uv"] = {normalize_package_name(k): v for k, v in tools.items()}
            return listings["uv"].get(normalize_package_name(package), "")

        manager = "pip3" if self.platform.is_executable_in_path("pip3") else "pip"
        if not self.platform.is_executable_in_path(manager):
            return ""
        return parse_pip_show(self._run(ctx, [manager, "show", package]))

    def _run(self, ctx: Context, command: list[str]) -> str:
        """Run ``command`` and return stdout, or an empty string on failure."""
        try:
            result = self.runner(ctx, command, timeout=self.command_timeout)
        except CommandError as e:
            logger.debug(f"{command[0]} failed: {e}")
            return ""
        if not result.ok:
            logger.debug(f"{' '.join(command)} exited with {result.returncode}")
            return ""
        return result.stdout
