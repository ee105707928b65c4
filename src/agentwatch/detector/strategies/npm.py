"""Detect agents installed as global npm packages."""

import json
import logging
import os

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import parse_version
from agentwatch.catalog.schema import AgentDef
from agentwatch.detector.base import Strategy
from agentwatch.errors import CommandError
from agentwatch.platform import Platform
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)


def extract_npm_package_name(command: str) -> str:
    """Get the package name out of an ``npm install -g`` command.

    Takes the first non-flag token after ``-g``/``--global`` and drops a
    trailing ``@version`` or ``@tag``. Scoped names keep their leading ``@``.
    Returns an empty string when the command has no global flag.
    """
    parts = command.split()
    for i, part in enumerate(parts):
        if part not in ("-g", "--global"):
            continue
        for candidate in parts[i + 1 :]:
            if candidate.startswith("-"):
                continue
            at = candidate.rfind("@")
            if at > 0:
                candidate = candidate[:at]
            return candidate
    return ""


def parse_npm_list(output: str) -> dict[str, str]:
    """Map package name to version from ``npm list -g --depth=0`` output.

    Understands the ``--json`` document and, failing that, the tree text
    format (``├── name@1.2.3``).
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        data = None

    packages: dict[str, str] = {}
    if isinstance(data, dict):
        deps = data.get("dependencies")
        if isinstance(deps, dict):
            for name, info in deps.items():
                if isinstance(info, dict) and isinstance(info.get("version"), str):
                    packages[name] = info["version"]
        return packages

    for line in output.splitlines():
        token = line.strip().split(" ")[-1]
        at = token.rfind("@")
        if at > 0:
            packages[token[:at]] = token[at + 1 :]
    return packages


class NPMStrategy(Strategy):
    """Find agents among globally installed npm packages."""

    @property
    def name(self) -> str:
        return "npm"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.NPM

    def is_applicable(self, platform: Platform) -> bool:
        return platform.is_executable_in_path("npm")

    def detect(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        ctx.raise_if_cancelled()

        wanted: list[tuple[AgentDef, str]] = []
        for agent in agents:
            method = agent.get_install_method("npm")
            if method is None:
                continue
            package = method.package or extract_npm_package_name(method.command)
            if not package:
                logger.debug(f"No npm package name for {agent.id}")
                continue
            wanted.append((agent, package))

        if not wanted:
            return []

        installed = self._list_global_packages(ctx)
        if not installed:
            return []
        root = self._global_root(ctx)

        installations: list[Installation] = []
        for agent, package in wanted:
            version = installed.get(package)
            if version is None:
                continue
            installations.append(
                Installation(
                    agent_id=agent.id,
                    agent_name=agent.name,
                    method=InstallMethod.NPM,
                    installed_version=parse_version(version),
                    executable_path=self.find_executable(agent),
                    install_path=os.path.join(root, package) if root else "",
                    metadata={"detected_by": self.name, "package": package},
                )
            )
        return installations

    def _list_global_packages(self, ctx: Context) -> dict[str, str]:
        # npm exits non-zero on peer dependency problems but still prints the tree
        try:
            result = self.runner(
                ctx, ["npm", "list", "-g", "--depth=0", "--json"], timeout=self.command_timeout
            )
        except CommandError as e:
            logger.debug(f"npm list failed: {e}")
            return {}
        return parse_npm_list(result.stdout)

    def _global_root(self, ctx: Context) -> str:
        try:
            result = self.runner(ctx, ["npm", "root", "-g"], timeout=self.command_timeout)
        except CommandError as e:
            logger.debug(f"npm root failed: {e}")
            return ""
        return result.stdout.strip() if result.ok else ""
