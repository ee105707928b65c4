"""Detect agents installed with Homebrew formulae or casks."""

import json
import logging

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import parse_version
from agentwatch.catalog.schema import AgentDef, InstallMethodDef
from agentwatch.detector.base import Strategy
from agentwatch.errors import CommandError
from agentwatch.platform import Platform, PlatformID
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)

_INSTALL_VERBS = ("install", "reinstall")


def extract_brew_package_name(package: str, command: str) -> str:
    """Return ``package`` or the formula/cask named in ``command``."""
    if package:
        return package
    name, _ = parse_brew_command(command)
    return name


def parse_brew_command(command: str) -> tuple[str, bool]:
    """Split a ``brew install`` command into (package, is_cask).

    The package is the first non-flag token after ``install``/``reinstall``;
    tap-qualified names (``user/tap/formula``) keep only their last segment.
    ``--cask`` or a bare ``cask`` token marks a cask.
    """
    parts = command.split()
    is_cask = "--cask" in parts or "cask" in parts

    verb_index = next((i for i, p in enumerate(parts) if p in _INSTALL_VERBS), None)
    if verb_index is None:
        return "", is_cask
    for token in parts[verb_index + 1 :]:
        if token.startswith("-") or token == "cask":
            continue
        return token.rsplit("/", 1)[-1], is_cask
    return "", is_cask


def resolve_brew_package(method: InstallMethodDef) -> tuple[str, bool]:
    """Package name and cask flag for a catalog brew method."""
    name, is_cask = parse_brew_command(method.command)
    if method.metadata.get("type") == "cask":
        is_cask = True
    return method.package or name, is_cask


def parse_brew_info(output: str, is_cask: bool) -> str:
    """Installed version from ``brew info --json=v2`` output."""
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        return ""
    if not isinstance(data, dict):
        return ""

    try:
        if is_cask:
            installed = data["casks"][0]["installed"]
        else:
            installed = data["formulae"][0]["installed"][0]["version"]
    except (KeyError, IndexError, TypeError):
        return ""
    return installed if isinstance(installed, str) else ""


class BrewStrategy(Strategy):
    """Find agents installed through Homebrew on macOS and Linux."""

    @property
    def name(self) -> str:
        return "brew"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.BREW

    def is_applicable(self, platform: Platform) -> bool:
        if platform.id is PlatformID.WINDOWS:
            return False
        return platform.is_executable_in_path("brew")

    def detect(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        ctx.raise_if_cancelled()
        installations: list[Installation] = []

        for agent in agents:
            method = agent.get_install_method("brew")
            if method is None:
                continue
            package, is_cask = resolve_brew_package(method)
            if not package:
                logger.debug(f"No brew package name for {agent.id}")
                continue

            version = self._installed_version(ctx, package, is_cask)
            if not version:
                continue

            installations.append(
                Installation(
                    agent_id=agent.id,
                    agent_name=agent.name,
                    method=InstallMethod.BREW,
                    installed_version=parse_version(version),
                    executable_path=self.find_executable(agent),
                    metadata={
                        "detected_by": self.name,
                        "package": package,
                        "type": "cask" if is_cask else "formula",
                    },
                )
            )

        return installations

    def _installed_version(self, ctx: Context, package: str, is_cask: bool) -> str:
        args = ["brew", "info", "--json=v2"]
        if is_cask:
            args.append("--cask")
        args.append(package)

        try:
            result = self.runner(ctx, args, timeout=self.command_timeout)
        except CommandError as e:
            logger.debug(f"brew info {package} failed: {e}")
            return ""
        if not result.ok:
            return ""
        return parse_brew_info(result.stdout, is_cask)
