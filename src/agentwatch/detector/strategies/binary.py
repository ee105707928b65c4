"""Detect agents installed as standalone binaries found on PATH."""

import logging
import os
import re
import shlex
from collections.abc import Iterable

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import Version, extract_version_from_output, parse_version
from agentwatch.catalog.schema import AgentDef
from agentwatch.detector.base import Strategy
from agentwatch.errors import CommandError
from agentwatch.platform import Platform
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandRunner

logger = logging.getLogger(__name__)

# Catalog method names that mean "binary on PATH", in order of preference
BINARY_METHODS = ["native", "binary", "curl"]

# Path fragments showing an executable is managed by some package manager.
# Matched case-insensitively against the resolved path with "/" separators.
DEFAULT_PACKAGE_MANAGER_PATTERNS: tuple[str, ...] = (
    # node
    "/node_modules/",
    "/npm/",
    "/node/",
    "/.npm/",
    "/pnpm/",
    "/yarn/",
    "/.bun/",
    "/fnm/",
    "/.nvm/",
    "/.volta/",
    "/asdf/installs/nodejs/",
    "/mise/installs/node/",
    # python
    "/pip/",
    "/pipx/",
    "/site-packages/",
    "/.local/pipx/",
    "/.pyenv/",
    "/conda/",
    "/virtualenv/",
    "/venv/",
    "/.venv/",
    "/uv/",
    "/asdf/installs/python/",
    "/mise/installs/python/",
    # homebrew
    "/homebrew/",
    "/cellar/",
    "/linuxbrew/",
    # go
    "/go/bin/",
    "/gopath/",
    # rust
    "/.cargo/",
    # ruby
    "/.gem/",
    "/.rbenv/",
    "/.rvm/",
    "/asdf/installs/ruby/",
    # generic version managers
    "/.asdf/",
    "/mise/",
    "/rtx/",
    # windows
    "/scoop/",
)


def is_package_manager_path(path: str, patterns: Iterable[str]) -> bool:
    """True if ``path`` contains any of ``patterns``."""
    normalized = path.lower().replace("\\", "/")
    return any(pattern in normalized for pattern in patterns)


class BinaryStrategy(Strategy):
    """Scan PATH for agents declaring a native, binary or curl install."""

    def __init__(
        self,
        platform: Platform,
        runner: CommandRunner | None = None,
        denylist: Iterable[str] | None = None,
        **kwargs,
    ) -> None:
        """Initialize the binary strategy.

        Args:
            platform: Platform used for PATH lookups
            runner: Callable used to run version probes
            denylist: Path fragments that disqualify an executable;
                defaults to DEFAULT_PACKAGE_MANAGER_PATTERNS
        """
        super().__init__(platform, runner, **kwargs)
        patterns = DEFAULT_PACKAGE_MANAGER_PATTERNS if denylist is None else denylist
        self.denylist: tuple[str, ...] = tuple(p.lower() for p in patterns)

    @property
    def name(self) -> str:
        return "binary"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.NATIVE

    def is_applicable(self, platform: Platform) -> bool:
        return True

    def detect(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        ctx.raise_if_cancelled()
        installations: list[Installation] = []

        for agent in agents:
            method_name = self._binary_method(agent)
            if not method_name:
                continue

            for executable in agent.detection.executables:
                path = self.platform.find_executable(executable)
                if not path:
                    continue
                if is_package_manager_path(path, self.denylist):
                    logger.debug(
                        f"Skipping {path} for {agent.id}: managed by a package manager"
                    )
                    continue

                version = self.probe_version(ctx, agent, path)
                installations.append(
                    Installation(
                        agent_id=agent.id,
                        agent_name=agent.name,
                        method=InstallMethod(method_name),
                        installed_version=version,
                        executable_path=path,
                        install_path=os.path.dirname(path),
                        metadata={"detected_by": self.name, "executable": executable},
                    )
                )
                break

        return installations

    @staticmethod
    def _binary_method(agent: AgentDef) -> str:
        """First of BINARY_METHODS the agent declares, or an empty string."""
        for method in BINARY_METHODS:
            if method in agent.install_methods:
                return method
        return ""

    def probe_version(self, ctx: Context, agent: AgentDef, path: str) -> Version:
        """Run the agent's version command against ``path``.

        Any failure yields an empty Version. Cancellation propagates.
        """
        if not agent.detection.version_cmd:
            return Version()

        try:
            parts = shlex.split(agent.detection.version_cmd)
        except ValueError:
            parts = agent.detection.version_cmd.split()
        if not parts:
            return Version()
        parts[0] = path

        try:
            result = self.runner(ctx, parts, timeout=self.command_timeout, merge_stderr=True)
        except CommandError as e:
            logger.debug(f"Version probe for {agent.id} failed: {e}")
            return Version()
        if not result.ok:
            logger.debug(f"Version probe for {agent.id} exited with {result.returncode}")
            return Version()

        output = result.output.strip()
        return parse_version(self._extract(agent.detection.version_regex, output))

    @staticmethod
    def _extract(version_regex: str, output: str) -> str:
        if version_regex:
            try:
                match = re.search(version_regex, output)
            except re.error as e:
                logger.debug(f"Invalid version regex {version_regex!r}: {e}")
                match = None
            if match and match.groups():
                return match.group(1)
        return extract_version_from_output(output)
