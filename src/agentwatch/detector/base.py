"""Base detection strategy interface."""

from abc import ABC, abstractmethod

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.catalog.schema import AgentDef
from agentwatch.platform import Platform
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandRunner, run_command

# Default per-command timeout in seconds for package manager queries
COMMAND_TIMEOUT = 30.0


class Strategy(ABC):
    """Discovers installations made through one install-method family.

    Subclasses must not spawn processes in ``is_applicable``. ``detect``
    swallows per-agent failures and only raises when the context is
    cancelled.
    """

    def __init__(
        self,
        platform: Platform,
        runner: CommandRunner | None = None,
        command_timeout: float = COMMAND_TIMEOUT,
    ) -> None:
        """Initialize the strategy.

        Args:
            platform: Platform used for PATH lookups
            runner: Callable used to run external commands; defaults to run_command
            command_timeout: Timeout in seconds for each external command
        """
        self.platform = platform
        self.runner: CommandRunner = runner or run_command
        self.command_timeout = command_timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used in logs and metadata."""
        raise NotImplementedError

    @property
    @abstractmethod
    def method(self) -> InstallMethod:
        """Install method this strategy primarily reports."""
        raise NotImplementedError

    @abstractmethod
    def is_applicable(self, platform: Platform) -> bool:
        """Cheap check whether this strategy can run on ``platform``."""
        raise NotImplementedError

    @abstractmethod
    def detect(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        """Scan for installations of ``agents``."""
        raise NotImplementedError

    def find_executable(self, agent: AgentDef) -> str:
        """Resolve the first of the agent's executables found on PATH."""
        for executable in agent.detection.executables:
            path = self.platform.find_executable(executable)
            if path:
                return path
        return ""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
