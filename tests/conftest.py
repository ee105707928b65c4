"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from agentwatch.catalog.schema import AgentDef
from agentwatch.config.manager import ConfigManager
from agentwatch.errors import CommandError
from agentwatch.platform import Platform, PlatformID
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandResult


class FakePlatform(Platform):
    """Platform whose PATH is a plain mapping of name to full path."""

    def __init__(self, executables: dict[str, str] | None = None, platform_id=PlatformID.LINUX):
        super().__init__(platform_id)
        self.executables = dict(executables or {})

    def find_executable(self, name: str) -> str | None:
        return self.executables.get(name)


class FakeRunner:
    """Command runner answering from canned responses.

    Unknown commands behave like a tool that exits with status 1 and
    prints nothing.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, ...], CommandResult | Exception] = {}
        self.calls: list[list[str]] = []

    def add(self, command: list[str], stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.responses[tuple(command)] = CommandResult(
            args=list(command), returncode=returncode, stdout=stdout, stderr=stderr
        )

    def fail(self, command: list[str], error: Exception | None = None) -> None:
        self.responses[tuple(command)] = error or CommandError(f"{command[0]}: not found")

    def __call__(self, ctx, command, timeout=None, merge_stderr=False, check=False):
        ctx.raise_if_cancelled()
        self.calls.append(list(command))
        response = self.responses.get(tuple(command))
        if response is None:
            return CommandResult(args=list(command), returncode=1, stdout="")
        if isinstance(response, Exception):
            raise response
        return response


def make_agent(agent_id: str, name: str | None = None, **overrides) -> AgentDef:
    """Build an AgentDef from catalog-style keyword arguments."""
    data = {"id": agent_id, "name": name or agent_id, **overrides}
    return AgentDef.from_dict(data)


@pytest.fixture
def ctx():
    """A context that is never cancelled."""
    return Context.background()


@pytest.fixture
def cancelled_ctx():
    """A context cancelled before use."""
    context = Context.background()
    context.cancel()
    return context


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def claude_agent():
    """Agent installable through npm or a native installer."""
    return make_agent(
        "claude-code",
        "Claude Code",
        install_methods={
            "npm": {
                "package": "@anthropic-ai/claude-code",
                "command": "npm install -g @anthropic-ai/claude-code",
                "platforms": ["darwin", "linux", "windows"],
            },
            "native": {
                "command": "curl -fsSL https://claude.ai/install.sh | bash",
                "platforms": ["darwin", "linux"],
            },
        },
        detection={"executables": ["claude"], "version_cmd": "claude --version"},
    )


@pytest.fixture
def aider_agent():
    """Agent installable with the Python tools or Homebrew."""
    return make_agent(
        "aider",
        "Aider",
        install_methods={
            "pip": {"command": "pip install aider-chat", "platforms": ["darwin", "linux"]},
            "pipx": {"package": "aider-chat", "platforms": ["darwin", "linux"]},
            "uv": {"command": "uv tool install aider-chat", "platforms": ["darwin", "linux"]},
            "brew": {"command": "brew install aider", "platforms": ["darwin", "linux"]},
        },
        detection={
            "executables": ["aider"],
            "version_cmd": "aider --version",
            "version_regex": r"aider\s+v?(\d+\.\d+\.\d+)",
        },
    )


@pytest.fixture
def config(tmp_path: Path):
    """ConfigManager backed by a file in a temporary directory."""
    manager = ConfigManager(tmp_path / "config.json")
    manager.load()
    return manager
