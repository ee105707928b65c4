"""Agents known out of the box, used when no catalog file is configured."""

from typing import Any

from agentwatch.catalog.schema import AgentDef

_ALL = ["darwin", "linux", "windows"]
_UNIX = ["darwin", "linux"]

BUILTIN_CATALOG: dict[str, Any] = {
    "version": "1",
    "agents": {
        "claude-code": {
            "id": "claude-code",
            "name": "Claude Code",
            "description": "Anthropic's agentic coding CLI",
            "install_methods": {
                "npm": {
                    "method": "npm",
                    "package": "@anthropic-ai/claude-code",
                    "command": "npm install -g @anthropic-ai/claude-code",
                    "platforms": _ALL,
                },
                "native": {
                    "method": "native",
                    "command": "curl -fsSL https://claude.ai/install.sh | bash",
                    "platforms": _UNIX,
                },
                "brew": {
                    "method": "brew",
                    "package": "claude-code",
                    "command": "brew install --cask claude-code",
                    "platforms": _UNIX,
                    "metadata": {"type": "cask"},
                },
            },
            "detection": {
                "executables": ["claude"],
                "version_cmd": "claude --version",
            },
        },
        "codex": {
            "id": "codex",
            "name": "Codex CLI",
            "description": "OpenAI's coding agent for the terminal",
            "install_methods": {
                "npm": {
                    "method": "npm",
                    "command": "npm install -g @openai/codex",
                    "platforms": _ALL,
                },
                "brew": {
                    "method": "brew",
                    "command": "brew install codex",
                    "platforms": _UNIX,
                },
            },
            "detection": {
                "executables": ["codex"],
                "version_cmd": "codex --version",
            },
        },
        "gemini-cli": {
            "id": "gemini-cli",
            "name": "Gemini CLI",
            "description": "Google's open-source AI agent for the terminal",
            "install_methods": {
                "npm": {
                    "method": "npm",
                    "command": "npm install -g @google/gemini-cli",
                    "platforms": _ALL,
                },
                "brew": {
                    "method": "brew",
                    "command": "brew install gemini-cli",
                    "platforms": _UNIX,
                },
            },
            "detection": {
                "executables": ["gemini"],
                "version_cmd": "gemini --version",
            },
        },
        "aider": {
            "id": "aider",
            "name": "Aider",
            "description": "AI pair programming in your terminal",
            "install_methods": {
                "pip": {
                    "method": "pip",
                    "command": "pip install aider-chat",
                    "platforms": _ALL,
                },
                "pipx": {
                    "method": "pipx",
                    "command": "pipx install aider-chat",
                    "platforms": _ALL,
                },
                "uv": {
                    "method": "uv",
                    "command": "uv tool install aider-chat",
                    "platforms": _ALL,
                },
                "brew": {
                    "method": "brew",
                    "command": "brew install aider",
                    "platforms": _UNIX,
                },
            },
            "detection": {
                "executables": ["aider"],
                "version_cmd": "aider --version",
                "version_regex": r"aider\s+v?(\d+\.\d+\.\d+)",
            },
        },
        "goose": {
            "id": "goose",
            "name": "Goose",
            "description": "Block's on-machine AI agent",
            "install_methods": {
                "curl": {
                    "method": "curl",
                    "command": (
                        "curl -fsSL https://github.com/block/goose/releases/download/"
                        "stable/download_cli.sh | bash"
                    ),
                    "platforms": _UNIX,
                },
                "brew": {
                    "method": "brew",
                    "package": "block-goose-cli",
                    "command": "brew install block-goose-cli",
                    "platforms": _UNIX,
                },
            },
            "detection": {
                "executables": ["goose"],
                "version_cmd": "goose --version",
            },
        },
    },
}


def builtin_agents() -> list[AgentDef]:
    """Return the built-in agent definitions in a stable order."""
    return [AgentDef.from_dict(entry) for entry in BUILTIN_CATALOG["agents"].values()]
