"""Detected agent installations."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from agentwatch.agents.version import Version, parse_version


class InstallMethod(str, Enum):
    """How an agent was installed."""

    NPM = "npm"
    PIP = "pip"
    PIPX = "pipx"
    UV = "uv"
    BREW = "brew"
    NATIVE = "native"
    CURL = "curl"
    BINARY = "binary"
    SCOOP = "scoop"
    WINGET = "winget"
    CHOCOLATEY = "chocolatey"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Installation:
    """One concrete instance of an agent found on this machine.

    Installations are created fresh on every detection pass and never
    modified; ``with_latest_version`` returns a new value.
    """

    agent_id: str
    agent_name: str
    method: InstallMethod
    installed_version: Version = field(default_factory=Version)
    latest_version: Version | None = None
    executable_path: str = ""
    install_path: str = ""
    is_global: bool = True
    detected_at: datetime = field(default_factory=_utcnow)
    metadata: dict[str, str] = field(default_factory=dict)

    def key(self) -> str:
        """Identity of this installation: agent, method and executable path."""
        return f"{self.agent_id}:{self.method.value}:{self.executable_path}"

    def has_update(self) -> bool:
        """True iff a latest version is known and newer than the installed one."""
        if self.latest_version is None:
            return False
        return self.latest_version.is_newer_than(self.installed_version)

    def with_latest_version(self, latest: Version | None) -> Installation:
        return dataclasses.replace(self, latest_version=latest)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "method": self.method.value,
            "installed_version": str(self.installed_version),
            "latest_version": str(self.latest_version) if self.latest_version else None,
            "has_update": self.has_update(),
            "executable_path": self.executable_path,
            "install_path": self.install_path,
            "is_global": self.is_global,
            "detected_at": self.detected_at.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Installation:
        """Rebuild an Installation from ``to_dict`` output.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the method or timestamp is invalid
        """
        latest = data.get("latest_version")
        return cls(
            agent_id=data["agent_id"],
            agent_name=data.get("agent_name", data["agent_id"]),
            method=InstallMethod(data["method"]),
            installed_version=parse_version(data.get("installed_version") or ""),
            latest_version=parse_version(latest) if latest else None,
            executable_path=data.get("executable_path", ""),
            install_path=data.get("install_path", ""),
            is_global=data.get("is_global", True),
            detected_at=datetime.fromisoformat(data["detected_at"]),
            metadata=dict(data.get("metadata") or {}),
        )
