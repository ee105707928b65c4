"""Catalog records describing known agents and how they are installed."""

from dataclasses import dataclass, field
from typing import Any

# Lower sorts first. Package managers are preferred over native installers
# because they can be updated and removed cleanly.
METHOD_PRIORITY: dict[str, int] = {
    "npm": 1,
    "pip": 2,
    "pipx": 3,
    "uv": 4,
    "brew": 5,
    "bun": 6,
    "go": 7,
    "scoop": 8,
    "winget": 9,
    "chocolatey": 10,
    "krew": 11,
    "binary": 12,
    "native": 20,
    "powershell": 21,
    "dmg": 22,
}
UNKNOWN_METHOD_PRIORITY = 15


def method_priority(method: str) -> int:
    """Sort key for an install method name."""
    return METHOD_PRIORITY.get(method, UNKNOWN_METHOD_PRIORITY)


@dataclass
class InstallMethodDef:
    """How to install an agent through one method."""

    method: str
    package: str = ""
    command: str = ""
    update_cmd: str = ""
    uninstall_cmd: str = ""
    platforms: list[str] = field(default_factory=list)
    global_flag: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "InstallMethodDef":
        """Create InstallMethodDef from dictionary.

        Args:
            name: Key of the method in the agent's ``install_methods`` map,
                used when the entry does not name its method itself
            data: Raw catalog entry
        """
        return cls(
            method=data.get("method") or name,
            package=data.get("package", ""),
            command=data.get("command", ""),
            update_cmd=data.get("update_cmd", ""),
            uninstall_cmd=data.get("uninstall_cmd", ""),
            platforms=list(data.get("platforms", [])),
            global_flag=data.get("global_flag", ""),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class DetectionDef:
    """How to recognise an installed agent."""

    executables: list[str] = field(default_factory=list)
    version_cmd: str = ""
    version_regex: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DetectionDef":
        data = data or {}
        return cls(
            executables=list(data.get("executables", [])),
            version_cmd=data.get("version_cmd", ""),
            version_regex=data.get("version_regex", ""),
        )


@dataclass
class AgentDef:
    """A catalog entry for one agent."""

    id: str
    name: str
    description: str = ""
    install_methods: dict[str, InstallMethodDef] = field(default_factory=dict)
    detection: DetectionDef = field(default_factory=DetectionDef)
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentDef":
        """Create AgentDef from a catalog dictionary.

        Raises:
            KeyError: If the entry has no ``id``
        """
        methods = data.get("install_methods") or {}
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            description=data.get("description", ""),
            install_methods={
                name: InstallMethodDef.from_dict(name, entry) for name, entry in methods.items()
            },
            detection=DetectionDef.from_dict(data.get("detection")),
            metadata=dict(data.get("metadata") or {}),
        )

    def is_supported(self, platform_id: str) -> bool:
        """True if any install method lists ``platform_id``."""
        return any(platform_id in m.platforms for m in self.install_methods.values())

    def get_install_method(self, method: str) -> InstallMethodDef | None:
        return self.install_methods.get(method)

    def supported_methods(self, platform_id: str) -> list[InstallMethodDef]:
        """Install methods available on ``platform_id``, preferred first."""
        methods = [m for m in self.install_methods.values() if platform_id in m.platforms]
        return sorted(methods, key=lambda m: method_priority(m.method))

    def primary_executable(self) -> str:
        return self.detection.executables[0] if self.detection.executables else ""
