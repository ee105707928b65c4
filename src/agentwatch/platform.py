"""Operating system abstraction used by the detection strategies.

Strategies never call ``shutil.which`` or inspect ``sys.platform``
directly; they go through a Platform so tests can substitute a fake one.
"""

from __future__ import annotations

import os
import shutil
import sys
from enum import Enum
from pathlib import Path

APP_NAME = "agentwatch"


class PlatformID(str, Enum):
    """Supported operating systems."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"


def current_platform_id() -> PlatformID:
    """Map ``sys.platform`` onto a PlatformID. Unknown Unixes count as Linux."""
    if sys.platform == "darwin":
        return PlatformID.DARWIN
    if sys.platform.startswith(("win32", "cygwin")):
        return PlatformID.WINDOWS
    return PlatformID.LINUX


class Platform:
    """PATH lookup and per-user directories for one operating system."""

    def __init__(self, platform_id: PlatformID | None = None, path: str | None = None) -> None:
        """Initialize the platform.

        Args:
            platform_id: Operating system; defaults to the running one
            path: PATH string to search; defaults to the process PATH
        """
        self.id = platform_id or current_platform_id()
        self._path = path

    def find_executable(self, name: str) -> str | None:
        """Return the full path of ``name`` on PATH, else None."""
        return shutil.which(name, path=self._path)

    def is_executable_in_path(self, name: str) -> bool:
        return self.find_executable(name) is not None

    def config_dir(self) -> Path:
        """Directory for the configuration file."""
        if self.id is PlatformID.WINDOWS:
            base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
            return Path(base) / APP_NAME
        if self.id is PlatformID.DARWIN:
            return Path.home() / "Library" / "Application Support" / APP_NAME
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(base) / APP_NAME

    def cache_dir(self) -> Path:
        """Directory for the detection cache."""
        if self.id is PlatformID.WINDOWS:
            base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
            return Path(base) / APP_NAME / "cache"
        if self.id is PlatformID.DARWIN:
            return Path.home() / "Library" / "Caches" / APP_NAME
        base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
        return Path(base) / APP_NAME


_current: Platform | None = None


def current_platform() -> Platform:
    """Return the Platform for the running operating system."""
    global _current
    if _current is None:
        _current = Platform()
    return _current
