"""Agent installation records and version handling."""

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import Version, extract_version_from_output, parse_version

__all__ = [
    "InstallMethod",
    "Installation",
    "Version",
    "extract_version_from_output",
    "parse_version",
]
