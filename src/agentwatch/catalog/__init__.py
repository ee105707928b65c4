"""Agent catalog records and loading."""

from agentwatch.catalog.loader import agents_for_platform, load_catalog
from agentwatch.catalog.schema import AgentDef, DetectionDef, InstallMethodDef

__all__ = [
    "AgentDef",
    "DetectionDef",
    "InstallMethodDef",
    "agents_for_platform",
    "load_catalog",
]
