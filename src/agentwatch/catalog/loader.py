"""Read agent definitions from a catalog JSON file."""

import json
import logging
from pathlib import Path
from typing import Any

from agentwatch.catalog.builtin import builtin_agents
from agentwatch.catalog.schema import AgentDef
from agentwatch.errors import CatalogError

logger = logging.getLogger(__name__)


def parse_catalog(data: dict[str, Any]) -> list[AgentDef]:
    """Build AgentDefs from a decoded catalog document.

    The ``agents`` member may be a mapping keyed by agent id or a list.
    Entries without an id are skipped.
    """
    entries = data.get("agents") or {}
    if isinstance(entries, dict):
        entries = [{"id": key, **value} for key, value in entries.items()]

    agents: list[AgentDef] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.warning(f"Skipping catalog entry without id: {entry!r}")
            continue
        agents.append(AgentDef.from_dict(entry))
    return agents


def load_catalog(path: Path | None = None) -> list[AgentDef]:
    """Load agent definitions from ``path``, or the built-in catalog.

    Raises:
        CatalogError: If the file cannot be read or is not valid JSON
    """
    if path is None:
        return builtin_agents()

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in catalog file {path}: {e}") from e
    except OSError as e:
        raise CatalogError(f"Failed to read catalog {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog {path} must contain a JSON object")

    agents = parse_catalog(data)
    logger.debug(f"Loaded {len(agents)} agents from {path}")
    return agents


def agents_for_platform(agents: list[AgentDef], platform_id: str) -> list[AgentDef]:
    """Keep the agents with at least one install method for ``platform_id``."""
    return [agent for agent in agents if agent.is_supported(platform_id)]
