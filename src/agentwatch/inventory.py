"""Inventory of installed agents.

InventoryService is the layer between the CLI and the detector. It decides
whether the cached detection result is still fresh, runs a new detection
when it is not, writes the result back, applies per-agent config overrides
and optionally asks the registries for newer versions.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from agentwatch.agents.installation import Installation
from agentwatch.catalog.loader import agents_for_platform, load_catalog
from agentwatch.catalog.schema import AgentDef
from agentwatch.config.manager import ConfigManager
from agentwatch.detector.detector import Detector, new_detector
from agentwatch.detector.strategies.binary import DEFAULT_PACKAGE_MANAGER_PATTERNS
from agentwatch.errors import CacheError, DetectionCancelled, RegistryError
from agentwatch.platform import Platform, current_platform
from agentwatch.registry import LatestVersionResolver
from agentwatch.storage.cache import (
    CACHE_FILENAME,
    DetectionCache,
    JsonDetectionCache,
    is_cache_valid,
)
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)

# Concurrent registry lookups during an update check
UPDATE_CHECK_WORKERS = 4

INCOMPLETE_WARNING = "detection did not finish, results may be incomplete"


def sort_installations(installations: list[Installation]) -> list[Installation]:
    """Order by agent name (case-insensitive), then method and path."""
    return sorted(
        installations,
        key=lambda i: (i.agent_name.lower(), i.method.value, i.executable_path),
    )


@dataclass
class InventoryResult:
    """Outcome of one inventory request."""

    installations: list[Installation] = field(default_factory=list)
    from_cache: bool = False
    detected_at: datetime | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def updates(self) -> list[Installation]:
        return [i for i in self.installations if i.has_update()]


class InventoryService:
    """Produces the list of installed agents for display."""

    def __init__(
        self,
        detector: Detector,
        agents: list[AgentDef],
        config: ConfigManager,
        cache: DetectionCache | None = None,
        resolver: LatestVersionResolver | None = None,
    ) -> None:
        """Initialize the inventory service.

        Args:
            detector: Detector used on cache misses
            agents: Catalog of agents to look for
            config: Source of cache settings and per-agent overrides
            cache: Detection cache; None disables caching
            resolver: Latest version lookup; created on demand when omitted
        """
        self.detector = detector
        self.agents = agents
        self.config = config
        self.cache = cache
        self._resolver = resolver

    def enabled_agents(self) -> list[AgentDef]:
        """Catalog entries not disabled in the config."""
        return [a for a in self.agents if not self.config.is_agent_disabled(a.id)]

    def list_installations(
        self,
        ctx: Context,
        refresh: bool = False,
        check_updates: bool = False,
        include_hidden: bool = False,
    ) -> InventoryResult:
        """Return the installed agents, from cache when it is fresh.

        Args:
            ctx: Cancellation context for detection and update checks
            refresh: Ignore the cache and detect again
            check_updates: Look up the latest version of each installation
            include_hidden: Keep agents marked hidden in the config

        Raises:
            DetectionCancelled: If ``ctx`` is cancelled before detection starts
        """
        result = InventoryResult()

        cached = None if refresh else self._read_cache(ctx, result)
        if cached is not None:
            result.installations, result.detected_at = cached
            result.from_cache = True
        else:
            result.installations = self.detector.detect_all(ctx, self.enabled_agents())
            result.detected_at = datetime.now(timezone.utc)
            if ctx.cancelled():
                # Partial results are shown but never cached
                logger.warning("Detection did not finish; results not cached")
                result.warnings.append(INCOMPLETE_WARNING)
            else:
                self._write_cache(ctx, result)

        disabled = {a.id for a in self.agents if self.config.is_agent_disabled(a.id)}
        installations = [i for i in result.installations if i.agent_id not in disabled]

        if check_updates:
            installations = self.check_updates(ctx, installations)

        if not include_hidden:
            installations = [i for i in installations if not self.config.is_agent_hidden(i.agent_id)]

        result.installations = sort_installations(installations)
        return result

    def check_updates(self, ctx: Context, installations: list[Installation]) -> list[Installation]:
        """Attach the latest published version to each installation.

        Lookups that fail leave ``latest_version`` unset. The returned list
        keeps the input order.
        """
        if not installations:
            return []

        agents = {a.id: a for a in self.agents}
        resolver = self._resolver or LatestVersionResolver()

        def resolve(installation: Installation) -> Installation:
            try:
                latest = resolver.latest_version(ctx, installation, agents.get(installation.agent_id))
            except RegistryError as e:
                logger.warning(f"Could not check updates for {installation.agent_name}: {e}")
                return installation
            except DetectionCancelled:
                logger.debug(f"Update check for {installation.agent_name} skipped: cancelled")
                return installation
            return installation.with_latest_version(latest)

        try:
            workers = min(UPDATE_CHECK_WORKERS, len(installations))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="agentwatch-update") as pool:
                return list(pool.map(resolve, installations))
        finally:
            if self._resolver is None:
                resolver.close()

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def _read_cache(
        self, ctx: Context, result: InventoryResult
    ) -> tuple[list[Installation], datetime] | None:
        if self.cache is None:
            return None
        try:
            installations, timestamp = self.cache.get(ctx)
        except CacheError as e:
            logger.warning(f"Ignoring detection cache: {e}")
            result.warnings.append(str(e))
            return None

        ttl = timedelta(seconds=self.config.cache_duration())
        if timestamp is None or not is_cache_valid(timestamp, ttl):
            logger.debug("Detection cache is missing or stale")
            return None
        logger.debug(f"Using {len(installations)} cached installation(s) from {timestamp}")
        return installations, timestamp

    def _write_cache(self, ctx: Context, result: InventoryResult) -> None:
        if self.cache is None:
            return
        try:
            self.cache.save(ctx, result.installations)
        except DetectionCancelled:
            logger.warning("Detection cache not saved: cancelled")
            result.warnings.append(INCOMPLETE_WARNING)
        except CacheError as e:
            logger.warning(f"Could not save detection cache: {e}")
            result.warnings.append(str(e))


def build_inventory(config: ConfigManager, platform: Platform | None = None) -> InventoryService:
    """Wire an InventoryService from configuration.

    Raises:
        CatalogError: If a configured catalog file cannot be read
    """
    platform = platform or current_platform()

    catalog_path = config.get("catalog.path")
    agents = load_catalog(Path(catalog_path).expanduser() if catalog_path else None)
    agents = agents_for_platform(agents, platform.id.value)

    extra = config.get("detection.extra_path_patterns") or []
    detector = new_detector(platform, denylist=[*DEFAULT_PACKAGE_MANAGER_PATTERNS, *extra])

    cache = None
    if config.get("detection.cache_enabled", True):
        cache = JsonDetectionCache(platform.cache_dir() / CACHE_FILENAME)

    return InventoryService(detector, agents, config, cache=cache)
