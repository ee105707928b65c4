"""Run detection strategies concurrently and merge their results.

Each applicable strategy runs in its own worker thread. A strategy that
fails or is cancelled contributes nothing; the others still report.
Results are merged after all workers finish, in registration order, so
the outcome does not depend on which thread finished first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from agentwatch.agents.installation import Installation
from agentwatch.catalog.schema import AgentDef
from agentwatch.detector.base import COMMAND_TIMEOUT, Strategy
from agentwatch.detector.strategies import (
    BinaryStrategy,
    BrewStrategy,
    NPMStrategy,
    PipStrategy,
)
from agentwatch.errors import DetectionCancelled
from agentwatch.platform import Platform, current_platform
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandRunner

logger = logging.getLogger(__name__)


def merge_installations(groups: Iterable[list[Installation]]) -> list[Installation]:
    """Flatten per-strategy results, dropping duplicate keys.

    When two entries share a key the one from the earlier group wins.
    """
    merged: dict[str, Installation] = {}
    for group in groups:
        for installation in group:
            merged.setdefault(installation.key(), installation)
    return list(merged.values())


class Detector:
    """Coordinates detection strategies for a platform."""

    def __init__(self, platform: Platform, strategies: Iterable[Strategy] | None = None) -> None:
        """Initialize the detector.

        Args:
            platform: Platform passed to each strategy's applicability check
            strategies: Strategies to register, highest priority first
        """
        self.platform = platform
        self._strategies: list[Strategy] = []
        self._lock = threading.Lock()
        for strategy in strategies or []:
            self.register_strategy(strategy)

    def register_strategy(self, strategy: Strategy) -> None:
        """Add a strategy. Earlier registrations win merge conflicts."""
        with self._lock:
            self._strategies.append(strategy)
        logger.debug(f"Registered detection strategy {strategy.name}")

    def strategies(self) -> list[Strategy]:
        """Snapshot of the registered strategies in registration order.

        Detection runs against this copy, so the lock is held only while
        copying and never across subprocess calls.
        """
        with self._lock:
            return list(self._strategies)

    def applicable_strategies(self) -> list[Strategy]:
        return [s for s in self.strategies() if s.is_applicable(self.platform)]

    def detect_all(self, ctx: Context, agents: list[AgentDef]) -> list[Installation]:
        """Detect installations of ``agents`` with every applicable strategy.

        Args:
            ctx: Cancellation context shared with all strategies
            agents: Catalog definitions to look for

        Returns:
            Deduplicated installations; empty when nothing was found

        Raises:
            DetectionCancelled: If ``ctx`` is already cancelled
        """
        ctx.raise_if_cancelled()

        strategies = self.applicable_strategies()
        if not strategies:
            return []

        logger.debug(
            f"Running {len(strategies)} strategies: {', '.join(s.name for s in strategies)}"
        )
        # Workers run under a child context so an interrupted caller can stop
        # them without cancelling the context it was handed.
        run_ctx = Context(deadline=ctx.deadline, parent=ctx)
        results: list[list[Installation]] = [[] for _ in strategies]
        with ThreadPoolExecutor(
            max_workers=len(strategies), thread_name_prefix="agentwatch-detect"
        ) as pool:
            futures = [pool.submit(self._run_strategy, run_ctx, s, agents) for s in strategies]
            try:
                for index, future in enumerate(futures):
                    results[index] = future.result()
            except BaseException:
                run_ctx.cancel()
                raise

        installations = merge_installations(results)
        logger.info(f"Detected {len(installations)} installation(s)")
        return installations

    @staticmethod
    def _run_strategy(ctx: Context, strategy: Strategy, agents: list[AgentDef]) -> list[Installation]:
        try:
            found = strategy.detect(ctx, agents)
        except DetectionCancelled as e:
            logger.info(f"Strategy {strategy.name} cancelled: {e}")
            return []
        except Exception as e:
            logger.warning(f"Strategy {strategy.name} failed: {e}", exc_info=True)
            return []
        logger.debug(f"Strategy {strategy.name} found {len(found)} installation(s)")
        return list(found)


def new_detector(
    platform: Platform | None = None,
    denylist: Iterable[str] | None = None,
    runner: CommandRunner | None = None,
    command_timeout: float = COMMAND_TIMEOUT,
) -> Detector:
    """Build a Detector with the standard strategies registered.

    Package manager strategies are registered ahead of the PATH scan so
    their reports take precedence.
    """
    platform = platform or current_platform()
    options = {"runner": runner, "command_timeout": command_timeout}
    return Detector(
        platform,
        [
            NPMStrategy(platform, **options),
            PipStrategy(platform, **options),
            BrewStrategy(platform, **options),
            BinaryStrategy(platform, denylist=denylist, **options),
        ],
    )
