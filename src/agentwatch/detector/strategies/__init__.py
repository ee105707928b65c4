"""Detection strategies, one per install-method family."""

from agentwatch.detector.strategies.binary import (
    BINARY_METHODS,
    DEFAULT_PACKAGE_MANAGER_PATTERNS,
    BinaryStrategy,
)
from agentwatch.detector.strategies.brew import BrewStrategy
from agentwatch.detector.strategies.npm import NPMStrategy
from agentwatch.detector.strategies.pip import PipStrategy

__all__ = [
    "BINARY_METHODS",
    "DEFAULT_PACKAGE_MANAGER_PATTERNS",
    "BinaryStrategy",
    "BrewStrategy",
    "NPMStrategy",
    "PipStrategy",
]
