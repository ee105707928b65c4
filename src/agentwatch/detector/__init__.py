"""Installation detection engine."""

from agentwatch.detector.base import Strategy
from agentwatch.detector.detector import Detector, merge_installations, new_detector

__all__ = ["Detector", "Strategy", "merge_installations", "new_detector"]
