"""Persistence for detection results."""

from agentwatch.storage.cache import (
    CACHE_FILENAME,
    DetectionCache,
    JsonDetectionCache,
    MemoryDetectionCache,
    is_cache_valid,
)

__all__ = [
    "CACHE_FILENAME",
    "DetectionCache",
    "JsonDetectionCache",
    "MemoryDetectionCache",
    "is_cache_valid",
]
