"""Detection cache: the last detection result and when it was taken."""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path

from agentwatch.agents.installation import Installation
from agentwatch.errors import CacheError
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)

# Cache document schema version
CACHE_VERSION = "1.0.0"

CACHE_FILENAME = "detection.json"


def is_cache_valid(timestamp: datetime | None, ttl: timedelta, now: datetime | None = None) -> bool:
    """True if a cache entry taken at ``timestamp`` is younger than ``ttl``.

    A missing timestamp is never valid, nor is one in the future (clock
    skew or a hand-edited file).
    """
    if timestamp is None:
        return False
    now = now or datetime.now(timezone.utc)
    age = now - timestamp
    return timedelta(0) <= age < ttl


class DetectionCache(ABC):
    """Storage for one detection result.

    ``get`` returns either the complete list saved by the last ``save``
    together with its timestamp, or ``([], None)``. Each ``save`` replaces
    the previous entry wholesale.
    """

    @abstractmethod
    def get(self, ctx: Context) -> tuple[list[Installation], datetime | None]:
        raise NotImplementedError

    @abstractmethod
    def save(self, ctx: Context, installations: list[Installation]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class MemoryDetectionCache(DetectionCache):
    """Process-local cache, used when persistence is disabled."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._installations: list[Installation] = []
        self._timestamp: datetime | None = None

    def get(self, ctx: Context) -> tuple[list[Installation], datetime | None]:
        ctx.raise_if_cancelled()
        with self._lock:
            return list(self._installations), self._timestamp

    def save(self, ctx: Context, installations: list[Installation]) -> None:
        ctx.raise_if_cancelled()
        with self._lock:
            self._installations = list(installations)
            self._timestamp = datetime.now(timezone.utc)

    def clear(self) -> None:
        with self._lock:
            self._installations = []
            self._timestamp = None


class JsonDetectionCache(DetectionCache):
    """Detection cache persisted as a JSON document."""

    def __init__(self, path: Path):
        """Initialize the cache.

        Args:
            path: Location of the cache document
        """
        self.path = path
        self._lock = threading.Lock()

    def get(self, ctx: Context) -> tuple[list[Installation], datetime | None]:
        """Read the cached detection result.

        Returns:
            Installations and the time they were detected, or ``([], None)``
            when nothing has been cached yet

        Raises:
            CacheError: If the cache document is unreadable or corrupted
        """
        ctx.raise_if_cancelled()
        with self._lock:
            if not self.path.exists():
                logger.debug(f"No detection cache at {self.path}")
                return [], None

            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise CacheError(f"Corrupted detection cache: {e}") from e
            except OSError as e:
                raise CacheError(f"Failed to read detection cache: {e}") from e

        try:
            if data.get("version") != CACHE_VERSION:
                logger.info(f"Ignoring detection cache with version {data.get('version')!r}")
                return [], None
            timestamp = datetime.fromisoformat(data["timestamp"])
            installations = [Installation.from_dict(item) for item in data["installations"]]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CacheError(f"Corrupted detection cache: {e}") from e

        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        logger.debug(f"Loaded {len(installations)} cached installation(s) from {self.path}")
        return installations, timestamp

    def save(self, ctx: Context, installations: list[Installation]) -> None:
        """Replace the cached result with ``installations``.

        The document is written to a temporary file first and moved into
        place, so readers never see a half-written cache.

        Raises:
            CacheError: If the document cannot be written
        """
        ctx.raise_if_cancelled()
        document = {
            "version": CACHE_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "installations": [i.to_dict() for i in installations],
        }

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(document, f, indent=2)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except (OSError, TypeError, ValueError) as e:
                raise CacheError(f"Failed to write detection cache: {e}") from e

        logger.debug(f"Saved {len(installations)} installation(s) to {self.path}")

    def clear(self) -> None:
        """Remove the cache document if present."""
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return
            except OSError as e:
                raise CacheError(f"Failed to remove detection cache: {e}") from e
        logger.debug(f"Removed detection cache {self.path}")
