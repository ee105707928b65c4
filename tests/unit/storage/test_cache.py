"""Tests for the detection cache."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import parse_version
from agentwatch.errors import CacheError, DetectionCancelled
from agentwatch.storage.cache import (
    CACHE_VERSION,
    JsonDetectionCache,
    MemoryDetectionCache,
    is_cache_valid,
)


def _installations() -> list[Installation]:
    return [
        Installation(
            agent_id="claude-code",
            agent_name="Claude Code",
            method=InstallMethod.NPM,
            installed_version=parse_version("1.0.58"),
            executable_path="/usr/local/bin/claude",
            metadata={"detected_by": "npm", "package": "@anthropic-ai/claude-code"},
        ),
        Installation(
            agent_id="goose",
            agent_name="Goose",
            method=InstallMethod.CURL,
            installed_version=parse_version("nightly"),
            executable_path="/home/me/.local/bin/goose",
        ),
    ]


class TestIsCacheValid:
    """Test cache freshness."""

    NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_missing_timestamp(self):
        assert not is_cache_valid(None, timedelta(hours=1), self.NOW)

    def test_fresh(self):
        assert is_cache_valid(self.NOW - timedelta(minutes=59), timedelta(hours=1), self.NOW)

    def test_expired(self):
        assert not is_cache_valid(self.NOW - timedelta(hours=1), timedelta(hours=1), self.NOW)

    def test_future_timestamp(self):
        assert not is_cache_valid(self.NOW + timedelta(minutes=5), timedelta(hours=1), self.NOW)


class TestJsonDetectionCache:
    """Test JsonDetectionCache."""

    def test_empty_when_missing(self, ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "detection.json")
        assert cache.get(ctx) == ([], None)

    def test_save_and_get(self, ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "nested" / "detection.json")
        before = datetime.now(timezone.utc)

        cache.save(ctx, _installations())
        installations, timestamp = cache.get(ctx)

        assert [i.key() for i in installations] == [i.key() for i in _installations()]
        assert [str(i.installed_version) for i in installations] == ["1.0.58", "nightly"]
        assert installations[0].metadata["package"] == "@anthropic-ai/claude-code"
        assert timestamp >= before - timedelta(seconds=1)

    def test_save_replaces_previous_entry(self, ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "detection.json")
        cache.save(ctx, _installations())
        cache.save(ctx, _installations()[:1])

        installations, _ = cache.get(ctx)

        assert [i.agent_id for i in installations] == ["claude-code"]

    def test_save_empty_list(self, ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "detection.json")
        cache.save(ctx, [])

        installations, timestamp = cache.get(ctx)

        assert installations == []
        assert timestamp is not None

    def test_no_temporary_files_left(self, ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "detection.json")
        cache.save(ctx, _installations())
        assert [p.name for p in tmp_path.iterdir()] == ["detection.json"]

    def test_document_format(self, ctx, tmp_path):
        path = tmp_path / "detection.json"
        JsonDetectionCache(path).save(ctx, _installations())

        data = json.loads(path.read_text())

        assert data["version"] == CACHE_VERSION
        assert len(data["installations"]) == 2
        assert data["installations"][0]["agent_id"] == "claude-code"

    def test_corrupt_json(self, ctx, tmp_path):
        path = tmp_path / "detection.json"
        path.write_text("{truncated")
        with pytest.raises(CacheError, match="Corrupted"):
            JsonDetectionCache(path).get(ctx)

    def test_corrupt_entry(self, ctx, tmp_path):
        path = tmp_path / "detection.json"
        path.write_text(
            json.dumps(
                {
                    "version": CACHE_VERSION,
                    "timestamp": "2025-01-01T00:00:00+00:00",
                    "installations": [{"agent_id": "x", "method": "telepathy"}],
                }
            )
        )
        with pytest.raises(CacheError):
            JsonDetectionCache(path).get(ctx)

    def test_other_version_is_ignored(self, ctx, tmp_path):
        path = tmp_path / "detection.json"
        path.write_text(json.dumps({"version": "0.1", "timestamp": "x", "installations": []}))
        assert JsonDetectionCache(path).get(ctx) == ([], None)

    def test_clear(self, ctx, tmp_path):
        path = tmp_path / "detection.json"
        cache = JsonDetectionCache(path)
        cache.save(ctx, _installations())

        cache.clear()
        cache.clear()

        assert not path.exists()
        assert cache.get(ctx) == ([], None)

    def test_cancelled_context(self, cancelled_ctx, tmp_path):
        cache = JsonDetectionCache(tmp_path / "detection.json")
        with pytest.raises(DetectionCancelled):
            cache.save(cancelled_ctx, [])


class TestMemoryDetectionCache:
    """Test MemoryDetectionCache."""

    def test_round_trip_and_clear(self, ctx):
        cache = MemoryDetectionCache()
        assert cache.get(ctx) == ([], None)

        cache.save(ctx, _installations())
        installations, timestamp = cache.get(ctx)
        assert len(installations) == 2
        assert timestamp is not None

        cache.clear()
        assert cache.get(ctx) == ([], None)

