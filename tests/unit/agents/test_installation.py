"""Tests for Installation records."""

from datetime import datetime, timezone

import pytest

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import Version, parse_version


def _installation(**overrides) -> Installation:
    values = {
        "agent_id": "claude-code",
        "agent_name": "Claude Code",
        "method": InstallMethod.NPM,
        "installed_version": parse_version("1.0.0"),
        "executable_path": "/usr/local/bin/claude",
    }
    values.update(overrides)
    return Installation(**values)


class TestInstallationKey:
    """Test installation identity."""

    def test_key_format(self):
        assert _installation().key() == "claude-code:npm:/usr/local/bin/claude"

    def test_key_ignores_version(self):
        a = _installation(installed_version=parse_version("1.0.0"))
        b = _installation(installed_version=parse_version("2.0.0"))
        assert a.key() == b.key()

    def test_key_differs_by_method_and_path(self):
        base = _installation()
        assert base.key() != _installation(method=InstallMethod.NATIVE).key()
        assert base.key() != _installation(executable_path="/opt/bin/claude").key()


class TestHasUpdate:
    """Test update detection."""

    def test_no_latest_version(self):
        assert not _installation().has_update()

    def test_newer_latest_version(self):
        inst = _installation().with_latest_version(parse_version("1.1.0"))
        assert inst.has_update()

    def test_same_latest_version(self):
        inst = _installation().with_latest_version(parse_version("1.0.0"))
        assert not inst.has_update()

    def test_installed_prerelease_of_latest(self):
        inst = _installation(installed_version=parse_version("1.0.0-rc.2"))
        assert inst.with_latest_version(parse_version("1.0.0")).has_update()

    def test_unknown_installed_version(self):
        inst = _installation(installed_version=Version())
        assert not inst.with_latest_version(parse_version("9.0.0")).has_update()

    def test_with_latest_version_returns_new_value(self):
        original = _installation()
        updated = original.with_latest_version(parse_version("2.0.0"))
        assert original.latest_version is None
        assert updated is not original
        assert updated.key() == original.key()


class TestSerialization:
    """Test dictionary conversion used by the cache and JSON output."""

    def test_to_dict(self):
        inst = _installation(
            detected_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            metadata={"detected_by": "npm"},
        ).with_latest_version(parse_version("1.2.0"))

        data = inst.to_dict()

        assert data["method"] == "npm"
        assert data["installed_version"] == "1.0.0"
        assert data["latest_version"] == "1.2.0"
        assert data["has_update"] is True
        assert data["detected_at"] == "2025-01-02T03:04:05+00:00"
        assert data["metadata"] == {"detected_by": "npm"}

    def test_from_dict_restores_installation(self):
        inst = _installation(metadata={"package": "@anthropic-ai/claude-code"})
        restored = Installation.from_dict(inst.to_dict())
        assert restored == inst

    def test_from_dict_with_raw_and_empty_versions(self):
        inst = _installation(installed_version=Version())
        restored = Installation.from_dict(inst.to_dict())
        assert restored.installed_version.is_empty()
        assert restored.latest_version is None

    def test_from_dict_rejects_unknown_method(self):
        data = _installation().to_dict()
        data["method"] = "carrier-pigeon"
        with pytest.raises(ValueError):
            Installation.from_dict(data)
