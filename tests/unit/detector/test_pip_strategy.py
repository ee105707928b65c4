"""Tests for the pip, pipx and uv detection strategy."""

import json

import pytest
from conftest import FakePlatform

from agentwatch.agents.installation import InstallMethod
from agentwatch.detector.strategies.pip import (
    PipStrategy,
    extract_pip_package_name,
    normalize_package_name,
    parse_pip_show,
    parse_pipx_list,
    parse_uv_tool_list,
)

PIPX_LIST = ["pipx", "list", "--json"]
UV_LIST = ["uv", "tool", "list"]


def _pipx_json(**venvs: str) -> str:
    return json.dumps(
        {
            "venvs": {
                name: {"metadata": {"main_package": {"package": name, "package_version": v}}}
                for name, v in venvs.items()
            }
        }
    )


class TestExtractPipPackageName:
    """Test extract_pip_package_name."""

    @pytest.mark.parametrize(
        "command, expected",
        [
            ("pip install aider-chat", "aider-chat"),
            ("pip install -U package", "package"),
            ("pip install package==1.0.0", "package"),
            ("pip install pkg>=1.0,<2.0", "pkg"),
            ("pip install pkg[extra]", "pkg"),
            ("pipx install aider-chat", "aider-chat"),
            ("pip install", ""),
            ("pip uninstall package", ""),
        ],
    )
    def test_extract(self, command, expected):
        assert extract_pip_package_name("", command) == expected

    def test_explicit_package_wins(self):
        assert extract_pip_package_name("aider-chat", "pip install something-else") == "aider-chat"


class TestParsers:
    """Test output parsers."""

    def test_normalize_package_name(self):
        assert normalize_package_name("Aider_Chat") == "aider-chat"
        assert normalize_package_name("zope.interface") == "zope-interface"

    def test_parse_pip_show(self):
        output = "Name: aider-chat\nVersion: 0.82.1\nSummary: AI pair programming\n"
        assert parse_pip_show(output) == "0.82.1"

    def test_parse_pip_show_without_version(self):
        assert parse_pip_show("WARNING: Package(s) not found: nope") == ""

    def test_parse_pipx_list(self):
        assert parse_pipx_list(_pipx_json(**{"aider-chat": "0.80.0"})) == {"aider-chat": "0.80.0"}

    def test_parse_pipx_list_invalid(self):
        assert parse_pipx_list("not json") == {}
        assert parse_pipx_list(json.dumps({"venvs": {"x": {"metadata": None}}})) == {}

    @pytest.mark.parametrize(
        "output, expected",
        [
            ("aider-chat v0.82.1\n- aider\n", {"aider-chat": "0.82.1"}),
            ("ruff 0.4.0\n", {"ruff": "0.4.0"}),
            ("\n\nsolo\n", {}),
            ("a v1.0.0\n- a\nb v2.0.0\n- b\n- b-extra\n", {"a": "1.0.0", "b": "2.0.0"}),
            ("", {}),
        ],
    )
    def test_parse_uv_tool_list(self, output, expected):
        assert parse_uv_tool_list(output) == expected


class TestPipStrategy:
    """Test PipStrategy.detect."""

    def test_identity(self):
        strategy = PipStrategy(FakePlatform())
        assert strategy.name == "pip"
        assert strategy.method is InstallMethod.PIP

    @pytest.mark.parametrize("tool", ["pip", "pip3", "pipx", "uv"])
    def test_applicable_with_any_tool(self, tool):
        strategy = PipStrategy(FakePlatform())
        assert strategy.is_applicable(FakePlatform({tool: f"/usr/bin/{tool}"}))

    def test_not_applicable_without_tools(self):
        assert not PipStrategy(FakePlatform()).is_applicable(FakePlatform())

    def test_detects_pip_install(self, ctx, runner, aider_agent):
        platform = FakePlatform({"pip3": "/usr/bin/pip3", "aider": "/usr/local/bin/aider"})
        runner.add(["pip3", "show", "aider-chat"], stdout="Name: aider-chat\nVersion: 0.82.1\n")
        strategy = PipStrategy(platform, runner=runner)

        [inst] = strategy.detect(ctx, [aider_agent])

        assert inst.method is InstallMethod.PIP
        assert str(inst.installed_version) == "0.82.1"
        assert inst.executable_path == "/usr/local/bin/aider"
        assert inst.metadata == {"detected_by": "pip", "package": "aider-chat"}

    def test_falls_back_to_pip(self, ctx, runner, aider_agent):
        platform = FakePlatform({"pip": "/usr/bin/pip"})
        runner.add(["pip", "show", "aider-chat"], stdout="Version: 0.80.0\n")
        strategy = PipStrategy(platform, runner=runner)

        [inst] = strategy.detect(ctx, [aider_agent])

        assert str(inst.installed_version) == "0.80.0"

    def test_detects_pipx_install(self, ctx, runner, aider_agent):
        platform = FakePlatform({"pipx": "/usr/bin/pipx"})
        runner.add(PIPX_LIST, stdout=_pipx_json(**{"aider-chat": "0.79.0"}))
        strategy = PipStrategy(platform, runner=runner)

        [inst] = strategy.detect(ctx, [aider_agent])

        assert inst.method is InstallMethod.PIPX
        assert str(inst.installed_version) == "0.79.0"

    def test_detects_uv_install(self, ctx, runner, aider_agent):
        platform = FakePlatform({"uv": "/usr/bin/uv"})
        runner.add(UV_LIST, stdout="aider-chat v0.81.0\n- aider\n")
        strategy = PipStrategy(platform, runner=runner)

        [inst] = strategy.detect(ctx, [aider_agent])

        assert inst.method is InstallMethod.UV
        assert str(inst.installed_version) == "0.81.0"

    def test_reports_every_python_tool(self, ctx, runner, aider_agent):
        platform = FakePlatform(
            {"pip3": "/usr/bin/pip3", "pipx": "/usr/bin/pipx", "uv": "/usr/bin/uv"}
        )
        runner.add(["pip3", "show", "aider-chat"], stdout="Version: 0.82.1\n")
        runner.add(PIPX_LIST, stdout=_pipx_json(**{"aider-chat": "0.79.0"}))
        runner.add(UV_LIST, stdout="aider-chat v0.81.0\n")
        strategy = PipStrategy(platform, runner=runner)

        found = strategy.detect(ctx, [aider_agent])

        assert [i.method for i in found] == [InstallMethod.PIP, InstallMethod.PIPX, InstallMethod.UV]

    def test_pipx_listing_is_cached(self, ctx, runner, aider_agent):
        platform = FakePlatform({"pipx": "/usr/bin/pipx"})
        runner.add(PIPX_LIST, stdout=_pipx_json(**{"aider-chat": "0.79.0"}))
        strategy = PipStrategy(platform, runner=runner)

        strategy.detect(ctx, [aider_agent, aider_agent])

        assert runner.calls.count(PIPX_LIST) == 1

    def test_not_installed(self, ctx, runner, aider_agent):
        platform = FakePlatform({"pip3": "/usr/bin/pip3"})
        runner.add(["pip3", "show", "aider-chat"], stdout="", returncode=1)
        strategy = PipStrategy(platform, runner=runner)

        assert strategy.detect(ctx, [aider_agent]) == []

    def test_agents_without_python_methods(self, ctx, runner, claude_agent):
        strategy = PipStrategy(FakePlatform({"pip3": "/usr/bin/pip3"}), runner=runner)

        assert strategy.detect(ctx, [claude_agent]) == []
        assert runner.calls == []
