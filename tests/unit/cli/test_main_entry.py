"""Tests for agentwatch.__main__ entry behavior."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
import typer

import agentwatch.__main__ as main_mod


def test_global_version_option_triggers_exit():
    ctx = Mock()
    ctx.obj = None

    with pytest.raises(typer.Exit) as ei:
        main_mod._global_options(ctx, version=True, log_level=None, config_path=None)
    # click Exit uses code 0 for normal termination
    assert ei.value.exit_code in (None, 0)


def test_global_options_store_config(tmp_path, monkeypatch):
    monkeypatch.setattr(main_mod, "setup_logging", Mock())
    ctx = Mock()
    ctx.obj = None

    main_mod._global_options(
        ctx, version=False, log_level="info", config_path=tmp_path / "config.json"
    )

    assert ctx.obj["config"].config_path == tmp_path / "config.json"
    main_mod.setup_logging.assert_called_once_with("INFO", None)


def test_main_keyboard_interrupt(monkeypatch):
    monkeypatch.setattr(main_mod, "app", lambda: (_ for _ in ()).throw(KeyboardInterrupt()))
    assert main_mod.main() == 130


def test_main_generic_exception(monkeypatch):
    monkeypatch.setattr(main_mod, "app", lambda: (_ for _ in ()).throw(Exception("boom")))
    assert main_mod.main() == 1


def test_main_success_returns_zero(monkeypatch):
    """When app runs normally, main returns 0."""
    called = {}

    def fake_app():
        called["ok"] = True

    monkeypatch.setattr(main_mod, "app", fake_app)
    assert main_mod.main() == 0
    assert called.get("ok") is True
