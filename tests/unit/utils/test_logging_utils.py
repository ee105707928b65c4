"""Tests for logging utilities."""

import logging
from unittest.mock import patch

from agentwatch.utils.logging import DATE_FORMAT, LOG_FORMAT, setup_logging


def test_setup_logging_invocation():
    # Should not raise and returns None; actual global level may already be configured
    assert setup_logging("DEBUG") is None


def test_setup_logging_configures_format_and_level():
    with patch("agentwatch.utils.logging.logging.basicConfig") as basic_config:
        setup_logging("warning")

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.WARNING
    assert kwargs["format"] == LOG_FORMAT
    assert kwargs["datefmt"] == DATE_FORMAT
    assert len(kwargs["handlers"]) == 1


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "agentwatch.log"
    with patch("agentwatch.utils.logging.logging.basicConfig") as basic_config:
        setup_logging("INFO", log_file)

    handlers = basic_config.call_args.kwargs["handlers"]
    try:
        assert log_file.parent.is_dir()
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert [h.baseFilename for h in file_handlers] == [str(log_file)]
    finally:
        for handler in handlers:
            handler.close()
