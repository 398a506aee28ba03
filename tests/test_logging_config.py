"""Tests for singleton logging configuration."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from fencecheck.logging_config import (
    _SUPPRESSED_LOGGERS,
    LOG_DATEFMT,
    LOG_FORMAT,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_flag() -> None:
    """Reset the singleton flag before each test."""
    import fencecheck.logging_config as mod

    mod._setup_done = False


def test_setup_logging_is_idempotent() -> None:
    with patch("fencecheck.logging_config.logging.basicConfig") as mock_bc:
        setup_logging()
        setup_logging("DEBUG")  # second call is a no-op
        mock_bc.assert_called_once()


def test_force_reapplies_level() -> None:
    with patch("fencecheck.logging_config.logging.basicConfig") as mock_bc:
        setup_logging()
        setup_logging("DEBUG", force=True)
    assert mock_bc.call_count == 2
    assert mock_bc.call_args.kwargs["level"] == logging.DEBUG
    assert mock_bc.call_args.kwargs["force"] is True


def test_suppressed_loggers_at_warning() -> None:
    setup_logging()
    for name in _SUPPRESSED_LOGGERS:
        lg = logging.getLogger(name)
        assert lg.level == logging.WARNING, (
            f"Logger {name!r} level is {lg.level}, expected WARNING"
        )


def test_log_format_constants() -> None:
    assert "%(name)s" in LOG_FORMAT
    assert "%(message)s" in LOG_FORMAT
    assert LOG_DATEFMT
