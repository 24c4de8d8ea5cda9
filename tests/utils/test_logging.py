"""Tests for plotexp logging configuration."""

from __future__ import annotations

import logging
import sys

import pytest

from plotexp.utils.logging import LOG_LEVEL_ENV, configure_logging, get_logger


@pytest.fixture
def plotexp_logger():
    """The plotexp logger, restored to its import-time state afterwards."""
    logger = logging.getLogger("plotexp")
    handlers = logger.handlers[:]
    level = logger.level
    yield logger
    for h in logger.handlers[:]:
        if h not in handlers:
            h.close()
        logger.removeHandler(h)
    for h in handlers:
        logger.addHandler(h)
    logger.setLevel(level)


def _stderr_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
    ]


def test_get_logger_defaults_to_package_logger() -> None:
    assert get_logger().name == "plotexp"
    assert get_logger("plotexp.distributions").name == "plotexp.distributions"


def test_package_installs_null_handler() -> None:
    import plotexp  # noqa: F401

    logger = logging.getLogger("plotexp")
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)


def test_configure_logging_adds_one_stderr_handler(plotexp_logger) -> None:
    configure_logging("DEBUG")
    configure_logging("DEBUG")
    assert len(_stderr_handlers(plotexp_logger)) == 1
    assert plotexp_logger.level == logging.DEBUG


def test_configure_logging_reads_env_level(plotexp_logger, monkeypatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "WARNING")
    configure_logging(force=True)
    assert plotexp_logger.level == logging.WARNING
    assert len(_stderr_handlers(plotexp_logger)) == 1
