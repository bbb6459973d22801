"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest

from callforge._internal.logging import get_logger, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("callforge")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_installs_single_stderr_handler(clean_logger: logging.Logger) -> None:
    logger = setup_logging(logging.INFO)
    setup_logging(logging.DEBUG)

    assert logger is clean_logger
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG
    assert logger.propagate is False


def test_plain_level_prefixed_lines(clean_logger: logging.Logger) -> None:
    setup_logging()
    record = logging.LogRecord("callforge.x", logging.WARNING, __file__, 1, "slow %s", ("down",), None)
    assert clean_logger.handlers[0].format(record) == "WARNING: slow down"


def test_get_logger_is_namespaced() -> None:
    assert get_logger("engine.harness").name == "callforge.engine.harness"
