"""
Tests for the structlog setup run at application startup.
"""

import logging

import pytest

from studio_booking.core.logging import HANDLER_NAME, get_logger, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_installs_a_single_handler(root_logger):
    setup_logging()
    setup_logging()

    named = [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]
    assert len(named) == 1
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_structlog_and_stdlib_share_the_stream(root_logger, capsys):
    setup_logging()

    get_logger("studio_booking.tests").info("booking_admitted", booking_id="b-1")
    logging.getLogger("uvicorn.error").warning("worker %s started", 3)

    out = capsys.readouterr().out
    assert "booking_admitted" in out
    assert "b-1" in out
    assert "worker 3 started" in out
