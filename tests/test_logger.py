# File: tests/test_logger.py
import logging

import pytest

from neoscout.logger import LOGGER_NAME, init_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging()


def test_repeated_init_replaces_handlers():
    init_logging()
    lg = init_logging(level="debug")
    assert lg.name == LOGGER_NAME
    assert lg.level == logging.DEBUG
    assert len(lg.handlers) == 1
    assert lg.propagate is False


def test_log_file_gets_formatted_records(tmp_path):
    log_file = tmp_path / "logs" / "neoscout.log"
    lg = init_logging(level="INFO", log_file=log_file, log_format="%(levelname)s:%(message)s")
    assert len(lg.handlers) == 2

    lg.debug("hidden")
    lg.info("Mirroring %s", "https://example.neocities.org")
    for handler in lg.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "INFO:Mirroring https://example.neocities.org" in text
    assert "hidden" not in text
