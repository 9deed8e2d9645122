"""Tests for sentinel.log_buffer module."""

import logging

from sentinel.log_buffer import RunLogBuffer, install_log_buffer


def _logger(buffer: RunLogBuffer, name: str = "sentinel.test_log_buffer") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.addHandler(buffer)
    return logger


class TestRunLogBuffer:
    def test_records_formatted_messages(self) -> None:
        buffer = RunLogBuffer()
        logger = _logger(buffer)
        try:
            logger.info("Run %s started", "r1")
        finally:
            logger.removeHandler(buffer)

        [entry] = buffer.entries()
        assert entry.message == "Run r1 started"
        assert entry.level == "info"
        assert entry.logger == "sentinel.test_log_buffer"
        assert entry.timestamp.tzinfo is not None

    def test_ignores_records_below_level(self) -> None:
        buffer = RunLogBuffer(level=logging.INFO)
        logger = _logger(buffer)
        try:
            logger.debug("noise")
        finally:
            logger.removeHandler(buffer)
        assert buffer.entries() == []

    def test_capacity_and_limit(self) -> None:
        buffer = RunLogBuffer(capacity=3)
        logger = _logger(buffer)
        try:
            for i in range(5):
                logger.info("message %d", i)
        finally:
            logger.removeHandler(buffer)

        assert [e.message for e in buffer.entries()] == ["message 2", "message 3", "message 4"]
        assert [e.message for e in buffer.entries(limit=1)] == ["message 4"]
        buffer.clear()
        assert buffer.entries() == []


class TestInstallLogBuffer:
    def test_idempotent(self) -> None:
        assert install_log_buffer() is install_log_buffer()

    def test_captures_sentinel_loggers(self) -> None:
        buffer = install_log_buffer()
        buffer.clear()
        logging.getLogger("sentinel.sentinel").info("captured")
        assert any(e.message == "captured" for e in buffer.entries())
