"""
Tests for logging configuration and utilities.
"""

import pytest
import logging
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

from drone_detection_mock.logging_config import MockLogger, log_exception, resolve_level


class TestResolveLevel:
    """Test level selection from the verbosity flags."""

    @pytest.mark.parametrize("verbose,quiet,expected", [
        (False, False, logging.INFO),
        (True, False, logging.DEBUG),
        (False, True, logging.ERROR),
        (True, True, logging.ERROR),
    ])
    def test_flags(self, verbose, quiet, expected):
        assert resolve_level(verbose, quiet) == expected

    def test_default_used_without_flags(self):
        assert resolve_level(default=logging.WARNING) == logging.WARNING


class TestMockLogger:
    """Test MockLogger class."""

    def setup_method(self):
        MockLogger.reset()

    def teardown_method(self):
        MockLogger.reset()

    def test_default_setup(self):
        MockLogger.setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0].stream is sys.stdout
        assert logging.getLogger('paho.mqtt.client').level == logging.WARNING

    def test_verbose_setup(self):
        MockLogger.setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_quiet_setup_uses_stderr(self):
        MockLogger.setup_logging(quiet=True)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.ERROR
        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0].level == logging.ERROR
        assert root_logger.handlers[0].stream is sys.stderr

    def test_no_console(self):
        MockLogger.setup_logging(console_output=False)
        assert logging.getLogger().handlers == []

    def test_file_logging_records_debug(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "logs" / "stream.log"
            MockLogger.setup_logging(log_file=log_file, console_output=False)

            logger = MockLogger.get_logger("test_file_logging")
            logger.debug("tick details")
            for handler in logging.getLogger().handlers:
                handler.flush()

            assert "tick details" in log_file.read_text()
            MockLogger.reset()

    def test_unwritable_log_file_is_skipped(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            blocker = Path(tmp_dir) / "not_a_dir"
            blocker.write_text("")

            MockLogger.setup_logging(log_file=blocker / "stream.log", console_output=False)

        assert logging.getLogger().handlers == []

    def test_setup_only_once(self):
        MockLogger.setup_logging(verbose=True)
        MockLogger.setup_logging(quiet=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_get_logger(self):
        assert MockLogger.get_logger("a.b") is logging.getLogger("a.b")

    def test_log_statistics_nested(self, caplog):
        with caplog.at_level(logging.INFO, logger="stats"):
            MockLogger.log_statistics({
                'publishing': {'messages_published': 10, 'transport': {'publish_failures': 0}},
                'runtime_s': 1.23456
            })

        assert "    messages_published: 10" in caplog.text
        assert "      publish_failures: 0" in caplog.text
        assert "  runtime_s: 1.235" in caplog.text

    def test_log_configuration(self, caplog):
        with caplog.at_level(logging.INFO, logger="config"):
            MockLogger.log_configuration({'mqtt_host': 'localhost'})

        assert "mqtt_host: localhost" in caplog.text


class TestLogException:
    """Test log_exception helper."""

    def test_with_traceback(self):
        logger = Mock()
        log_exception(logger, ValueError("bad"), "Loading config")

        logger.exception.assert_called_once_with("Loading config: ValueError: bad")

    def test_without_traceback(self):
        logger = Mock()
        log_exception(logger, ValueError("bad"), include_traceback=False)

        logger.error.assert_called_once_with("ValueError: bad")
