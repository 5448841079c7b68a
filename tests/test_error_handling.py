"""
Tests for error handling utilities.
"""

import pytest
from unittest.mock import Mock

from drone_detection_mock.error_handling import (
    MockStreamError, ConfigurationError, MQTTError, SerializationError, SimulationError,
    logged_operation, wrap_error, backoff_delay, summarize_errors
)


class TestExceptions:
    """Test the exception hierarchy."""

    def test_message_and_code(self):
        error = MockStreamError("failed", error_code="E1", context={"k": 1})

        assert str(error) == "[E1] failed"
        assert error.message == "failed"
        assert error.context == {"k": 1}

    def test_without_code(self):
        assert str(MockStreamError("failed")) == "failed"
        assert MockStreamError("failed").context == {}

    @pytest.mark.parametrize("error_class", [
        ConfigurationError, MQTTError, SerializationError, SimulationError
    ])
    def test_subclasses(self, error_class):
        assert issubclass(error_class, MockStreamError)


class TestLoggedOperation:
    """Test logged_operation context manager."""

    def test_success_logs_nothing(self):
        logger = Mock()
        with logged_operation("publish", logger):
            pass

        logger.error.assert_not_called()

    def test_reraise(self):
        logger = Mock()
        with pytest.raises(ValueError):
            with logged_operation("publish", logger):
                raise ValueError("bad")

        logger.error.assert_called_once_with("publish failed: bad")

    def test_suppress(self):
        logger = Mock()
        with logged_operation("MQTT disconnect", logger, reraise=False):
            raise OSError("socket closed")

        logger.error.assert_called_once()

    def test_cleanup_runs_on_error(self):
        cleanup = Mock()
        with pytest.raises(RuntimeError):
            with logged_operation("publish", cleanup=cleanup):
                raise RuntimeError("bad")

        cleanup.assert_called_once()

    def test_cleanup_error_does_not_mask_original(self):
        cleanup = Mock(side_effect=OSError("cleanup"))
        with pytest.raises(RuntimeError, match="original"):
            with logged_operation("publish", Mock(), cleanup=cleanup):
                raise RuntimeError("original")


class TestWrapError:
    """Test conversion into stream errors."""

    def test_wraps_builtin_error(self):
        logger = Mock()
        error = wrap_error(ValueError("bad port"), ConfigurationError, "CONFIG_ERROR",
                           "Configuration error in config.yaml", logger, source="config.yaml")

        assert isinstance(error, ConfigurationError)
        assert error.error_code == "CONFIG_ERROR"
        assert str(error) == "[CONFIG_ERROR] Configuration error in config.yaml: bad port"
        assert error.context["source"] == "config.yaml"
        assert error.context["original_error"] == "ValueError('bad port')"
        logger.error.assert_called_once()

    def test_passthrough(self):
        original = ConfigurationError("already wrapped")
        assert wrap_error(original, ConfigurationError, "CONFIG_ERROR", "ignored") is original

    def test_other_stream_error_is_wrapped(self):
        error = wrap_error(MQTTError("refused"), SimulationError, "INIT_ERROR", "Startup failed")

        assert isinstance(error, SimulationError)


class TestBackoffDelay:
    """Test backoff calculation."""

    def test_doubles(self):
        assert backoff_delay(0) == 1.0
        assert backoff_delay(1) == 2.0
        assert backoff_delay(3) == 8.0

    def test_cap(self):
        assert backoff_delay(10, max_delay=30.0) == 30.0


class TestSummarizeErrors:
    """Test error summaries."""

    def test_summary(self):
        summary = summarize_errors([
            SerializationError("a"), SerializationError("b"), "plain message"
        ])

        assert summary["total_errors"] == 3
        assert summary["error_counts"] == {"SerializationError": 2, "Unknown": 1}
        assert summary["error_details"][2] == {"type": "Unknown", "message": "plain message"}

    def test_accepts_any_iterable(self):
        summary = summarize_errors(iter([SimulationError("x")]))
        assert summary["total_errors"] == 1
