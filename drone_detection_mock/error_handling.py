"""
Exceptions and failure helpers for the detection mock stream.

Every error the stream raises on purpose derives from MockStreamError and
carries a short machine-readable code:

    ConfigurationError   CONFIG_ERROR          bad file, flag or value
    MQTTError            CONNECTION_*, ...     broker connect or client setup
    SerializationError   ENCODE_ERROR, ...     a record that cannot become JSON
    SimulationError      SERIALIZATION_FAILURE the streaming loop gave up
"""

import logging
from collections import Counter
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Optional, Type


class MockStreamError(Exception):
    """Base class; `str()` renders as `[code] message` when a code is set."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(MockStreamError):
    pass


class MQTTError(MockStreamError):
    pass


class SerializationError(MockStreamError):
    pass


class SimulationError(MockStreamError):
    pass


@contextmanager
def logged_operation(
    operation: str,
    logger: Optional[logging.Logger] = None,
    reraise: bool = True,
    cleanup: Optional[Callable[[], None]] = None
):
    """
    Log the failure of a block, run an optional cleanup and re-raise.

    With reraise=False the error is logged and swallowed; used for teardown
    steps that must not mask the error that ended the run.
    """
    try:
        yield
    except Exception as e:
        if logger:
            logger.error(f"{operation} failed: {e}")

        if cleanup:
            try:
                cleanup()
            except Exception as cleanup_error:
                if logger:
                    logger.error(f"Cleanup after '{operation}' failed: {cleanup_error}")

        if reraise:
            raise


def wrap_error(
    error: Exception,
    error_class: Type[MockStreamError],
    error_code: str,
    description: str,
    logger: Optional[logging.Logger] = None,
    **context: Any
) -> MockStreamError:
    """
    Convert a library or builtin exception into a stream error.

    Errors that already are of error_class pass through unchanged.

    Returns:
        The error to raise; the caller raises it so tracebacks stay local
    """
    if isinstance(error, error_class):
        return error

    message = f"{description}: {error}"
    if logger:
        logger.error(message)

    context['original_error'] = repr(error)
    return error_class(message, error_code=error_code, context=context)


def backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0,
                  multiplier: float = 2.0) -> float:
    """Seconds to wait before retry `attempt + 1` (attempt is 0-based)."""
    return min(base_delay * (multiplier ** attempt), max_delay)


def summarize_errors(errors: Iterable[Any]) -> Dict[str, Any]:
    """
    Summarize errors for the final run statistics.

    Exceptions are grouped by class name, anything else under "Unknown".
    """
    errors = list(errors)
    kinds = [type(e).__name__ if isinstance(e, Exception) else "Unknown" for e in errors]

    return {
        "total_errors": len(errors),
        "error_counts": dict(Counter(kinds)),
        "error_details": [{"type": kind, "message": str(e)} for kind, e in zip(kinds, errors)]
    }
