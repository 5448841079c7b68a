"""
Process-wide logging setup for the detection mock stream.

Console output goes to stdout next to the offline JSON stream; quiet mode
keeps only errors, on stderr, so piped JSON stays clean. A rotating log
file can be added that always records at DEBUG.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# paho logs every packet at DEBUG
NOISY_LOGGERS = ('paho.mqtt.client',)


def resolve_level(verbose: bool = False, quiet: bool = False, default: int = logging.INFO) -> int:
    """Quiet wins over verbose."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return default


class MockLogger:
    """
    Configures the root logger once and hands out module loggers.

    Later setup_logging calls are no-ops until reset().
    """

    _initialized = False

    @classmethod
    def setup_logging(
        cls,
        level: int = logging.INFO,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        verbose: bool = False,
        quiet: bool = False
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            level: Console level when neither verbose nor quiet is set
            log_file: Optional rotating log file
            console_output: Attach the stdout handler
            verbose: DEBUG everywhere
            quiet: Only errors, on stderr
        """
        if cls._initialized:
            return

        effective_level = resolve_level(verbose, quiet, level)
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(effective_level)

        handlers = cls._console_handlers(effective_level, console_output, quiet)
        if log_file:
            file_handler = cls._file_handler(Path(log_file))
            if file_handler is not None:
                handlers.append(file_handler)
                root_logger.setLevel(logging.DEBUG)

        for handler in handlers:
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        cls._initialized = True

    @staticmethod
    def _console_handlers(level: int, console_output: bool, quiet: bool) -> List[logging.Handler]:
        if quiet:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.ERROR)
            return [handler]
        if not console_output:
            return []
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        return [handler]

    @staticmethod
    def _file_handler(log_file: Path) -> Optional[logging.Handler]:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Cannot open log file {log_file}: {e}")
            return None
        handler.setLevel(logging.DEBUG)
        return handler

    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        return logging.getLogger(name)

    @classmethod
    def log_configuration(cls, config: Dict[str, Any], logger_name: str = "config") -> None:
        logger = cls.get_logger(logger_name)
        logger.info("Configuration loaded:")
        _log_tree(logger, config, depth=1)

    @classmethod
    def log_statistics(cls, stats: Dict[str, Any], logger_name: str = "stats") -> None:
        """Log a nested statistics dict, floats to 3 decimals."""
        logger = cls.get_logger(logger_name)
        logger.info("Stream Statistics:")
        _log_tree(logger, stats, depth=1)

    @classmethod
    def reset(cls) -> None:
        """Drop all root handlers so the next setup_logging applies (tests)."""
        cls._initialized = False
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.WARNING)


def _log_tree(logger: logging.Logger, values: Dict[str, Any], depth: int) -> None:
    indent = "  " * depth
    for key, value in values.items():
        if isinstance(value, dict):
            logger.info(f"{indent}{key}:")
            _log_tree(logger, value, depth + 1)
        elif isinstance(value, float):
            logger.info(f"{indent}{key}: {value:.3f}")
        else:
            logger.info(f"{indent}{key}: {value}")


def log_exception(logger: logging.Logger, exception: Exception, context: str = "",
                  include_traceback: bool = True) -> None:
    """Log `context: Type: message`, with the traceback unless disabled."""
    message = f"{type(exception).__name__}: {exception}"
    if context:
        message = f"{context}: {message}"

    if include_traceback:
        logger.exception(message)
    else:
        logger.error(message)
