"""
Centralized logging configuration for FastRoute.

Console output is colored in development and plain elsewhere; an optional
rotating file handler can emit JSON records for log aggregation.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastroute.core.config import settings

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Extra fields such as ``graph_id`` or ``duration_ms`` are copied into the
    JSON object next to the standard fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Adds ANSI colors to the level name for console output in development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        formatted = super().format(record)

        # Other handlers share the record
        record.levelname = levelname

        return formatted


def get_log_level(level_name: str) -> int:
    """
    Convert log level name to logging constant.

    Args:
        level_name: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logging level constant, INFO for unknown names
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_name.upper(), logging.INFO)


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    enable_console: bool = True,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Log level name; falls back to settings, then to the
            environment default (DEBUG in development, INFO otherwise)
        log_file: Path to a rotating log file
        json_logs: Whether to use JSON format for file logs
        enable_console: Whether to enable console logging
    """
    if log_level is None:
        log_level = settings.log_level or (
            "DEBUG" if settings.environment == "development" else "INFO"
        )

    level = get_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        if settings.environment == "development":
            console_formatter: logging.Formatter = ColoredFormatter(
                "%(levelname)s | %(asctime)s | %(name)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        else:
            console_formatter = logging.Formatter(
                "%(levelname)s - %(asctime)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        # 10MB per file, keep 5 backups
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)

        if json_logs:
            file_formatter: logging.Formatter = JSONFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s - %(levelname)s - %(name)s - "
                "%(module)s:%(funcName)s:%(lineno)d - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={log_level}, "
        f"environment={settings.environment}, "
        f"json_logs={json_logs}, "
        f"file={log_file is not None}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)


# Active contexts for the current thread or task, innermost last
_active_contexts: ContextVar[Tuple["LogContext", ...]] = ContextVar(
    "fastroute_log_contexts", default=()
)


def _install_context_record_factory() -> None:
    """Wrap the record factory once so records pick up the active contexts."""
    base_factory = logging.getLogRecordFactory()
    if getattr(base_factory, "stamps_log_context", False):
        return

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = base_factory(*args, **kwargs)
        for context in _active_contexts.get():
            for key, value in context.context.items():
                setattr(record, key, value)
        return record

    record_factory.stamps_log_context = True  # type: ignore[attr-defined]
    logging.setLogRecordFactory(record_factory)


_install_context_record_factory()


class LogContext:
    """
    Context manager that stamps extra fields on every log record.

    Contexts live in a ``ContextVar``, so concurrent requests on worker
    threads each see only their own fields, and leaving a context removes
    just that context even when exits happen out of order.

    Usage:
        with LogContext(graph_id="abc"):
            logger.info("Solving route")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        _active_contexts.set(_active_contexts.get() + (self,))
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _active_contexts.set(
            tuple(context for context in _active_contexts.get() if context is not self)
        )


def add_log_context(**kwargs: Any) -> LogContext:
    """
    Create a log context with additional fields.

    Example:
        with add_log_context(graph_id="abc123"):
            logger.info("Route requested")
    """
    return LogContext(**kwargs)
