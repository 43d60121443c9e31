# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Logger implementation for the strata framework.

This module provides the default logging setup based on Python's standard
logging module, enhanced with structured logging capabilities: a context
variable of key/value pairs that is merged into every record emitted while
it is bound, and a formatter that renders records as ``key=value`` text or
as JSON.
"""

from __future__ import annotations

import contextlib
import datetime
import enum
import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from strata.logging.config import LoggingSettings
from strata.logging.level import LogLevel

if TYPE_CHECKING:
    from collections.abc import Iterator

ROOT_LOGGER_NAME = "strata"

# Context variable for storing log context data
_log_context: ContextVar[dict[str, Any]] = ContextVar("strata_log_context", default={})

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


@contextlib.contextmanager
def log_context(**kwargs: Any) -> Iterator[dict[str, Any]]:
    """Bind key/value pairs to every record logged inside the block.

    Nested blocks extend the outer context; the previous context is restored
    on exit.
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield _log_context.get()
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    """Return a copy of the context bound by the enclosing ``log_context`` blocks."""
    return dict(_log_context.get())


class StructuredFormatter(logging.Formatter):
    """Formatter that supports structured logging with context data."""

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_level: bool = True,
    ) -> None:
        """Initialize a structured formatter.

        Args:
            json_format: Whether to format logs as JSON
            include_timestamp: Whether to include timestamps in logs
            include_level: Whether to include log level in logs
        """
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_level = include_level

        fmt = "%(name)s: %(message)s"
        if include_level and not json_format:
            fmt = "[%(levelname)s] " + fmt
        if include_timestamp:
            fmt = "%(asctime)s " + fmt

        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with structured data.

        Args:
            record: The log record to format

        Returns:
            Formatted log string
        """
        extra: dict[str, Any] = dict(_log_context.get())
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                extra[key] = value

        if self.json_format:
            return self._format_json(record, extra)
        return self._format_text(super().format(record), extra)

    def _format_json(self, record: logging.LogRecord, extra: dict[str, Any]) -> str:
        log_data: dict[str, Any] = {
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update({k: self._json_value(v) for k, v in extra.items()})

        if self.include_level:
            log_data["level"] = record.levelname
        if self.include_timestamp:
            log_data["timestamp"] = self.formatTime(record, self.datefmt)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["error"] = str(record.exc_info[1])

        return json.dumps(log_data, default=str)

    def _format_text(self, message: str, extra: dict[str, Any]) -> str:
        if not extra:
            return message
        ctx_str = " ".join(f"{k}={self._format_value(v)}" for k, v in extra.items())
        # Keep any traceback on the lines after the context
        head, sep, tail = message.partition("\n")
        return f"{head} {ctx_str}{sep}{tail}"

    def _json_value(self, value: Any) -> Any:
        if isinstance(value, datetime.datetime | datetime.date):
            return value.isoformat()
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, type):
            return value.__qualname__
        if hasattr(value, "to_dict"):
            return value.to_dict()
        return value

    def _format_value(self, value: Any) -> str:
        if isinstance(value, str):
            if " " in value:
                return f'"{value}"'
            return value
        if isinstance(value, datetime.datetime | datetime.date):
            return value.isoformat()
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, enum.Enum):
            return value.name
        if isinstance(value, type):
            return value.__qualname__
        if isinstance(value, BaseException):
            return json.dumps({"type": type(value).__name__, "message": str(value)})
        try:
            return json.dumps(value)
        except TypeError:
            return str(value)


def configure_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Install strata's handlers on the ``strata`` logger.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        settings: Optional logging settings (loads from environment if None)

    Returns:
        The configured ``strata`` logger
    """
    settings = settings or LoggingSettings.load()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(LogLevel(settings.level).to_stdlib_level())

    for handler in list(root.handlers):
        if getattr(handler, "_strata_handler", False):
            root.removeHandler(handler)
            handler.close()

    formatter = StructuredFormatter(
        json_format=settings.json_format,
        include_timestamp=settings.include_timestamp,
        include_level=settings.include_level,
    )

    handlers: list[logging.Handler] = []
    if settings.console_enabled:
        handlers.append(logging.StreamHandler(sys.stderr))
    if settings.file_enabled and settings.file_path:
        handlers.append(logging.FileHandler(settings.file_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._strata_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.propagate = settings.propagate
    return root


def get_logger(name: str, level: LogLevel | None = None) -> logging.Logger:
    """Get a logger for the specified name.

    Names outside the ``strata`` hierarchy are nested under it so that the
    handlers installed by ``configure_logging`` apply.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override

    Returns:
        Standard library logger
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.to_stdlib_level())
    return logger
