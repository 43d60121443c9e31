# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework

"""
Logging interface definitions for the strata framework.

Behaviors and module implementations depend on these protocols rather than
on the concrete factory, so hosts may hand in their own logger factory.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


class LoggerProtocol(Protocol):
    """
    Protocol defining the interface for loggers in the strata framework.

    ``logging.Logger`` satisfies it structurally.
    """

    name: str

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


@runtime_checkable
class LoggerFactoryProtocol(Protocol):
    """Protocol for logger factory implementations."""

    def create_logger(self, name: str) -> LoggerProtocol:
        """Create a new logger instance.

        Args:
            name: The name of the logger to create

        Returns:
            A configured logger instance
        """
        ...

    def scoped_logger(
        self, name: str, **context: Any
    ) -> AbstractContextManager[LoggerProtocol]:
        """Create a logger whose records carry ``context`` while the block runs.

        Args:
            name: The name of the logger to create
            **context: Key/value pairs bound for the duration of the block

        Yields:
            A scoped logger instance
        """
        ...
