# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Logger factory shared with every composed module.

The factory is a Utility component: it lives in the host's shared service
pool and is handed to behaviors and to module implementations that declare
a ``Shared`` dependency on it.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from strata.logging.config import LoggingSettings
from strata.logging.logger import configure_logging, get_logger, log_context
from strata.logging.protocols import LoggerProtocol
from strata.taxonomy import UtilityService


class LoggerFactory(UtilityService):
    """
    Logger factory for composed modules.

    Usage:
        - Build one per host and add it to the shared service pool.
        - Use create_logger(name) to get a logger instance.
        - Use scoped_logger(name, **context) as a context manager to bind
          context to every record logged inside the block.
    """

    def __init__(
        self, settings: LoggingSettings | None = None, *, configure: bool = False
    ) -> None:
        """Initialize the logger factory.

        Args:
            settings: Logging settings (loads from environment if None)
            configure: Install handlers on the ``strata`` logger now
        """
        self.settings = settings or LoggingSettings.load()
        if configure:
            configure_logging(self.settings)

    def create_logger(self, name: str) -> LoggerProtocol:
        """
        Create a new logger instance.

        Args:
            name: The name of the logger to create.

        Returns:
            A configured logger instance.
        """
        return get_logger(name)

    @contextmanager
    def scoped_logger(self, name: str, **context: Any) -> Iterator[LoggerProtocol]:
        """
        Create a logger whose records carry ``context`` for the duration of the block.

        Args:
            name: The name of the logger to create.
            **context: Key/value pairs to bind.

        Yields:
            A scoped logger instance.
        """
        with log_context(**context):
            yield self.create_logger(name)
