# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework

"""
Public API for the strata logging system.

This module exports the public API for logging in the strata framework,
providing structured logging capabilities and context management.
"""

from __future__ import annotations

from strata.logging.config import LoggingSettings
from strata.logging.factory import LoggerFactory
from strata.logging.level import LogLevel
from strata.logging.logger import (
    ROOT_LOGGER_NAME,
    StructuredFormatter,
    configure_logging,
    current_log_context,
    get_logger,
    log_context,
)
from strata.logging.protocols import LoggerFactoryProtocol, LoggerProtocol

__all__ = [
    # Core interfaces
    "LoggerProtocol",
    "LoggerFactoryProtocol",
    "LogLevel",
    # Implementation
    "LoggerFactory",
    "LoggingSettings",
    "StructuredFormatter",
    "ROOT_LOGGER_NAME",
    # Functions
    "configure_logging",
    "current_log_context",
    "get_logger",
    "log_context",
]
