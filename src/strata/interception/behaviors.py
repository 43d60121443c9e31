# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Operation behaviors: hooks run around every proxied call.

A behavior overrides the synchronous hooks, the asynchronous ones, or both.
When only the async hooks are overridden the proxy drives them to
completion through the synchronous entry points.
"""

from __future__ import annotations

import threading
import time

from strata.async_utils import run_sync
from strata.interception.context import MethodContext
from strata.logging.protocols import LoggerFactoryProtocol, LoggerProtocol


class OperationBehavior:
    """Base class for behaviors."""

    label: str | None = None

    def set_behavior_label(self, label: str) -> None:
        """Receive the label identifying this behavior on one module."""
        self.label = label

    async def on_method_entry_async(self, context: MethodContext) -> None:
        return None

    async def on_method_exit_async(self, context: MethodContext) -> None:
        return None

    def on_method_entry(self, context: MethodContext) -> None:
        if type(self).on_method_entry_async is not OperationBehavior.on_method_entry_async:
            run_sync(self.on_method_entry_async(context))

    def on_method_exit(self, context: MethodContext) -> None:
        if type(self).on_method_exit_async is not OperationBehavior.on_method_exit_async:
            run_sync(self.on_method_exit_async(context))


class CallTimerBehavior(OperationBehavior):
    """Log entry, exit and elapsed time of every call."""

    def __init__(self, logger_factory: LoggerFactoryProtocol) -> None:
        self._logger_factory = logger_factory
        self._logger: LoggerProtocol = logger_factory.create_logger("CallTimer")
        self._local = threading.local()

    @property
    def logger(self) -> LoggerProtocol:
        return self._logger

    def set_behavior_label(self, label: str) -> None:
        super().set_behavior_label(label)
        self._logger = self._logger_factory.create_logger(label)

    def _starts(self) -> list[float]:
        starts = getattr(self._local, "starts", None)
        if starts is None:
            starts = self._local.starts = []
        return starts

    def on_method_entry(self, context: MethodContext) -> None:
        self._starts().append(time.perf_counter())
        self._logger.info(
            "Entering %s with parameters %s",
            context.method_name,
            context.parameters,
            extra={"method": context.method_name},
        )

    def on_method_exit(self, context: MethodContext) -> None:
        starts = self._starts()
        started = starts.pop() if starts else time.perf_counter()
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        context.items["elapsed_ms"] = elapsed_ms
        outcome = "failed" if context.faulted else "completed"
        self._logger.info(
            "Exiting %s with parameters %s; %s in %.3f ms",
            context.method_name,
            context.parameters,
            outcome,
            elapsed_ms,
            extra={"method": context.method_name, "elapsed_ms": round(elapsed_ms, 3)},
        )
