# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Utilities for bridging async code into the synchronous call pipeline.

Proxied calls and behavior hooks run synchronously. When an operation or a
hook is a coroutine it is driven to completion here, on the caller's thread
when no event loop is running there, otherwise on a short-lived worker
thread with its own loop.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
from collections.abc import Awaitable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


def is_async_callable(obj: Any) -> bool:
    """Determine if an object is an async callable.

    Args:
        obj: The object to check

    Returns:
        True if the object is an async callable, False otherwise
    """
    if inspect.iscoroutinefunction(obj):
        return True

    if inspect.ismethod(obj):
        return inspect.iscoroutinefunction(obj.__func__)

    if callable(obj):
        call = type(obj).__call__
        return inspect.iscoroutinefunction(call)

    return False


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


def run_sync(awaitable: Awaitable[T]) -> T:
    """Run ``awaitable`` to completion and return its result.

    Exceptions raised by the awaitable propagate unchanged.

    Args:
        awaitable: A coroutine, task-less future or any awaitable object

    Returns:
        The awaited value
    """
    coroutine = awaitable if inspect.iscoroutine(awaitable) else _await(awaitable)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coroutine)

    # A loop is already running on this thread; it cannot be re-entered.
    context = contextvars.copy_context()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="strata-run-sync") as pool:
        future = pool.submit(context.run, asyncio.run, coroutine)
        return future.result()
