# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Service lifetimes and the policies that decide when an instance is reused.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import Any


class ServiceLifetime(str, Enum):
    """Service lifetime options for composed modules."""

    SINGLETON = "Singleton"
    SCOPED = "Scoped"
    TRANSIENT = "Transient"

    @classmethod
    def parse(cls, value: str | ServiceLifetime) -> ServiceLifetime:
        """Parse a lifetime name case-insensitively.

        Raises:
            ValueError: If the name is not a known lifetime
        """
        if isinstance(value, ServiceLifetime):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        raise ValueError(f"Unsupported service lifetime: {value!r}")


class SingletonPolicy:
    """Create the instance on first request and hand out the same one afterwards.

    With ``serialize`` set, concurrent first requests are funnelled through a
    lock so exactly one instance is created. The lock is only taken while the
    slot is empty.
    """

    def __init__(self, serialize: bool = True) -> None:
        self._serialize = serialize
        self._lock = threading.Lock()
        self._instance: Any = None
        self._created = False

    @property
    def has_instance(self) -> bool:
        return self._created

    def get_instance(self, factory: Callable[[], Any]) -> Any:
        if self._created:
            return self._instance
        if not self._serialize:
            self._store(factory())
            return self._instance
        with self._lock:
            if not self._created:
                self._store(factory())
        return self._instance

    def _store(self, instance: Any) -> None:
        self._instance = instance
        self._created = True

    def release(self) -> Any:
        """Empty the slot and return what it held (None if empty)."""
        with self._lock:
            instance = self._instance
            self._instance = None
            self._created = False
        return instance


class TransientPolicy:
    """Create a fresh instance on every request."""

    has_instance = False

    def get_instance(self, factory: Callable[[], Any]) -> Any:
        return factory()

    def release(self) -> Any:
        return None


class ScopedPolicy(TransientPolicy):
    """Scoped lifetime.

    Composition has no scope of its own, so a scoped module behaves like a
    transient one; a host that owns scopes registers the acquirer with its
    scoped lifetime instead.
    """


LifetimePolicy = SingletonPolicy | TransientPolicy


def policy_for(
    lifetime: ServiceLifetime, *, serialize_singleton_creation: bool = True
) -> LifetimePolicy:
    """Return a new policy instance for ``lifetime``."""
    if lifetime is ServiceLifetime.SINGLETON:
        return SingletonPolicy(serialize=serialize_singleton_creation)
    if lifetime is ServiceLifetime.SCOPED:
        return ScopedPolicy()
    return TransientPolicy()
