# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Service pools handed to the constructor injector.

A pool maps contract types to either a ready instance or an acquirer, a
zero-argument callable invoked on every lookup. The host's shared
utilities form one pool; every module gets a private pool holding exactly
its declared dependencies.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, TypeVar, cast

from strata.composition.errors import ResolutionError

T = TypeVar("T")


class ServicePool:
    """Contract-keyed store of instances and acquirers."""

    def __init__(self) -> None:
        self._instances: dict[type, Any] = {}
        self._factories: dict[type, Callable[[], Any]] = {}
        self._order: list[type] = []

    @classmethod
    def of(cls, *instances: Any) -> ServicePool:
        """Build a pool keyed by each instance's own class."""
        pool = cls()
        for instance in instances:
            pool.add_instance(type(instance), instance)
        return pool

    def add_instance(self, service_type: type, instance: Any) -> ServicePool:
        self._factories.pop(service_type, None)
        self._instances[service_type] = instance
        self._remember(service_type)
        return self

    def add_factory(self, service_type: type, factory: Callable[[], Any]) -> ServicePool:
        self._instances.pop(service_type, None)
        self._factories[service_type] = factory
        self._remember(service_type)
        return self

    def _remember(self, service_type: type) -> None:
        if service_type not in self._order:
            self._order.append(service_type)

    def _match(self, service_type: type) -> type | None:
        if service_type in self._instances or service_type in self._factories:
            return service_type
        if not isinstance(service_type, type):
            return None
        for registered in self._order:
            if isinstance(registered, type) and issubclass(registered, service_type):
                return registered
        return None

    def get(self, service_type: type[T], default: Any = None) -> T | Any:
        """Return the service registered for ``service_type``.

        An exact key wins; otherwise the first registration (in insertion
        order) whose key is a subclass of ``service_type`` is used.
        """
        key = self._match(service_type)
        if key is None:
            return default
        if key in self._instances:
            return self._instances[key]
        return self._factories[key]()

    def get_required(self, service_type: type[T]) -> T:
        key = self._match(service_type)
        if key is None:
            raise ResolutionError(
                getattr(service_type, "__qualname__", str(service_type)),
                message=f"No service registered for {getattr(service_type, '__qualname__', service_type)}",
            )
        return cast(T, self.get(key))

    def __contains__(self, service_type: object) -> bool:
        return isinstance(service_type, type) and self._match(service_type) is not None

    def __iter__(self) -> Iterator[type]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)
