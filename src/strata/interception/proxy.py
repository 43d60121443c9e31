# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Interception proxies.

``PassthroughProxy.build(contract, implementation, instance)`` returns an
object that *is* a ``contract`` (``isinstance`` holds) and routes each
contract operation through the registered behaviors:

    global entry hooks -> method entry hooks -> call -> method exit hooks
    -> global exit hooks

Behaviors run in registration order on entry and in the same grouping on
exit. A failing call still runs the exit hooks and then re-raises the
original exception. A coroutine result is awaited before the exit hooks see
it, and the awaited value is returned.
"""

from __future__ import annotations

import functools
import inspect
import threading
import types
from typing import Any, TypeVar

from strata.async_utils import run_sync
from strata.interception.behaviors import OperationBehavior
from strata.interception.context import MethodContext

T = TypeVar("T")

_SKIPPED_MODULES = ("builtins", "abc", "typing")


def _is_marker(klass: type) -> bool:
    module = getattr(klass, "__module__", "")
    return module in _SKIPPED_MODULES or module.startswith("strata.taxonomy")


def contract_operations(contract: type) -> dict[str, Any]:
    """Return the public functions and properties a contract declares.

    Abstract members are included even when their names are private.
    """
    abstract = set(getattr(contract, "__abstractmethods__", ()))
    operations: dict[str, Any] = {}
    for klass in reversed(contract.__mro__):
        if _is_marker(klass):
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") and name not in abstract:
                continue
            if isinstance(value, property) or inspect.isfunction(value):
                operations[name] = value
            elif name in operations:
                del operations[name]
    return operations


def _forwarder(name: str, declared: Any) -> Any:
    def operation(self: PassthroughProxy, *args: Any, **kwargs: Any) -> Any:
        return self._invoke(name, args, kwargs)

    functools.update_wrapper(operation, declared)
    operation.__dict__.pop("__isabstractmethod__", None)
    operation.__isabstractmethod__ = False  # type: ignore[attr-defined]
    return operation


def _property_forwarder(name: str, declared: property) -> property:
    def getter(self: PassthroughProxy) -> Any:
        return getattr(self.__wrapped__, name)

    setter = None
    if declared.fset is not None:

        def setter(self: PassthroughProxy, value: Any) -> None:
            setattr(self.__wrapped__, name, value)

    return property(getter, setter, doc=declared.__doc__)


class PassthroughProxy:
    """Base of every generated proxy class."""

    _proxy_types: dict[tuple[type, type], type] = {}
    _proxy_types_lock = threading.Lock()

    __contract__: type
    __implementation__: type
    __operations__: frozenset[str]

    def __init__(self, instance: Any) -> None:
        self.__wrapped__ = instance
        self._global_behaviors: list[OperationBehavior] = []
        self._method_behaviors: dict[str, list[OperationBehavior]] = {}

    @classmethod
    def proxy_type(cls, contract: type, implementation: type) -> type:
        """Return the cached proxy class for a (contract, implementation) pair."""
        key = (contract, implementation)
        with cls._proxy_types_lock:
            proxy_cls = cls._proxy_types.get(key)
            if proxy_cls is None:
                proxy_cls = cls._generate(contract, implementation)
                cls._proxy_types[key] = proxy_cls
            return proxy_cls

    @classmethod
    def _generate(cls, contract: type, implementation: type) -> type:
        operations = contract_operations(contract)
        namespace: dict[str, Any] = {}
        for name, declared in operations.items():
            if isinstance(declared, property):
                namespace[name] = _property_forwarder(name, declared)
            else:
                namespace[name] = _forwarder(name, declared)
        namespace["__contract__"] = contract
        namespace["__implementation__"] = implementation
        namespace["__operations__"] = frozenset(
            name for name, declared in operations.items() if not isinstance(declared, property)
        )
        namespace["__module__"] = contract.__module__

        name = f"{contract.__name__}Proxy"
        return types.new_class(
            name, (PassthroughProxy, contract), exec_body=lambda ns: ns.update(namespace)
        )

    @classmethod
    def build(cls, contract: type[T], implementation: type, instance: Any) -> T:
        """Wrap ``instance`` in a proxy implementing ``contract``.

        Raises:
            InterceptionError: If the instance does not implement the contract
        """
        from strata.composition.errors import InterceptionError

        if instance is None:
            raise InterceptionError(
                f"Cannot build a {contract.__name__} proxy around None",
                contract=contract,
                implementation=implementation,
            )
        if not isinstance(instance, implementation) or not isinstance(instance, contract):
            raise InterceptionError(
                f"{type(instance).__qualname__} instance does not implement "
                f"{contract.__qualname__} through {implementation.__qualname__}",
                contract=contract,
                implementation=implementation,
            )
        try:
            proxy_cls = cls.proxy_type(contract, implementation)
            return proxy_cls(instance)
        except TypeError as exc:
            raise InterceptionError(
                f"Could not generate a proxy for {contract.__qualname__}: {exc}",
                contract=contract,
                implementation=implementation,
            ) from exc

    def add_behavior(
        self, behavior: OperationBehavior | None, method_name: str | None = None
    ) -> PassthroughProxy:
        """Attach a behavior to every operation, or to ``method_name`` only.

        ``None`` is ignored.
        """
        if behavior is None:
            return self
        if method_name is None:
            self._global_behaviors.append(behavior)
            return self
        if method_name not in self.__operations__:
            from strata.composition.errors import InterceptionError

            raise InterceptionError(
                f"{self.__contract__.__qualname__} has no operation {method_name}",
                contract=self.__contract__,
                implementation=self.__implementation__,
                method=method_name,
            )
        self._method_behaviors.setdefault(method_name, []).append(behavior)
        return self

    @property
    def behaviors(self) -> list[OperationBehavior]:
        return list(self._global_behaviors)

    def method_behaviors(self, method_name: str) -> list[OperationBehavior]:
        return list(self._method_behaviors.get(method_name, ()))

    def _invoke(self, name: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        context = MethodContext(name, args, dict(kwargs))
        scoped = self._method_behaviors.get(name, ())

        for behavior in self._global_behaviors:
            behavior.on_method_entry(context)
        for behavior in scoped:
            behavior.on_method_entry(context)

        try:
            result = getattr(self.__wrapped__, name)(*args, **kwargs)
            if inspect.isawaitable(result):
                result = run_sync(result)
        except BaseException as exc:
            context.exception = exc
            self._exit(context, scoped)
            raise

        context.return_value = result
        self._exit(context, scoped)
        return result

    def _exit(self, context: MethodContext, scoped: Any) -> None:
        for behavior in scoped:
            behavior.on_method_exit(context)
        for behavior in self._global_behaviors:
            behavior.on_method_exit(context)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} wrapping {self.__wrapped__!r}>"


def build_proxy(contract: type[T], implementation: type, instance: Any) -> T:
    """Wrap ``instance`` in a proxy implementing ``contract``."""
    return PassthroughProxy.build(contract, implementation, instance)


def unwrap(obj: Any) -> Any:
    """Return the instance behind a proxy (or ``obj`` itself)."""
    while isinstance(obj, PassthroughProxy):
        obj = obj.__wrapped__
    return obj
