# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Module providers.

A provider owns everything needed to hand out one module's contract: the
resolved implementation type, its private service pool, its behaviors and
its lifetime policy. Callers never see the implementation directly; every
``acquire()`` returns a fresh interception proxy around the (possibly
cached) instance.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Generic, TypeVar

from strata.composition.constructor import ConstructorInjector, default_injector
from strata.composition.errors import ServiceCreationError
from strata.composition.lifetime import ServiceLifetime, SingletonPolicy, policy_for
from strata.composition.pool import ServicePool
from strata.composition.specification import ModuleSpecification
from strata.interception.behaviors import OperationBehavior
from strata.interception.proxy import PassthroughProxy
from strata.logging import LoggerProtocol, get_logger

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceDescriptor:
    """Contract, implementation and lifetime of a module."""

    service_type: type
    implementation_type: type
    lifetime: ServiceLifetime


@dataclass(frozen=True)
class ServiceRegistration(Generic[T]):
    """A contract exposed to the host with a factory that acquires it."""

    service_type: type[T]
    lifetime: ServiceLifetime
    factory: Callable[[], T]

    def __call__(self) -> T:
        return self.factory()


class ModuleProvider(Generic[T]):
    """Hands out proxied instances of one module's contract."""

    def __init__(
        self,
        specification: ModuleSpecification,
        contract: type[T],
        implementation: type,
        services: ServicePool,
        behaviors: list[OperationBehavior] | None = None,
        dependencies: list[ModuleProvider[Any]] | None = None,
        *,
        injector: ConstructorInjector | None = None,
        logger: LoggerProtocol | None = None,
        serialize_singleton_creation: bool = True,
    ) -> None:
        self.specification = specification
        self.contract = contract
        self.implementation = implementation
        self.lifetime = specification.lifetime
        self.services = services
        self.behaviors = list(behaviors or ())
        self.dependencies = list(dependencies or ())
        self._injector = injector or default_injector
        self._logger = logger or get_logger(f"ModuleProvider.{contract.__name__}")
        self._policy = policy_for(
            self.lifetime, serialize_singleton_creation=serialize_singleton_creation
        )
        self._disposed = False
        self._logger.info("Created ModuleProvider for %s", contract.__name__)

    @property
    def name(self) -> str:
        return self.specification.display_name

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def has_instance(self) -> bool:
        """True when a singleton instance has been created and not released."""
        return self._policy.has_instance

    def acquire(self) -> T:
        """Return a proxy for the module's contract.

        Raises:
            ServiceCreationError: If the implementation cannot be constructed
            InterceptionError: If the proxy cannot be built
        """
        if self._disposed:
            raise ServiceCreationError(
                f"Provider for {self.contract.__name__} has been disposed",
                service_type=self.contract,
            )
        self._logger.debug("Acquiring %s service", self.contract.__name__)
        instance = self._policy.get_instance(self._create)
        if instance is None:
            raise ServiceCreationError(
                f"Could not acquire an instance of the requested {self.contract.__name__} service",
                service_type=self.contract,
            )

        proxy = PassthroughProxy.build(self.contract, self.implementation, instance)
        for behavior in self.behaviors:
            proxy.add_behavior(behavior)
        return proxy

    def _create(self) -> Any:
        if isinstance(self._policy, SingletonPolicy):
            self._logger.info(
                "Lazy creating singleton %s:%s",
                self.implementation.__name__,
                self.contract.__name__,
            )
        instance = self._injector.construct(self.implementation, self.services)
        self._logger.debug(
            "Created %s:%s", self.implementation.__name__, self.contract.__name__
        )
        return instance

    def as_acquirer(self) -> ServiceRegistration[T]:
        """Expose the contract with a factory that calls ``acquire()``."""
        return ServiceRegistration(self.contract, self.lifetime, self.acquire)

    def as_service_descriptor(self) -> ServiceDescriptor:
        return ServiceDescriptor(self.contract, self.implementation, self.lifetime)

    def walk(self) -> Iterator[ModuleProvider[Any]]:
        """Yield this provider and every nested dependency provider, depth first."""
        yield self
        for dependency in self.dependencies:
            yield from dependency.walk()

    def dispose(self) -> None:
        """Release the cached singleton and dispose nested providers.

        A released instance exposing ``close()`` is closed.
        """
        if self._disposed:
            return
        self._disposed = True
        instance = self._policy.release()
        if instance is not None:
            close = getattr(instance, "close", None)
            if callable(close):
                close()
        for dependency in self.dependencies:
            dependency.dispose()
        self._logger.debug("Disposed ModuleProvider for %s", self.contract.__name__)

    def __enter__(self) -> ModuleProvider[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"ModuleProvider({self.contract.__name__} -> "
            f"{self.implementation.__name__}, {self.lifetime.value})"
        )
