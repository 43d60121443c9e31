# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Composition root: build every top-level module declared in configuration.

Usage::

    shared = ServicePool.of(LoggerFactory())
    with add_app_architecture(config, shared) as composition:
        orders = composition.acquire(IOrderManager)
        orders.place_order(...)
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import TracebackType
from typing import Any, TypeVar, overload

from strata.composition.builder import ServiceBuilder
from strata.composition.errors import (
    CompositionError,
    ConfigurationError,
    DuplicateRegistrationError,
    PolicyViolationError,
    ResolutionError,
)
from strata.composition.pool import ServicePool
from strata.composition.provider import ModuleProvider, ServiceRegistration
from strata.composition.registry import TypeRegistry
from strata.composition.specification import ArchitectureSpecification
from strata.config import AmbientConfiguration, StrataSettings
from strata.logging import LoggerProtocol, get_logger
from strata.taxonomy import Archetype, archetype_of, is_valid_dependency

T = TypeVar("T")

NO_MODULES_MESSAGE = "No Modules Found in Configuration."


class Composition:
    """The built top-level providers and their host registrations."""

    def __init__(self) -> None:
        self._providers: dict[type, ModuleProvider[Any]] = {}

    def add(self, provider: ModuleProvider[Any]) -> None:
        """Add a top-level provider.

        Raises:
            DuplicateRegistrationError: If the contract is already provided
        """
        if provider.contract in self._providers:
            raise DuplicateRegistrationError(
                provider.contract, module=provider.name
            )
        self._providers[provider.contract] = provider

    @property
    def providers(self) -> list[ModuleProvider[Any]]:
        return list(self._providers.values())

    @property
    def registrations(self) -> list[ServiceRegistration[Any]]:
        """One acquirer registration per top-level module."""
        return [provider.as_acquirer() for provider in self._providers.values()]

    @overload
    def get_provider(self, contract: type[T]) -> ModuleProvider[T]: ...

    @overload
    def get_provider(self, contract: str) -> ModuleProvider[Any]: ...

    def get_provider(self, contract: type | str) -> ModuleProvider[Any]:
        """Return the provider of a top-level contract (by type or simple name).

        Raises:
            ResolutionError: If no top-level module provides the contract
        """
        if isinstance(contract, str):
            for registered, provider in self._providers.items():
                if contract in (registered.__name__, registered.__qualname__):
                    return provider
            raise ResolutionError(
                contract, message=f"No top-level module provides {contract}"
            )
        provider = self._providers.get(contract)
        if provider is None:
            raise ResolutionError(
                contract.__qualname__,
                message=f"No top-level module provides {contract.__qualname__}",
            )
        return provider

    def acquire(self, contract: type[T] | str) -> T:
        return self.get_provider(contract).acquire()

    def __contains__(self, contract: object) -> bool:
        return contract in self._providers

    def __iter__(self) -> Iterator[ModuleProvider[Any]]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)

    def dispose(self) -> None:
        """Dispose every provider (nested ones included)."""
        for provider in self._providers.values():
            provider.dispose()

    def __enter__(self) -> Composition:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()


def add_app_architecture(
    configuration: AmbientConfiguration | Mapping[str, Any],
    shared_services: ServicePool,
    logger: LoggerProtocol | None = None,
    *,
    settings: StrataSettings | None = None,
    type_registry: TypeRegistry | None = None,
    builder: ServiceBuilder | None = None,
) -> Composition:
    """Build every top-level module of the configured architecture.

    Args:
        configuration: The host configuration holding the ``Architecture`` section
        shared_services: Cross-cutting utilities, at least a ``LoggerFactory``
        logger: Logger for composition progress
        settings: Engine settings (loads from environment if None)
        type_registry: Registry used to resolve types (process-wide if None)
        builder: A pre-configured builder, overriding the three arguments above

    Returns:
        The composition holding one provider per top-level module

    Raises:
        ConfigurationError: If no modules are declared or the section is malformed
        PolicyViolationError: If a module may not be used by the application container
        CompositionError: For any other failure while building a module
    """
    logger = logger or get_logger("composition")
    if not isinstance(configuration, AmbientConfiguration):
        configuration = AmbientConfiguration(configuration)
    if builder is None:
        settings = settings or StrataSettings.load()
        builder = ServiceBuilder(
            shared_services,
            configuration,
            type_registry=type_registry,
            settings=settings,
        )
    else:
        settings = builder.settings

    logger.info("Building application modules started")
    section = configuration.section(settings.architecture_section)
    architecture = ArchitectureSpecification.from_config(section.as_dict())

    if not architecture.modules:
        logger.warning(NO_MODULES_MESSAGE)
        raise ConfigurationError(
            NO_MODULES_MESSAGE, section=settings.architecture_section
        )

    composition = Composition()
    try:
        for module in architecture.modules:
            contract = builder.resolve_contract(module)
            if not is_valid_dependency(Archetype.APPLICATION_CONTAINER, contract):
                archetype = archetype_of(contract)
                kind = archetype.value if archetype else "Unclassified"
                logger.error(
                    "Module %s is a %s and cannot be added as a direct dependency "
                    "of the Application Container",
                    module.contract,
                    kind,
                )
                raise PolicyViolationError(
                    Archetype.APPLICATION_CONTAINER.value,
                    contract,
                    Archetype.APPLICATION_CONTAINER,
                    archetype,
                    message=(
                        f"Module {module.contract} is not a valid archetype for "
                        "the application container"
                    ),
                )

            if architecture.global_behaviors:
                module.add_global_behaviors(architecture.global_behaviors)

            composition.add(builder.build_service(module))
    except CompositionError:
        composition.dispose()
        raise

    logger.info("Application modules registered: %d", len(composition))
    return composition
