# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Service builder: turns a module specification into a ModuleProvider.

Building a module resolves its contract and implementation, builds its
private service pool (settings object, shared utilities and nested module
providers), then builds its behaviors from the shared utilities. Nested
``Module`` dependencies inherit the global behaviors of the module that
depends on them, so architecture-wide behaviors reach every depth.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from strata.composition.constructor import ConstructorInjector, default_injector
from strata.composition.errors import (
    BehaviorBuildError,
    CompositionError,
    ConfigurationError,
    PolicyViolationError,
    ResolutionError,
)
from strata.composition.options import ServiceOptions
from strata.composition.pool import ServicePool
from strata.composition.provider import ModuleProvider
from strata.composition.registry import TypeRegistry, default_registry
from strata.composition.specification import ModuleSpecification
from strata.config import AmbientConfiguration, StrataSettings
from strata.interception.behaviors import OperationBehavior
from strata.logging import LoggerFactory, LoggerProtocol, log_context
from strata.taxonomy import archetype_of, is_valid_dependency

EXTERNAL_SETTING_PREFIX = "EXT:"

_SKIP = object()


class ServiceBuilder:
    """Builds module providers against one set of shared services."""

    def __init__(
        self,
        shared_services: ServicePool,
        configuration: AmbientConfiguration | Mapping[str, Any] | None = None,
        *,
        type_registry: TypeRegistry | None = None,
        injector: ConstructorInjector | None = None,
        settings: StrataSettings | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.shared_services = shared_services
        if isinstance(configuration, AmbientConfiguration):
            self.configuration = configuration
        else:
            self.configuration = AmbientConfiguration(configuration)
        self.settings = settings or StrataSettings.load()
        if type_registry is None:
            type_registry = default_registry()
            type_registry.execution_directory = self.settings.execution_directory
        self.type_registry = type_registry
        self.injector = injector or default_injector

        logger_factory = shared_services.get(LoggerFactory)
        if logger_factory is None:
            logger_factory = LoggerFactory()
        self.logger_factory = logger_factory
        self._logger = logger or logger_factory.create_logger("composition.builder")

    def resolve_contract(self, specification: ModuleSpecification) -> type:
        """Resolve a specification's contract type.

        Raises:
            ResolutionError: If the contract type cannot be found
        """
        return self.type_registry.resolve(
            specification.contract, specification.contract_library
        ).target

    def resolve_implementation(
        self, specification: ModuleSpecification, contract: type
    ) -> type:
        """Resolve the implementation type for ``contract``.

        An explicit ``TypeName`` wins; otherwise the implementation library
        (defaulting to the contract library) is scanned for a concrete class
        implementing the contract.
        """
        implementation_spec = specification.implementation
        library = implementation_spec.library or specification.contract_library
        if implementation_spec.type_name:
            implementation = self.type_registry.resolve(
                implementation_spec.type_name, library
            ).target
        else:
            implementation = self.type_registry.resolve_contract_implementation(
                contract.__name__, library
            ).target

        if not issubclass(implementation, contract):
            raise ConfigurationError(
                f"{implementation.__qualname__} does not implement {contract.__qualname__}",
                module=specification.display_name,
            )
        return implementation

    def build_service(self, specification: ModuleSpecification) -> ModuleProvider[Any]:
        """Build the provider for one module and, recursively, its dependencies.

        Raises:
            ConfigurationError: If the module is malformed
            PolicyViolationError: If a dependency breaks the archetype policy
            ResolutionError: If a contract or implementation cannot be found
        """
        with log_context(module=specification.display_name):
            self._logger.info("Building module %s", specification.contract)

            if specification.implementation.is_shared:
                raise ConfigurationError(
                    f"Module {specification.display_name} is a Shared service and "
                    "cannot be built as a module",
                    module=specification.display_name,
                )

            contract = self.resolve_contract(specification)
            if archetype_of(contract) is None:
                raise ConfigurationError(
                    f"Contract {contract.__qualname__} is not tagged with an archetype",
                    module=specification.display_name,
                    contract=contract.__qualname__,
                )
            implementation = self.resolve_implementation(specification, contract)

            services, dependencies = self.configure_services(
                specification, contract, implementation
            )
            behaviors = self.configure_behaviors(specification, contract, implementation)

            return ModuleProvider(
                specification,
                contract,
                implementation,
                services,
                behaviors,
                dependencies,
                injector=self.injector,
                logger=self.logger_factory.create_logger(
                    f"ModuleProvider.{contract.__name__}"
                ),
                serialize_singleton_creation=self.settings.serialize_singleton_creation,
            )

    def configure_services(
        self,
        specification: ModuleSpecification,
        contract: type,
        implementation: type,
    ) -> tuple[ServicePool, list[ModuleProvider[Any]]]:
        """Build the private pool a module's implementation is constructed from."""
        services = ServicePool()
        dependencies: list[ModuleProvider[Any]] = []

        options = self.configure_settings(specification, implementation)
        if options is not None:
            services.add_instance(type(options), options)

        global_behaviors = specification.global_behaviors
        try:
            for dependency in specification.dependencies:
                dependency_contract = self.resolve_contract(dependency)
                self._validate_dependency(contract, dependency_contract)

                if dependency.implementation.is_shared:
                    try:
                        instance = self.shared_services.get_required(dependency_contract)
                    except ResolutionError as exc:
                        raise ResolutionError(
                            dependency.contract,
                            dependency.contract_library,
                            message=(
                                f"Shared service {dependency.contract} required by "
                                f"{contract.__name__} is not available"
                            ),
                        ) from exc
                    services.add_instance(dependency_contract, instance)
                    continue

                dependency.add_global_behaviors(global_behaviors)
                provider = self.build_service(dependency)
                services.add_factory(dependency_contract, provider.acquire)
                dependencies.append(provider)
        except CompositionError:
            for provider in dependencies:
                provider.dispose()
            raise

        return services, dependencies

    def _validate_dependency(self, contract: type, dependency: type) -> None:
        if is_valid_dependency(contract, dependency):
            return
        error = PolicyViolationError(
            contract, dependency, archetype_of(contract), archetype_of(dependency)
        )
        self._logger.error("%s", error.message, extra={"error_code": str(error.code)})
        raise error

    def configure_settings(
        self, specification: ModuleSpecification, implementation: type
    ) -> ServiceOptions | None:
        """Build the module's settings object from its ``Settings`` block.

        ``EXT:<path>`` values are replaced by the ambient configuration
        value at ``<path>``; missing ones are skipped with a warning.

        Raises:
            ConfigurationError: If no options class exists or the values do not validate
        """
        implementation_spec = specification.implementation
        if implementation_spec.is_shared or not implementation_spec.settings:
            return None

        library = implementation_spec.library or implementation.__module__
        try:
            options_type = self.type_registry.resolve_contract_implementation(
                ServiceOptions.__name__, library
            ).target
        except ResolutionError as exc:
            raise ConfigurationError(
                f"Settings are declared for {implementation.__name__} but "
                f"{library} defines no ServiceOptions class",
                module=specification.display_name,
            ) from exc

        values = self._expand(implementation_spec.settings, implementation, "")
        try:
            options = options_type.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid settings for {implementation.__name__}: {exc}",
                module=specification.display_name,
                options_type=options_type.__name__,
            ) from exc

        self._logger.info("Populated settings for %s", options_type.__name__)
        return options

    def _expand(self, value: Any, implementation: type, path: str) -> Any:
        if isinstance(value, Mapping):
            expanded: dict[str, Any] = {}
            for key, item in value.items():
                child = f"{path}:{key}" if path else str(key)
                result = self._expand(item, implementation, child)
                if result is not _SKIP:
                    expanded[key] = result
            return expanded
        if isinstance(value, list):
            items = [
                self._expand(item, implementation, f"{path}[{index}]")
                for index, item in enumerate(value)
            ]
            return [item for item in items if item is not _SKIP]
        if isinstance(value, str) and value.startswith(EXTERNAL_SETTING_PREFIX):
            external_key = value[len(EXTERNAL_SETTING_PREFIX):]
            if external_key not in self.configuration:
                self._logger.warning(
                    "Could not find external setting %s for %s in %s",
                    external_key,
                    path,
                    implementation.__name__,
                    extra={"setting": path, "external_key": external_key},
                )
                return _SKIP
            return self.configuration.get(external_key)
        return value

    def configure_behaviors(
        self,
        specification: ModuleSpecification,
        contract: type,
        implementation: type,
    ) -> list[OperationBehavior]:
        """Build each declared behavior from the shared services.

        A behavior that cannot be resolved or constructed is logged as a
        warning and skipped.
        """
        behaviors: list[OperationBehavior] = []
        for behavior_spec in specification.behaviors:
            try:
                behavior_type = self.type_registry.resolve(
                    behavior_spec.name, behavior_spec.library
                ).target
                behavior = self.injector.construct(behavior_type, self.shared_services)
                if not (
                    callable(getattr(behavior, "on_method_entry", None))
                    and callable(getattr(behavior, "on_method_exit", None))
                ):
                    raise ConfigurationError(
                        f"{behavior_type.__qualname__} is not an operation behavior",
                        behavior=behavior_spec.name,
                    )
            except CompositionError as exc:
                warning = BehaviorBuildError(
                    behavior_spec.name,
                    f"{contract.__name__}:{implementation.__name__}",
                    original_error=exc,
                )
                self._logger.warning(
                    str(warning), extra={"behavior": behavior_spec.name}
                )
                continue

            label = f":{behavior_spec.name} for {contract.__name__}:{implementation.__name__}"
            set_label = getattr(behavior, "set_behavior_label", None)
            if callable(set_label):
                set_label(label)
            behaviors.append(behavior)
        return behaviors
