# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework

"""
Configuration-driven composition of layered modules.

``add_app_architecture`` reads the ``Architecture`` section of the host
configuration, checks every module against the archetype policy and returns
a ``Composition`` whose providers hand out intercepted contract instances.
"""

from strata.composition.architecture import Composition, add_app_architecture
from strata.composition.builder import ServiceBuilder
from strata.composition.constructor import (
    ConstructorInjector,
    injection_constructor,
    unwrap_annotation,
)
from strata.composition.errors import (
    BehaviorBuildError,
    CompositionError,
    ConfigurationError,
    DuplicateRegistrationError,
    InterceptionError,
    PolicyViolationError,
    ResolutionError,
    ServiceCreationError,
)
from strata.composition.lifetime import (
    ScopedPolicy,
    ServiceLifetime,
    SingletonPolicy,
    TransientPolicy,
)
from strata.composition.options import ServiceOptions
from strata.composition.pool import ServicePool
from strata.composition.provider import (
    ModuleProvider,
    ServiceDescriptor,
    ServiceRegistration,
)
from strata.composition.registry import (
    TypeDescriptor,
    TypeRegistry,
    default_registry,
    register_type,
)
from strata.composition.specification import (
    ArchitectureSpecification,
    BehaviorSpec,
    ImplementationSource,
    ImplementationSpec,
    ModuleSpecification,
)

__all__ = [
    # Entry points
    "Composition",
    "add_app_architecture",
    "ServiceBuilder",
    # Specification
    "ArchitectureSpecification",
    "BehaviorSpec",
    "ImplementationSource",
    "ImplementationSpec",
    "ModuleSpecification",
    # Building blocks
    "ConstructorInjector",
    "injection_constructor",
    "unwrap_annotation",
    "ModuleProvider",
    "ServiceDescriptor",
    "ServiceRegistration",
    "ServiceOptions",
    "ServicePool",
    "TypeDescriptor",
    "TypeRegistry",
    "default_registry",
    "register_type",
    # Lifetimes
    "ServiceLifetime",
    "SingletonPolicy",
    "ScopedPolicy",
    "TransientPolicy",
    # Errors
    "BehaviorBuildError",
    "CompositionError",
    "ConfigurationError",
    "DuplicateRegistrationError",
    "InterceptionError",
    "PolicyViolationError",
    "ResolutionError",
    "ServiceCreationError",
]
