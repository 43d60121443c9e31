# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Error classes for the strata composition engine.

This module contains specialized error classes for building module graphs,
providing detailed error messages and context for composition failures.
"""

from __future__ import annotations

from typing import Any, Final

from strata.errors.base import ErrorCategory, ErrorCode, ErrorSeverity, StrataError

# Define error categories and codes
COMPOSITION: Final = ErrorCategory.get_or_create("COMPOSITION")
COMPOSITION_ERROR: Final = ErrorCode.get_or_create("COMPOSITION_ERROR", COMPOSITION)
COMPOSITION_CONFIGURATION: Final = ErrorCode.get_or_create(
    "COMPOSITION_CONFIGURATION", COMPOSITION
)
COMPOSITION_DUPLICATE_REGISTRATION: Final = ErrorCode.get_or_create(
    "COMPOSITION_DUPLICATE_REGISTRATION", COMPOSITION
)
COMPOSITION_POLICY_VIOLATION: Final = ErrorCode.get_or_create(
    "COMPOSITION_POLICY_VIOLATION", COMPOSITION
)
COMPOSITION_TYPE_RESOLUTION: Final = ErrorCode.get_or_create(
    "COMPOSITION_TYPE_RESOLUTION", COMPOSITION
)
COMPOSITION_SERVICE_CREATION: Final = ErrorCode.get_or_create(
    "COMPOSITION_SERVICE_CREATION", COMPOSITION
)
COMPOSITION_BEHAVIOR_BUILD: Final = ErrorCode.get_or_create(
    "COMPOSITION_BEHAVIOR_BUILD", COMPOSITION
)

INTERCEPTION: Final = ErrorCategory.get_or_create("INTERCEPTION", parent=COMPOSITION)
INTERCEPTION_ERROR: Final = ErrorCode.get_or_create("INTERCEPTION_ERROR", INTERCEPTION)


def _type_name(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return getattr(value, "__qualname__", None) or str(value)


class CompositionError(StrataError):
    """Base class for all composition errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = COMPOSITION_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code=code,
            severity=severity,
            context=context,
            **kwargs,
        )


class ConfigurationError(CompositionError):
    """Raised when the architecture configuration is missing or malformed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = COMPOSITION_CONFIGURATION,
        severity: ErrorSeverity = ErrorSeverity.FATAL,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message, code=code, severity=severity, context=context, **kwargs
        )


class DuplicateRegistrationError(ConfigurationError):
    """Raised when two top-level modules expose the same contract."""

    def __init__(
        self,
        contract: Any,
        code: ErrorCode = COMPOSITION_DUPLICATE_REGISTRATION,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        name = _type_name(contract)
        super().__init__(
            f"Contract {name} is provided by more than one top-level module",
            code=code,
            context=context,
            contract=name,
            **kwargs,
        )


class PolicyViolationError(CompositionError):
    """Raised when a module depends on an archetype its own archetype may not use."""

    def __init__(
        self,
        receiver: Any,
        dependency: Any,
        receiver_archetype: Any = None,
        dependency_archetype: Any = None,
        message: str | None = None,
        code: ErrorCode = COMPOSITION_POLICY_VIOLATION,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        receiver_name = _type_name(receiver)
        dependency_name = _type_name(dependency)
        receiver_kind = getattr(receiver_archetype, "value", receiver_archetype)
        dependency_kind = getattr(dependency_archetype, "value", dependency_archetype)
        if message is None:
            message = (
                f"{receiver_kind or 'Unclassified'} Modules like {receiver_name} "
                f"may not depend on {dependency_kind or 'Unclassified'} Modules "
                f"such as {dependency_name}"
            )
        super().__init__(
            message,
            code=code,
            context=context,
            receiver=receiver_name,
            dependency=dependency_name,
            receiver_archetype=receiver_kind,
            dependency_archetype=dependency_kind,
            **kwargs,
        )


class ResolutionError(CompositionError):
    """Raised when a type name cannot be resolved to a loaded type."""

    def __init__(
        self,
        type_name: str,
        library_hint: str | None = None,
        message: str | None = None,
        original_error: Exception | None = None,
        code: ErrorCode = COMPOSITION_TYPE_RESOLUTION,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        if message is None:
            message = f"Could not resolve type {type_name}"
            if library_hint:
                message += f" from library {library_hint}"
        if original_error is not None:
            kwargs["original_error"] = str(original_error)
            self.__cause__ = original_error
        super().__init__(
            message,
            code=code,
            context=context,
            type_name=type_name,
            library_hint=library_hint,
            **kwargs,
        )


class ServiceCreationError(CompositionError):
    """Raised when an implementation or behavior instance cannot be created."""

    def __init__(
        self,
        message: str,
        service_type: Any = None,
        original_error: Exception | None = None,
        missing_parameters: list[str] | None = None,
        code: ErrorCode = COMPOSITION_SERVICE_CREATION,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        ctx = kwargs.copy()
        if service_type is not None:
            ctx["service_type_name"] = _type_name(service_type)

        if original_error is not None:
            ctx["error_type"] = type(original_error).__name__
            ctx["original_error"] = str(original_error)
            self.__cause__ = original_error

        if missing_parameters is not None:
            ctx["missing_parameters"] = missing_parameters

        super().__init__(
            message,
            code=code,
            severity=severity,
            context=context,
            **ctx,
        )


class BehaviorBuildError(CompositionError):
    """A behavior could not be built; it is logged and skipped, never raised out."""

    def __init__(
        self,
        behavior_name: str,
        module: str,
        original_error: Exception | None = None,
        code: ErrorCode = COMPOSITION_BEHAVIOR_BUILD,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        message = f"Behavior {behavior_name} could not be built for {module}"
        if original_error is not None:
            message += f": {original_error}"
            kwargs["error_type"] = type(original_error).__name__
            self.__cause__ = original_error
        super().__init__(
            message,
            code=code,
            severity=ErrorSeverity.WARNING,
            context=context,
            behavior=behavior_name,
            module=module,
            **kwargs,
        )


class InterceptionError(CompositionError):
    """Raised when a proxy cannot be built around an instance."""

    def __init__(
        self,
        message: str,
        contract: Any = None,
        implementation: Any = None,
        code: ErrorCode = INTERCEPTION_ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code=code,
            context=context,
            contract=_type_name(contract),
            implementation=_type_name(implementation),
            **kwargs,
        )
