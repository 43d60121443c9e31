import pytest

from strata.composition import (
    BehaviorBuildError,
    CompositionError,
    ConfigurationError,
    DuplicateRegistrationError,
    InterceptionError,
    PolicyViolationError,
    ResolutionError,
    ServiceCreationError,
)
from strata.composition.errors import (
    COMPOSITION,
    COMPOSITION_CONFIGURATION,
    INTERCEPTION,
    INTERCEPTION_ERROR,
)
from strata.errors import (
    INTERNAL,
    INTERNAL_ERROR,
    ErrorCategory,
    ErrorCode,
    ErrorRegistry,
    ErrorSeverity,
    StrataError,
    registry,
)


class FakeError(StrataError):
    pass


def test_strata_error_cannot_be_instantiated_directly():
    with pytest.raises(TypeError):
        StrataError("direct")


def test_code_must_be_an_error_code():
    with pytest.raises(TypeError):
        FakeError("bad code", code="NOT_A_CODE")


def test_defaults_and_string_form():
    error = FakeError("something broke", detail=1)

    assert error.code is INTERNAL_ERROR
    assert error.category is INTERNAL
    assert error.severity is ErrorSeverity.ERROR
    assert error.context == {"detail": 1}
    assert str(error) == "INTERNAL_ERROR: something broke"


def test_context_helpers():
    error = FakeError("broken", context={"a": 1})

    assert error.add_context("b", 2) is error
    copy = error.with_context({"c": 3})

    assert copy is not error
    assert isinstance(copy, FakeError)
    assert copy.context == {"a": 1, "b": 2, "c": 3}
    assert error.context == {"a": 1, "b": 2}
    assert copy.message == "broken"


def test_to_dict():
    data = FakeError("broken", severity=ErrorSeverity.WARNING, key="value").to_dict()

    assert data["code"] == "INTERNAL_ERROR"
    assert data["category"] == "INTERNAL"
    assert data["severity"] == "WARNING"
    assert data["context"] == {"key": "value"}
    assert "timestamp" in data


def test_registry_is_a_singleton():
    assert ErrorRegistry() is registry


def test_categories_and_codes_are_shared():
    assert ErrorCategory.get_or_create("COMPOSITION") is COMPOSITION
    assert ErrorCategory.get_by_name("COMPOSITION") is COMPOSITION
    assert ErrorCode.get_or_create("COMPOSITION_CONFIGURATION", COMPOSITION) is COMPOSITION_CONFIGURATION
    assert ErrorCode.get_by_code("COMPOSITION_CONFIGURATION") is COMPOSITION_CONFIGURATION
    assert ErrorCode.get_by_code("COMPOSITION.COMPOSITION_CONFIGURATION") is COMPOSITION_CONFIGURATION


def test_missing_code_lookup():
    assert ErrorCode.get_by_code("NO_SUCH_CODE_ANYWHERE", raise_if_missing=False) is None
    with pytest.raises(ValueError):
        ErrorCode.get_by_code("NO_SUCH_CODE_ANYWHERE")


def test_category_hierarchy():
    assert INTERCEPTION.is_subcategory_of(COMPOSITION)
    assert not COMPOSITION.is_subcategory_of(INTERCEPTION)
    assert INTERCEPTION_ERROR in ErrorCode.filter_by_category(COMPOSITION)
    assert INTERCEPTION_ERROR not in ErrorCode.filter_by_category(INTERNAL)


@pytest.mark.parametrize(
    "error,code,severity",
    [
        (CompositionError("x"), "COMPOSITION_ERROR", ErrorSeverity.ERROR),
        (ConfigurationError("x"), "COMPOSITION_CONFIGURATION", ErrorSeverity.FATAL),
        (DuplicateRegistrationError("IOrders"), "COMPOSITION_DUPLICATE_REGISTRATION", ErrorSeverity.FATAL),
        (PolicyViolationError("A", "B"), "COMPOSITION_POLICY_VIOLATION", ErrorSeverity.ERROR),
        (ResolutionError("IOrders"), "COMPOSITION_TYPE_RESOLUTION", ErrorSeverity.ERROR),
        (ServiceCreationError("x"), "COMPOSITION_SERVICE_CREATION", ErrorSeverity.ERROR),
        (BehaviorBuildError("Audit", "IOrders:Orders"), "COMPOSITION_BEHAVIOR_BUILD", ErrorSeverity.WARNING),
        (InterceptionError("x"), "INTERCEPTION_ERROR", ErrorSeverity.ERROR),
    ],
)
def test_composition_error_codes(error, code, severity):
    assert isinstance(error, CompositionError)
    assert str(error.code) == code
    assert error.severity is severity


def test_duplicate_registration_is_a_configuration_error():
    assert issubclass(DuplicateRegistrationError, ConfigurationError)


def test_policy_violation_message_without_archetypes():
    error = PolicyViolationError("IReport", "IOrders")

    assert error.message == (
        "Unclassified Modules like IReport may not depend on Unclassified Modules such as IOrders"
    )


def test_resolution_error_message():
    assert ResolutionError("IOrders").message == "Could not resolve type IOrders"
    assert (
        ResolutionError("IOrders", "shop.contracts").message
        == "Could not resolve type IOrders from library shop.contracts"
    )


def test_service_creation_error_keeps_the_cause():
    cause = RuntimeError("boom")
    error = ServiceCreationError("failed", service_type=int, original_error=cause)

    assert error.__cause__ is cause
    assert error.context["service_type_name"] == "int"
    assert error.context["original_error"] == "boom"


def test_behavior_build_error_message():
    error = BehaviorBuildError("Audit", "IOrders:Orders", original_error=ValueError("nope"))

    assert error.message == "Behavior Audit could not be built for IOrders:Orders: nope"
    assert error.context["error_type"] == "ValueError"
