import pytest

from strata.composition import (
    ArchitectureSpecification,
    BehaviorSpec,
    ConfigurationError,
    ImplementationSource,
    ModuleSpecification,
    ServiceLifetime,
)


def test_module_specification_from_pascal_case_keys():
    spec = ModuleSpecification.from_config(
        {
            "LogicalName": "Orders",
            "Contract": "IOrderManager",
            "ContractLibrary": "shop.contracts",
            "Lifetime": "singleton",
            "Implementation": {
                "Source": "module",
                "TypeName": "OrderManager",
                "Library": "shop.orders",
                "Settings": {"Currency": "EUR"},
            },
            "Behaviors": [{"Name": "CallTimerBehavior", "Library": "strata.interception"}],
        }
    )

    assert spec.display_name == "Orders"
    assert spec.contract_library == "shop.contracts"
    assert spec.lifetime is ServiceLifetime.SINGLETON
    assert spec.implementation.source is ImplementationSource.MODULE
    assert spec.implementation.type_name == "OrderManager"
    assert spec.implementation.settings == {"Currency": "EUR"}
    assert spec.behaviors[0].library == "strata.interception"
    assert spec.behaviors[0].is_global is False


def test_assembly_spellings_are_accepted():
    spec = ModuleSpecification.from_config(
        {
            "Contract": "IPricingEngine",
            "ContractAssembly": "shop.contracts",
            "Implementation": {"Assembly": "shop.pricing", "ServiceOptions": {"A": 1}},
            "Behaviors": [{"Name": "Audit", "AssemblyName": "shop.behaviors"}],
        }
    )

    assert spec.contract_library == "shop.contracts"
    assert spec.implementation.library == "shop.pricing"
    assert spec.implementation.settings == {"A": 1}
    assert spec.behaviors[0].library == "shop.behaviors"


def test_snake_case_field_names_are_accepted():
    spec = ModuleSpecification(contract="IClock", contract_library="shop.contracts")

    assert spec.display_name == "IClock"
    assert spec.lifetime is ServiceLifetime.TRANSIENT
    assert spec.implementation.source is ImplementationSource.MODULE
    assert spec.dependencies == []


def test_null_lists_become_empty():
    spec = ModuleSpecification.from_config(
        {"Contract": "IClock", "Dependencies": None, "Behaviors": None}
    )

    assert spec.dependencies == []
    assert spec.behaviors == []


def test_shared_source_is_parsed_case_insensitively():
    spec = ModuleSpecification.from_config(
        {"Contract": "LoggerFactory", "Implementation": {"Source": "SHARED"}}
    )

    assert spec.implementation.is_shared


def test_dependencies_are_parsed_recursively():
    spec = ModuleSpecification.from_config(
        {
            "Contract": "IOrderManager",
            "Dependencies": [
                {"Contract": "IPricingEngine", "Dependencies": [{"Contract": "IInventoryAccess"}]}
            ],
        }
    )

    assert spec.dependencies[0].contract == "IPricingEngine"
    assert spec.dependencies[0].dependencies[0].contract == "IInventoryAccess"


@pytest.mark.parametrize(
    "data",
    [
        {"Contract": "IClock", "Lifetime": "Forever"},
        {"Contract": "IClock", "Implementation": {"Source": "Plugin"}},
        {"Contract": ""},
        {"LogicalName": "NoContract"},
    ],
)
def test_malformed_modules_raise_configuration_error(data):
    with pytest.raises(ConfigurationError):
        ModuleSpecification.from_config(data)


def test_malformed_module_error_names_the_module():
    with pytest.raises(ConfigurationError) as exc_info:
        ModuleSpecification.from_config({"LogicalName": "Broken", "Lifetime": "Never"})

    assert exc_info.value.context["module"] == "Broken"


def test_duplicate_behavior_names_are_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        ModuleSpecification.from_config(
            {
                "Contract": "IClock",
                "Behaviors": [{"Name": "Audit"}, {"Name": "Audit", "Library": "other"}],
            }
        )

    assert "Audit" in exc_info.value.message


def test_add_global_behaviors_appends_copies_marked_global():
    spec = ModuleSpecification(contract="IClock", behaviors=[BehaviorSpec(name="Trace")])
    shared = BehaviorSpec(name="Audit", library="shop.behaviors")

    spec.add_global_behaviors([shared])

    assert [b.name for b in spec.behaviors] == ["Trace", "Audit"]
    assert spec.behaviors[1].is_global
    assert spec.behaviors[1].library == "shop.behaviors"
    assert shared.is_global is False
    assert [b.name for b in spec.global_behaviors] == ["Audit"]


def test_add_global_behaviors_promotes_a_local_declaration_in_place():
    spec = ModuleSpecification(
        contract="IClock",
        behaviors=[BehaviorSpec(name="Audit"), BehaviorSpec(name="Trace")],
    )

    spec.add_global_behaviors([BehaviorSpec(name="Audit", library="elsewhere")])

    assert [b.name for b in spec.behaviors] == ["Audit", "Trace"]
    assert spec.behaviors[0].is_global
    assert spec.behaviors[0].library is None


def test_add_global_behaviors_is_idempotent():
    spec = ModuleSpecification(contract="IClock")
    audit = BehaviorSpec(name="Audit")

    spec.add_global_behaviors([audit])
    spec.add_global_behaviors([audit])

    assert len(spec.behaviors) == 1


def test_architecture_specification_from_config():
    architecture = ArchitectureSpecification.from_config(
        {
            "GlobalBehaviors": [{"Name": "CallTimerBehavior"}],
            "Modules": [{"Contract": "IOrderManager"}],
        }
    )

    assert architecture.global_behaviors[0].name == "CallTimerBehavior"
    assert architecture.modules[0].contract == "IOrderManager"


def test_architecture_without_modules():
    assert ArchitectureSpecification.from_config(None).modules is None
    assert ArchitectureSpecification.from_config({"Modules": []}).modules == []
    assert ArchitectureSpecification.from_config({"GlobalBehaviors": None}).global_behaviors == []


def test_malformed_architecture_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        ArchitectureSpecification.from_config({"Modules": [{"Lifetime": "Singleton"}]})


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Singleton", ServiceLifetime.SINGLETON),
        ("scoped", ServiceLifetime.SCOPED),
        (" TRANSIENT ", ServiceLifetime.TRANSIENT),
        (ServiceLifetime.SINGLETON, ServiceLifetime.SINGLETON),
    ],
)
def test_lifetime_parse(value, expected):
    assert ServiceLifetime.parse(value) is expected
