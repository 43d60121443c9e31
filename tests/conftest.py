"""Top-level pytest configuration for the strata framework."""

import copy
import logging
import os

import pytest

# Import error modules for their side effects so the error registry is populated
import strata.composition.errors  # noqa: F401
from strata.composition import ServicePool, TypeRegistry
from strata.config import StrataSettings
from strata.logging import ROOT_LOGGER_NAME, LoggerFactory, LoggingSettings

from sample_app.journal import Journal

INVENTORY_MODULE = {
    "LogicalName": "Inventory",
    "Contract": "IInventoryAccess",
    "ContractLibrary": "sample_app.contracts",
    "Lifetime": "Singleton",
    "Implementation": {"Source": "Module", "Library": "sample_app.inventory"},
}

PRICING_MODULE = {
    "LogicalName": "Pricing",
    "Contract": "IPricingEngine",
    "ContractLibrary": "sample_app.contracts",
    "Lifetime": "Transient",
    "Implementation": {
        "Library": "sample_app.pricing",
        "Settings": {
            "Currency": "EXT:Shop:Currency",
            "UnitPrice": 2.5,
            "Discounts": {"apple": 0.2},
        },
    },
    "Dependencies": [INVENTORY_MODULE],
}

SHOP_CONFIG = {
    "Shop": {"Currency": "EUR"},
    "Architecture": {
        "GlobalBehaviors": [{"Name": "AuditBehavior", "Library": "sample_app.behaviors"}],
        "Modules": [
            {
                "LogicalName": "Orders",
                "Contract": "IOrderManager",
                "ContractLibrary": "sample_app.contracts",
                "Lifetime": "Singleton",
                "Implementation": {"Source": "Module", "Library": "sample_app.orders"},
                "Dependencies": [
                    PRICING_MODULE,
                    {
                        "Contract": "LoggerFactory",
                        "ContractLibrary": "strata.logging",
                        "Implementation": {"Source": "Shared"},
                    },
                ],
            }
        ],
    },
}


@pytest.fixture(autouse=True)
def clear_strata_env(monkeypatch):
    """Keep STRATA_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("STRATA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_strata_logger():
    """Undo handler, level and propagation changes made by configure_logging."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def type_registry(tmp_path):
    return TypeRegistry(tmp_path)


@pytest.fixture
def settings(tmp_path):
    return StrataSettings(execution_directory=tmp_path)


@pytest.fixture
def journal():
    return Journal()


@pytest.fixture
def logger_factory():
    return LoggerFactory(LoggingSettings(console_enabled=False))


@pytest.fixture
def shared_services(logger_factory, journal):
    return ServicePool.of(logger_factory, journal)


@pytest.fixture
def shop_config():
    return copy.deepcopy(SHOP_CONFIG)
