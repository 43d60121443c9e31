# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Component archetypes and the marker bases that attach them to contracts.

A contract declares its archetype by deriving from exactly one of the marker
bases below. Implementations inherit the tag from the contract they
implement.
"""

from __future__ import annotations

from abc import ABC
from enum import Enum
from typing import Any, ClassVar


class Archetype(str, Enum):
    """The closed set of component kinds in a layered architecture."""

    UTILITY = "Utility"
    RESOURCE_ACCESS = "ResourceAccess"
    ENGINE = "Engine"
    MANAGER = "Manager"
    CLIENT = "Client"
    APPLICATION_CONTAINER = "ApplicationContainer"

    @classmethod
    def parse(cls, value: str | Archetype) -> Archetype:
        """Parse an archetype name, ignoring case, spaces and underscores."""
        if isinstance(value, Archetype):
            return value
        normalized = value.replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown archetype: {value}")


class SystemComponent(ABC):
    """Root of every archetype marker."""

    __archetype__: ClassVar[Archetype | None] = None


class UtilityService(SystemComponent):
    """Cross-cutting infrastructure usable from every layer."""

    __archetype__ = Archetype.UTILITY


class ResourceAccessService(SystemComponent):
    """Access to a system resource such as a store or an external service."""

    __archetype__ = Archetype.RESOURCE_ACCESS


class EngineService(SystemComponent):
    """Business rules and algorithms."""

    __archetype__ = Archetype.ENGINE


class ManagerService(SystemComponent):
    """Orchestration of engines and resource access for a use case."""

    __archetype__ = Archetype.MANAGER


class ClientService(SystemComponent):
    """Entry point facing users or other systems."""

    __archetype__ = Archetype.CLIENT


class ApplicationContainer(SystemComponent):
    """The composition root hosting the top-level modules."""

    __archetype__ = Archetype.APPLICATION_CONTAINER


def archetype_tags(component: Any) -> list[Archetype]:
    """Return the distinct archetype tags declared along ``component``'s MRO.

    Tags are listed most-derived first. Classes that merely inherit a tag do
    not contribute a second copy of it.
    """
    cls = component if isinstance(component, type) else type(component)
    tags: list[Archetype] = []
    for klass in cls.__mro__:
        tag = klass.__dict__.get("__archetype__")
        if isinstance(tag, Archetype) and tag not in tags:
            tags.append(tag)
    return tags
