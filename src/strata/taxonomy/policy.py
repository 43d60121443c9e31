# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""Which archetypes may depend on which."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Final

from strata.taxonomy.archetypes import Archetype, archetype_tags

ALLOWED_DEPENDENCIES: Final[Mapping[Archetype, frozenset[Archetype]]] = (
    MappingProxyType(
        {
            Archetype.APPLICATION_CONTAINER: frozenset(
                {Archetype.MANAGER, Archetype.CLIENT, Archetype.UTILITY}
            ),
            Archetype.CLIENT: frozenset({Archetype.UTILITY, Archetype.ENGINE}),
            Archetype.MANAGER: frozenset(
                {Archetype.UTILITY, Archetype.ENGINE, Archetype.RESOURCE_ACCESS}
            ),
            Archetype.ENGINE: frozenset(
                {Archetype.UTILITY, Archetype.RESOURCE_ACCESS}
            ),
            Archetype.RESOURCE_ACCESS: frozenset({Archetype.UTILITY}),
            Archetype.UTILITY: frozenset({Archetype.UTILITY}),
        }
    )
)


def archetype_of(component: Any) -> Archetype | None:
    """Return the archetype of a type (or instance), or None when untagged.

    A type carrying more than one tag has no well-defined archetype and
    also yields None; the type registry rejects such types up front.
    """
    if isinstance(component, Archetype):
        return component
    if component is None:
        return None
    tags = archetype_tags(component)
    if len(tags) != 1:
        return None
    return tags[0]


def allowed_dependencies(archetype: Archetype | None) -> frozenset[Archetype]:
    """Return the archetypes ``archetype`` may depend on (empty for None)."""
    if archetype is None:
        return frozenset()
    return ALLOWED_DEPENDENCIES.get(archetype, frozenset())


def is_valid_dependency(receiver: Any, dependency: Any) -> bool:
    """Check whether ``receiver`` may take a dependency on ``dependency``.

    Both arguments may be types, instances or ``Archetype`` values.
    """
    receiver_archetype = archetype_of(receiver)
    dependency_archetype = archetype_of(dependency)
    if receiver_archetype is None or dependency_archetype is None:
        return False
    return dependency_archetype in allowed_dependencies(receiver_archetype)
