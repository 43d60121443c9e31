# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Archetypes and the layered dependency policy between them.
"""

from strata.taxonomy.archetypes import (
    ApplicationContainer,
    Archetype,
    ClientService,
    EngineService,
    ManagerService,
    ResourceAccessService,
    SystemComponent,
    UtilityService,
    archetype_tags,
)
from strata.taxonomy.policy import (
    ALLOWED_DEPENDENCIES,
    allowed_dependencies,
    archetype_of,
    is_valid_dependency,
)

__all__ = [
    "ALLOWED_DEPENDENCIES",
    "ApplicationContainer",
    "Archetype",
    "ClientService",
    "EngineService",
    "ManagerService",
    "ResourceAccessService",
    "SystemComponent",
    "UtilityService",
    "allowed_dependencies",
    "archetype_of",
    "archetype_tags",
    "is_valid_dependency",
]
