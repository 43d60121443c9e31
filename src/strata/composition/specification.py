# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Declarative module specifications.

A specification is read once from the ``Architecture`` section of the host
configuration. Keys are PascalCase (``LogicalName``, ``Contract``,
``Implementation``...) with the older ``*Assembly`` spellings accepted as
aliases; snake_case field names are accepted as well.

Example::

    {
      "Architecture": {
        "GlobalBehaviors": [{"Name": "CallTimerBehavior", "Library": "strata.interception"}],
        "Modules": [
          {
            "LogicalName": "Orders",
            "Contract": "IOrderManager",
            "ContractLibrary": "shop.contracts",
            "Lifetime": "Singleton",
            "Implementation": {
              "Source": "Module",
              "Library": "shop.orders",
              "Settings": {"Currency": "EXT:Shop:Currency"}
            },
            "Dependencies": [...]
          }
        ]
      }
    }
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_pascal

from strata.composition.errors import ConfigurationError
from strata.composition.lifetime import ServiceLifetime


class ImplementationSource(str, Enum):
    """Where the instance behind a dependency comes from."""

    MODULE = "Module"
    SHARED = "Shared"

    @classmethod
    def parse(cls, value: Any) -> ImplementationSource:
        if isinstance(value, ImplementationSource):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        raise ValueError(
            f"Unsupported implementation source {value!r}; expected Module or Shared"
        )


class _SpecModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )


class BehaviorSpec(_SpecModel):
    """A cross-cutting behavior attached to a module."""

    name: str = Field(min_length=1)
    library: str | None = Field(
        default=None,
        validation_alias=AliasChoices("Library", "AssemblyName", "Assembly", "library"),
    )
    is_global: bool = False


class ImplementationSpec(_SpecModel):
    """Where and how a module's implementation is found."""

    source: ImplementationSource = ImplementationSource.MODULE
    type_name: str | None = Field(
        default=None, validation_alias=AliasChoices("TypeName", "Type", "type_name")
    )
    library: str | None = Field(
        default=None, validation_alias=AliasChoices("Library", "Assembly", "library")
    )
    settings: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("Settings", "ServiceOptions", "settings"),
    )

    @field_validator("source", mode="before")
    @classmethod
    def parse_source(cls, v: Any) -> ImplementationSource:
        return ImplementationSource.parse(v)

    @property
    def is_shared(self) -> bool:
        return self.source is ImplementationSource.SHARED


class ModuleSpecification(_SpecModel):
    """One module of the architecture and, recursively, its dependencies."""

    logical_name: str | None = None
    contract: str = Field(min_length=1)
    contract_library: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "ContractLibrary", "ContractAssembly", "contract_library"
        ),
    )
    lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT
    implementation: ImplementationSpec = Field(default_factory=ImplementationSpec)
    dependencies: list[ModuleSpecification] = Field(default_factory=list)
    behaviors: list[BehaviorSpec] = Field(default_factory=list)

    @field_validator("lifetime", mode="before")
    @classmethod
    def parse_lifetime(cls, v: Any) -> ServiceLifetime:
        return ServiceLifetime.parse(v)

    @field_validator("dependencies", "behaviors", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def check_behavior_names(self) -> ModuleSpecification:
        seen: set[str] = set()
        for behavior in self.behaviors:
            if behavior.name in seen:
                raise ValueError(
                    f"Behavior {behavior.name} is declared more than once "
                    f"on module {self.display_name}"
                )
            seen.add(behavior.name)
        return self

    @property
    def display_name(self) -> str:
        return self.logical_name or self.contract

    @property
    def global_behaviors(self) -> list[BehaviorSpec]:
        return [behavior for behavior in self.behaviors if behavior.is_global]

    def add_global_behaviors(self, global_behaviors: Iterable[BehaviorSpec]) -> None:
        """Merge architecture-wide behaviors into this module.

        A behavior already declared on the module keeps its position and is
        promoted to global; any other is appended as a global copy.
        """
        merged = list(self.behaviors)
        for behavior in global_behaviors:
            index = next(
                (i for i, b in enumerate(merged) if b.name == behavior.name), None
            )
            if index is not None:
                if not merged[index].is_global:
                    merged[index] = merged[index].model_copy(update={"is_global": True})
            else:
                merged.append(behavior.model_copy(update={"is_global": True}))
        self.behaviors = merged

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> ModuleSpecification:
        """Validate one module entry, raising ConfigurationError when malformed."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Malformed module specification: {exc}",
                module=_entry_name(data),
            ) from exc


class ArchitectureSpecification(_SpecModel):
    """The ``Architecture`` section: top-level modules and global behaviors."""

    modules: list[ModuleSpecification] | None = None
    global_behaviors: list[BehaviorSpec] = Field(default_factory=list)

    @field_validator("global_behaviors", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> ArchitectureSpecification:
        """Validate the section, raising ConfigurationError when malformed."""
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise ConfigurationError(
                f"Malformed architecture configuration: {exc}"
            ) from exc


def _entry_name(data: Any) -> str | None:
    if not isinstance(data, Mapping):
        return None
    for key in ("LogicalName", "logical_name", "Contract", "contract"):
        if data.get(key):
            return str(data[key])
    return None
