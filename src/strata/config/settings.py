# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Runtime settings for the composition engine.

Settings are read from ``STRATA_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StrataSettings(BaseSettings):
    """Settings controlling how an architecture is composed."""

    model_config = SettingsConfigDict(
        env_prefix="STRATA_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    architecture_section: str = Field(
        default="Architecture",
        description="Configuration section holding Modules and GlobalBehaviors",
    )
    execution_directory: Path = Field(
        default_factory=Path.cwd,
        description="Directory searched for component libraries not importable by name",
    )
    serialize_singleton_creation: bool = Field(
        default=True,
        description="Guard the first construction of a singleton with a lock",
    )

    @field_validator("architecture_section")
    @classmethod
    def validate_section(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("architecture_section must not be empty")
        return v.strip()

    @classmethod
    def load(cls) -> StrataSettings:
        """Load settings from environment variables or defaults."""
        return cls()
