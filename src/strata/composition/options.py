# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""Per-implementation settings objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal


class ServiceOptions(BaseModel):
    """Base class for the settings object of a module implementation.

    A library declares at most one subclass; the builder fills it from the
    module's ``Settings`` block and adds it to the module's private pool so
    the implementation can take it as a constructor parameter. Fields accept
    their own name or its PascalCase form.
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )
