# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""Per-call state shared by the behaviors around one proxied call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class MethodContext:
    """One invocation of a contract operation.

    ``return_value`` is set once the call returns (after awaiting, for
    coroutine operations); ``exception`` is set instead when it raises.
    """

    method_name: str
    parameters: tuple[Any, ...] = ()
    keyword_parameters: dict[str, Any] = field(default_factory=dict)
    return_value: Any = None
    exception: BaseException | None = None
    items: dict[str, Any] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.exception is None

    @property
    def faulted(self) -> bool:
        return self.exception is not None
