# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Interception of contract calls: proxies, behaviors and per-call context.
"""

from strata.interception.behaviors import CallTimerBehavior, OperationBehavior
from strata.interception.context import MethodContext
from strata.interception.proxy import (
    PassthroughProxy,
    build_proxy,
    contract_operations,
    unwrap,
)

__all__ = [
    "CallTimerBehavior",
    "MethodContext",
    "OperationBehavior",
    "PassthroughProxy",
    "build_proxy",
    "contract_operations",
    "unwrap",
]
