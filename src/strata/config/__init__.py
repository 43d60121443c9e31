# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Configuration for strata: engine settings and the ambient configuration view.
"""

from strata.config.ambient import AmbientConfiguration
from strata.config.settings import StrataSettings

__all__ = ["AmbientConfiguration", "StrataSettings"]
