# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""Unified error registry implementation for strata."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from strata.errors.base import ErrorCategory, ErrorCode


class ErrorRegistry:
    """Singleton registry for all error codes and categories in strata."""

    _instance: ErrorRegistry | None = None
    _lock = threading.RLock()

    def __new__(cls) -> ErrorRegistry:
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._categories = {}
                instance._codes = {}
                cls._instance = instance
            return cls._instance

    def __init__(self) -> None:
        if not hasattr(self, "_categories"):
            self._categories: dict[str, ErrorCategory] = {}
        if not hasattr(self, "_codes"):
            self._codes: dict[str, ErrorCode] = {}

    def register_category(
        self, name: str, parent: ErrorCategory | None = None
    ) -> ErrorCategory:
        """Register a category in the registry.

        Args:
            name: The category name
            parent: Optional parent category

        Returns:
            The registered ErrorCategory
        """
        with self._lock:
            if name in self._categories:
                return self._categories[name]

            from strata.errors.base import ErrorCategory

            category = ErrorCategory(name, parent)
            self._categories[name] = category
            return category

    def register_code(self, code: str, category_name: str) -> ErrorCode:
        """Register a code under a category, creating the category if needed.

        Args:
            code: The error code
            category_name: The category name

        Returns:
            The registered ErrorCode
        """
        with self._lock:
            key = f"{category_name}.{code}"
            if key in self._codes:
                return self._codes[key]

            category = self.get_category(category_name)

            from strata.errors.base import ErrorCode

            error_code = ErrorCode(code, category)
            self._codes[key] = error_code
            self._codes.setdefault(code, error_code)
            return error_code

    def get_category(
        self, name: str, parent: ErrorCategory | None = None
    ) -> ErrorCategory:
        """Get or create a category."""
        with self._lock:
            if name in self._categories:
                return self._categories[name]
            return self.register_category(name, parent)

    def get_code(self, code: str, category_name: str = "INTERNAL") -> ErrorCode:
        """Get or create an error code."""
        with self._lock:
            key = f"{category_name}.{code}"
            if key in self._codes:
                return self._codes[key]
            return self.register_code(code, category_name)

    def lookup_category(self, name: str) -> ErrorCategory | None:
        """Look up a category without creating it."""
        return self._categories.get(name)

    def lookup_code(self, code: str) -> ErrorCode | None:
        """Look up an error code without creating it if missing.

        Args:
            code: The error code string, bare or ``CATEGORY.CODE``

        Returns:
            The ErrorCode or None if not found
        """
        if code in self._codes:
            return self._codes[code]

        for key, error_code in self._codes.items():
            if key.endswith(f".{code}"):
                return error_code

        logging.getLogger(__name__).debug("Error code '%s' not found in registry", code)
        return None

    def get_all_categories(self) -> list[ErrorCategory]:
        """Return every registered category."""
        with self._lock:
            return list(self._categories.values())

    def get_all_codes(self) -> list[ErrorCode]:
        """Return every registered code (each once)."""
        with self._lock:
            unique: dict[int, ErrorCode] = {}
            for error_code in self._codes.values():
                unique.setdefault(id(error_code), error_code)
            return list(unique.values())


registry = ErrorRegistry()
