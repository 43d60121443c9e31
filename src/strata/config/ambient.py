# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Read-only view over the host's configuration document.

Paths are colon separated and matched case-insensitively, so
``"Architecture:Modules"`` and ``"architecture:modules"`` address the same
node. Integer segments index into lists.
"""

from __future__ import annotations

import copy
import json
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

PATH_SEPARATOR = ":"
ENV_NESTED_DELIMITER = "__"

_MISSING = object()


def _split(path: str) -> list[str]:
    return [segment for segment in path.split(PATH_SEPARATOR) if segment != ""]


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        if segment in node:
            return node[segment]
        lowered = segment.lower()
        for key, value in node.items():
            if isinstance(key, str) and key.lower() == lowered:
                return value
        return _MISSING
    if isinstance(node, list | tuple) and segment.isdigit():
        index = int(segment)
        if index < len(node):
            return node[index]
    return _MISSING


def _deep_merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in overlay.items():
        existing_key = next(
            (k for k in base if isinstance(k, str) and k.lower() == str(key).lower()),
            key,
        )
        current = base.get(existing_key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            base[existing_key] = _deep_merge(current, value)
        else:
            base[existing_key] = copy.deepcopy(value)
    return base


class AmbientConfiguration(Mapping[str, Any]):
    """A nested configuration document with path lookup."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(data or {}))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AmbientConfiguration:
        return cls(data)

    @classmethod
    def from_json_file(cls, path: str | Path) -> AmbientConfiguration:
        """Load a JSON document from disk."""
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")
        return cls(data)

    @classmethod
    def from_sources(
        cls,
        *sources: Mapping[str, Any],
        env_prefix: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> AmbientConfiguration:
        """Merge several documents, later ones winning.

        When ``env_prefix`` is given, environment variables starting with it
        are overlaid last. ``__`` separates nested keys, so
        ``APP_PRICING__CURRENCY=EUR`` sets ``Pricing:Currency``.
        """
        merged: dict[str, Any] = {}
        for source in sources:
            _deep_merge(merged, source)

        if env_prefix is not None:
            environ = os.environ if environ is None else environ
            prefix = env_prefix.lower()
            for name, value in environ.items():
                if not name.lower().startswith(prefix):
                    continue
                segments = [
                    s for s in name[len(env_prefix):].split(ENV_NESTED_DELIMITER) if s
                ]
                if not segments:
                    continue
                overlay: dict[str, Any] = {segments[-1]: value}
                for segment in reversed(segments[:-1]):
                    overlay = {segment: overlay}
                _deep_merge(merged, overlay)

        return cls(merged)

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at ``path`` or ``default`` when any segment is missing."""
        node: Any = self._data
        for segment in _split(path):
            node = _child(node, segment)
            if node is _MISSING:
                return default
        return node

    def section(self, path: str) -> AmbientConfiguration:
        """Return the sub-document at ``path`` (empty when absent or not a mapping)."""
        node = self.get(path)
        if isinstance(node, Mapping):
            return AmbientConfiguration(node)
        return AmbientConfiguration()

    def merged(self, overlay: Mapping[str, Any]) -> AmbientConfiguration:
        """Return a new configuration with ``overlay`` merged on top."""
        return AmbientConfiguration(_deep_merge(copy.deepcopy(self._data), overlay))

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        return self.get(path, _MISSING) is not _MISSING

    def __getitem__(self, path: str) -> Any:
        value = self.get(path, _MISSING)
        if value is _MISSING:
            raise KeyError(path)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"AmbientConfiguration({self._data!r})"
