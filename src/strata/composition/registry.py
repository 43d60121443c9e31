# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Type resolution for composed modules.

Configuration names types by their simple class name plus an optional
library hint (an importable module name, or a module file found relative to
the execution directory). ``TypeRegistry`` turns those names into loaded
classes and remembers every type it has handed out.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, TypeVar, overload

from strata.composition.errors import ConfigurationError, ResolutionError
from strata.logging import get_logger
from strata.taxonomy import Archetype, archetype_of, archetype_tags

T = TypeVar("T", bound=type)


@dataclass(frozen=True)
class TypeDescriptor:
    """A resolved type and where it came from."""

    name: str
    target: type
    library: str | None = None
    archetype: Archetype | None = field(default=None, compare=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.target.__module__}.{self.target.__qualname__}"

    @property
    def is_abstract(self) -> bool:
        return inspect.isabstract(self.target)


def _check_archetype(target: type, archetype: Archetype | None = None) -> None:
    tags = archetype_tags(target)
    if len(tags) > 1:
        raise ConfigurationError(
            f"{target.__qualname__} carries more than one archetype: "
            f"{', '.join(tag.value for tag in tags)}",
            type_name=target.__qualname__,
        )
    if archetype is not None and tags and tags[0] is not archetype:
        raise ConfigurationError(
            f"{target.__qualname__} is already a {tags[0].value} component "
            f"and cannot be registered as {archetype.value}",
            type_name=target.__qualname__,
        )


def _defined_in(cls: type, module: ModuleType) -> bool:
    owner = getattr(cls, "__module__", "")
    return owner == module.__name__ or owner.startswith(module.__name__ + ".")


class TypeRegistry:
    """Registry and loader of component types."""

    def __init__(
        self,
        execution_directory: str | Path | None = None,
        *,
        include_builtins: bool = True,
    ) -> None:
        self._lock = threading.RLock()
        self._types: dict[str, list[TypeDescriptor]] = {}
        self._libraries: dict[str, ModuleType] = {}
        self.execution_directory = Path(execution_directory or Path.cwd())
        self._logger = get_logger(__name__)
        if include_builtins:
            self._register_builtins()

    def _register_builtins(self) -> None:
        from strata.interception.behaviors import CallTimerBehavior
        from strata.logging.factory import LoggerFactory

        self.register(LoggerFactory, library="strata.logging")
        self.register(CallTimerBehavior, library="strata.interception")

    @overload
    def register(self, target: T, **kwargs: Any) -> T: ...

    @overload
    def register(self, target: None = None, **kwargs: Any) -> Any: ...

    def register(
        self,
        target: type | None = None,
        *,
        name: str | None = None,
        library: str | None = None,
        archetype: Archetype | str | None = None,
    ) -> Any:
        """Register a type under its simple name (or ``name``).

        Usable directly or as a class decorator, with or without arguments.
        An explicit ``archetype`` tags an otherwise untagged type.

        Raises:
            ConfigurationError: If the type carries conflicting archetypes
        """
        if target is None:

            def decorator(cls: T) -> T:
                self.register(cls, name=name, library=library, archetype=archetype)
                return cls

            return decorator

        parsed = Archetype.parse(archetype) if archetype is not None else None
        _check_archetype(target, parsed)
        if parsed is not None and not archetype_tags(target):
            target.__archetype__ = parsed  # type: ignore[attr-defined]

        descriptor = TypeDescriptor(
            name=name or target.__name__,
            target=target,
            library=library or target.__module__,
            archetype=archetype_of(target),
        )
        with self._lock:
            entries = self._types.setdefault(descriptor.name, [])
            if not any(entry.target is target for entry in entries):
                entries.append(descriptor)
        return target

    def registered(self, type_name: str) -> list[TypeDescriptor]:
        with self._lock:
            return list(self._types.get(type_name, ()))

    def __contains__(self, type_name: object) -> bool:
        return isinstance(type_name, str) and type_name in self._types

    def resolve(self, type_name: str, library_hint: str | None = None) -> TypeDescriptor:
        """Resolve a type name to a loaded type.

        Order: a dotted name imported directly; registered types by simple
        name (library hint match preferred); the hinted library, imported
        by name or found on disk, searched for a class of that name; any
        registered type of that name. A hinted library that cannot be
        loaded only fails the resolution when nothing of that name is
        registered.

        Raises:
            ResolutionError: If the type cannot be found
        """
        if not type_name:
            raise ResolutionError(type_name, library_hint, message="Empty type name")

        descriptor = self._import_dotted(type_name)
        if descriptor is None:
            descriptor = self._lookup(type_name, library_hint)
        if descriptor is None and library_hint:
            try:
                module = self.load_library(library_hint)
            except ResolutionError:
                descriptor = self._lookup(type_name, None)
                if descriptor is None:
                    raise
                self._logger.debug(
                    "Library %s unavailable; using registered %s from %s",
                    library_hint,
                    type_name,
                    descriptor.library,
                )
            else:
                descriptor = self._find_in_module(type_name, module)
        if descriptor is None:
            descriptor = self._lookup(type_name, None)
        if descriptor is None:
            raise ResolutionError(type_name, library_hint)

        _check_archetype(descriptor.target)
        return descriptor

    def resolve_contract_implementation(
        self, contract_name: str, library_hint: str | None
    ) -> TypeDescriptor:
        """Find the concrete class in ``library_hint`` implementing ``contract_name``.

        A class implements the contract when a class of that simple name
        appears in its MRO. When several classes qualify the first one in
        definition order wins.

        Raises:
            ResolutionError: If no library is given or nothing implements the contract
        """
        if not library_hint:
            raise ResolutionError(
                contract_name,
                message=f"No implementation library given for {contract_name}",
            )
        module = self.load_library(library_hint)
        candidates = [
            value
            for value in vars(module).values()
            if inspect.isclass(value)
            and value.__name__ != contract_name
            and not inspect.isabstract(value)
            and _defined_in(value, module)
            and any(base.__name__ == contract_name for base in value.__mro__[1:])
        ]
        if not candidates:
            raise ResolutionError(
                contract_name,
                library_hint,
                message=f"No class in {library_hint} implements {contract_name}",
            )
        if len(candidates) > 1:
            self._logger.warning(
                "Several classes in %s implement %s; using %s",
                library_hint,
                contract_name,
                candidates[0].__qualname__,
                extra={"candidates": [c.__qualname__ for c in candidates]},
            )
        chosen = candidates[0]
        self.register(chosen, library=library_hint)
        return self._descriptor_for(chosen, library_hint)

    def load_library(self, library_hint: str) -> ModuleType:
        """Import a library by module name, falling back to a file on disk.

        Raises:
            ResolutionError: If the library cannot be found or fails to load
        """
        with self._lock:
            if library_hint in self._libraries:
                return self._libraries[library_hint]
            try:
                module = importlib.import_module(library_hint)
            except ModuleNotFoundError as exc:
                missing = exc.name or ""
                if not (library_hint == missing or library_hint.startswith(missing + ".")):
                    raise ResolutionError(
                        library_hint,
                        message=f"Library {library_hint} failed to import: {exc}",
                        original_error=exc,
                    ) from exc
                module = self._load_from_directory(library_hint)
            except ImportError as exc:
                raise ResolutionError(
                    library_hint,
                    message=f"Library {library_hint} failed to import: {exc}",
                    original_error=exc,
                ) from exc
            except Exception as exc:
                raise ResolutionError(
                    library_hint,
                    message=f"Library {library_hint} failed to load: {exc}",
                    original_error=exc,
                ) from exc
            self._libraries[library_hint] = module
            return module

    def _load_from_directory(self, library_hint: str) -> ModuleType:
        base = self.execution_directory
        relative = Path(*library_hint.split("."))
        candidates = [
            (base / f"{library_hint}.py", None),
            (base / relative.with_suffix(".py"), None),
            (base / relative / "__init__.py", base / relative),
        ]
        for path, package_dir in candidates:
            if not path.is_file():
                continue
            self._logger.debug("Loading library %s from %s", library_hint, path)
            spec = importlib.util.spec_from_file_location(
                library_hint,
                path,
                submodule_search_locations=[str(package_dir)] if package_dir else None,
            )
            if spec is None or spec.loader is None:
                continue
            module = importlib.util.module_from_spec(spec)
            sys.modules[library_hint] = module
            try:
                spec.loader.exec_module(module)
            except Exception as exc:
                sys.modules.pop(library_hint, None)
                raise ResolutionError(
                    library_hint,
                    message=f"Library {library_hint} at {path} failed to load: {exc}",
                    original_error=exc,
                ) from exc
            return module

        raise ResolutionError(
            library_hint,
            message=(
                f"Library {library_hint} is not importable and was not found "
                f"under {base}"
            ),
        )

    def _import_dotted(self, type_name: str) -> TypeDescriptor | None:
        module_name, _, attribute = type_name.rpartition(".")
        if not module_name:
            return None
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            return None
        target = getattr(module, attribute, None)
        if not inspect.isclass(target):
            return None
        self.register(target, library=module_name)
        return self._descriptor_for(target, module_name)

    def _lookup(self, type_name: str, library_hint: str | None) -> TypeDescriptor | None:
        with self._lock:
            entries = self._types.get(type_name)
            if not entries:
                return None
            if library_hint is None:
                return entries[0]
            for entry in entries:
                if entry.library == library_hint:
                    return entry
            return None

    def _find_in_module(self, type_name: str, module: ModuleType) -> TypeDescriptor | None:
        target = getattr(module, type_name, None)
        if not inspect.isclass(target):
            return None
        self.register(target, library=module.__name__)
        return self._descriptor_for(target, module.__name__)

    def _descriptor_for(self, target: type, library: str | None) -> TypeDescriptor:
        for entry in self.registered(target.__name__):
            if entry.target is target:
                return entry
        return TypeDescriptor(
            name=target.__name__,
            target=target,
            library=library,
            archetype=archetype_of(target),
        )


_default_registry: TypeRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> TypeRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = TypeRegistry()
        return _default_registry


def register_type(
    target: type | None = None,
    *,
    name: str | None = None,
    library: str | None = None,
    archetype: Archetype | str | None = None,
) -> Any:
    """Register a type with the process-wide registry (usable as a decorator)."""
    return default_registry().register(
        target, name=name, library=library, archetype=archetype
    )
