# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Constructor injection.

An implementation is built by the widest constructor whose parameters can
all be satisfied from a ``ServicePool``. Constructors are the class's own
``__init__`` plus any classmethod marked with ``@injection_constructor``.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin, get_type_hints

from strata.composition.errors import ServiceCreationError
from strata.composition.pool import ServicePool

T = TypeVar("T")

_MARKER = "__injection_constructor__"


def injection_constructor(func: Any) -> Any:
    """Mark a classmethod as an alternative constructor for injection.

    Works on either side of ``@classmethod``.
    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, _MARKER, True)
    return func


def unwrap_annotation(annotation: Any) -> tuple[type | None, bool]:
    """Return the contract type behind an annotation and whether it is optional.

    ``Annotated[X, ...]`` is stripped first; then one generic level is
    unwrapped: ``X | None`` and ``Optional[X]`` yield ``X`` (optional), any
    other parameterized type yields its first type argument.
    """
    if annotation is None or annotation is inspect.Parameter.empty:
        return None, False

    origin = get_origin(annotation)
    if origin is Annotated:
        annotation = get_args(annotation)[0]
        origin = get_origin(annotation)

    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        optional = len(members) < len(get_args(annotation))
        inner = members[0] if members else None
        return (inner if inspect.isclass(inner) else None), optional

    if origin is not None:
        for arg in get_args(annotation):
            if inspect.isclass(arg):
                return arg, False
        return None, False

    if inspect.isclass(annotation):
        return annotation, False
    return None, False


def _type_hints(func: Callable[..., Any]) -> dict[str, Any]:
    """Resolve the annotations of ``func``.

    When one annotation cannot be evaluated (a name only imported under
    ``TYPE_CHECKING``, say) each string annotation is evaluated on its own
    against the function's globals; only the failing ones are left out.
    """
    try:
        return get_type_hints(func, include_extras=True)
    except Exception:
        pass

    hints: dict[str, Any] = {}
    globalns = getattr(func, "__globals__", {})
    for name, annotation in getattr(func, "__annotations__", {}).items():
        if not isinstance(annotation, str):
            hints[name] = annotation
            continue
        try:
            hints[name] = eval(annotation, globalns)
        except Exception:
            continue
    return hints


@dataclass
class _Candidate:
    name: str
    call: Callable[..., Any]
    parameters: list[inspect.Parameter]
    hints: dict[str, Any] = field(default_factory=dict)

    @property
    def arity(self) -> int:
        return len(self.parameters)


def _parameters(func: Callable[..., Any], *, drop_first: bool) -> list[inspect.Parameter]:
    params = list(inspect.signature(func).parameters.values())
    if drop_first and params:
        params = params[1:]
    return [
        p
        for p in params
        if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]


def constructor_candidates(target: type) -> list[_Candidate]:
    """List the injectable constructors of ``target``, widest first."""
    candidates: list[_Candidate] = []

    init = target.__init__
    if init is object.__init__:
        candidates.append(_Candidate("__init__", target, []))
    else:
        candidates.append(
            _Candidate("__init__", target, _parameters(init, drop_first=True), _type_hints(init))
        )

    seen: set[str] = set()
    for klass in target.__mro__:
        for name, value in vars(klass).items():
            if name in seen or not isinstance(value, classmethod):
                continue
            seen.add(name)
            if getattr(value.__func__, _MARKER, False):
                bound = getattr(target, name)
                candidates.append(
                    _Candidate(
                        name,
                        bound,
                        _parameters(value.__func__, drop_first=True),
                        _type_hints(value.__func__),
                    )
                )

    # sorted() is stable: equal arity keeps __init__ ahead of classmethods
    return sorted(candidates, key=lambda c: c.arity, reverse=True)


class ConstructorInjector:
    """Build instances from the services available in a pool."""

    def construct(self, target: type[T], services: ServicePool) -> T:
        """Invoke the widest fully satisfiable constructor of ``target``.

        Raises:
            ServiceCreationError: If no constructor can be satisfied or the
                chosen constructor raises
        """
        unresolved: dict[str, list[str]] = {}
        for candidate in constructor_candidates(target):
            try:
                bound = self._bind(candidate, services)
            except ServiceCreationError:
                raise
            except Exception as exc:
                raise ServiceCreationError(
                    f"Failed to acquire a dependency of {target.__qualname__}",
                    service_type=target,
                    original_error=exc,
                ) from exc

            if isinstance(bound, list):
                unresolved[candidate.name] = bound
                continue

            args, kwargs = bound
            try:
                return candidate.call(*args, **kwargs)
            except Exception as exc:
                raise ServiceCreationError(
                    f"Constructor {candidate.name} of {target.__qualname__} raised {type(exc).__name__}: {exc}",
                    service_type=target,
                    original_error=exc,
                    constructor=candidate.name,
                ) from exc

        missing = sorted({name for names in unresolved.values() for name in names})
        raise ServiceCreationError(
            f"No constructor of {target.__qualname__} can be satisfied; "
            f"unresolved parameters: {', '.join(missing)}",
            service_type=target,
            missing_parameters=missing,
            candidates=unresolved,
        )

    def _bind(
        self, candidate: _Candidate, services: ServicePool
    ) -> tuple[list[Any], dict[str, Any]] | list[str]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        missing: list[str] = []

        for param in candidate.parameters:
            annotation = candidate.hints.get(param.name, param.annotation)
            inner, optional = unwrap_annotation(annotation)

            if inner is not None and inner in services:
                value = services.get(inner)
            elif param.default is not inspect.Parameter.empty:
                continue
            elif optional:
                value = None
            else:
                missing.append(param.name)
                continue

            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[param.name] = value

        if missing:
            return missing
        return args, kwargs


default_injector = ConstructorInjector()
