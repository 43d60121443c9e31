# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
Request and response envelopes for module operations.

A workload (one end-to-end use case) is identified by ``workload_id``; every
request made on behalf of it, including requests a manager makes to its
engines, carries the same id so calls can be correlated across modules.
Responses accumulate ``ServiceError`` entries instead of raising, so a
caller can inspect warnings alongside a successful payload.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from strata.errors import ErrorSeverity, StrataError

T = TypeVar("T")

_ERROR_SEVERITIES = frozenset(
    {ErrorSeverity.ERROR, ErrorSeverity.CRITICAL, ErrorSeverity.FATAL}
)


def _utc_now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


class ServiceError(BaseModel):
    """One problem reported by an operation."""

    site: str = ""
    error_kind: str = ""
    message: str = ""
    severity: ErrorSeverity = ErrorSeverity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity in _ERROR_SEVERITIES

    @property
    def is_warning(self) -> bool:
        return self.severity is ErrorSeverity.WARNING

    @classmethod
    def from_exception(cls, exc: BaseException, site: str = "") -> ServiceError:
        """Describe an exception; strata errors keep their code and severity."""
        if isinstance(exc, StrataError):
            return cls(
                site=site,
                error_kind=str(exc.code),
                message=exc.message,
                severity=exc.severity,
            )
        return cls(site=site, error_kind=type(exc).__name__, message=str(exc))


class OperationRequest(BaseModel, Generic[T]):
    """Base request; subclasses name their operation with ``operation``."""

    operation: ClassVar[str | None] = None

    model_config = ConfigDict(validate_assignment=True)

    workload_id: UUID = Field(default_factory=uuid4)
    workload_name: str
    invocation_timestamp_utc: int = Field(default_factory=_utc_now_ms)
    payload: T | None = None

    @property
    def operation_name(self) -> str:
        return type(self).operation or type(self).__name__

    @classmethod
    def from_parent(
        cls, parent: OperationRequest[Any], payload: T | None = None, **data: Any
    ) -> OperationRequest[T]:
        """Create a request belonging to the same workload as ``parent``."""
        return cls(
            workload_id=parent.workload_id,
            workload_name=parent.workload_name,
            payload=payload,
            **data,
        )


class OperationResponse(BaseModel, Generic[T]):
    """Result of an operation: payload plus accumulated errors and warnings."""

    request: OperationRequest | None = None
    payload: T | None = None
    errors: list[ServiceError] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(error.is_error for error in self.errors)

    @property
    def has_warnings(self) -> bool:
        return any(error.is_warning for error in self.errors)

    @property
    def successful(self) -> bool:
        return not self.has_errors and self.payload is not None

    def add_error(self, error: ServiceError) -> OperationResponse[T]:
        self.errors.append(error)
        return self

    def add_errors(self, donor: OperationResponse[Any]) -> OperationResponse[T]:
        """Copy every error reported by another response."""
        self.errors.extend(donor.errors)
        return self
