"""Typed result model returned across tablefs component boundaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterable, TypeVar

from packages.tablefs_shared.errors import ErrorDetail, raise_for_errors

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Payload-or-errors response for in-process component calls."""

    payload: T | None
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when no errors are present."""
        return len(self.errors) == 0

    @property
    def has_payload(self) -> bool:
        """Return True when payload is present."""
        return self.payload is not None

    @property
    def error(self) -> ErrorDetail | None:
        """Return the primary error, if any."""
        return self.errors[0] if self.errors else None

    def unwrap(self, operation: str = "operation") -> T:
        """Return the payload or raise the typed error for the primary failure."""
        raise_for_errors(operation=operation, errors=self.errors)
        return self.payload  # type: ignore[return-value]


def success(*, payload: T) -> Result[T]:
    """Build a successful result with payload and no errors."""
    return Result[T](payload=payload, errors=[])


def empty() -> Result[None]:
    """Build an empty successful result."""
    return Result[None](payload=None, errors=[])


def failure(*, errors: Iterable[ErrorDetail]) -> Result[T]:
    """Build a failed result with one or more errors."""
    return Result[T](payload=None, errors=list(errors))
