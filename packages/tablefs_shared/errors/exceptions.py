"""Typed exceptions for callers that prefer raising over result inspection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .types import ErrorCategory, ErrorDetail


@dataclass(frozen=True)
class TableFsError(Exception):
    """Base error type for tablefs failures."""

    message: str
    operation: str = ""
    details: tuple[ErrorDetail, ...] = ()

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(frozen=True)
class TableFsValidationError(TableFsError):
    """A required argument was absent or malformed."""


@dataclass(frozen=True)
class TableFsNotFoundError(TableFsError):
    """No stored file exists for the requested path."""


@dataclass(frozen=True)
class TableFsConflictError(TableFsError):
    """A stored file already occupies the requested path."""


@dataclass(frozen=True)
class TableFsDependencyError(TableFsError):
    """The backing database or a consumed resource failed."""


@dataclass(frozen=True)
class TableFsInternalError(TableFsError):
    """Unexpected failure inside tablefs itself."""


def raise_for_errors(*, operation: str, errors: Sequence[ErrorDetail]) -> None:
    """Raise the typed error matching the first detail when ``errors`` is non-empty."""
    if len(errors) == 0:
        return

    details = tuple(errors)
    error_type = _CATEGORY_TO_ERROR.get(details[0].category, TableFsError)
    exc = error_type(
        message=f"{operation} failed: {'; '.join(item.message for item in details)}",
        operation=operation,
        details=details,
    )
    raise exc from details[0].cause


_CATEGORY_TO_ERROR: dict[ErrorCategory, type[TableFsError]] = {
    ErrorCategory.VALIDATION: TableFsValidationError,
    ErrorCategory.NOT_FOUND: TableFsNotFoundError,
    ErrorCategory.CONFLICT: TableFsConflictError,
    ErrorCategory.DEPENDENCY: TableFsDependencyError,
    ErrorCategory.INTERNAL: TableFsInternalError,
}
