"""Public shared error API for tablefs components."""

from . import codes
from .exceptions import (
    TableFsConflictError,
    TableFsDependencyError,
    TableFsError,
    TableFsInternalError,
    TableFsNotFoundError,
    TableFsValidationError,
    raise_for_errors,
)
from .factories import (
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
    validation_error,
)
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "TableFsConflictError",
    "TableFsDependencyError",
    "TableFsError",
    "TableFsInternalError",
    "TableFsNotFoundError",
    "TableFsValidationError",
    "codes",
    "conflict_error",
    "dependency_error",
    "internal_error",
    "not_found_error",
    "raise_for_errors",
    "validation_error",
]
