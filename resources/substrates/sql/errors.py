"""SQLAlchemy/DBAPI exception normalization helpers."""

from __future__ import annotations

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from packages.tablefs_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
)

_UNIQUE_VIOLATION_SQLSTATE = "23505"
_MYSQL_DUPLICATE_ENTRY = 1062
_SQLITE_UNIQUE_ERROR_NAMES = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
)
_UNIQUE_MESSAGE_MARKERS = (
    "unique constraint failed",
    "duplicate key value",
    "duplicate entry",
    "unique constraint",
)


def is_unique_violation(exc: BaseException) -> bool:
    """Return whether one exception reports a unique/primary-key violation."""
    if isinstance(exc, DBAPIError) and not isinstance(exc, IntegrityError):
        return False
    orig = getattr(exc, "orig", None) or exc

    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return str(sqlstate) == _UNIQUE_VIOLATION_SQLSTATE
    if type(orig).__name__ == "UniqueViolation":
        return True
    if getattr(orig, "sqlite_errorname", None) in _SQLITE_UNIQUE_ERROR_NAMES:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == _MYSQL_DUPLICATE_ENTRY:
        return True

    message = str(orig).lower()
    return any(marker in message for marker in _UNIQUE_MESSAGE_MARKERS)


def normalize_sql_error(exc: BaseException) -> ErrorDetail:
    """Map low-level DB exceptions into shared structured error semantics."""
    metadata = {"exception_type": type(exc).__name__}

    if is_unique_violation(exc):
        return conflict_error(
            "resource already exists",
            code=codes.ALREADY_EXISTS,
            metadata=metadata,
            cause=exc,
        )

    if isinstance(exc, (OperationalError, DisconnectionError, PoolTimeoutError)):
        return dependency_error(
            "database unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
            cause=exc,
        )

    if isinstance(exc, SQLAlchemyError):
        return dependency_error(
            "database request failed",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
            cause=exc,
        )

    return internal_error(
        "unexpected database failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
        cause=exc,
    )
