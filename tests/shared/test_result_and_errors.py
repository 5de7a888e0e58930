"""Tests for the shared result model and error taxonomy."""

from __future__ import annotations

import pytest

from packages.tablefs_shared.errors import (
    ErrorCategory,
    TableFsConflictError,
    TableFsDependencyError,
    TableFsError,
    TableFsInternalError,
    TableFsNotFoundError,
    TableFsValidationError,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
    raise_for_errors,
    validation_error,
)
from packages.tablefs_shared.result import Result, empty, failure, success


def test_success_result_unwraps_payload() -> None:
    """Successful results should expose and unwrap their payload."""
    result = success(payload=[1, 2])

    assert result.ok
    assert result.has_payload
    assert result.error is None
    assert result.unwrap() == [1, 2]


def test_empty_result_is_ok_without_payload() -> None:
    """Empty results should succeed and unwrap to None."""
    result = empty()

    assert result.ok
    assert not result.has_payload
    assert result.unwrap() is None


def test_failure_result_exposes_primary_error() -> None:
    """The first error should be the primary error of a failure."""
    first = not_found_error("missing", code=codes.RESOURCE_NOT_FOUND)
    second = validation_error("bad")
    result: Result[int] = failure(errors=[first, second])

    assert not result.ok
    assert result.payload is None
    assert result.error is first
    assert result.errors == [first, second]


@pytest.mark.parametrize(
    ("detail", "expected"),
    [
        (validation_error("bad input"), TableFsValidationError),
        (not_found_error("missing"), TableFsNotFoundError),
        (conflict_error("taken"), TableFsConflictError),
        (dependency_error("db down"), TableFsDependencyError),
        (internal_error("bug"), TableFsInternalError),
    ],
)
def test_unwrap_raises_exception_for_category(
    detail: object, expected: type[TableFsError]
) -> None:
    """Each category should raise its own typed exception."""
    result: Result[None] = failure(errors=[detail])  # type: ignore[list-item]

    with pytest.raises(expected) as raised:
        result.unwrap(operation="write")

    assert isinstance(raised.value, TableFsError)
    assert raised.value.operation == "write"
    assert raised.value.details == (detail,)
    assert str(raised.value).startswith("write failed: ")


def test_raise_for_errors_chains_original_cause() -> None:
    """The typed exception should chain the primary error's cause."""
    cause = ConnectionError("socket closed")
    detail = dependency_error("db down", cause=cause)

    with pytest.raises(TableFsDependencyError) as raised:
        raise_for_errors(operation="list", errors=[detail])

    assert raised.value.__cause__ is cause


def test_raise_for_errors_is_noop_without_errors() -> None:
    """No errors should mean no exception."""
    raise_for_errors(operation="noop", errors=[])


def test_factories_set_category_and_retryability() -> None:
    """Factories should stamp category, default codes and retry hints."""
    assert validation_error("x").category == ErrorCategory.VALIDATION
    assert validation_error("x").code == codes.VALIDATION_ERROR
    assert not_found_error("x").code == codes.NOT_FOUND
    assert conflict_error("x").code == codes.CONFLICT
    assert dependency_error("x").retryable is True
    assert dependency_error("x", retryable=False).retryable is False
    assert internal_error("x").category == ErrorCategory.INTERNAL


def test_error_detail_equality_ignores_cause() -> None:
    """Two details differing only by cause should compare equal."""
    first = conflict_error("taken", cause=RuntimeError("a"))
    second = conflict_error("taken", cause=RuntimeError("b"))

    assert first == second
    assert first.metadata == {}
