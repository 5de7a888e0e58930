"""Repository-focused tests for SQL statements and row mapping."""

from __future__ import annotations

import io
from datetime import UTC, datetime
from typing import Any, Iterator

import pytest
from sqlalchemy import Engine, event

from services.state.file_store.data.repository import (
    SqlFileRepository,
    _row_dt,
    escape_like,
)
from services.state.file_store.data.schema import build_file_table
from services.state.file_store.extraction import MemoryBufferedBlobExtractor


@pytest.fixture()
def repository(engine: Engine) -> SqlFileRepository:
    table = build_file_table("repo_files")
    table.create(engine)
    return SqlFileRepository(engine, table)


@pytest.fixture()
def statements(engine: Engine) -> Iterator[list[str]]:
    """Capture SQL statements executed on the engine."""
    captured: list[str] = []

    def _capture(*args: Any) -> None:
        captured.append(str(args[2]).strip().upper())

    event.listen(engine, "before_cursor_execute", _capture)
    yield captured
    event.remove(engine, "before_cursor_execute", _capture)


def _insert(repository: SqlFileRepository, **kwargs: Any) -> None:
    values: dict[str, Any] = {
        "directory": "/docs/",
        "filename": "a.txt",
        "content_length": 3,
        "last_modified": datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
        "compressed": False,
        "contents": io.BytesIO(b"abc"),
    }
    values.update(kwargs)
    repository.insert_file(**values)


def test_escape_like_escapes_wildcards_and_escape_character() -> None:
    """LIKE metacharacters should be prefixed with the escape character."""
    assert escape_like("/a_b/") == "/a\\_b/"
    assert escape_like("/100%/") == "/100\\%/"
    assert escape_like("/back\\/") == "/back\\\\/"
    assert escape_like("/plain/") == "/plain/"


def test_row_dt_rejects_missing_or_non_datetime_values() -> None:
    """Datetime extraction must fail fast on malformed row values."""
    with pytest.raises(ValueError, match="expected datetime column for last_modified"):
        _row_dt({}, "last_modified")

    with pytest.raises(ValueError, match="expected datetime column for last_modified"):
        _row_dt({"last_modified": "2026-02-23T00:00:00Z"}, "last_modified")


def test_row_dt_normalizes_naive_and_aware_datetimes_to_utc() -> None:
    """Datetime extraction should normalize valid values to UTC-aware timestamps."""
    naive = datetime(2026, 2, 23, 12, 0, 0)
    aware = datetime(2026, 2, 23, 12, 0, 0, tzinfo=UTC)

    assert _row_dt({"last_modified": naive}, "last_modified").tzinfo == UTC
    assert _row_dt({"last_modified": aware}, "last_modified") == aware


def test_known_length_insert_issues_no_correction(
    repository: SqlFileRepository, statements: list[str]
) -> None:
    """A known length should be written once without a follow-up update."""
    _insert(repository)

    assert any(sql.startswith("INSERT") for sql in statements)
    assert not any(sql.startswith("UPDATE") for sql in statements)
    assert repository.get_file(directory="/docs/", filename="a.txt").content_length == 3


def test_unknown_length_insert_is_corrected_in_same_transaction(
    repository: SqlFileRepository, statements: list[str]
) -> None:
    """A measured length should replace the sentinel before commit."""
    _insert(
        repository,
        content_length=-1,
        contents=io.BytesIO(b"abcdef"),
        measured_length=lambda: 6,
    )

    kinds = [sql.split()[0] for sql in statements]
    assert kinds.index("INSERT") < kinds.index("UPDATE")
    assert "BEGIN" not in kinds[kinds.index("INSERT") : kinds.index("UPDATE")]
    assert repository.get_file(directory="/docs/", filename="a.txt").content_length == 6


def test_recursive_listing_uses_escaped_like(
    repository: SqlFileRepository, statements: list[str]
) -> None:
    """Recursive listing should use LIKE with an explicit escape clause."""
    _insert(repository, directory="/docs/sub/")

    rows = repository.list_files(directory="/docs/", recurse=True)

    assert [row.path for row in rows] == ["/docs/sub/a.txt"]
    assert any("LIKE" in sql and "ESCAPE" in sql for sql in statements)


def test_move_and_delete_report_rows_affected(repository: SqlFileRepository) -> None:
    """Move and delete should return how many rows they touched."""
    _insert(repository)

    assert (
        repository.move_file(
            directory="/docs/",
            filename="a.txt",
            target_directory="/docs/",
            target_filename="b.txt",
        )
        == 1
    )
    assert repository.delete_file(directory="/docs/", filename="a.txt") == 0
    assert repository.delete_file(directory="/docs/", filename="b.txt") == 1
    assert repository.count_files(directory="/docs/", filename="b.txt") == 0


def test_open_contents_returns_flag_and_stream(repository: SqlFileRepository) -> None:
    """Content lookup should return the compression flag with the stream."""
    _insert(repository, compressed=True, contents=io.BytesIO(b"zz"))

    opened = repository.open_contents(
        directory="/docs/", filename="a.txt", extractor=MemoryBufferedBlobExtractor()
    )
    missing = repository.open_contents(
        directory="/docs/", filename="none.txt", extractor=MemoryBufferedBlobExtractor()
    )

    assert opened is not None
    compressed, stream = opened
    assert compressed is True
    assert stream.read() == b"zz"
    assert missing is None
    assert repository.table_name == "repo_files"
