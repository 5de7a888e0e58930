"""SQL repository over the stored-file table."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import ExitStack
from datetime import UTC, datetime
from typing import Any, BinaryIO

from sqlalchemy import Table, delete, func, insert, select, update

from packages.tablefs_shared.logging import get_logger
from resources.substrates.sql import Bind, read_connection, transactional_connection
from services.state.file_store.domain import FileMetadata
from services.state.file_store.interfaces import BlobExtractor, FileRepository

_LOGGER = get_logger(__name__)

LIKE_ESCAPE = "\\"


class SqlFileRepository(FileRepository):
    """Row-level persistence for stored files over one SQLAlchemy table.

    Methods raise SQLAlchemy exceptions unchanged; translating them into store
    outcomes is the caller's concern.
    """

    def __init__(
        self,
        bind: Bind,
        table: Table,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bind = bind
        self._table = table
        self._logger = logger or _LOGGER

    @property
    def table_name(self) -> str:
        """Return the backing table name."""
        return self._table.name

    def list_files(self, *, directory: str, recurse: bool) -> list[FileMetadata]:
        """Read metadata for rows in ``directory``, or below it when recursing."""
        t = self._table
        stmt = select(t.c.directory, t.c.filename, t.c.content_length, t.c.last_modified)
        if recurse:
            stmt = stmt.where(
                t.c.directory.like(escape_like(directory) + "%", escape=LIKE_ESCAPE)
            )
        else:
            stmt = stmt.where(t.c.directory == directory)
        self._logger.debug("list_files: %s", stmt)
        with read_connection(self._bind) as connection:
            rows = connection.execute(stmt).mappings().all()
        return [_to_metadata(row) for row in rows]

    def get_file(self, *, directory: str, filename: str) -> FileMetadata | None:
        """Read metadata for one row keyed by path."""
        t = self._table
        stmt = select(
            t.c.directory, t.c.filename, t.c.content_length, t.c.last_modified
        ).where(t.c.directory == directory, t.c.filename == filename)
        self._logger.debug("get_file: %s", stmt)
        with read_connection(self._bind) as connection:
            row = connection.execute(stmt).mappings().one_or_none()
        return None if row is None else _to_metadata(row)

    def count_files(self, *, directory: str, filename: str) -> int:
        """Count rows keyed by one path."""
        t = self._table
        stmt = (
            select(func.count())
            .select_from(t)
            .where(t.c.directory == directory, t.c.filename == filename)
        )
        with read_connection(self._bind) as connection:
            return int(connection.execute(stmt).scalar_one())

    def open_contents(
        self, *, directory: str, filename: str, extractor: BlobExtractor
    ) -> tuple[bool, BinaryIO] | None:
        """Return ``(compressed, stream)`` for one row, or None when absent.

        The query scope is handed to ``extractor`` as its release callback, so
        it stays open exactly as long as the chosen strategy needs it.
        """
        t = self._table
        stmt = select(t.c.compressed, t.c.file_contents).where(
            t.c.directory == directory, t.c.filename == filename
        )
        self._logger.debug("open_contents: %s", stmt)
        scope = ExitStack()
        try:
            connection = scope.enter_context(read_connection(self._bind))
            row = connection.execute(stmt).one_or_none()
            if row is None:
                scope.close()
                return None
            return bool(row[0]), extractor.extract(row, 1, scope.close)
        except Exception:
            scope.close()
            raise

    def insert_file(
        self,
        *,
        directory: str,
        filename: str,
        content_length: int,
        last_modified: datetime,
        compressed: bool,
        contents: BinaryIO,
        measured_length: Callable[[], int] | None = None,
    ) -> None:
        """Insert one row; correct its length from ``measured_length`` when given.

        Both statements share one transaction, so the length sentinel is never
        committed.
        """
        t = self._table
        stmt = insert(t)
        self._logger.debug("insert_file: %s", stmt)
        with transactional_connection(self._bind) as connection:
            connection.execute(
                stmt,
                _bind_insert(
                    directory=directory,
                    filename=filename,
                    content_length=content_length,
                    last_modified=last_modified,
                    compressed=compressed,
                    contents=contents,
                ),
            )
            if measured_length is None:
                return
            correction = (
                update(t)
                .where(t.c.directory == directory, t.c.filename == filename)
                .values(content_length=measured_length())
            )
            self._logger.debug("insert_file: %s", correction)
            connection.execute(correction)

    def move_file(
        self,
        *,
        directory: str,
        filename: str,
        target_directory: str,
        target_filename: str,
    ) -> int:
        """Re-key one row and return rows affected."""
        t = self._table
        stmt = (
            update(t)
            .where(t.c.directory == directory, t.c.filename == filename)
            .values(directory=target_directory, filename=target_filename)
        )
        self._logger.debug("move_file: %s", stmt)
        with transactional_connection(self._bind) as connection:
            return int(connection.execute(stmt).rowcount or 0)

    def delete_file(self, *, directory: str, filename: str) -> int:
        """Delete one row and return rows affected."""
        t = self._table
        stmt = delete(t).where(t.c.directory == directory, t.c.filename == filename)
        self._logger.debug("delete_file: %s", stmt)
        with transactional_connection(self._bind) as connection:
            return int(connection.execute(stmt).rowcount or 0)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _bind_insert(
    *,
    directory: str,
    filename: str,
    content_length: int,
    last_modified: datetime,
    compressed: bool,
    contents: BinaryIO,
) -> dict[str, Any]:
    """Bind insert parameters, drawing the BLOB payload from ``contents``.

    DBAPI drivers take BLOB parameters as bytes, so the wrapped stream is
    drained here, at bind time, inside the insert's transaction.
    """
    return {
        "directory": directory,
        "filename": filename,
        "content_length": content_length,
        "last_modified": last_modified.astimezone(UTC),
        "compressed": compressed,
        "file_contents": contents.read(),
    }


def _to_metadata(row: Any) -> FileMetadata:
    """Map one SQL row to stored-file metadata."""
    return FileMetadata(
        directory=str(row["directory"]),
        filename=str(row["filename"]),
        content_length=int(row["content_length"]),
        last_modified=_row_dt(row, "last_modified"),
    )


def _row_dt(row: Any, column: str) -> datetime:
    """Read and normalize one timezone-aware datetime field from SQL row."""
    value = row.get(column)
    if not isinstance(value, datetime):
        raise ValueError(f"expected datetime column for {column}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
