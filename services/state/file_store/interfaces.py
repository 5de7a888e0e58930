"""Protocol interfaces consumed by the File Store service."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, BinaryIO, Protocol

from sqlalchemy import Row

from services.state.file_store.domain import FileMetadata


class Resource(Protocol):
    """Byte source written into the store.

    ``is_open`` reports a single-pass stream whose length cannot be known
    before it is consumed.
    """

    def is_open(self) -> bool:
        """Return True for single-pass sources."""

    def content_length(self) -> int:
        """Return the byte length; may raise ``OSError`` when unknown."""

    def last_modified(self) -> datetime | None:
        """Return the modification time, if the source has one."""

    def open_stream(self) -> BinaryIO:
        """Open a fresh readable binary stream over the content."""


class BlobExtractor(Protocol):
    """Policy turning one BLOB column of an open result row into a stream."""

    def extract(
        self, row: Row[Any], column: int, release: Callable[[], None]
    ) -> BinaryIO:
        """Return a readable stream over ``row[column]``.

        ``release`` frees the query scope the row belongs to. It is idempotent
        and must be called on every exit path, either before returning or when
        the returned stream is closed.
        """


class FileRepository(Protocol):
    """Protocol for stored-file row persistence operations."""

    @property
    def table_name(self) -> str:
        """Return the backing table name."""

    def list_files(self, *, directory: str, recurse: bool) -> list[FileMetadata]:
        """Read metadata rows in one directory, or below it when recursing."""

    def get_file(self, *, directory: str, filename: str) -> FileMetadata | None:
        """Read metadata for one row."""

    def count_files(self, *, directory: str, filename: str) -> int:
        """Count rows keyed by one path."""

    def open_contents(
        self, *, directory: str, filename: str, extractor: BlobExtractor
    ) -> tuple[bool, BinaryIO] | None:
        """Return ``(compressed, stream)`` for one row, or None when absent."""

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
        """Insert one row; correct its length from ``measured_length`` when given."""

    def move_file(
        self,
        *,
        directory: str,
        filename: str,
        target_directory: str,
        target_filename: str,
    ) -> int:
        """Re-key one row and return rows affected."""

    def delete_file(self, *, directory: str, filename: str) -> int:
        """Delete one row and return rows affected."""
