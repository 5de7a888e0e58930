"""BLOB extraction strategies for reading stored file contents.

A BLOB value is only guaranteed valid while its query scope (connection and
result) is open. Each strategy decides how the returned stream relates to
that scope:

* ``DirectBlobExtractor`` reads the row buffer in place and keeps the scope
  open until the stream is closed.
* ``MemoryBufferedBlobExtractor`` copies the value into memory and releases
  the scope immediately.
* ``FileBufferedBlobExtractor`` copies the value into a private temporary file
  and releases the scope immediately; the file is deleted when the stream is
  closed.
"""

from __future__ import annotations

import atexit
import io
import logging
import os
import stat
import tempfile
import threading
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path
from typing import Any, BinaryIO

from sqlalchemy import Row

from packages.tablefs_shared.logging import get_logger
from services.state.file_store.domain import BlobExtraction
from services.state.file_store.interfaces import BlobExtractor

_LOGGER = get_logger(__name__)

CHUNK_SIZE = 64 * 1024
TEMP_PREFIX = "tablefs-"

_PENDING_DELETIONS: set[Path] = set()
_PENDING_LOCK = threading.Lock()


class DirectBlobExtractor:
    """Return a stream bound to the live query scope.

    The caller must consume and close the stream while the surrounding
    connection is usable; closing it releases the scope.
    """

    def extract(
        self, row: Row[Any], column: int, release: Callable[[], None]
    ) -> BinaryIO:
        try:
            view = memoryview(_as_buffer(row[column]))
            return _CursorBlobReader(view, release)  # type: ignore[return-value]
        except Exception:
            release()
            raise


class MemoryBufferedBlobExtractor:
    """Copy the whole BLOB into memory before returning."""

    def extract(
        self, row: Row[Any], column: int, release: Callable[[], None]
    ) -> BinaryIO:
        try:
            return io.BytesIO(_as_bytes(row[column]))
        finally:
            release()


class FileBufferedBlobExtractor:
    """Copy the whole BLOB into a private temporary file before returning."""

    def __init__(
        self,
        buffer_directory: str | Path | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        if buffer_directory is None:
            buffer_directory = tempfile.gettempdir()
        self._buffer_directory = Path(buffer_directory)
        self._logger = logger or _LOGGER

    @property
    def buffer_directory(self) -> Path:
        """Return the directory holding temporary buffer files."""
        return self._buffer_directory

    def extract(
        self, row: Row[Any], column: int, release: Callable[[], None]
    ) -> BinaryIO:
        try:
            self._buffer_directory.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(
                prefix=TEMP_PREFIX, suffix=".tmp", dir=self._buffer_directory
            )
            path = Path(name)
            try:
                with os.fdopen(fd, "wb") as handle:
                    self._restrict_permissions(path)
                    _copy_blob(row[column], handle)
                return io.BufferedReader(  # type: ignore[return-value]
                    _TemporaryFileReader(path, logger=self._logger),
                    buffer_size=CHUNK_SIZE,
                )
            except Exception:
                _delete_buffer_file(path, logger=self._logger)
                raise
        finally:
            release()

    def _restrict_permissions(self, path: Path) -> None:
        """Limit the buffer file to its owner where the platform allows it."""
        try:
            os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
        except (NotImplementedError, OSError) as exc:
            self._logger.debug(
                "Cannot restrict buffer file permissions: path=%s", path, exc_info=exc
            )


def build_blob_extractor(
    kind: BlobExtraction,
    *,
    buffer_directory: str | Path | None = None,
    logger: logging.Logger | None = None,
) -> BlobExtractor:
    """Build the extraction strategy for one configured policy."""
    if kind is BlobExtraction.DIRECT:
        return DirectBlobExtractor()
    if kind is BlobExtraction.MEMORY:
        return MemoryBufferedBlobExtractor()
    if kind is BlobExtraction.FILE:
        return FileBufferedBlobExtractor(buffer_directory, logger=logger)
    raise ValueError(f"unsupported blob extraction: {kind!r}")


class _CursorBlobReader(io.RawIOBase):
    """Zero-copy reader over a row buffer that releases its scope on close."""

    def __init__(self, view: memoryview, release: Callable[[], None]) -> None:
        self._release = release
        self._view = view
        self._position = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        size = min(len(buffer), len(self._view) - self._position)
        buffer[:size] = self._view[self._position : self._position + size]
        self._position += size
        return size

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._view = memoryview(b"")
            self._release()
        finally:
            super().close()


class _TemporaryFileReader(io.FileIO):
    """File reader that deletes its file once closed or collected."""

    def __init__(self, path: Path, *, logger: logging.Logger) -> None:
        self._path = path
        self._logger = logger
        super().__init__(path, "rb")

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            _delete_buffer_file(self._path, logger=self._logger)


def _as_buffer(value: object) -> bytes | bytearray | memoryview:
    """Return the buffer-protocol object behind one BLOB column value."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return value
    raise TypeError(f"unsupported BLOB value type: {type(value).__name__}")


def _as_bytes(value: object) -> bytes:
    """Return an independent copy of one BLOB column value."""
    return bytes(_as_buffer(value))


def _copy_blob(value: object, handle: BinaryIO) -> None:
    """Write one BLOB column value to ``handle`` in bounded chunks."""
    view = memoryview(_as_buffer(value))
    for offset in range(0, len(view), CHUNK_SIZE):
        handle.write(view[offset : offset + CHUNK_SIZE])


def _delete_buffer_file(path: Path, *, logger: logging.Logger) -> None:
    """Delete one buffer file, deferring to process exit when that fails."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(
            "Cannot delete buffer file; retrying at exit: path=%s exception_type=%s",
            path,
            type(exc).__name__,
            exc_info=exc,
        )
        with _PENDING_LOCK:
            _PENDING_DELETIONS.add(path)


@atexit.register
def _delete_pending_buffer_files() -> None:
    """Last-resort removal of buffer files whose deletion failed earlier."""
    with _PENDING_LOCK:
        pending = list(_PENDING_DELETIONS)
        _PENDING_DELETIONS.clear()
    for path in pending:
        with suppress(OSError):
            path.unlink(missing_ok=True)
