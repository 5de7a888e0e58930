"""Ready-made ``Resource`` adapters for common byte sources."""

from __future__ import annotations

import io
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO


class BytesResource:
    """In-memory byte content; re-readable with a known length."""

    def __init__(self, content: bytes, *, last_modified: datetime | None = None) -> None:
        self._content = bytes(content)
        self._last_modified = last_modified

    def is_open(self) -> bool:
        return False

    def content_length(self) -> int:
        return len(self._content)

    def last_modified(self) -> datetime | None:
        return self._last_modified

    def open_stream(self) -> BinaryIO:
        return io.BytesIO(self._content)


class FileResource:
    """Local file; length and modification time come from ``stat``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Return the backing filesystem path."""
        return self._path

    def is_open(self) -> bool:
        return False

    def content_length(self) -> int:
        return self._path.stat().st_size

    def last_modified(self) -> datetime | None:
        return datetime.fromtimestamp(self._path.stat().st_mtime, tz=UTC)

    def open_stream(self) -> BinaryIO:
        return self._path.open("rb")


class StreamResource:
    """Single-pass stream whose length is unknown until consumed.

    The wrapped stream can be opened once; a second open raises ``OSError``.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._consumed = False

    def is_open(self) -> bool:
        return True

    def content_length(self) -> int:
        raise OSError("content length of a single-pass stream is unknown")

    def last_modified(self) -> datetime | None:
        return None

    def open_stream(self) -> BinaryIO:
        if self._consumed:
            raise OSError("stream has already been opened")
        self._consumed = True
        return self._stream
