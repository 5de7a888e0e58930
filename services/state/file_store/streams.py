"""Pass-through byte stream that measures what flows through it."""

from __future__ import annotations

import io
from typing import BinaryIO


class CountingReader(io.RawIOBase):
    """Readable wrapper that tallies bytes read from its source.

    Used when a source cannot report its length upfront; ``count`` holds the
    exact number of bytes consumed once the source is exhausted.
    """

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self._count = 0

    @property
    def count(self) -> int:
        """Return the number of bytes read so far."""
        return self._count

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        chunk = self._source.read(len(buffer))
        if not chunk:
            return 0
        size = len(chunk)
        buffer[:size] = chunk
        self._count += size
        return size

    def close(self) -> None:
        if not self.closed:
            try:
                self._source.close()
            finally:
                super().close()
