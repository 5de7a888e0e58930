"""Deflate codec wrappers for stored file payloads.

Payloads use the zlib container format, so rows written by any deflate
implementation that emits zlib streams remain readable.
"""

from __future__ import annotations

import io
import zlib
from typing import BinaryIO

from services.state.file_store.domain import Compression

CHUNK_SIZE = 64 * 1024

_LEVELS: dict[Compression, int] = {
    Compression.FAST: zlib.Z_BEST_SPEED,
    Compression.DEFAULT: zlib.Z_DEFAULT_COMPRESSION,
    Compression.BEST: zlib.Z_BEST_COMPRESSION,
}


def compression_level(compression: Compression) -> int:
    """Return the zlib level for one enabled compression preset."""
    try:
        return _LEVELS[compression]
    except KeyError:
        raise ValueError(f"no compression level for {compression.value!r}") from None


class _TransformingReader(io.RawIOBase):
    """Readable stream applying a chunked zlib transform to its source."""

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self._pending = memoryview(b"")
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while len(self._pending) == 0 and not self._eof:
            chunk = self._source.read(CHUNK_SIZE)
            if chunk:
                self._pending = memoryview(self._transform(chunk))
            else:
                self._pending = memoryview(self._finish())
                self._eof = True
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            try:
                self._source.close()
            finally:
                super().close()

    def _transform(self, chunk: bytes) -> bytes:
        raise NotImplementedError

    def _finish(self) -> bytes:
        raise NotImplementedError


class DeflatingReader(_TransformingReader):
    """Compress bytes from ``source`` as they are read."""

    def __init__(self, source: BinaryIO, *, level: int) -> None:
        super().__init__(source)
        self._compressor = zlib.compressobj(level)

    def _transform(self, chunk: bytes) -> bytes:
        return self._compressor.compress(chunk)

    def _finish(self) -> bytes:
        return self._compressor.flush()


class InflatingReader(_TransformingReader):
    """Decompress zlib bytes from ``source`` as they are read."""

    def __init__(self, source: BinaryIO) -> None:
        super().__init__(source)
        self._decompressor = zlib.decompressobj()

    def _transform(self, chunk: bytes) -> bytes:
        return self._decompressor.decompress(chunk)

    def _finish(self) -> bytes:
        return self._decompressor.flush()


def deflating(source: BinaryIO, compression: Compression) -> BinaryIO:
    """Wrap ``source`` for writing with one compression preset, or return it as-is."""
    if compression is Compression.NONE:
        return source
    return io.BufferedReader(
        DeflatingReader(source, level=compression_level(compression)),
        buffer_size=CHUNK_SIZE,
    )


def inflating(source: BinaryIO) -> BinaryIO:
    """Wrap a compressed payload stream for reading."""
    return io.BufferedReader(InflatingReader(source), buffer_size=CHUNK_SIZE)
