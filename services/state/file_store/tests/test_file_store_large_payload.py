"""Large-payload integrity across every extraction and compression combination."""

from __future__ import annotations

import hashlib
import io
import os
from pathlib import Path
from typing import Callable

import pytest

from services.state.file_store.domain import BlobExtraction, Compression
from services.state.file_store.extraction import build_blob_extractor
from services.state.file_store.implementation import DefaultFileStore
from services.state.file_store.sources import BytesResource, StreamResource

LARGE_PAYLOAD_SIZE = 20 * 1024 * 1024


@pytest.fixture(scope="module")
def large_payload() -> bytes:
    """Return a payload mixing incompressible and highly compressible runs."""
    block = os.urandom(1024 * 1024) + b"\0" * (1024 * 1024)
    return block * (LARGE_PAYLOAD_SIZE // len(block))


def _sha256(stream: io.BufferedIOBase) -> str:
    digest = hashlib.sha256()
    while chunk := stream.read(1024 * 1024):
        digest.update(chunk)
    return digest.hexdigest()


@pytest.mark.parametrize("compression", list(Compression))
@pytest.mark.parametrize("extraction", list(BlobExtraction))
def test_large_payload_survives_every_combination(
    store_factory: Callable[..., DefaultFileStore],
    tmp_path: Path,
    large_payload: bytes,
    compression: Compression,
    extraction: BlobExtraction,
) -> None:
    """Tens of megabytes should read back with an identical content hash."""
    buffer_dir = tmp_path / "buffers"
    store = store_factory(
        compression=compression,
        extractor=build_blob_extractor(extraction, buffer_directory=buffer_dir),
    )
    expected = hashlib.sha256(large_payload).hexdigest()

    store.write(path="big/known.bin", resource=BytesResource(large_payload)).unwrap()
    store.write(
        path="big/streamed.bin", resource=StreamResource(io.BytesIO(large_payload))
    ).unwrap()

    for path in ("big/known.bin", "big/streamed.bin"):
        handle = store.get(path=path).unwrap()
        assert handle.content_length() == len(large_payload)
        with handle.open_stream() as stream:
            assert _sha256(stream) == expected

    if buffer_dir.exists():
        assert list(buffer_dir.iterdir()) == []
