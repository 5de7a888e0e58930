"""Lazy handle over one stored file."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import BinaryIO

from packages.tablefs_shared.logging import public_api_logged
from packages.tablefs_shared.result import Result
from services.state.file_store.component import SERVICE_COMPONENT_ID
from services.state.file_store.domain import FileMetadata


class StoredFile:
    """Handle to one stored file, holding metadata captured at lookup.

    Content is not fetched until :meth:`open` is called; each call runs a fresh
    query. A handle satisfies the ``Resource`` protocol, so it can be written
    to another path or another store.
    """

    def __init__(
        self,
        metadata: FileMetadata,
        *,
        opener: Callable[[FileMetadata], Result[BinaryIO]],
        exists: Callable[[FileMetadata], bool],
        logger: logging.Logger,
    ) -> None:
        self._metadata = metadata
        self._opener = opener
        self._exists = exists
        self._logger = logger

    @property
    def metadata(self) -> FileMetadata:
        return self._metadata

    @property
    def directory(self) -> str:
        return self._metadata.directory

    @property
    def filename(self) -> str:
        return self._metadata.filename

    @property
    def path(self) -> str:
        return self._metadata.path

    def is_open(self) -> bool:
        return False

    def content_length(self) -> int:
        return self._metadata.content_length

    def last_modified(self) -> datetime:
        return self._metadata.last_modified

    def exists(self) -> bool:
        """Return whether the row is still present; False on any backend failure."""
        return self._exists(self._metadata)

    @public_api_logged(component_id=SERVICE_COMPONENT_ID, api_name="open_file")
    def open(self) -> Result[BinaryIO]:
        """Open a readable stream over the decompressed content.

        The caller owns the stream and must close it; closing releases any
        query scope or temporary file behind it.
        """
        return self._opener(self._metadata)

    def open_stream(self) -> BinaryIO:
        """Open the content stream, raising a typed error on failure."""
        return self.open().unwrap(operation="open_stream")

    def __repr__(self) -> str:
        return (
            f"StoredFile(path={self.path!r}, "
            f"content_length={self.content_length()})"
        )
