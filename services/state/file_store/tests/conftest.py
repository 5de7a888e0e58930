"""Shared fixtures for File Store tests backed by a file-based SQLite database."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator

import pytest
from sqlalchemy import Engine

from resources.substrates.sql import SqlSettings, create_sql_engine
from services.state.file_store.domain import Compression
from services.state.file_store.extraction import MemoryBufferedBlobExtractor
from services.state.file_store.implementation import DefaultFileStore
from services.state.file_store.interfaces import BlobExtractor

StoreFactory = Callable[..., DefaultFileStore]


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    """Return an engine over a fresh SQLite database file."""
    engine = create_sql_engine(SqlSettings(url=f"sqlite:///{tmp_path / 'tablefs.db'}"))
    yield engine
    engine.dispose()


@pytest.fixture()
def store_factory(engine: Engine) -> StoreFactory:
    """Return a builder for stores whose backing table already exists."""

    def _build(
        *,
        compression: Compression = Compression.NONE,
        extractor: BlobExtractor | None = None,
        table_name: str = "storage",
    ) -> DefaultFileStore:
        store = DefaultFileStore(
            bind=engine,
            table_name=table_name,
            compression=compression,
            extractor=extractor or MemoryBufferedBlobExtractor(),
        )
        store.table.create(engine, checkfirst=True)
        return store

    return _build


@pytest.fixture()
def store(store_factory: StoreFactory) -> DefaultFileStore:
    """Return an uncompressed, memory-buffered store."""
    return store_factory()
