"""Authoritative in-process Python API for the File Store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.tablefs_shared.config import TableFsSettings
from packages.tablefs_shared.result import Result
from resources.substrates.sql import Bind
from services.state.file_store.domain import HealthStatus
from services.state.file_store.handle import StoredFile
from services.state.file_store.interfaces import Resource


class FileStoreService(ABC):
    """Public API for stored-file operations over one backing table."""

    @abstractmethod
    def list(
        self, *, directory: str | None, recurse: bool = False
    ) -> Result[list[StoredFile]]:
        """List files in one directory, or everywhere below it when recursing."""

    @abstractmethod
    def get(self, *, path: str) -> Result[StoredFile]:
        """Look up one stored file by path."""

    @abstractmethod
    def write(self, *, path: str, resource: Resource) -> Result[None]:
        """Store one new file; an occupied path is a conflict."""

    @abstractmethod
    def move(self, *, source: str, target: str) -> Result[None]:
        """Re-key one stored file to a free target path."""

    @abstractmethod
    def delete(self, *, path: str) -> Result[None]:
        """Delete one stored file."""

    @abstractmethod
    def health(self) -> Result[HealthStatus]:
        """Return store and backing table readiness."""


def build_file_store(
    *,
    settings: TableFsSettings,
    bind: Bind | None = None,
) -> FileStoreService:
    """Build the default File Store from typed settings.

    Without ``bind`` an engine is created from ``components.substrate.sql``.
    """
    from services.state.file_store.implementation import DefaultFileStore

    return DefaultFileStore.from_settings(settings, bind=bind)
