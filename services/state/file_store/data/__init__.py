"""Data-layer exports for the File Store service."""

from services.state.file_store.data.repository import SqlFileRepository
from services.state.file_store.data.schema import build_file_table

__all__ = ["SqlFileRepository", "build_file_table"]
