"""Pydantic settings for File Store behavior."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from packages.tablefs_shared.config import TableFsSettings, resolve_component_settings
from services.state.file_store.component import SERVICE_COMPONENT_ID
from services.state.file_store.domain import BlobExtraction, Compression


class FileStoreSettings(BaseModel):
    """File Store runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    table_name: str = "storage"
    table_schema: str | None = None
    compression: Compression = Compression.NONE
    extraction: BlobExtraction = BlobExtraction.MEMORY
    buffer_directory: Path | None = None

    @field_validator("table_name")
    @classmethod
    def _validate_table_name(cls, value: str) -> str:
        """Require a non-empty table name."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("table_name is required")
        return normalized

    @field_validator("table_schema")
    @classmethod
    def _normalize_table_schema(cls, value: str | None) -> str | None:
        """Treat a blank schema as the backend default schema."""
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


def resolve_file_store_settings(settings: TableFsSettings) -> FileStoreSettings:
    """Resolve File Store settings from ``components.service.file_store``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=FileStoreSettings,
    )
