"""Domain contracts for File Store payloads and policies."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Compression(str, Enum):
    """Deflate preset applied to payloads on write."""

    NONE = "none"
    FAST = "fast"
    DEFAULT = "default"
    BEST = "best"


class BlobExtraction(str, Enum):
    """Policy for pulling BLOB bytes out of a query result."""

    DIRECT = "direct"
    MEMORY = "memory"
    FILE = "file"


class FileMetadata(BaseModel):
    """Metadata for one stored file, captured without its content."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    directory: str
    filename: str
    content_length: int
    last_modified: datetime

    @property
    def path(self) -> str:
        """Return the full virtual path."""
        return self.directory + self.filename


class HealthStatus(BaseModel):
    """File Store and backing table readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    table: str
    detail: str
