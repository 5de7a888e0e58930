"""File Store native package exports."""

from packages.tablefs_shared.errors import ErrorCategory, ErrorDetail
from packages.tablefs_shared.result import Result
from services.state.file_store.component import SERVICE_COMPONENT_ID
from services.state.file_store.config import FileStoreSettings
from services.state.file_store.domain import (
    BlobExtraction,
    Compression,
    FileMetadata,
    HealthStatus,
)
from services.state.file_store.extraction import (
    DirectBlobExtractor,
    FileBufferedBlobExtractor,
    MemoryBufferedBlobExtractor,
    build_blob_extractor,
)
from services.state.file_store.handle import StoredFile
from services.state.file_store.implementation import DefaultFileStore
from services.state.file_store.interfaces import BlobExtractor, Resource
from services.state.file_store.paths import VirtualPath
from services.state.file_store.service import FileStoreService, build_file_store
from services.state.file_store.sources import (
    BytesResource,
    FileResource,
    StreamResource,
)

__all__ = [
    "SERVICE_COMPONENT_ID",
    "BlobExtraction",
    "BlobExtractor",
    "BytesResource",
    "Compression",
    "DefaultFileStore",
    "DirectBlobExtractor",
    "ErrorCategory",
    "ErrorDetail",
    "FileBufferedBlobExtractor",
    "FileMetadata",
    "FileResource",
    "FileStoreService",
    "FileStoreSettings",
    "HealthStatus",
    "MemoryBufferedBlobExtractor",
    "Result",
    "StoredFile",
    "StreamResource",
    "VirtualPath",
    "build_blob_extractor",
    "build_file_store",
]
