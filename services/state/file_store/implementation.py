"""Concrete File Store implementation over one SQL table."""

from __future__ import annotations

import logging
from contextlib import closing
from datetime import UTC, datetime
from typing import Any, BinaryIO

from sqlalchemy import Table
from sqlalchemy.exc import SQLAlchemyError

from packages.tablefs_shared.config import TableFsSettings
from packages.tablefs_shared.errors import (
    TableFsError,
    TableFsValidationError,
    codes,
    conflict_error,
    dependency_error,
    not_found_error,
    validation_error,
)
from packages.tablefs_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_logged,
)
from packages.tablefs_shared.result import Result, empty, failure, success
from resources.substrates.sql import (
    Bind,
    create_sql_engine,
    is_unique_violation,
    normalize_sql_error,
    resolve_sql_settings,
)
from services.state.file_store.component import SERVICE_COMPONENT_ID
from services.state.file_store.compression import deflating, inflating
from services.state.file_store.config import resolve_file_store_settings
from services.state.file_store.data import SqlFileRepository, build_file_table
from services.state.file_store.domain import Compression, FileMetadata, HealthStatus
from services.state.file_store.extraction import build_blob_extractor
from services.state.file_store.handle import StoredFile
from services.state.file_store.interfaces import BlobExtractor, FileRepository, Resource
from services.state.file_store.paths import VirtualPath
from services.state.file_store.service import FileStoreService
from services.state.file_store.streams import CountingReader

_LOGGER = get_logger(__name__)

UNKNOWN_LENGTH = -1


class DefaultFileStore(FileStoreService):
    """File Store keeping each file as one row with its content in a BLOB column.

    ``bind`` is either an ``Engine``, in which case every call runs in its own
    transaction, or a caller-owned ``Connection`` whose unit of work every
    call joins. The store never closes a caller-owned connection.
    """

    def __init__(
        self,
        *,
        bind: Bind,
        table_name: str,
        compression: Compression,
        extractor: BlobExtractor,
        table_schema: str | None = None,
        repository: FileRepository | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        required = {
            "bind": bind,
            "table_name": table_name,
            "compression": compression,
            "extractor": extractor,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise TableFsValidationError(
                message=f"missing required arguments: {', '.join(missing)}",
                operation="DefaultFileStore",
            )
        if table_name.strip() == "":
            raise TableFsValidationError(
                message="table_name is required", operation="DefaultFileStore"
            )

        self._logger = logger or _LOGGER
        self._compression = Compression(compression)
        self._extractor = extractor
        self._table = build_file_table(table_name.strip(), schema=table_schema)
        self._repository = repository or SqlFileRepository(
            bind, self._table, logger=self._logger
        )

    @classmethod
    def from_settings(
        cls, settings: TableFsSettings, *, bind: Bind | None = None
    ) -> "DefaultFileStore":
        """Build the store from typed settings, creating an engine if needed."""
        store_settings = resolve_file_store_settings(settings)
        if bind is None:
            bind = create_sql_engine(resolve_sql_settings(settings))
        return cls(
            bind=bind,
            table_name=store_settings.table_name,
            table_schema=store_settings.table_schema,
            compression=store_settings.compression,
            extractor=build_blob_extractor(
                store_settings.extraction,
                buffer_directory=store_settings.buffer_directory,
            ),
        )

    @property
    def table(self) -> Table:
        """Return the SQLAlchemy definition of the backing table."""
        return self._table

    @property
    def compression(self) -> Compression:
        return self._compression

    @property
    def extractor(self) -> BlobExtractor:
        return self._extractor

    @public_api_logged(component_id=SERVICE_COMPONENT_ID, id_fields=("directory",))
    def list(
        self, *, directory: str | None, recurse: bool = False
    ) -> Result[list[StoredFile]]:
        """List files in ``directory``; with ``recurse``, everything below it too.

        Only metadata is read. Result order is whatever the backend returns.
        """
        target = VirtualPath.for_directory(directory)
        try:
            rows = self._repository.list_files(
                directory=target.directory, recurse=recurse
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(operation="list", path=target, exc=exc)
        return success(payload=[self._handle(metadata) for metadata in rows])

    @public_api_logged(component_id=SERVICE_COMPONENT_ID, id_fields=("path",))
    def get(self, *, path: str) -> Result[StoredFile]:
        """Look up one file; its content is fetched only when opened."""
        if path is None:
            return _invalid_argument("path")
        target = VirtualPath.for_file(path)
        try:
            metadata = self._repository.get_file(
                directory=target.directory, filename=target.filename
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(operation="get", path=target, exc=exc)
        if metadata is None:
            return _not_found(target)
        return success(payload=self._handle(metadata))

    @public_api_logged(component_id=SERVICE_COMPONENT_ID, id_fields=("path",))
    def write(self, *, path: str, resource: Resource) -> Result[None]:
        """Store the content of ``resource`` as a new file at ``path``.

        The path must be free. When the resource cannot report its length
        upfront, the row is written with a placeholder length that is corrected
        from the counted bytes before the transaction commits.

        The (possibly compressed) payload is read into memory to bind the
        insert, so peak memory use is about the size of the stored payload.
        """
        if path is None:
            return _invalid_argument("path")
        if resource is None:
            return _invalid_argument("resource")
        target = VirtualPath.for_file(path)
        if target.is_directory:
            return _invalid_argument("path", reason="must name a file")

        compressed = self._compression is not Compression.NONE
        try:
            known_length = self._known_length(resource)
            last_modified = self._resolve_last_modified(resource)
            counter = CountingReader(resource.open_stream())
            with closing(deflating(counter, self._compression)) as contents:
                self._repository.insert_file(
                    directory=target.directory,
                    filename=target.filename,
                    content_length=(
                        UNKNOWN_LENGTH if known_length is None else known_length
                    ),
                    last_modified=last_modified,
                    compressed=compressed,
                    contents=contents,
                    measured_length=(
                        (lambda: counter.count) if known_length is None else None
                    ),
                )
        except Exception as exc:  # noqa: BLE001
            if is_unique_violation(exc):
                return _already_exists(target, exc=exc)
            return self._dependency_failure(operation="write", path=target, exc=exc)
        return empty()

    @public_api_logged(
        component_id=SERVICE_COMPONENT_ID, id_fields=("source", "target")
    )
    def move(self, *, source: str, target: str) -> Result[None]:
        """Re-key one file to ``target``; the target path must be free."""
        if source is None:
            return _invalid_argument("source")
        if target is None:
            return _invalid_argument("target")
        origin = VirtualPath.for_file(source)
        destination = VirtualPath.for_file(target)
        if destination.is_directory:
            return _invalid_argument("target", reason="must name a file")
        try:
            moved = self._repository.move_file(
                directory=origin.directory,
                filename=origin.filename,
                target_directory=destination.directory,
                target_filename=destination.filename,
            )
        except Exception as exc:  # noqa: BLE001
            if is_unique_violation(exc):
                return _already_exists(destination, exc=exc)
            return self._dependency_failure(operation="move", path=origin, exc=exc)
        if moved == 0:
            return _not_found(origin)
        return empty()

    @public_api_logged(component_id=SERVICE_COMPONENT_ID, id_fields=("path",))
    def delete(self, *, path: str) -> Result[None]:
        """Delete one file."""
        if path is None:
            return _invalid_argument("path")
        target = VirtualPath.for_file(path)
        try:
            deleted = self._repository.delete_file(
                directory=target.directory, filename=target.filename
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(operation="delete", path=target, exc=exc)
        if deleted == 0:
            return _not_found(target)
        return empty()

    @public_api_logged(component_id=SERVICE_COMPONENT_ID)
    def health(self) -> Result[HealthStatus]:
        """Return readiness based on a trivial query against the backing table."""
        root = VirtualPath.for_directory(None)
        try:
            self._repository.count_files(
                directory=root.directory, filename=root.filename
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(operation="health", path=root, exc=exc)
        return success(
            payload=HealthStatus(
                service_ready=True,
                table=self._repository.table_name,
                detail="ok",
            )
        )

    def _handle(self, metadata: FileMetadata) -> StoredFile:
        return StoredFile(
            metadata,
            opener=self._open_content,
            exists=self._exists,
            logger=self._logger,
        )

    def _open_content(self, metadata: FileMetadata) -> Result[BinaryIO]:
        """Fetch and unwrap the content of one row through the extraction strategy."""
        target = VirtualPath(directory=metadata.directory, filename=metadata.filename)
        try:
            opened = self._repository.open_contents(
                directory=target.directory,
                filename=target.filename,
                extractor=self._extractor,
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(operation="open", path=target, exc=exc)
        if opened is None:
            return _not_found(target)
        compressed, stream = opened
        return success(payload=inflating(stream) if compressed else stream)

    def _exists(self, metadata: FileMetadata) -> bool:
        try:
            count = self._repository.count_files(
                directory=metadata.directory, filename=metadata.filename
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.debug(
                "exists check failed: path=%s exception_type=%s",
                metadata.path,
                type(exc).__name__,
                exc_info=exc,
            )
            return False
        return count > 0

    def _known_length(self, resource: Resource) -> int | None:
        """Return the upfront content length, or None when it is unknown."""
        if resource.is_open():
            return None
        try:
            length = resource.content_length()
        except OSError as exc:
            self._logger.debug(
                "content length unavailable: exception_type=%s",
                type(exc).__name__,
                exc_info=exc,
            )
            return None
        return length if length >= 0 else None

    def _resolve_last_modified(self, resource: Resource) -> datetime:
        """Return the resource timestamp when it has a positive epoch, else now."""
        try:
            value = resource.last_modified()
        except OSError as exc:
            self._logger.debug(
                "last modified unavailable: exception_type=%s",
                type(exc).__name__,
                exc_info=exc,
            )
            value = None
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if value is None or value.timestamp() <= 0:
            return datetime.now(UTC)
        return value

    def _dependency_failure(
        self,
        *,
        operation: str,
        path: VirtualPath,
        exc: Exception,
    ) -> Result[Any]:
        """Map one backend or resource exception into structured result errors."""
        if isinstance(exc, TableFsError) and exc.details:
            return failure(errors=exc.details)

        with log_context(
            {fields.PATH: str(path), fields.TABLE: self._repository.table_name}
        ):
            self._logger.warning(
                "%s failed due to dependency error: exception_type=%s",
                operation,
                type(exc).__name__,
                exc_info=exc,
            )
        if isinstance(exc, SQLAlchemyError):
            return failure(errors=[normalize_sql_error(exc)])
        return failure(
            errors=[
                dependency_error(
                    f"{operation} failed",
                    code=codes.DEPENDENCY_FAILURE,
                    retryable=False,
                    metadata={
                        "path": str(path),
                        "exception_type": type(exc).__name__,
                    },
                    cause=exc,
                )
            ]
        )


def _invalid_argument(name: str, *, reason: str = "is required") -> Result[Any]:
    """Return canonical invalid-argument result for one request field."""
    return failure(
        errors=[
            validation_error(
                f"{name} {reason}",
                code=codes.INVALID_ARGUMENT,
                metadata={"field": name},
            )
        ]
    )


def _not_found(path: VirtualPath) -> Result[Any]:
    """Return canonical not-found result for one path lookup."""
    return failure(
        errors=[
            not_found_error(
                "file not found",
                code=codes.RESOURCE_NOT_FOUND,
                metadata={"path": str(path)},
            )
        ]
    )


def _already_exists(path: VirtualPath, *, exc: BaseException) -> Result[Any]:
    """Return canonical conflict result for an occupied path."""
    return failure(
        errors=[
            conflict_error(
                "file already exists",
                code=codes.ALREADY_EXISTS,
                metadata={"path": str(path)},
                cause=exc,
            )
        ]
    )
