"""Swift storage driver - byte-addressable files over Dynamic Large Objects.

A logical file is either a plain object (written whole by ``put_content``) or
a zero-length manifest in the primary container pointing at numbered,
fixed-size segments in ``<container>_segments``. Offset writes, resumable
uploads and recursive deletes are composed out of whole-object store calls.

Usage:
    driver = SwiftDriver(store, container="registry", chunk_size=20 << 20)
    written = driver.write_stream("/uploads/1", 0, io.BytesIO(b"..."))
    data = driver.get_content("/uploads/1")
"""

from __future__ import annotations

import io
from contextlib import contextmanager
from typing import BinaryIO, Iterator

from opentelemetry import trace

from swift_driver.domain.entities.file_info import FileInfo
from swift_driver.domain.errors import (
    InvalidOffsetError,
    InvalidPathError,
    UnsupportedMethodError,
    translated,
)
from swift_driver.domain.services.recursive_delete import RecursiveDeleter
from swift_driver.domain.services.segment_writer import SegmentWriter
from swift_driver.domain.value_objects.addressing import (
    DEFAULT_CONTENT_TYPE,
    DIRECTORY_MIME_TYPE,
    SegmentAddressing,
    is_valid_path,
)
from swift_driver.domain.value_objects.capabilities import StoreCapabilities
from swift_driver.infrastructure.config import DEFAULT_CHUNK_SIZE
from swift_driver.infrastructure.logging import get_logger
from swift_driver.infrastructure.metrics import SwiftDriverMetrics
from swift_driver.infrastructure.tracing import get_tracer, operation_span
from swift_driver.ports.outbound.object_store import ByteRange, ObjectStorePort, StoreError

logger = get_logger("swift_driver")

DRIVER_NAME = "swift"


class SwiftDriver:
    """StorageDriverPort implementation on top of an ObjectStorePort."""

    def __init__(
        self,
        store: ObjectStorePort,
        container: str,
        prefix: str = "",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        capabilities: StoreCapabilities | None = None,
        metrics: SwiftDriverMetrics | None = None,
        tracer: trace.Tracer | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            store: Remote object store. Both containers must already exist.
            container: Primary container name.
            prefix: Root prefix prepended to every logical path.
            chunk_size: Size of every non-terminal segment.
            capabilities: Store features discovered at construction time.
            metrics: Prometheus metrics; operations are not measured if omitted.
            tracer: OpenTelemetry tracer.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._store = store
        self._addressing = SegmentAddressing(container=container, prefix=prefix)
        self._chunk_size = chunk_size
        self._capabilities = capabilities or StoreCapabilities()
        self._metrics = metrics
        self._tracer = tracer or get_tracer()
        self._writer = SegmentWriter(store, self._addressing, chunk_size, metrics)
        self._deleter = RecursiveDeleter(
            store, self._addressing, self._capabilities, metrics
        )

    @property
    def name(self) -> str:
        return DRIVER_NAME

    @property
    def addressing(self) -> SegmentAddressing:
        return self._addressing

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def capabilities(self) -> StoreCapabilities:
        return self._capabilities

    # ------------------------------------------------------------------
    # Whole-object operations
    # ------------------------------------------------------------------

    def get_content(self, path: str) -> bytes:
        """Read the whole content of ``path``.

        Raises:
            PathNotFoundError: If nothing is stored at ``path``.
        """
        with self._operation("get_content", path):
            with translated(path):
                return self._store.get_object(
                    self._addressing.container, self._addressing.object_name(path)
                )

    def put_content(self, path: str, data: bytes) -> None:
        """Store ``data`` at ``path`` as a single plain object.

        Missing parent directories get directory markers. If ``path`` was a
        manifest, the segments it pointed at are removed once the new content
        is in place.
        """
        with self._operation("put_content", path, size=len(data)):
            manifests = self._writer.manifests
            previous = manifests.lookup(path)
            manifests.create_parent_folders(path)
            with translated(path):
                self._store.put_object(
                    self._addressing.container,
                    self._addressing.object_name(path),
                    data,
                    content_type=DEFAULT_CONTENT_TYPE,
                )
            if previous is not None and previous.manifest is not None:
                self._deleter.collector.collect(previous.manifest)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def read_stream(self, path: str, offset: int) -> BinaryIO:
        """Open a stream over the content of ``path`` from ``offset``.

        The content is fetched as the stream is read; the caller closes it.
        An offset at or past the end yields an empty stream.

        Raises:
            InvalidOffsetError: If ``offset`` is negative.
            PathNotFoundError: If nothing is stored at ``path``.
        """
        with self._operation("read_stream", path, offset=offset):
            if offset < 0:
                raise InvalidOffsetError(path, offset)
            with translated(path):
                try:
                    return self._store.open_object(
                        self._addressing.container,
                        self._addressing.object_name(path),
                        ByteRange(offset),
                    )
                except StoreError as exc:
                    if exc.status_code != 416:
                        raise
            return io.BytesIO()

    def write_stream(self, path: str, offset: int, reader: BinaryIO) -> int:
        """Write the reader's content into ``path`` starting at ``offset``.

        The gap between the current end of the file and ``offset`` is
        zero-filled. The returned count only includes bytes in committed
        segments; see :class:`SegmentWriter`.

        Raises:
            InvalidOffsetError: If ``offset`` is negative.
            PartialWriteError: If the write fails after streaming began.
        """
        with self._operation("write_stream", path, offset=offset):
            if offset < 0:
                raise InvalidOffsetError(path, offset)
            return self._writer.write(path, offset, reader)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def stat(self, path: str) -> FileInfo:
        with self._operation("stat", path):
            with translated(path):
                info = self._store.head_object(
                    self._addressing.container, self._addressing.object_name(path)
                )
            return FileInfo(
                path=path,
                size=info.size,
                is_dir=info.content_type == DIRECTORY_MIME_TYPE,
                mod_time=info.last_modified,
            )

    def list(self, path: str) -> list[str]:
        """List the direct children of ``path``.

        Directory markers are reported as children; pseudo-directories that
        only exist as a shared name prefix are not.
        """
        with self._operation("list", path):
            prefix = self._addressing.object_name(path).rstrip("/")
            if prefix:
                prefix += "/"
            with translated(path):
                listing = self._store.list_objects(
                    self._addressing.container, prefix=prefix, delimiter="/"
                )
            return sorted(
                {
                    self._addressing.logical_path(info.name)
                    for info in listing
                    if not info.is_pseudo_dir
                }
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def move(self, source: str, dest: str) -> None:
        """Move ``source`` to ``dest`` by server-side copy and delete.

        A moved manifest arrives at ``dest`` as a plain object holding the
        assembled content; the source segments are removed afterwards. If
        ``dest`` was a manifest, the segments it pointed at are removed too.
        """
        self._validate(dest)
        with self._operation("move", source, dest=dest):
            container = self._addressing.container
            with translated(source):
                info = self._store.head_object(container, self._addressing.object_name(source))
            if source == dest:
                return
            replaced = self._writer.manifests.lookup(dest)
            with translated(source):
                self._store.copy_object(
                    container,
                    self._addressing.object_name(source),
                    container,
                    self._addressing.object_name(dest),
                )
                self._store.delete_object(container, self._addressing.object_name(source))
            if info.manifest is not None:
                collected = self._deleter.collector.collect(info.manifest)
                logger.debug("moved_manifest_collected", source=source, segments=collected)
            if replaced is not None and replaced.manifest is not None:
                collected = self._deleter.collector.collect(replaced.manifest)
                logger.debug("replaced_manifest_collected", dest=dest, segments=collected)

    def delete(self, path: str) -> None:
        """Recursively delete ``path``, its descendants and their segments."""
        with self._operation("delete", path):
            self._deleter.delete(path)

    def url_for(self, path: str) -> str:
        with self._operation("url_for", path):
            raise UnsupportedMethodError("url_for")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, path: str) -> None:
        if not is_valid_path(path):
            raise InvalidPathError(path)

    @contextmanager
    def _operation(self, operation: str, path: str, **attributes: object) -> Iterator[None]:
        """Validate the path, then trace and measure one driver operation."""
        self._validate(path)
        with operation_span(self._tracer, operation, path=path, **attributes):
            if self._metrics is None:
                yield
                return
            self._metrics.operations.labels(operation=operation).inc()
            in_flight = self._metrics.operations_in_flight.labels(operation=operation)
            latency = self._metrics.operation_latency.labels(operation=operation)
            try:
                with in_flight.track_inprogress(), latency.time():
                    yield
            except Exception as exc:
                self._metrics.request_errors.labels(
                    operation=operation, error_type=type(exc).__name__
                ).inc()
                raise
