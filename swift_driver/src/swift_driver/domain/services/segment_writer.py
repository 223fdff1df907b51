"""Segmented offset writes.

A write at an offset is turned into a sequence of whole-segment PUTs:

1. The manifest is looked up and created on first write.
2. The stored segments are listed and a :class:`WritePlan` is computed.
3. Gaps past the end of the data are padded with zero segments.
4. Caller data is streamed one chunk per segment. The first segment carries
   the retained head of the old segment (plus zero fill); the last one carries
   the old segment's tail past the written range, read before overwriting.

Only caller bytes that landed in committed segments are reported, so a write
interrupted by an error can be resumed at ``offset + bytes_written``.
"""

from __future__ import annotations

from typing import BinaryIO

from swift_driver.domain.entities.segment import Segment
from swift_driver.domain.errors import PartialWriteError, translate_error, translated
from swift_driver.domain.services.manifest_manager import ManifestManager
from swift_driver.domain.services.padding import PaddingEngine
from swift_driver.domain.services.segment_planner import WritePlan, plan_write
from swift_driver.domain.value_objects.addressing import (
    DEFAULT_CONTENT_TYPE,
    SegmentAddressing,
    is_segment_of,
)
from swift_driver.infrastructure.logging import get_logger
from swift_driver.infrastructure.metrics import SwiftDriverMetrics
from swift_driver.ports.outbound.object_store import ByteRange, ObjectStorePort, StoreError

logger = get_logger("segment_writer")


def read_chunk(reader: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, tolerating short reads from the reader."""
    buf = bytearray()
    while len(buf) < size:
        data = reader.read(size - len(buf))
        if not data:
            break
        buf += data
    return bytes(buf)


def list_segments(
    store: ObjectStorePort, container: str, prefix: str
) -> list[Segment]:
    """List the numbered segments stored under ``prefix``, in order."""
    segments = []
    for info in store.list_objects(container, prefix=prefix):
        if is_segment_of(info.name, prefix):
            segments.append(
                Segment(number=int(info.name[len(prefix):]), name=info.name, size=info.size)
            )
    return segments


class SegmentWriter:
    """Streams caller data into fixed-size segments behind a manifest."""

    def __init__(
        self,
        store: ObjectStorePort,
        addressing: SegmentAddressing,
        chunk_size: int,
        metrics: SwiftDriverMetrics | None = None,
    ) -> None:
        self._store = store
        self._addressing = addressing
        self._chunk_size = chunk_size
        self._metrics = metrics
        self._manifests = ManifestManager(store, addressing)
        self._padding = PaddingEngine(store, addressing, chunk_size, metrics)

    @property
    def manifests(self) -> ManifestManager:
        return self._manifests

    def write(self, path: str, offset: int, reader: BinaryIO) -> int:
        """Write the reader's content into ``path`` starting at ``offset``.

        Args:
            path: Logical path.
            offset: Logical offset of the first caller byte.
            reader: Binary stream, consumed until EOF.

        Returns:
            Number of caller bytes committed.

        Raises:
            PathNotFoundError, StoreError: If preparing the write fails, before
                any caller data is read.
            PartialWriteError: If a segment fails once caller data is being
                streamed; carries the committed byte count.
        """
        existing = self._manifests.ensure_manifest(path)
        with translated(path):
            segments = list_segments(
                self._store,
                self._addressing.segments_container,
                self._addressing.segment_prefix(path),
            )

        if existing is None:
            # leftovers of an object that was replaced by a plain PUT
            self._discard(path, segments)
            segments = []
            current_length = 0
        elif not existing.is_manifest:
            segments = self._convert(path, segments)
            current_length = sum(s.size for s in segments)
        else:
            current_length = existing.size

        plan = plan_write(
            offset, current_length, self._chunk_size, [s.size for s in segments]
        )
        logger.debug(
            "write_planned",
            path=path,
            offset=offset,
            current_length=current_length,
            part=plan.part,
            cursor=plan.cursor,
            zero_segments=plan.zero_segments,
            extends=plan.extends,
        )
        self._padding.pad(path, plan)
        prefix = self._padding.prefix(path, plan)
        return self._stream(path, plan, prefix, reader, current_length)

    def _convert(self, path: str, stale: list[Segment]) -> list[Segment]:
        """Turn a plain object into segments behind a manifest.

        The segments are written before the manifest replaces the plain
        object, so its content stays readable throughout.
        """
        container = self._addressing.container
        with translated(path):
            data = self._store.get_object(container, self._addressing.object_name(path))
            segments = []
            for number, start in enumerate(range(0, len(data), self._chunk_size), start=1):
                chunk = data[start:start + self._chunk_size]
                self._put_segment(path, number, chunk)
                segments.append(
                    Segment(number, self._addressing.segment_name(path, number), len(chunk))
                )
        self._discard(path, [s for s in stale if s.number > len(segments)])
        self._manifests.create_manifest(path)
        logger.info("plain_object_segmented", path=path, size=len(data), segments=len(segments))
        return segments

    def _discard(self, path: str, segments: list[Segment]) -> None:
        container = self._addressing.segments_container
        for segment in segments:
            with translated(segment.name):
                self._store.delete_object(container, segment.name)
        if segments:
            logger.warning("stale_segments_removed", path=path, count=len(segments))

    def _stream(
        self,
        path: str,
        plan: WritePlan,
        prefix: bytes,
        reader: BinaryIO,
        current_length: int,
    ) -> int:
        part = plan.part
        cursor = plan.cursor
        written = 0
        try:
            while True:
                data = read_chunk(reader, self._chunk_size - len(prefix))
                chunk = prefix + data
                prefix = b""
                if len(chunk) < self._chunk_size:
                    if not chunk:
                        break
                    if cursor + len(chunk) < current_length:
                        chunk += self._tail(path, part, len(chunk))
                    self._put_segment(path, part, chunk)
                    written += len(data)
                    break

                self._put_segment(path, part, chunk)
                written += len(data)
                cursor += self._chunk_size
                part += 1
        except StoreError as exc:
            logger.warning(
                "segment_write_failed",
                path=path,
                part=part,
                bytes_written=written,
                status_code=exc.status_code,
            )
            raise PartialWriteError(path, written, str(exc)) from translate_error(path, exc)

        if self._metrics is not None:
            self._metrics.bytes_written.inc(written)
        logger.info("write_completed", path=path, bytes_written=written, last_part=part)
        return written

    def _tail(self, path: str, part: int, start: int) -> bytes:
        """Old bytes of segment ``part`` from ``start`` to its end."""
        try:
            return self._store.get_object(
                self._addressing.segments_container,
                self._addressing.segment_name(path, part),
                ByteRange(start),
            )
        except StoreError as exc:
            if exc.status_code == 416:
                return b""
            raise

    def _put_segment(self, path: str, part: int, chunk: bytes) -> None:
        self._store.put_object(
            self._addressing.segments_container,
            self._addressing.segment_name(path, part),
            chunk,
            content_type=DEFAULT_CONTENT_TYPE,
        )
        if self._metrics is not None:
            self._metrics.segments_written.labels(kind="data").inc()
        logger.debug("segment_written", path=path, part=part, size=len(chunk))
