"""Recursive delete of a logical path and every segment behind it.

Deletion is driven by prefix enumeration, never by directory removal:

1. Every object that is the path itself or lies beneath it is listed.
2. If the store supports bulk delete, those objects and every segment stored
   under the same scope in the segments container are removed in batches.
3. Otherwise, or if any batch fails, objects are removed one by one. A
   manifest's segments are discovered through its manifest reference and
   deleted before the manifest itself.

Delete is not transactional: a failure leaves the remaining objects in place.
"""

from __future__ import annotations

from typing import Iterator

from swift_driver.domain.errors import PathNotFoundError, translated
from swift_driver.domain.value_objects.addressing import SegmentAddressing, is_segment_of
from swift_driver.domain.value_objects.capabilities import StoreCapabilities
from swift_driver.infrastructure.logging import get_logger
from swift_driver.infrastructure.metrics import SwiftDriverMetrics
from swift_driver.ports.outbound.object_store import ManifestRef, ObjectStorePort, StoreError

logger = get_logger("recursive_delete")


def batched(items: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class SegmentCollector:
    """Finds and deletes the segments a manifest points at."""

    def __init__(self, store: ObjectStorePort, metrics: SwiftDriverMetrics | None = None) -> None:
        self._store = store
        self._metrics = metrics

    def segment_names(self, ref: ManifestRef) -> list[str]:
        return [
            info.name
            for info in self._store.list_objects(ref.container, prefix=ref.segment_prefix)
            if is_segment_of(info.name, ref.segment_prefix)
        ]

    def collect(self, ref: ManifestRef) -> int:
        """Delete every segment referenced by ``ref``.

        Returns:
            Number of segments deleted.
        """
        with translated(ref.prefix):
            names = self.segment_names(ref)
        for name in names:
            with translated(name):
                self._store.delete_object(ref.container, name)
        if self._metrics is not None and names:
            self._metrics.segments_deleted.inc(len(names))
        return len(names)


class RecursiveDeleter:
    """Deletes everything stored at or below a logical path."""

    def __init__(
        self,
        store: ObjectStorePort,
        addressing: SegmentAddressing,
        capabilities: StoreCapabilities,
        metrics: SwiftDriverMetrics | None = None,
    ) -> None:
        self._store = store
        self._addressing = addressing
        self._capabilities = capabilities
        self._metrics = metrics
        self._collector = SegmentCollector(store, metrics)

    @property
    def collector(self) -> SegmentCollector:
        return self._collector

    def delete(self, path: str) -> None:
        """Delete ``path`` and all of its descendants.

        Raises:
            PathNotFoundError: If nothing is stored at or below ``path``.
            StoreError: If a remote call fails; objects deleted so far stay deleted.
        """
        names = self._scoped_names(self._addressing.container, path)
        if not names:
            raise PathNotFoundError(path)

        bulk_attempted = False
        if self._capabilities.bulk_delete:
            bulk_attempted = True
            if self._bulk_delete(path, names):
                self._record_bulk("ok")
                logger.info("path_deleted", path=path, objects=len(names), mode="bulk")
                return
            self._record_bulk("failed")

        self._delete_each(path, names, skip_missing=bulk_attempted)
        logger.info("path_deleted", path=path, objects=len(names), mode="single")

    def _scoped_names(self, container: str, path: str) -> list[str]:
        prefix = self._addressing.object_name(path).rstrip("/")
        with translated(path):
            listing = self._store.list_objects(container, prefix=prefix)
        return [info.name for info in listing if self._addressing.in_scope(info.name, path)]

    def _bulk_delete(self, path: str, names: list[str]) -> bool:
        segments_container = self._addressing.segments_container
        segments = self._scoped_names(segments_container, path)
        # segments go first so a failed batch still leaves manifests to discover them
        paths = [f"{segments_container}/{name}" for name in segments]
        paths += [f"{self._addressing.container}/{name}" for name in names]

        for batch in batched(paths, self._capabilities.max_deletes_per_request):
            try:
                result = self._store.bulk_delete(batch)
            except StoreError as exc:
                logger.warning(
                    "bulk_delete_failed", path=path, status_code=exc.status_code, error=str(exc)
                )
                return False
            if not result.ok:
                logger.warning("bulk_delete_failed", path=path, errors=result.errors[:5])
                return False

        if self._metrics is not None and segments:
            self._metrics.segments_deleted.inc(len(segments))
        return True

    def _delete_each(self, path: str, names: list[str], skip_missing: bool) -> None:
        container = self._addressing.container
        for name in names:
            with translated(name):
                self._delete_one(container, name, skip_missing)
        self._sweep_orphans(path)

    def _delete_one(self, container: str, name: str, skip_missing: bool) -> None:
        try:
            info = self._store.head_object(container, name)
        except StoreError as exc:
            if skip_missing and exc.is_not_found:
                return
            raise

        if info.manifest is not None:
            self._collector.collect(info.manifest)

        try:
            self._store.delete_object(container, name)
        except StoreError as exc:
            if skip_missing and exc.is_not_found:
                return
            raise

    def _sweep_orphans(self, path: str) -> None:
        """Remove segments left in scope without a manifest pointing at them."""
        segments_container = self._addressing.segments_container
        orphans = self._scoped_names(segments_container, path)
        for name in orphans:
            with translated(name):
                self._store.delete_object(segments_container, name)
        if orphans:
            logger.warning("orphan_segments_removed", path=path, count=len(orphans))
            if self._metrics is not None:
                self._metrics.segments_deleted.inc(len(orphans))

    def _record_bulk(self, result: str) -> None:
        if self._metrics is not None:
            self._metrics.bulk_deletes.labels(result=result).inc()
