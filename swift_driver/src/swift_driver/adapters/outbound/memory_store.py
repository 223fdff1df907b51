"""In-memory object store with Swift semantics.

This adapter implements the ObjectStorePort protocol entirely in memory. It
mirrors the behaviour the driver relies on from Swift:

- manifests (objects with a manifest reference) are read as the name-ordered
  concatenation of every object under the referenced prefix
- missing containers and objects are reported as 404
- a range starting at or past the end of the content is reported as 416
- delimiter listings group deeper names into pseudo-directory entries
- bulk delete is only available when enabled

Failures can be injected per method to exercise partial-failure paths.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO

from swift_driver.ports.outbound.object_store import (
    BulkDeleteResult,
    ByteRange,
    ManifestRef,
    ObjectInfo,
    StoreError,
)


@dataclass
class StoredObject:
    """An object as held by the in-memory store."""

    data: bytes
    content_type: str
    last_modified: datetime
    manifest: ManifestRef | None = None


@dataclass
class FailureRule:
    """Fail calls to ``method`` once ``after`` matching calls have succeeded."""

    method: str
    status_code: int | None = 500
    after: int = 0
    name_prefix: str | None = None
    calls: int = field(default=0, init=False)


class InMemoryObjectStore:
    """In-memory implementation of the ObjectStorePort protocol.

    Attributes:
        calls: Every call made, as ``(method, container, name)`` tuples.
    """

    def __init__(
        self,
        bulk_delete: bool = False,
        max_deletes_per_request: int = 10000,
    ) -> None:
        """Initialize the store.

        Args:
            bulk_delete: Advertise and accept bulk deletes.
            max_deletes_per_request: Bulk delete batch limit to advertise.
        """
        self._containers: dict[str, dict[str, StoredObject]] = {}
        self._bulk_delete = bulk_delete
        self._max_deletes = max_deletes_per_request
        self._failures: list[FailureRule] = []
        self.calls: list[tuple[str, str, str]] = []

    # ------------------------------------------------------------------
    # Failure injection and inspection
    # ------------------------------------------------------------------

    def inject_failure(
        self,
        method: str,
        status_code: int | None = 500,
        after: int = 0,
        name_prefix: str | None = None,
    ) -> None:
        """Make calls to ``method`` fail.

        Args:
            method: Port method name, e.g. ``"put_object"``.
            status_code: Status of the raised StoreError (``None`` = transport).
            after: Number of matching calls that still succeed first.
            name_prefix: Only calls whose object name starts with this match.
        """
        self._failures.append(FailureRule(method, status_code, after, name_prefix))

    def clear_failures(self) -> None:
        self._failures.clear()

    def names(self, container: str) -> list[str]:
        """Raw object names stored in a container, sorted."""
        return sorted(self._containers.get(container, {}))

    def raw(self, container: str, name: str) -> StoredObject:
        """The stored object itself, without manifest assembly."""
        return self._containers[container][name]

    def call_count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    # ------------------------------------------------------------------
    # ObjectStorePort
    # ------------------------------------------------------------------

    def create_container(self, container: str) -> None:
        self._enter("create_container", container, "")
        self._containers.setdefault(container, {})

    def head_object(self, container: str, name: str) -> ObjectInfo:
        self._enter("head_object", container, name)
        obj = self._lookup(container, name)
        return ObjectInfo(
            name=name,
            size=len(self._assemble(obj)),
            content_type=obj.content_type,
            last_modified=obj.last_modified,
            manifest=obj.manifest,
        )

    def get_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> bytes:
        self._enter("get_object", container, name)
        return self._read(container, name, byte_range)

    def open_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> BinaryIO:
        self._enter("open_object", container, name)
        return io.BytesIO(self._read(container, name, byte_range))

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        manifest: ManifestRef | None = None,
    ) -> None:
        self._enter("put_object", container, name)
        objects = self._container(container)
        objects[name] = StoredObject(
            data=bytes(data),
            content_type=content_type,
            last_modified=datetime.now(timezone.utc),
            manifest=manifest,
        )

    def copy_object(
        self, src_container: str, src_name: str, dst_container: str, dst_name: str
    ) -> None:
        self._enter("copy_object", src_container, src_name)
        source = self._lookup(src_container, src_name)
        data = self._assemble(source)
        self._container(dst_container)[dst_name] = StoredObject(
            data=data,
            content_type=source.content_type,
            last_modified=datetime.now(timezone.utc),
        )

    def delete_object(self, container: str, name: str) -> None:
        self._enter("delete_object", container, name)
        self._lookup(container, name)
        del self._containers[container][name]

    def bulk_delete(self, paths: list[str]) -> BulkDeleteResult:
        self._enter("bulk_delete", "", "")
        if not self._bulk_delete:
            raise StoreError("Bulk delete is not enabled", status_code=501)
        if len(paths) > self._max_deletes:
            raise StoreError("Too many deletes in one request", status_code=413)

        result = BulkDeleteResult()
        for path in paths:
            container, _, name = path.partition("/")
            objects = self._containers.get(container)
            if objects is None:
                result.errors.append((path, "404 Not Found"))
            elif name in objects:
                del objects[name]
                result.deleted += 1
            else:
                result.not_found += 1
        return result

    def list_objects(
        self, container: str, prefix: str = "", delimiter: str | None = None
    ) -> list[ObjectInfo]:
        self._enter("list_objects", container, prefix)
        objects = self._container(container)
        entries: dict[str, ObjectInfo] = {}
        for name in sorted(objects):
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            if delimiter and delimiter in rest:
                subdir = prefix + rest[: rest.index(delimiter) + 1]
                entries.setdefault(subdir, ObjectInfo(name=subdir, size=0, is_pseudo_dir=True))
                continue
            obj = objects[name]
            entries[name] = ObjectInfo(
                name=name,
                size=len(obj.data),
                content_type=obj.content_type,
                last_modified=obj.last_modified,
            )
        return [entries[key] for key in sorted(entries)]

    def capabilities(self) -> dict[str, Any]:
        self._enter("capabilities", "", "")
        info: dict[str, Any] = {"swift": {"version": "in-memory"}}
        if self._bulk_delete:
            info["bulk_delete"] = {"max_deletes_per_request": self._max_deletes}
        return info

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter(self, method: str, container: str, name: str) -> None:
        self.calls.append((method, container, name))
        for rule in self._failures:
            if rule.method != method:
                continue
            if rule.name_prefix is not None and not name.startswith(rule.name_prefix):
                continue
            rule.calls += 1
            if rule.calls > rule.after:
                raise StoreError(
                    f"Injected {method} failure",
                    status_code=rule.status_code,
                    container=container,
                    name=name,
                )

    def _container(self, container: str) -> dict[str, StoredObject]:
        try:
            return self._containers[container]
        except KeyError:
            raise StoreError(
                f"Container not found: {container}", status_code=404, container=container
            ) from None

    def _lookup(self, container: str, name: str) -> StoredObject:
        objects = self._container(container)
        try:
            return objects[name]
        except KeyError:
            raise StoreError(
                f"Object not found: {container}/{name}",
                status_code=404,
                container=container,
                name=name,
            ) from None

    def _read(self, container: str, name: str, byte_range: ByteRange | None) -> bytes:
        data = self._assemble(self._lookup(container, name))
        if byte_range is None:
            return data
        if byte_range.start >= len(data):
            raise StoreError(
                f"Range not satisfiable: {byte_range.to_header()}",
                status_code=416,
                container=container,
                name=name,
            )
        end = len(data) if byte_range.end is None else byte_range.end + 1
        return data[byte_range.start:end]

    def _assemble(self, obj: StoredObject) -> bytes:
        if obj.manifest is None:
            return obj.data
        segments = self._containers.get(obj.manifest.container, {})
        return b"".join(
            segments[name].data
            for name in sorted(segments)
            if name.startswith(obj.manifest.prefix)
        )
