"""Object store port - the remote store the driver is built on.

The store only offers whole-object PUT/GET (optionally ranged), HEAD, DELETE,
server-side copy, prefix listing and an optional bulk delete. Everything the
driver needs for offset-addressable files is composed out of these calls.

References:
    - OpenStack Swift object API (Dynamic Large Objects, bulk middleware)
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Protocol


MANIFEST_HEADER = "X-Object-Manifest"


class StoreError(Exception):
    """Raised by store adapters for any failed remote call.

    Attributes:
        status_code: HTTP status of the failed call, ``None`` for transport errors.
        container: Container the call targeted, when known.
        name: Object name the call targeted, when known.
        path: Logical path, attached by the driver during translation.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        container: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.container = container
        self.name = name
        self.path: str | None = None

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


@dataclass(frozen=True)
class ManifestRef:
    """Pointer from a manifest object to the segments composing it.

    Serialized in the ``X-Object-Manifest`` header as ``<container>/<prefix>``.
    """

    container: str
    prefix: str

    def to_header(self) -> str:
        return f"{self.container}/{self.prefix}"

    @property
    def segment_prefix(self) -> str:
        """The prefix with a trailing slash, as segment names continue it."""
        return self.prefix if self.prefix.endswith("/") else self.prefix + "/"

    @classmethod
    def parse(cls, value: str) -> "ManifestRef":
        container, sep, prefix = value.partition("/")
        if not sep or not container:
            raise ValueError(f"Malformed manifest reference: {value!r}")
        return cls(container=container, prefix=prefix)


@dataclass
class ObjectInfo:
    """Metadata of a stored object, as returned by HEAD or a listing."""

    name: str
    size: int = 0
    content_type: str = "application/octet-stream"
    last_modified: datetime | None = None
    manifest: ManifestRef | None = None
    is_pseudo_dir: bool = False

    @property
    def is_manifest(self) -> bool:
        return self.manifest is not None


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range for ranged GETs; ``end=None`` reads to the end."""

    start: int
    end: int | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be non-negative, got {self.start}")
        if self.end is not None and self.end < self.start:
            raise ValueError(f"end {self.end} is before start {self.start}")

    def to_header(self) -> str:
        end = "" if self.end is None else str(self.end)
        return f"bytes={self.start}-{end}"


@dataclass
class BulkDeleteResult:
    """Outcome of a bulk delete request."""

    deleted: int = 0
    not_found: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ObjectStorePort(Protocol):
    """Protocol for the remote object store collaborator.

    Errors:
        Every method raises :class:`StoreError` on failure; a missing object
        is reported with ``status_code == 404``.
    """

    @abstractmethod
    def create_container(self, container: str) -> None:
        """Create a container; succeeds if it already exists."""
        ...

    @abstractmethod
    def head_object(self, container: str, name: str) -> ObjectInfo:
        """Fetch object metadata, including any manifest reference."""
        ...

    @abstractmethod
    def get_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> bytes:
        """Fetch object content, or a byte range of it.

        An unsatisfiable range is reported with ``status_code == 416``.
        """
        ...

    @abstractmethod
    def open_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> BinaryIO:
        """Open a stream over object content, or a byte range of it.

        The body is read as the caller consumes the stream; the caller closes
        it. Errors and the 416 for an unsatisfiable range are raised here,
        before any content is returned.
        """
        ...

    @abstractmethod
    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        manifest: ManifestRef | None = None,
    ) -> None:
        """Create or replace an object."""
        ...

    @abstractmethod
    def copy_object(
        self, src_container: str, src_name: str, dst_container: str, dst_name: str
    ) -> None:
        """Server-side copy. Copying a manifest copies the assembled content."""
        ...

    @abstractmethod
    def delete_object(self, container: str, name: str) -> None:
        """Delete a single object."""
        ...

    @abstractmethod
    def bulk_delete(self, paths: list[str]) -> BulkDeleteResult:
        """Delete many ``container/object`` paths in one request."""
        ...

    @abstractmethod
    def list_objects(
        self, container: str, prefix: str = "", delimiter: str | None = None
    ) -> list[ObjectInfo]:
        """List objects by prefix, sorted by name.

        With a delimiter, names sharing the next path component are grouped
        into pseudo-directory entries (``is_pseudo_dir=True``).
        """
        ...

    @abstractmethod
    def capabilities(self) -> dict[str, Any]:
        """Return the cluster capability document (``/info``)."""
        ...
