"""Inbound ports - the logical filesystem contract.

Callers (a registry's storage layer, the REST adapter) address files by
``/``-rooted logical paths and never see manifests or segments.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import BinaryIO, Protocol

from swift_driver.domain.entities.file_info import FileInfo


class StorageDriverPort(Protocol):
    """Protocol for a byte-addressable storage driver.

    Errors:
        PathNotFoundError: Nothing exists at the path.
        InvalidPathError: The path is not ``/``-rooted or has unsafe components.
        InvalidOffsetError: A read or write offset is negative.
        PartialWriteError: A streamed write failed after committing some bytes.

    Example:
        written = driver.write_stream("/uploads/blob", 0, reader)
        driver.write_stream("/uploads/blob", written, more)
        assert driver.stat("/uploads/blob").size == written + more_size
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Driver name."""
        ...

    @abstractmethod
    def get_content(self, path: str) -> bytes:
        """Read the whole content of a file."""
        ...

    @abstractmethod
    def put_content(self, path: str, data: bytes) -> None:
        """Store ``data`` as the whole content of a file, replacing it."""
        ...

    @abstractmethod
    def read_stream(self, path: str, offset: int) -> BinaryIO:
        """Open a stream over the file content starting at ``offset``.

        Content is fetched as the stream is read and the caller closes it.
        An offset at or past the end yields an empty stream.
        """
        ...

    @abstractmethod
    def write_stream(self, path: str, offset: int, reader: BinaryIO) -> int:
        """Write the reader's content into the file at ``offset``.

        Args:
            path: Logical path.
            offset: Position of the first written byte; gaps are zero-filled.
            reader: Source stream, read until EOF.

        Returns:
            Number of bytes committed.
        """
        ...

    @abstractmethod
    def stat(self, path: str) -> FileInfo:
        """Return size, modification time and directory flag of a path."""
        ...

    @abstractmethod
    def list(self, path: str) -> list[str]:
        """List the direct children of a directory as absolute logical paths."""
        ...

    @abstractmethod
    def move(self, source: str, dest: str) -> None:
        """Move a file, replacing whatever is stored at ``dest``."""
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """Recursively delete a path and everything beneath it."""
        ...

    @abstractmethod
    def url_for(self, path: str) -> str:
        """Return a direct download URL for a path, where supported."""
        ...


__all__ = ["StorageDriverPort"]
