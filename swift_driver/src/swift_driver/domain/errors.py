"""Error taxonomy for the Swift storage driver.

Every remote failure passes through :func:`translate_error` before it reaches a
caller. A 404 from the store becomes a :class:`PathNotFoundError` naming the
logical path; anything else is surfaced unchanged with the path attached.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from swift_driver.ports.outbound.object_store import StoreError


class StorageDriverError(Exception):
    """Base error for the storage driver."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PathNotFoundError(StorageDriverError):
    """Raised when nothing exists at a logical path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not found: {path}", path=path)


class InvalidPathError(StorageDriverError):
    """Raised when a logical path is malformed."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid path: {path!r}", path=path)


class InvalidOffsetError(StorageDriverError):
    """Raised when a read or write offset is negative."""

    def __init__(self, path: str, offset: int) -> None:
        super().__init__(f"Invalid offset {offset} for path {path}", path=path)
        self.offset = offset


class UnsupportedMethodError(StorageDriverError):
    """Raised for operations the backend cannot meaningfully provide."""

    def __init__(self, method: str) -> None:
        super().__init__(f"{method} is not supported by the swift driver")
        self.method = method


class PartialWriteError(StorageDriverError):
    """Raised when a segmented write fails after reading caller data.

    ``bytes_written`` counts the caller bytes already committed to segments;
    resuming at ``offset + bytes_written`` continues the write consistently.
    The underlying (translated) error is chained as ``__cause__``.
    """

    def __init__(self, path: str, bytes_written: int, reason: str) -> None:
        super().__init__(
            f"Write to {path} failed after {bytes_written} bytes: {reason}",
            path=path,
        )
        self.bytes_written = bytes_written


def translate_error(path: str, exc: Exception) -> Exception:
    """Map a remote store error into the driver's error taxonomy.

    Args:
        path: Logical path (or object name) the failing call was about.
        exc: Error raised by the store collaborator.

    Returns:
        The exception to raise in its place.
    """
    if isinstance(exc, StoreError):
        if exc.status_code == 404:
            return PathNotFoundError(path)
        if exc.path is None:
            exc.path = path
    return exc


@contextmanager
def translated(path: str) -> Iterator[None]:
    """Translate any store error raised inside the block for ``path``."""
    try:
        yield
    except StoreError as exc:
        error = translate_error(path, exc)
        if error is exc:
            raise
        raise error from exc


__all__ = [
    "StorageDriverError",
    "PathNotFoundError",
    "InvalidPathError",
    "InvalidOffsetError",
    "UnsupportedMethodError",
    "PartialWriteError",
    "translate_error",
    "translated",
]
