"""Manifest management for segmented objects."""

from __future__ import annotations

from swift_driver.domain.errors import translated
from swift_driver.domain.value_objects.addressing import (
    DEFAULT_CONTENT_TYPE,
    DIRECTORY_MIME_TYPE,
    SegmentAddressing,
    parent_dirs,
)
from swift_driver.infrastructure.logging import get_logger
from swift_driver.ports.outbound.object_store import ObjectInfo, ObjectStorePort, StoreError

logger = get_logger("manifest_manager")


class ManifestManager:
    """Creates manifests and the pseudo-directories leading to them.

    The manifest is a zero-length object whose ``X-Object-Manifest`` header
    names the segments container and the segment prefix of its path. Its
    identity never changes across resumed writes, so an existing manifest is
    left alone and only the segments it points at are rewritten.
    """

    def __init__(self, store: ObjectStorePort, addressing: SegmentAddressing) -> None:
        self._store = store
        self._addressing = addressing

    def lookup(self, path: str) -> ObjectInfo | None:
        """HEAD the logical object; ``None`` when it does not exist."""
        name = self._addressing.object_name(path)
        with translated(path):
            try:
                return self._store.head_object(self._addressing.container, name)
            except StoreError as exc:
                if exc.is_not_found:
                    return None
                raise

    def ensure_manifest(self, path: str) -> ObjectInfo | None:
        """Look up the logical object and create its manifest when missing.

        Args:
            path: Logical path being written.

        Returns:
            Metadata of the existing object, or ``None`` if a new manifest
            was created.

        Raises:
            StoreError: If the lookup fails for any reason other than 404, or
                if creating the manifest (or a parent directory) fails.
        """
        existing = self.lookup(path)
        if existing is not None:
            return existing

        self.create_parent_folders(path)
        self.create_manifest(path)
        return None

    def create_manifest(self, path: str) -> None:
        """PUT the manifest object for ``path``, replacing whatever is there."""
        ref = self._addressing.manifest_ref(path)
        with translated(path):
            self._store.put_object(
                self._addressing.container,
                self._addressing.object_name(path),
                b"",
                content_type=DEFAULT_CONTENT_TYPE,
                manifest=ref,
            )
        logger.info("manifest_created", path=path, manifest=ref.to_header())

    def create_parent_folders(self, path: str) -> None:
        """Create a directory marker for every missing ancestor of ``path``."""
        for directory in parent_dirs(path):
            if self.lookup(directory) is not None:
                continue
            with translated(directory):
                self._store.put_object(
                    self._addressing.container,
                    self._addressing.object_name(directory),
                    b"",
                    content_type=DIRECTORY_MIME_TYPE,
                )
            logger.debug("directory_marker_created", path=directory)
