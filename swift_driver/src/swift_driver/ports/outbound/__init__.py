"""Outbound ports - interfaces for external dependencies.

The driver's only external dependency is the remote object store.
"""

from swift_driver.ports.outbound.object_store import (
    MANIFEST_HEADER,
    BulkDeleteResult,
    ByteRange,
    ManifestRef,
    ObjectInfo,
    ObjectStorePort,
    StoreError,
)

__all__ = [
    "MANIFEST_HEADER",
    "BulkDeleteResult",
    "ByteRange",
    "ManifestRef",
    "ObjectInfo",
    "ObjectStorePort",
    "StoreError",
]
