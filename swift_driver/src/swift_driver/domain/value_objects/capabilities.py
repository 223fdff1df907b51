"""Store capabilities discovered once per driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


DEFAULT_MAX_DELETES_PER_REQUEST = 10000


@dataclass(frozen=True)
class StoreCapabilities:
    """Optional store features the driver can use.

    Attributes:
        bulk_delete: Whether the bulk middleware accepts ``?bulk-delete``.
        max_deletes_per_request: Largest batch a single bulk delete accepts.
    """

    bulk_delete: bool = False
    max_deletes_per_request: int = DEFAULT_MAX_DELETES_PER_REQUEST

    @classmethod
    def from_info(cls, info: dict[str, Any]) -> "StoreCapabilities":
        """Build capabilities from a Swift ``/info`` document."""
        bulk = info.get("bulk_delete")
        if bulk is None:
            return cls(bulk_delete=False)
        limit = DEFAULT_MAX_DELETES_PER_REQUEST
        if isinstance(bulk, dict):
            limit = int(bulk.get("max_deletes_per_request", limit))
        return cls(bulk_delete=True, max_deletes_per_request=max(1, limit))
