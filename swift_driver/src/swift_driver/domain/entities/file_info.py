"""File info entity for logical paths."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FileInfo:
    """Stat result for a logical path.

    Directories are zero-length marker objects, so ``size`` is 0 for them and
    ``mod_time`` is the marker's creation time.
    """

    path: str
    size: int = 0
    is_dir: bool = False
    mod_time: datetime | None = None
