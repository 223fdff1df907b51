"""Domain entities."""

from swift_driver.domain.entities.file_info import FileInfo
from swift_driver.domain.entities.segment import Segment

__all__ = [
    "FileInfo",
    "Segment",
]
