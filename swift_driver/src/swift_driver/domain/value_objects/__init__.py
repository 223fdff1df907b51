"""Domain value objects."""

from swift_driver.domain.value_objects.addressing import (
    DEFAULT_CONTENT_TYPE,
    DIRECTORY_MIME_TYPE,
    SEGMENT_NUMBER_WIDTH,
    SEGMENTS_SUFFIX,
    SegmentAddressing,
    is_segment_of,
    is_valid_path,
    parent_dirs,
)
from swift_driver.domain.value_objects.capabilities import StoreCapabilities

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "DIRECTORY_MIME_TYPE",
    "SEGMENT_NUMBER_WIDTH",
    "SEGMENTS_SUFFIX",
    "SegmentAddressing",
    "StoreCapabilities",
    "is_segment_of",
    "is_valid_path",
    "parent_dirs",
]
