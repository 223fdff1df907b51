"""Domain services."""

from swift_driver.domain.services.manifest_manager import ManifestManager
from swift_driver.domain.services.padding import PaddingEngine
from swift_driver.domain.services.recursive_delete import RecursiveDeleter, SegmentCollector
from swift_driver.domain.services.segment_planner import WritePlan, plan_write
from swift_driver.domain.services.segment_writer import SegmentWriter, list_segments

__all__ = [
    "ManifestManager",
    "PaddingEngine",
    "RecursiveDeleter",
    "SegmentCollector",
    "SegmentWriter",
    "WritePlan",
    "list_segments",
    "plan_write",
]
