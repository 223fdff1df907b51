"""Zero padding for writes that start past the end of the data.

The store has no sparse objects, so every gap is materialized: whole zero
segments are real PUTs, and the sub-chunk remainder becomes a zero prefix in
front of the caller's data.
"""

from __future__ import annotations

from swift_driver.domain.errors import translated
from swift_driver.domain.services.segment_planner import WritePlan
from swift_driver.domain.value_objects.addressing import (
    DEFAULT_CONTENT_TYPE,
    SegmentAddressing,
)
from swift_driver.infrastructure.logging import get_logger
from swift_driver.infrastructure.metrics import SwiftDriverMetrics
from swift_driver.ports.outbound.object_store import ByteRange, ObjectStorePort

logger = get_logger("padding")


class PaddingEngine:
    """Synthesizes zero bytes between the end of data and a write offset."""

    def __init__(
        self,
        store: ObjectStorePort,
        addressing: SegmentAddressing,
        chunk_size: int,
        metrics: SwiftDriverMetrics | None = None,
    ) -> None:
        self._store = store
        self._addressing = addressing
        self._chunk_size = chunk_size
        self._metrics = metrics

    def pad(self, path: str, plan: WritePlan) -> None:
        """Write the segments a plan needs before caller data can start.

        A short terminal segment the gap runs past is completed with zeros,
        then one zero segment of exactly ``chunk_size`` bytes is written for
        every whole chunk of the gap.
        """
        if plan.terminal_part is not None:
            self._complete_terminal(path, plan.terminal_part)

        if plan.zero_segments:
            zeros = bytes(self._chunk_size)
            container = self._addressing.segments_container
            for part in range(plan.first_zero_part, plan.first_zero_part + plan.zero_segments):
                name = self._addressing.segment_name(path, part)
                with translated(name):
                    self._store.put_object(
                        container, name, zeros, content_type=DEFAULT_CONTENT_TYPE
                    )
                self._record("zero")
            logger.debug(
                "zero_segments_written",
                path=path,
                first_part=plan.first_zero_part,
                count=plan.zero_segments,
            )

    def prefix(self, path: str, plan: WritePlan) -> bytes:
        """Bytes preceding caller data in the first segment the writer produces.

        These are the retained head of the old segment at ``plan.part`` followed
        by ``plan.zero_fill`` zeros.
        """
        retained = b""
        if plan.retained:
            name = self._addressing.segment_name(path, plan.part)
            with translated(name):
                retained = self._store.get_object(
                    self._addressing.segments_container,
                    name,
                    ByteRange(0, plan.retained - 1),
                )
        return retained + bytes(plan.zero_fill)

    def _complete_terminal(self, path: str, part: int) -> None:
        container = self._addressing.segments_container
        name = self._addressing.segment_name(path, part)
        with translated(name):
            data = self._store.get_object(container, name)
            padded = data + bytes(self._chunk_size - len(data))
            self._store.put_object(container, name, padded, content_type=DEFAULT_CONTENT_TYPE)
        self._record("terminal")
        logger.debug("terminal_segment_completed", path=path, part=part, kept=len(data))

    def _record(self, kind: str) -> None:
        if self._metrics is not None:
            self._metrics.segments_written.labels(kind=kind).inc()
