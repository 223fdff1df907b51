"""Segment planning for offset writes.

Given where a write starts and what is already stored, decide which leading
segments stay untouched, which segments must be synthesized as zeros because
the write starts past the end of the data, and how many old bytes of the
first touched segment have to be carried into the rewritten segment.

Every non-terminal segment holds exactly ``chunk_size`` bytes. A short
segment can therefore only be the last one, and it is never skipped: an
append or an extension rewrites it so it grows to a whole chunk before any
later segment exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class WritePlan:
    """Where a segmented write starts and what has to be synthesized first.

    Attributes:
        part: Sequence number of the first segment the writer produces.
        cursor: Logical offset at which segment ``part`` begins.
        retained: Old bytes at the head of segment ``part`` kept before the
            write offset.
        zero_fill: Zero bytes between the retained bytes and the write offset.
        terminal_part: Sequence number of a short terminal segment that must
            be completed with zeros to a whole chunk, or ``None``.
        first_zero_part: Sequence number of the first whole zero segment.
        zero_segments: Number of whole zero segments to insert.
        extends: True when the write starts at or after the current end.
    """

    part: int
    cursor: int
    retained: int
    zero_fill: int
    terminal_part: int | None = None
    first_zero_part: int = 1
    zero_segments: int = 0
    extends: bool = False

    @property
    def prefix_length(self) -> int:
        """Bytes that precede caller data in the first written segment."""
        return self.retained + self.zero_fill


def plan_write(
    offset: int,
    current_length: int,
    chunk_size: int,
    segment_sizes: Sequence[int],
) -> WritePlan:
    """Compute the write plan for a write at ``offset``.

    Args:
        offset: Logical offset where caller data starts.
        current_length: Current length of the logical object.
        chunk_size: Configured segment size.
        segment_sizes: Stored segment lengths in sequence order.

    Returns:
        The write plan.

    Raises:
        ValueError: If the offset is negative or the chunk size is not positive.
    """
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    part = 1
    cursor = 0
    for size in segment_sizes:
        if offset < cursor + size or size < chunk_size:
            break
        cursor += size
        part += 1

    if offset < current_length:
        return WritePlan(part=part, cursor=cursor, retained=offset - cursor, zero_fill=0)

    terminal_part = None
    if cursor < current_length and offset - cursor >= chunk_size:
        # short last segment that the gap runs past
        terminal_part = part
        cursor += chunk_size
        part += 1

    first_zero_part = part
    zero_segments = 0
    while offset - cursor >= chunk_size:
        zero_segments += 1
        cursor += chunk_size
        part += 1

    retained = max(0, current_length - cursor)
    return WritePlan(
        part=part,
        cursor=cursor,
        retained=retained,
        zero_fill=offset - cursor - retained,
        terminal_part=terminal_part,
        first_zero_part=first_zero_part,
        zero_segments=zero_segments,
        extends=True,
    )
