"""Segment entity for segmented large objects."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Segment:
    """One stored segment of a logical object.

    Attributes:
        number: 1-based sequence number.
        name: Object name in the segments container.
        size: Stored length in bytes.
    """

    number: int
    name: str
    size: int
