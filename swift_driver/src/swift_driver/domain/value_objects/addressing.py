"""Deterministic naming of manifests, segments and containers.

A logical path ``/a/b`` under prefix ``/registry`` lives at object name
``registry/a/b`` in the primary container. Its segments live in the sibling
``<container>_segments`` container as ``registry/a/b/0000000000000001``,
``registry/a/b/0000000000000002``, ... so that a prefix listing returns them
in logical order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from swift_driver.ports.outbound.object_store import ManifestRef


DIRECTORY_MIME_TYPE = "application/directory"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
SEGMENTS_SUFFIX = "_segments"
SEGMENT_NUMBER_WIDTH = 16

_SEGMENT_NUMBER = re.compile(r"\d{%d}" % SEGMENT_NUMBER_WIDTH)
_PATH_COMPONENT = re.compile(r"^(/[A-Za-z0-9._-]+)+$")


def is_valid_path(path: str) -> bool:
    """Check that a logical path is ``/``-rooted with safe components.

    The root path ``/`` is valid.
    """
    return path == "/" or bool(_PATH_COMPONENT.match(path))


def parent_dirs(path: str) -> list[str]:
    """Return the ancestors of ``path``, nearest first, excluding ``/``."""
    parents = []
    parent = path.rsplit("/", 1)[0]
    while parent:
        parents.append(parent)
        parent = parent.rsplit("/", 1)[0]
    return parents


@dataclass(frozen=True)
class SegmentAddressing:
    """Maps logical paths to object and segment names.

    Attributes:
        container: Primary container holding manifests, plain objects and
            directory markers.
        prefix: Root path prefix applied to every logical path.
    """

    container: str
    prefix: str = ""

    @property
    def segments_container(self) -> str:
        return self.container + SEGMENTS_SUFFIX

    def object_name(self, path: str) -> str:
        return (self.prefix.rstrip("/") + path).lstrip("/")

    def logical_path(self, name: str) -> str:
        """Inverse of :meth:`object_name` for names returned by a listing."""
        root = self.prefix.strip("/")
        name = name.rstrip("/")
        if root:
            name = name[len(root):]
        return "/" + name.lstrip("/")

    def segment_prefix(self, path: str) -> str:
        return self.object_name(path) + "/"

    def segment_name(self, path: str, number: int) -> str:
        if number < 1:
            raise ValueError(f"segment numbers are 1-based, got {number}")
        return f"{self.segment_prefix(path)}{number:0{SEGMENT_NUMBER_WIDTH}d}"

    def manifest_ref(self, path: str) -> ManifestRef:
        return ManifestRef(
            container=self.segments_container,
            prefix=self.segment_prefix(path),
        )

    def in_scope(self, name: str, path: str) -> bool:
        """Check whether an object name is ``path`` itself or lies beneath it."""
        base = self.object_name(path).rstrip("/")
        if not base:
            return True
        return name == base or name.startswith(base + "/")


def is_segment_of(name: str, prefix: str) -> bool:
    """Check that ``name`` is ``prefix`` followed by exactly one segment number."""
    return name.startswith(prefix) and bool(_SEGMENT_NUMBER.fullmatch(name[len(prefix):]))
