"""Outbound adapters: Swift over HTTP and an in-memory store."""

from swift_driver.adapters.outbound.memory_store import InMemoryObjectStore
from swift_driver.adapters.outbound.swift_client import SwiftObjectStore

__all__ = ["InMemoryObjectStore", "SwiftObjectStore"]
