"""Pytest configuration and shared fixtures for Swift driver tests."""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from swift_driver.adapters.outbound.memory_store import InMemoryObjectStore
from swift_driver.application.swift_driver import SwiftDriver
from swift_driver.domain.value_objects.capabilities import StoreCapabilities
from swift_driver.infrastructure.config import Config
from swift_driver.infrastructure.container import Container
from swift_driver.infrastructure.metrics import SwiftDriverMetrics

CONTAINER = "registry"
SEGMENTS = "registry_segments"
CHUNK_SIZE = 5


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config(
        swift={
            "username": "registry",
            "password": "secret",
            "auth_url": "https://keystone.test/v3",
            "container": CONTAINER,
        }
    )


@pytest.fixture
def container(test_config: Config) -> Container:
    """Provide a configured container for testing."""
    with patch("swift_driver.infrastructure.container.get_config", return_value=test_config):
        return Container.create()


@pytest.fixture
def registry() -> CollectorRegistry:
    """Private metrics registry so tests do not collide on the global one."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics(registry: CollectorRegistry) -> SwiftDriverMetrics:
    return SwiftDriverMetrics(registry=registry)


@pytest.fixture
def store() -> InMemoryObjectStore:
    """In-memory store with both driver containers created."""
    store = InMemoryObjectStore()
    store.create_container(CONTAINER)
    store.create_container(SEGMENTS)
    return store


@pytest.fixture
def bulk_store() -> InMemoryObjectStore:
    """In-memory store that supports bulk delete in batches of 3."""
    store = InMemoryObjectStore(bulk_delete=True, max_deletes_per_request=3)
    store.create_container(CONTAINER)
    store.create_container(SEGMENTS)
    return store


@pytest.fixture
def driver(store: InMemoryObjectStore, metrics: SwiftDriverMetrics) -> SwiftDriver:
    """Driver over the in-memory store with a 5-byte chunk size."""
    return SwiftDriver(store, container=CONTAINER, chunk_size=CHUNK_SIZE, metrics=metrics)


@pytest.fixture
def bulk_driver(bulk_store: InMemoryObjectStore, metrics: SwiftDriverMetrics) -> SwiftDriver:
    """Driver whose store advertises bulk delete."""
    return SwiftDriver(
        bulk_store,
        container=CONTAINER,
        chunk_size=CHUNK_SIZE,
        capabilities=StoreCapabilities.from_info(bulk_store.capabilities()),
        metrics=metrics,
    )


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
