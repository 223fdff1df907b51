"""Construction of a SwiftDriver from flat driver parameters.

Usage:
    driver = from_parameters({
        "username": "registry",
        "password": "secret",
        "authurl": "https://keystone.example.com/v3",
        "container": "registry",
    })
"""

from __future__ import annotations

from typing import Any

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from swift_driver.adapters.outbound.swift_client import SwiftObjectStore
from swift_driver.application.swift_driver import SwiftDriver
from swift_driver.domain.value_objects.addressing import SEGMENTS_SUFFIX
from swift_driver.domain.value_objects.capabilities import StoreCapabilities
from swift_driver.infrastructure.config import SwiftConfig
from swift_driver.infrastructure.logging import get_logger
from swift_driver.infrastructure.metrics import SwiftDriverMetrics
from swift_driver.ports.outbound.object_store import ObjectStorePort, StoreError

logger = get_logger("factory")


class InvalidParametersError(ValueError):
    """Raised when driver parameters are missing or out of range."""


def from_parameters(
    parameters: dict[str, Any],
    *,
    transport: httpx.BaseTransport | None = None,
    metrics: SwiftDriverMetrics | None = None,
    tracer: trace.Tracer | None = None,
) -> SwiftDriver:
    """Validate driver parameters and build a connected driver.

    Required parameters are ``username``, ``password``, ``authurl`` and
    ``container``; ``chunksize`` defaults to 20 MiB and may not be below
    1 MiB. Unknown parameters are ignored.

    Raises:
        InvalidParametersError: If a parameter is missing or invalid.
        StoreError: If authentication or container creation fails.
    """
    try:
        config = SwiftConfig(**parameters)
    except ValidationError as exc:
        raise InvalidParametersError(str(exc)) from exc

    missing = config.missing_required()
    if missing:
        raise InvalidParametersError(f"No {missing[0]} parameter provided")

    return new_driver(config, transport=transport, metrics=metrics, tracer=tracer)


def new_driver(
    config: SwiftConfig,
    *,
    transport: httpx.BaseTransport | None = None,
    metrics: SwiftDriverMetrics | None = None,
    tracer: trace.Tracer | None = None,
) -> SwiftDriver:
    """Authenticate, create both containers and detect store capabilities."""
    store = SwiftObjectStore.from_config(config, transport=transport)
    try:
        store.authenticate()
    except StoreError:
        logger.error("swift_authentication_failed", auth_url=config.auth_url)
        raise

    for container in (config.container, config.container + SEGMENTS_SUFFIX):
        store.create_container(container)

    capabilities = detect_capabilities(store)
    logger.info(
        "swift_driver_created",
        container=config.container,
        prefix=config.prefix,
        chunk_size=config.chunk_size,
        bulk_delete=capabilities.bulk_delete,
    )
    return SwiftDriver(
        store,
        container=config.container,
        prefix=config.prefix,
        chunk_size=config.chunk_size,
        capabilities=capabilities,
        metrics=metrics,
        tracer=tracer,
    )


def detect_capabilities(store: ObjectStorePort) -> StoreCapabilities:
    """Read store capabilities once; an unreadable ``/info`` means none."""
    try:
        info = store.capabilities()
    except StoreError as exc:
        logger.warning(
            "capability_discovery_failed", status_code=exc.status_code, error=str(exc)
        )
        return StoreCapabilities()
    return StoreCapabilities.from_info(info)
