"""Dependency injection container for the Swift driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

import structlog
from opentelemetry import trace

from swift_driver.application.factory import new_driver
from swift_driver.application.swift_driver import SwiftDriver
from swift_driver.infrastructure.config import Config, get_config
from swift_driver.infrastructure.logging import setup_logging
from swift_driver.infrastructure.metrics import SwiftDriverMetrics, get_metrics
from swift_driver.infrastructure.tracing import setup_tracing


@dataclass
class Container:
    """Dependency injection container for driver components."""

    config: Config
    logger: structlog.stdlib.BoundLogger
    tracer: trace.Tracer
    metrics: SwiftDriverMetrics
    _driver: SwiftDriver | None = field(default=None, repr=False)

    _instance: ClassVar["Container | None"] = None

    @classmethod
    def create(cls) -> "Container":
        """Create and initialize the container with all dependencies."""
        if cls._instance is not None:
            return cls._instance

        config = get_config()
        logger = setup_logging(config)
        tracer = setup_tracing(config)
        metrics = get_metrics()

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
        )

        logger.info(
            "swift_driver_container_initialized",
            environment=config.observability.environment,
            container=config.swift.container,
            chunk_size=config.swift.chunk_size,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None

    def create_driver(self) -> SwiftDriver:
        """Connect to Swift with the configured credentials and build a driver."""
        missing = self.config.swift.missing_required()
        if missing:
            raise ValueError(f"Missing Swift settings: {', '.join(missing)}")

        driver = new_driver(self.config.swift, metrics=self.metrics, tracer=self.tracer)
        self.metrics.driver_info.info(
            {
                "container": self.config.swift.container,
                "chunk_size": str(self.config.swift.chunk_size),
                "bulk_delete": str(driver.capabilities.bulk_delete).lower(),
            }
        )
        return driver

    def driver(self) -> SwiftDriver:
        """The driver shared by inbound adapters, connected on first use."""
        if self._driver is None:
            self._driver = self.create_driver()
        return self._driver


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
