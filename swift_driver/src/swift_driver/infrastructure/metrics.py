"""Prometheus metrics for the Swift driver."""

from prometheus_client import Counter, Gauge, Histogram, Info, CollectorRegistry, REGISTRY


class SwiftDriverMetrics:
    """Metrics collector for the Swift driver."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        # Driver Operations
        self.operations = Counter(
            "swift_driver_operations_total",
            "Total driver operations",
            ["operation"],
            registry=registry,
        )
        self.operation_latency = Histogram(
            "swift_driver_operation_latency_seconds",
            "Driver operation latency",
            ["operation"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 60.0],
            registry=registry,
        )
        self.operations_in_flight = Gauge(
            "swift_driver_operations_in_flight",
            "Number of driver operations currently running",
            ["operation"],
            registry=registry,
        )

        # Segments
        self.segments_written = Counter(
            "swift_driver_segments_written_total",
            "Total segments written",
            ["kind"],  # data, zero, terminal
            registry=registry,
        )
        self.bytes_written = Counter(
            "swift_driver_bytes_written_total",
            "Total caller bytes committed by segmented writes",
            registry=registry,
        )
        self.segments_deleted = Counter(
            "swift_driver_segments_deleted_total",
            "Total segments deleted",
            registry=registry,
        )

        # Deletes
        self.bulk_deletes = Counter(
            "swift_driver_bulk_deletes_total",
            "Total bulk delete attempts",
            ["result"],
            registry=registry,
        )

        # Error Metrics
        self.request_errors = Counter(
            "swift_driver_request_errors_total",
            "Total operation errors",
            ["operation", "error_type"],
            registry=registry,
        )

        # Driver Info
        self.driver_info = Info(
            "swift_driver",
            "Swift driver information",
            registry=registry,
        )


_metrics: SwiftDriverMetrics | None = None


def get_metrics() -> SwiftDriverMetrics:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = SwiftDriverMetrics()
    return _metrics
