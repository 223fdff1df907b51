"""OpenTelemetry tracing for the Swift driver."""

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from swift_driver.infrastructure.config import Config, get_config


def setup_tracing(config: Config | None = None) -> trace.Tracer:
    """Configure OpenTelemetry tracing for the driver.

    Spans go to the OTLP collector when an endpoint is configured and to the
    console in development; elsewhere they are recorded but not exported.
    """
    config = config or get_config()

    resource = Resource.create(
        {
            "service.name": "swift_driver",
            "service.version": "0.1.0",
            "deployment.environment": config.observability.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.observability.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.observability.otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    elif config.observability.environment == "development":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    return trace.get_tracer("swift_driver")


def get_tracer(name: str = "swift_driver") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)


@contextmanager
def operation_span(
    tracer: trace.Tracer, operation: str, **attributes: Any
) -> Iterator[trace.Span]:
    """Run a driver operation inside a ``swift_driver.<operation>`` span.

    Exceptions are recorded on the span and re-raised.
    """
    with tracer.start_as_current_span(
        f"swift_driver.{operation}", record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(f"swift_driver.{key}", value)
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
