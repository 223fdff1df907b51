"""Structured logging for the Swift driver.

Every driver component logs through structlog with a ``component`` binding.
Events are rendered as JSON lines or, for local work, as colored console
output. Credentials and auth tokens never reach the output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from swift_driver.infrastructure.config import Config, get_config

SERVICE_NAME = "swift_driver"
REDACTED = "**********"
SENSITIVE_KEYS = frozenset({"password", "token", "auth_token", "x-auth-token", "api_key"})

# chatty HTTP transport loggers, they log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def add_driver_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["service"] = SERVICE_NAME
    event_dict.setdefault("driver", "swift")
    return event_dict


def redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values whose key names a credential."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(config: Config | None = None) -> structlog.stdlib.BoundLogger:
    """Route structlog and stdlib logging through one formatter.

    Args:
        config: Driver configuration; the cached global one when omitted.

    Returns:
        The root driver logger.
    """
    config = config or get_config()
    observability = config.observability

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_driver_context,
        redact_secrets,
    ]
    if observability.log_format == "json":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(observability.log_format),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(observability.log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger(SERVICE_NAME)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a lazily configured logger, bound to ``component=name`` when given."""
    if name:
        return structlog.get_logger(component=name)
    return structlog.get_logger()


__all__ = ["setup_logging", "get_logger", "redact_secrets", "add_driver_context"]
