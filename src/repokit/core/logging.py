"""Structured logging configuration using structlog."""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor

from repokit.core.config import Settings, settings as default_settings


def app_context(config: Settings) -> Processor:
    """Build a processor adding application context to log entries."""

    def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = config.otel_service_name
        event_dict["environment"] = config.environment
        return event_dict

    return add_app_context


def configure_logging(config: Settings | None = None) -> None:
    """Configure structlog for structured JSON or console logging."""
    config = config or default_settings

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    # Configure standard logging so SQLAlchemy's own loggers share the stream
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        app_context(config),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.log_format == "json" or config.is_production:
        # Tracebacks of swallowed query errors end up as structured frames
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    logger: structlog.BoundLogger = structlog.get_logger(name)
    return logger
