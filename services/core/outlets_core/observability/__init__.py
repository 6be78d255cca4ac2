"""Observability package for logging and metrics."""

from outlets_core.observability.logging import (
    JsonFormatter,
    RequestContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    get_request_context,
    reset_request_context,
    set_request_context,
)
from outlets_core.observability.metrics import MetricsCollector, get_collector

__all__ = [
    "StructuredLogger",
    "JsonFormatter",
    "RequestContext",
    "get_logger",
    "configure_logging",
    "get_request_context",
    "set_request_context",
    "reset_request_context",
    "MetricsCollector",
    "get_collector",
]
