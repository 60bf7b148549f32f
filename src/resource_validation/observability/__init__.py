"""Public observability primitives: structured logging, metrics, and change events."""

from resource_validation.observability.events import ChangeEventBus, DispatchError, Subscriber
from resource_validation.observability.logging import (
    JsonLineFormatter,
    LoggingConfig,
    StructuredLoggingHandle,
    configure_structlog,
    correlation_scope,
    flush_logging,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)
from resource_validation.observability.metrics import MetricsRegistry

__all__ = [
    "ChangeEventBus",
    "DispatchError",
    "JsonLineFormatter",
    "LoggingConfig",
    "MetricsRegistry",
    "StructuredLoggingHandle",
    "Subscriber",
    "configure_structlog",
    "correlation_scope",
    "flush_logging",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
