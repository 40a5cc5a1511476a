"""
Stagehand - Observability Package

Logging and tracing setup shared by the lifecycle kernel.

Components:
- tracing: OpenTelemetry tracer provider with optional OTLP export
- logging: Structlog integration with trace context propagation

Usage:
    from observability import setup_logging, setup_tracing, get_logger

    setup_logging()
    setup_tracing()
    logger = get_logger(__name__)
"""
from .tracing import (
    setup_tracing,
    build_tracer_provider,
    get_tracer,
    get_tracer_provider,
    create_span,
    TracingConfig,
    shutdown_tracing,
)
from .logging import (
    setup_logging,
    get_logger,
    LoggingConfig,
    LogContext,
    bind_context,
    unbind_context,
    clear_context,
    shutdown_logging,
)

__all__ = [
    # Tracing
    "setup_tracing",
    "build_tracer_provider",
    "get_tracer",
    "get_tracer_provider",
    "create_span",
    "TracingConfig",
    "shutdown_tracing",
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LogContext",
    "bind_context",
    "unbind_context",
    "clear_context",
    "shutdown_logging",
]
