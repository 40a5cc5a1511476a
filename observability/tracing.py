"""
Stagehand - Tracing with OpenTelemetry

Provides the tracer provider used by lifecycle sessions. Each session
start/shutdown becomes a span, with one event per component hook.

Features:
- OTLP export to Jaeger, Tempo, or any OTLP-compatible backend
- Optional console export for local debugging
- Configurable sampling
- Resource attributes for service identification

Usage:
    from observability.tracing import setup_tracing, get_tracer

    # Setup at startup
    setup_tracing(TracingConfig(service_name="my-app"))

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("warmup") as span:
        span.set_attribute("session.name", "app")
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import (
    ParentBased,
    TraceIdRatioBased,
    ALWAYS_ON,
    ALWAYS_OFF,
)
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

# Global state
_tracer_provider: Optional[trace.TracerProvider] = None
_initialized: bool = False


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "stagehand"
    service_version: str = "0.1.0"
    otlp_endpoint: Optional[str] = field(
        default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None
    )
    enabled: bool = field(
        default_factory=lambda: os.getenv("OTEL_TRACING_ENABLED", "false").lower() == "true"
    )
    sample_rate: float = field(
        default_factory=lambda: float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    batch_export: bool = True

    # Additional resource attributes
    extra_attributes: Dict[str, str] = field(default_factory=dict)


def build_tracer_provider(config: TracingConfig) -> TracerProvider:
    """Build an SDK tracer provider without installing it globally."""
    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
        **config.extra_attributes,
    })

    if config.sample_rate <= 0.0:
        sampler = ALWAYS_OFF
    elif config.sample_rate >= 1.0:
        sampler = ALWAYS_ON
    else:
        sampler = ParentBased(root=TraceIdRatioBased(config.sample_rate))

    provider = TracerProvider(resource=resource, sampler=sampler)

    if config.otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=True)
        if config.batch_export:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        else:
            provider.add_span_processor(SimpleSpanProcessor(exporter))

    if config.console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    return provider


def setup_tracing(config: Optional[TracingConfig] = None) -> trace.TracerProvider:
    """
    Configure OpenTelemetry tracing and install the global provider.

    Args:
        config: Tracing configuration. Uses defaults if not provided.

    Returns:
        Configured TracerProvider (a no-op provider when tracing is disabled)
    """
    global _tracer_provider, _initialized

    if _initialized and _tracer_provider:
        return _tracer_provider

    config = config or TracingConfig()

    if not config.enabled:
        _tracer_provider = trace.NoOpTracerProvider()
    else:
        _tracer_provider = build_tracer_provider(config)
        trace.set_tracer_provider(_tracer_provider)

    _initialized = True
    return _tracer_provider


def get_tracer_provider() -> trace.TracerProvider:
    """Get the configured tracer provider, initializing if necessary."""
    if not _initialized:
        setup_tracing()
    return _tracer_provider or trace.get_tracer_provider()


def get_tracer(name: str, version: str = "0.1.0") -> trace.Tracer:
    """
    Get a tracer instance for manual instrumentation.

    Args:
        name: Tracer name, typically __name__ of the module
        version: Tracer version string
    """
    return get_tracer_provider().get_tracer(name, version)


def shutdown_tracing() -> None:
    """
    Gracefully shutdown tracing, flushing any pending spans.

    Call this during application shutdown.
    """
    global _tracer_provider, _initialized
    if _tracer_provider is not None and hasattr(_tracer_provider, "shutdown"):
        _tracer_provider.shutdown()
    _initialized = False
    _tracer_provider = None


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    tracer: Optional[trace.Tracer] = None,
) -> Iterator[Span]:
    """
    Context manager for creating spans with automatic error handling.

    Example:
        >>> with create_span("bootstrap", attributes={"session.name": "app"}) as span:
        ...     session.start()
    """
    tracer = tracer or get_tracer("stagehand.observability")
    with tracer.start_as_current_span(name, kind=kind) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
