"""
Stagehand - Unified Error Handling

Provides the error hierarchy raised by the lifecycle kernel.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels for prioritized handling
- Structured error context for debugging
- OpenTelemetry integration for error tracing

Errors raised by user hooks are never wrapped in these types; they propagate
to the caller of start()/shutdown() as-is.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"      # Non-critical, informational
    INFO = "info"        # Minor issue, operation continues
    WARNING = "warning"  # Potential problem, degraded operation
    ERROR = "error"      # Significant failure, operation failed
    CRITICAL = "critical"  # System-level failure, requires immediate attention


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    session_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "session_name": self.session_name,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str,
        **kwargs: Any
    ) -> "ErrorContext":
        """Create context from current OpenTelemetry span."""
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace="".join(traceback.format_stack(limit=8)),
            **kwargs
        )


class LifeCycleError(Exception):
    """
    Base exception for all lifecycle kernel errors.

    Provides:
    - Structured error context
    - Severity level
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "LIFECYCLE_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for diagnostics."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)

    def with_context(self, **kwargs: Any) -> "LifeCycleError":
        """Add additional context to the error."""
        if self.context:
            self.context.metadata.update(kwargs)
        else:
            self.context = ErrorContext(
                operation="unknown",
                component="unknown",
                metadata=kwargs
            )
        return self


class InvalidTransitionError(LifeCycleError):
    """Raised when start() is attempted outside the INITIALIZING stage."""

    error_code = "LIFECYCLE_INVALID_TRANSITION"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        current_stage: Any = None,
        attempted: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.current_stage = current_stage
        self.attempted = attempted


class SessionNotBoundError(LifeCycleError):
    """A lifecycle manager was used before being bound to its session."""

    error_code = "LIFECYCLE_NOT_BOUND"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            suggestions=["Call bind(session) right after constructing the manager"],
            **kwargs,
        )
        self.operation = operation


class SessionAlreadyBoundError(LifeCycleError):
    """A lifecycle manager was bound to a second session."""

    error_code = "LIFECYCLE_ALREADY_BOUND"
    default_severity = ErrorSeverity.CRITICAL


class LifeCycleConfigError(LifeCycleError):
    """Configuration-related errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.actual_value = actual_value
