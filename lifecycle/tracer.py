"""
Stagehand - Session Tracers

A Tracer receives fine-grained notifications from a lifecycle manager:
the four coarse session events plus one notification per component hook.
Tracers observe only; they must not raise and must not change the stage or
any hook registry.

OpenTelemetryTracer maps a session onto a single ``session.lifecycle`` span
with one span event per notification.
"""

from __future__ import annotations

import threading
import weakref
from typing import TYPE_CHECKING, Any, Iterable, NamedTuple, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind

if TYPE_CHECKING:
    from lifecycle.session import Session


class Tracer:
    """Base tracer; every notification is a no-op."""

    def on_session_start(self, session: "Session") -> None:
        pass

    def before_session_shutdown(self, session: "Session") -> None:
        pass

    def on_session_shutdown(self, session: "Session") -> None:
        pass

    def on_session_end(self, session: "Session") -> None:
        pass

    def on_init_instance(self, session: "Session", surface: Any, injectee: Any) -> None:
        pass

    def on_start_instance(self, session: "Session", injectee: Any) -> None:
        pass

    def before_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        pass

    def on_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        pass


class DefaultTracer(Tracer):
    """Tracer used when none is configured."""


class CompositeTracer(Tracer):
    """Forwards every notification to each tracer in order."""

    def __init__(self, tracers: Iterable[Tracer]):
        self.tracers = tuple(tracers)

    def on_session_start(self, session: "Session") -> None:
        for t in self.tracers:
            t.on_session_start(session)

    def before_session_shutdown(self, session: "Session") -> None:
        for t in self.tracers:
            t.before_session_shutdown(session)

    def on_session_shutdown(self, session: "Session") -> None:
        for t in self.tracers:
            t.on_session_shutdown(session)

    def on_session_end(self, session: "Session") -> None:
        for t in self.tracers:
            t.on_session_end(session)

    def on_init_instance(self, session: "Session", surface: Any, injectee: Any) -> None:
        for t in self.tracers:
            t.on_init_instance(session, surface, injectee)

    def on_start_instance(self, session: "Session", injectee: Any) -> None:
        for t in self.tracers:
            t.on_start_instance(session, injectee)

    def before_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        for t in self.tracers:
            t.before_shutdown_instance(session, injectee)

    def on_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        for t in self.tracers:
            t.on_shutdown_instance(session, injectee)


class OpenTelemetryTracer(Tracer):
    """
    Records each session as one OpenTelemetry span.

    The span opens at session start (or at shutdown, for sessions that were
    never started) and ends at session end. Component notifications become
    span events carrying the component type. Spans are tracked per session
    object; a session collected before its end (for example after a failed
    shutdown) has its span ended and marked ``session.abandoned``.

    Args:
        tracer: OpenTelemetry tracer; defaults to the configured provider's
    """

    SPAN_NAME = "session.lifecycle"

    def __init__(self, tracer: Optional[trace.Tracer] = None):
        if tracer is None:
            from observability.tracing import get_tracer

            tracer = get_tracer("stagehand.lifecycle")
        self._tracer = tracer
        self._spans: "weakref.WeakKeyDictionary[Session, _SessionSpan]" = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def _open_span(self, session: "Session") -> Span:
        with self._lock:
            entry = self._spans.get(session)
            if entry is None:
                span = self._tracer.start_span(
                    self.SPAN_NAME,
                    kind=SpanKind.INTERNAL,
                    attributes={"session.name": session.name},
                )
                entry = _SessionSpan(span, weakref.finalize(session, _end_abandoned_span, span))
                self._spans[session] = entry
            return entry.span

    def _add_event(self, session: "Session", name: str, **attributes: Any) -> None:
        with self._lock:
            entry = self._spans.get(session)
        if entry is not None:
            entry.span.add_event(name, attributes={k: str(v) for k, v in attributes.items()})

    def on_session_start(self, session: "Session") -> None:
        self._open_span(session).add_event("session.start")

    def before_session_shutdown(self, session: "Session") -> None:
        self._open_span(session).add_event("session.shutdown")

    def on_session_shutdown(self, session: "Session") -> None:
        self._add_event(session, "session.stopped")

    def on_session_end(self, session: "Session") -> None:
        with self._lock:
            entry = self._spans.pop(session, None)
        if entry is not None:
            entry.finalizer.detach()
            entry.span.add_event("session.end")
            entry.span.end()

    def on_init_instance(self, session: "Session", surface: Any, injectee: Any) -> None:
        self._add_event(session, "instance.init", component=_type_name(surface))

    def on_start_instance(self, session: "Session", injectee: Any) -> None:
        self._add_event(session, "instance.start", component=_type_name(type(injectee)))

    def before_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        self._add_event(session, "instance.pre_shutdown", component=_type_name(type(injectee)))

    def on_shutdown_instance(self, session: "Session", injectee: Any) -> None:
        self._add_event(session, "instance.shutdown", component=_type_name(type(injectee)))


class _SessionSpan(NamedTuple):
    span: Span
    finalizer: weakref.finalize


def _end_abandoned_span(span: Span) -> None:
    span.set_attribute("session.abandoned", True)
    span.end()


def _type_name(surface: Any) -> str:
    return getattr(surface, "__qualname__", None) or str(surface)
