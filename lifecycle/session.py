"""
Stagehand - Sessions

A session owns one lifecycle manager and answers, for a given surface,
which session in its hierarchy owns components of that type. Hooks for a
surface bound in a parent session are registered on the parent's manager,
so they follow the parent's lifecycle rather than the child's.

Usage:
    root = LifeCycleSession("app", surfaces=[Database])
    request = root.new_child_session("request", surfaces=[Handler])

    with root:
        db = root.register_injectee(Database, Database())
        ...
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, FrozenSet, Iterable, Optional, TypeVar

from lifecycle.handlers import LifeCycleEventHandler, ShowDebugLifeCycleLog, ShowLifeCycleLog
from lifecycle.manager import LifeCycleManager, default_lifecycle_event_handler
from lifecycle.stage import LifeCycleStage
from lifecycle.tracer import DefaultTracer, OpenTelemetryTracer, Tracer

if TYPE_CHECKING:
    from config import Config

T = TypeVar("T")


class Session(ABC):
    """What a lifecycle manager needs from its owning session."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def tracer(self) -> Tracer:
        ...

    @property
    @abstractmethod
    def lifecycle_manager(self) -> LifeCycleManager:
        ...

    @abstractmethod
    def find_owner_session_of(self, surface: Any) -> Optional["Session"]:
        """Return the session that owns ``surface``, or None if no session does."""


class LifeCycleSession(Session):
    """
    A named session in a parent/child hierarchy.

    The manager is created unbound (or passed in) and bound to this session
    at the end of construction.

    Args:
        name: Display name used in logs and traces
        surfaces: Surfaces this session owns
        parent: Enclosing session, if any
        tracer: Tracer; inherited from the parent when omitted
        event_handler: Handler chain; inherited from the parent when omitted
        manager: Pre-built unbound manager; it brings its own handler chain,
            so it cannot be combined with event_handler

    Raises:
        ValueError: if both manager and event_handler are given
    """

    def __init__(
        self,
        name: str,
        surfaces: Iterable[Any] = (),
        parent: Optional["LifeCycleSession"] = None,
        tracer: Optional[Tracer] = None,
        event_handler: Optional[LifeCycleEventHandler] = None,
        manager: Optional[LifeCycleManager] = None,
    ):
        self._name = name
        self._parent = parent
        self._surfaces = set(surfaces)
        self._lock = threading.Lock()

        if tracer is None:
            tracer = parent.tracer if parent is not None else DefaultTracer()
        self._tracer = tracer

        if manager is not None and event_handler is not None:
            raise ValueError("Pass either manager or event_handler, not both")

        if manager is None:
            if event_handler is None and parent is not None:
                event_handler = parent.lifecycle_manager.event_handler
            manager = LifeCycleManager(event_handler)
        self._manager = manager
        manager.bind(self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def tracer(self) -> Tracer:
        return self._tracer

    @property
    def lifecycle_manager(self) -> LifeCycleManager:
        return self._manager

    @property
    def parent(self) -> Optional["LifeCycleSession"]:
        return self._parent

    @property
    def surfaces(self) -> FrozenSet[Any]:
        with self._lock:
            return frozenset(self._surfaces)

    @property
    def current_stage(self) -> LifeCycleStage:
        return self._manager.current_stage

    def bind_surface(self, surface: Any) -> "LifeCycleSession":
        """Declare that this session owns components of ``surface``."""
        with self._lock:
            self._surfaces.add(surface)
        return self

    def find_owner_session_of(self, surface: Any) -> Optional["LifeCycleSession"]:
        with self._lock:
            owned = surface in self._surfaces
        if owned:
            return self
        if self._parent is not None:
            return self._parent.find_owner_session_of(surface)
        return None

    def new_child_session(self, name: str, surfaces: Iterable[Any] = ()) -> "LifeCycleSession":
        """Create a child sharing this session's tracer and handler chain."""
        return LifeCycleSession(name, surfaces=surfaces, parent=self)

    def register_injectee(self, surface: Any, injectee: T) -> T:
        """Announce a newly constructed component to the tracer and handlers."""
        self._tracer.on_init_instance(self, surface, injectee)
        self._manager.on_init(surface, injectee)
        return injectee

    def start(self) -> None:
        self._manager.start()

    def shutdown(self) -> bool:
        return self._manager.shutdown()

    def __enter__(self) -> "LifeCycleSession":
        self.start()
        return self

    def __exit__(self, *args: Any) -> bool:
        self.shutdown()
        return False

    def __repr__(self) -> str:
        return f"LifeCycleSession(name={self._name!r}, stage={self.current_stage.name})"


def build_event_handler(config: "Config") -> LifeCycleEventHandler:
    """Default handler chain, plus transition logging when configured."""
    from config import LifeCycleLogLevel

    handler = default_lifecycle_event_handler()
    if config.lifecycle.show_lifecycle_log:
        if config.lifecycle.lifecycle_log_level is LifeCycleLogLevel.DEBUG:
            handler = handler.and_then(ShowDebugLifeCycleLog())
        else:
            handler = handler.and_then(ShowLifeCycleLog())
    return handler


def create_session(
    name: Optional[str] = None,
    config: Optional["Config"] = None,
    surfaces: Iterable[Any] = (),
) -> LifeCycleSession:
    """
    Build a root session from configuration.

    Uses an OpenTelemetryTracer when tracing is enabled, else DefaultTracer.
    """
    if config is None:
        from config import get_config

        config = get_config()

    tracer: Tracer = DefaultTracer()
    if config.tracing.enabled:
        from observability.tracing import setup_tracing

        setup_tracing(config.tracing)
        tracer = OpenTelemetryTracer()

    return LifeCycleSession(
        name or config.lifecycle.session_name,
        surfaces=surfaces,
        tracer=tracer,
        event_handler=build_event_handler(config),
    )
