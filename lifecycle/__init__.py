"""
Stagehand - Lifecycle Module

Drives a group of components through their lifecycle stages and runs each
component's hooks exactly once, at the right transition:

    INITIALIZING -> STARTING -> STARTED -> STOPPING -> STOPPED

- Start hooks run in registration order; pre-shutdown and shutdown hooks
  run in reverse (first in, last out).
- Start hooks registered after the session has started run immediately.
- shutdown() is idempotent and safe to call from several threads.

Usage:
    from lifecycle import LifeCycleHook, LifeCycleSession

    session = LifeCycleSession("app")
    manager = session.lifecycle_manager

    manager.add_start_hook(LifeCycleHook.for_method(Cache, cache, "warm"))
    manager.add_shutdown_hook(LifeCycleHook.for_method(Cache, cache, "flush"))

    with session:
        ...
"""

from lifecycle.annotations import (
    DecoratedLifeCycleExecutor,
    on_start,
    post_construct,
    pre_destroy,
    pre_shutdown,
)
from lifecycle.handlers import (
    ChainedLifeCycleEventHandler,
    FILOLifeCycleHookExecutor,
    LifeCycleEventHandler,
    ShowDebugLifeCycleLog,
    ShowLifeCycleLog,
)
from lifecycle.hooks import HookKind, HookRegistry, LifeCycleHook
from lifecycle.manager import LifeCycleManager, default_lifecycle_event_handler
from lifecycle.session import LifeCycleSession, Session, build_event_handler, create_session
from lifecycle.stage import AtomicStage, LifeCycleStage
from lifecycle.tracer import CompositeTracer, DefaultTracer, OpenTelemetryTracer, Tracer

__all__ = [
    # Stages
    "LifeCycleStage",
    "AtomicStage",
    # Hooks
    "HookKind",
    "HookRegistry",
    "LifeCycleHook",
    # Handlers
    "LifeCycleEventHandler",
    "ChainedLifeCycleEventHandler",
    "FILOLifeCycleHookExecutor",
    "ShowLifeCycleLog",
    "ShowDebugLifeCycleLog",
    "DecoratedLifeCycleExecutor",
    "default_lifecycle_event_handler",
    # Decorators
    "post_construct",
    "on_start",
    "pre_shutdown",
    "pre_destroy",
    # Manager and sessions
    "LifeCycleManager",
    "Session",
    "LifeCycleSession",
    "build_event_handler",
    "create_session",
    # Tracers
    "Tracer",
    "DefaultTracer",
    "CompositeTracer",
    "OpenTelemetryTracer",
]
