"""
Stagehand - Lifecycle Manager

LifeCycleManager drives one session through its stages and decides when
each registered hook fires:

    start():    INITIALIZING -> STARTING -> STARTED
    shutdown(): {STARTED, INITIALIZING, STARTING} -> STOPPING -> STOPPED

Hooks are registered on the manager of the session that owns the hook's
surface, which may be an ancestor of the calling session.

    hook kind      registered   runs
    -----------    ----------   -------------------------------------------
    init           once         immediately, on first registration
    inject         never        immediately, on every call
    start          once         at start(), or immediately once that has run
    pre-shutdown   once         at shutdown(), reverse registration order
    shutdown       once         at shutdown(), after pre-shutdown, reversed

A manager is created unbound and must be bound to its session (which also
supplies the tracer) before any other call.

Usage:
    manager = LifeCycleManager()
    session = LifeCycleSession("app", manager=manager)   # binds the manager
    manager.add_shutdown_hook(LifeCycleHook.for_method(Database, db, "close"))
    manager.start()
    manager.shutdown()
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from core.errors import (
    ErrorContext,
    InvalidTransitionError,
    SessionAlreadyBoundError,
    SessionNotBoundError,
)
from lifecycle.annotations import DecoratedLifeCycleExecutor
from lifecycle.handlers import FILOLifeCycleHookExecutor, LifeCycleEventHandler
from lifecycle.hooks import HookKind, HookRegistry, LifeCycleHook
from lifecycle.stage import AtomicStage, LifeCycleStage
from observability.logging import get_logger

if TYPE_CHECKING:
    from lifecycle.session import Session
    from lifecycle.tracer import Tracer

logger = get_logger(__name__)

_SHUTDOWN_FROM = (
    LifeCycleStage.STARTED,
    LifeCycleStage.INITIALIZING,
    LifeCycleStage.STARTING,
)


def default_lifecycle_event_handler() -> LifeCycleEventHandler:
    """FILO hook execution followed by decorator-driven hook registration."""
    return FILOLifeCycleHookExecutor().and_then(DecoratedLifeCycleExecutor())


class LifeCycleManager:
    """Coordinates the lifecycle stages and hooks of one session."""

    def __init__(self, event_handler: Optional[LifeCycleEventHandler] = None):
        self.event_handler = event_handler or default_lifecycle_event_handler()
        self._stage = AtomicStage(LifeCycleStage.INITIALIZING)
        self._lock = threading.RLock()
        self._session: Optional["Session"] = None
        self._tracer: Optional["Tracer"] = None
        # Set once the start drain has handed out every registered start hook
        self._start_drained = False

        self._init_hooks = HookRegistry()
        self._start_hooks = HookRegistry()
        self._pre_shutdown_hooks = HookRegistry()
        self._shutdown_hooks = HookRegistry()

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, session: "Session") -> None:
        """Attach the owning session. Allowed exactly once."""
        with self._lock:
            if self._session is not None:
                raise SessionAlreadyBoundError(
                    f"Lifecycle manager is already bound to session '{self._session.name}'"
                )
            self._session = session
            self._tracer = session.tracer

    @property
    def is_bound(self) -> bool:
        return self._session is not None

    def _require_bound(self, operation: str) -> "Session":
        session = self._session
        if session is None:
            raise SessionNotBoundError(
                f"Cannot {operation}: lifecycle manager is not bound to a session",
                operation=operation,
            )
        return session

    @property
    def session(self) -> "Session":
        return self._require_bound("access the session")

    @property
    def tracer(self) -> "Tracer":
        self._require_bound("access the tracer")
        return self._tracer

    @property
    def session_name(self) -> str:
        return self._require_bound("read the session name").name

    @property
    def current_stage(self) -> LifeCycleStage:
        self._require_bound("read the stage")
        return self._stage.get()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def on_init(self, surface: Any, injectee: Any) -> None:
        """Notify the handler chain that a component has been constructed."""
        self._require_bound("notify init")
        self.event_handler.on_init(self, surface, injectee)

    def start(self) -> None:
        """
        Run start hooks in registration order and enter STARTED.

        Raises:
            InvalidTransitionError: if the manager has left INITIALIZING
        """
        session = self._require_bound("start")
        if not self._stage.compare_and_set(LifeCycleStage.INITIALIZING, LifeCycleStage.STARTING):
            stage = self._stage.get()
            raise InvalidTransitionError(
                f"Lifecycle of session '{session.name}' is already {stage.value}",
                current_stage=stage,
                attempted="start",
                context=ErrorContext.from_current_span(
                    operation="start",
                    component="LifeCycleManager",
                    session_name=session.name,
                ),
            )

        self._tracer.on_session_start(session)
        self.event_handler.before_start(self)
        # A start hook may have shut the session down; stages never go back
        if self._stage.compare_and_set(LifeCycleStage.STARTING, LifeCycleStage.STARTED):
            self.event_handler.after_start(self)

    def shutdown(self) -> bool:
        """
        Run pre-shutdown then shutdown hooks, newest first, and enter STOPPED.

        Safe to call repeatedly or concurrently: only the first call that
        finds the manager in INITIALIZING, STARTING or STARTED does any work.

        Returns:
            True if this call performed the shutdown, False if it was a no-op.
        """
        session = self._require_bound("shutdown")
        if not self._stage.transition_from_any(_SHUTDOWN_FROM, LifeCycleStage.STOPPING):
            logger.debug(
                "Shutdown already in progress or done",
                session=session.name,
                stage=self._stage.get().value,
            )
            return False

        self._tracer.before_session_shutdown(session)
        self.event_handler.before_shutdown(self)
        self._stage.set(LifeCycleStage.STOPPED)

        self._tracer.on_session_shutdown(session)
        self.event_handler.after_shutdown(self)
        self._tracer.on_session_end(session)
        return True

    # ------------------------------------------------------------------
    # Hook registration
    # ------------------------------------------------------------------

    def _owner_of(self, hook: LifeCycleHook) -> "LifeCycleManager":
        session = self._require_bound("register a hook")
        owner = session.find_owner_session_of(hook.surface)
        if owner is None:
            return self
        return owner.lifecycle_manager

    def add_init_hook(self, hook: LifeCycleHook) -> None:
        owner = self._owner_of(hook)
        if owner._init_hooks.register_if_absent(hook):
            logger.debug("Add an init hook", session=owner.session_name, hook=str(hook))
            hook.execute()
        else:
            logger.debug("Already initialized", session=owner.session_name, hook=str(hook))

    def add_inject_hook(self, hook: LifeCycleHook) -> None:
        owner = self._owner_of(hook)
        logger.debug("Running an inject hook", session=owner.session_name, hook=str(hook))
        hook.execute()

    def add_start_hook(self, hook: LifeCycleHook) -> None:
        owner = self._owner_of(hook)
        with owner._lock:
            if owner._start_hooks.register_if_absent(hook):
                logger.debug("Add a start hook", session=owner.session_name, hook=str(hook))
                if owner._accepts_late_start_hooks():
                    # Late joiner: the start drain is already over
                    owner.tracer.on_start_instance(owner.session, hook.injectee)
                    hook.execute()

    def _accepts_late_start_hooks(self) -> bool:
        stage = self._stage.get()
        if stage is LifeCycleStage.STARTED:
            return True
        return stage is LifeCycleStage.STARTING and self._start_drained

    def next_start_hook(self, index: int) -> Optional[LifeCycleHook]:
        """
        Return the start hook at ``index`` for the running start drain.

        Returns None once every registered start hook has been handed out,
        and closes the drain in the same step: start hooks registered after
        that point run immediately, even before the stage reaches STARTED.
        """
        with self._lock:
            hooks = self._start_hooks.hooks
            if index < len(hooks):
                return hooks[index]
            self._start_drained = True
            return None

    def add_pre_shutdown_hook(self, hook: LifeCycleHook) -> None:
        owner = self._owner_of(hook)
        with owner._lock:
            if owner._pre_shutdown_hooks.register_if_absent(hook):
                logger.debug("Add a pre-shutdown hook", session=owner.session_name, hook=str(hook))

    def add_shutdown_hook(self, hook: LifeCycleHook) -> None:
        owner = self._owner_of(hook)
        with owner._lock:
            if owner._shutdown_hooks.register_if_absent(hook):
                logger.debug("Add a shutdown hook", session=owner.session_name, hook=str(hook))

    def add_hook(self, kind: HookKind, hook: LifeCycleHook) -> None:
        """Register ``hook`` for the trigger point ``kind``."""
        registrars: Dict[HookKind, Callable[[LifeCycleHook], None]] = {
            HookKind.INIT: self.add_init_hook,
            HookKind.INJECT: self.add_inject_hook,
            HookKind.START: self.add_start_hook,
            HookKind.PRE_SHUTDOWN: self.add_pre_shutdown_hook,
            HookKind.SHUTDOWN: self.add_shutdown_hook,
        }
        registrars[kind](hook)

    # ------------------------------------------------------------------
    # Registry accessors
    # ------------------------------------------------------------------

    @property
    def init_hooks(self) -> Tuple[LifeCycleHook, ...]:
        return self._init_hooks.hooks

    @property
    def start_hooks(self) -> Tuple[LifeCycleHook, ...]:
        return self._start_hooks.hooks

    @property
    def pre_shutdown_hooks(self) -> Tuple[LifeCycleHook, ...]:
        return self._pre_shutdown_hooks.hooks

    @property
    def shutdown_hooks(self) -> Tuple[LifeCycleHook, ...]:
        return self._shutdown_hooks.hooks

    def __repr__(self) -> str:
        if self._session is None:
            return "LifeCycleManager(<unbound>)"
        return f"LifeCycleManager(session={self._session.name!r}, stage={self._stage.get().name})"
