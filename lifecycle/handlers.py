"""
Stagehand - Lifecycle Event Handlers

Handlers are notified at five points of a manager's life: on_init (per
registered component), before_start, after_start, before_shutdown and
after_shutdown. Every point is a no-op unless overridden.

Handlers compose with ``and_then``: ``a.and_then(b)`` calls ``a`` and then
``b`` at every point. A chain is kept as one flat tuple of handlers, so
``(a.and_then(b)).and_then(c)`` and ``a.and_then(b.and_then(c))`` are the
same pipeline.

FILOLifeCycleHookExecutor is the only handler that runs hooks; the logging
handlers here only observe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Tuple

from observability.logging import get_logger

if TYPE_CHECKING:
    from lifecycle.manager import LifeCycleManager

logger = get_logger(__name__)


class LifeCycleEventHandler:
    """Base handler: all notification points are no-ops."""

    def on_init(self, manager: "LifeCycleManager", surface: Any, injectee: Any) -> None:
        pass

    def before_start(self, manager: "LifeCycleManager") -> None:
        pass

    def after_start(self, manager: "LifeCycleManager") -> None:
        pass

    def before_shutdown(self, manager: "LifeCycleManager") -> None:
        pass

    def after_shutdown(self, manager: "LifeCycleManager") -> None:
        pass

    @property
    def handlers(self) -> Tuple["LifeCycleEventHandler", ...]:
        """The leaf handlers this handler stands for, in call order."""
        return (self,)

    def and_then(self, next_handler: "LifeCycleEventHandler") -> "ChainedLifeCycleEventHandler":
        """Compose: run this handler, then ``next_handler``, at every point."""
        return ChainedLifeCycleEventHandler(self.handlers + next_handler.handlers)

    def __repr__(self) -> str:
        return type(self).__name__


class ChainedLifeCycleEventHandler(LifeCycleEventHandler):
    """A flat, ordered pipeline of handlers."""

    def __init__(self, handlers: Tuple[LifeCycleEventHandler, ...]):
        self._handlers = tuple(handlers)

    @property
    def handlers(self) -> Tuple[LifeCycleEventHandler, ...]:
        return self._handlers

    def on_init(self, manager: "LifeCycleManager", surface: Any, injectee: Any) -> None:
        for h in self._handlers:
            h.on_init(manager, surface, injectee)

    def before_start(self, manager: "LifeCycleManager") -> None:
        for h in self._handlers:
            h.before_start(manager)

    def after_start(self, manager: "LifeCycleManager") -> None:
        for h in self._handlers:
            h.after_start(manager)

    def before_shutdown(self, manager: "LifeCycleManager") -> None:
        for h in self._handlers:
            h.before_shutdown(manager)

    def after_shutdown(self, manager: "LifeCycleManager") -> None:
        for h in self._handlers:
            h.after_shutdown(manager)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChainedLifeCycleEventHandler):
            return NotImplemented
        return self._handlers == other._handlers

    def __hash__(self) -> int:
        return hash(self._handlers)

    def __repr__(self) -> str:
        return " -> ".join(repr(h) for h in self._handlers)


class FILOLifeCycleHookExecutor(LifeCycleEventHandler):
    """
    First In, Last Out hook executor.

    If components are registered in A -> B -> C order:
        start order    => A -> B -> C
        shutdown order => C -> B -> A

    A failing hook propagates immediately; the remaining hooks of that
    list are not run.
    """

    def before_start(self, manager: "LifeCycleManager") -> None:
        # Hooks registered while the drain runs are handed out in turn
        index = 0
        while True:
            h = manager.next_start_hook(index)
            if h is None:
                break
            logger.debug("Calling start hook", hook=str(h), session=manager.session_name)
            h.execute()
            index += 1

    def before_shutdown(self, manager: "LifeCycleManager") -> None:
        tracer = manager.tracer
        session = manager.session

        for h in reversed(manager.pre_shutdown_hooks):
            logger.debug("Calling pre-shutdown hook", hook=str(h), session=manager.session_name)
            tracer.before_shutdown_instance(session, h.injectee)
            h.execute()

        shutdown_order = tuple(reversed(manager.shutdown_hooks))
        if shutdown_order:
            logger.debug(
                "Shutdown order",
                session=manager.session_name,
                order=" -> ".join(str(h) for h in shutdown_order),
            )
        for h in shutdown_order:
            logger.debug("Calling shutdown hook", hook=str(h), session=manager.session_name)
            tracer.on_shutdown_instance(session, h.injectee)
            h.execute()


class _LifeCycleLogHandler(LifeCycleEventHandler):
    level = "info"

    def _log(self, message: str, manager: "LifeCycleManager") -> None:
        getattr(logger, self.level)(message, session=manager.session_name)

    def before_start(self, manager: "LifeCycleManager") -> None:
        self._log("Starting a new lifecycle", manager)

    def after_start(self, manager: "LifeCycleManager") -> None:
        self._log("Lifecycle started", manager)

    def before_shutdown(self, manager: "LifeCycleManager") -> None:
        self._log("Stopping the lifecycle", manager)

    def after_shutdown(self, manager: "LifeCycleManager") -> None:
        self._log("Lifecycle stopped", manager)


class ShowLifeCycleLog(_LifeCycleLogHandler):
    """Logs session transitions at info level."""

    level = "info"


class ShowDebugLifeCycleLog(_LifeCycleLogHandler):
    """Logs session transitions at debug level."""

    level = "debug"
