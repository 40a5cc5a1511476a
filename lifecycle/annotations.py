"""
Stagehand - Decorator-Driven Lifecycle Executor

Lets a component declare its own hooks by marking methods:

    class Database:
        @post_construct
        def connect(self): ...

        @pre_destroy
        def close(self): ...

When a session registers such a component, DecoratedLifeCycleExecutor
turns each marked method into a hook on the manager. A component gets at
most one hook per kind; if several methods carry the same marker, the
first one defined (subclass before base) wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterator, Tuple, TypeVar

from lifecycle.handlers import LifeCycleEventHandler
from lifecycle.hooks import HookKind, LifeCycleHook

if TYPE_CHECKING:
    from lifecycle.manager import LifeCycleManager

F = TypeVar("F", bound=Callable[..., Any])

_MARKER_ATTR = "__stagehand_hook_kinds__"


def _marker(kind: HookKind) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        kinds: FrozenSet[HookKind] = getattr(func, _MARKER_ATTR, frozenset())
        setattr(func, _MARKER_ATTR, kinds | {kind})
        return func

    decorator.__name__ = kind.value
    return decorator


post_construct = _marker(HookKind.INIT)
on_start = _marker(HookKind.START)
pre_shutdown = _marker(HookKind.PRE_SHUTDOWN)
pre_destroy = _marker(HookKind.SHUTDOWN)


def marked_methods(cls: type) -> Iterator[Tuple[str, HookKind]]:
    """Yield (method name, hook kind) for each marked method of ``cls``."""
    seen = set()
    for klass in cls.__mro__:
        for name, value in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            for kind in sorted(getattr(value, _MARKER_ATTR, ()), key=lambda k: k.value):
                yield name, kind


class DecoratedLifeCycleExecutor(LifeCycleEventHandler):
    """Registers hooks for methods marked with the decorators above."""

    def on_init(self, manager: "LifeCycleManager", surface: Any, injectee: Any) -> None:
        for name, kind in marked_methods(type(injectee)):
            manager.add_hook(kind, LifeCycleHook.for_method(surface, injectee, name))
