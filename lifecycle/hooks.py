"""
Stagehand - Lifecycle Hooks

A hook binds a callable to the component (injectee) it acts upon. The
HookRegistry keeps hooks in registration order and accepts at most one hook
per injectee, which is what makes every hook kind run exactly once.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Tuple


@dataclass(frozen=True, eq=False)
class LifeCycleHook:
    """
    An action to run against one component at a lifecycle transition.

    Attributes:
        surface: Opaque type token of the component (usually its class)
        injectee: The component instance; not owned by the hook
        action: Zero-argument callable run by execute()
        name: Label used in logs
    """

    surface: Any
    injectee: Any
    action: Callable[[], Any] = field(repr=False)
    name: Optional[str] = None

    def execute(self) -> Any:
        return self.action()

    @classmethod
    def for_method(cls, surface: Any, injectee: Any, method_name: str) -> "LifeCycleHook":
        """Build a hook that calls ``injectee.<method_name>()``."""
        method = getattr(injectee, method_name)
        return cls(
            surface=surface,
            injectee=injectee,
            action=method,
            name=f"{_surface_name(surface)}.{method_name}",
        )

    @classmethod
    def of(cls, surface: Any, injectee: Any, action: Callable[[Any], Any]) -> "LifeCycleHook":
        """Build a hook from a callable that takes the injectee."""
        return cls(
            surface=surface,
            injectee=injectee,
            action=lambda: action(injectee),
            name=getattr(action, "__name__", None),
        )

    def __str__(self) -> str:
        return self.name or f"hook for {_surface_name(self.surface)}"


def _surface_name(surface: Any) -> str:
    return getattr(surface, "__qualname__", None) or str(surface)


class HookRegistry:
    """Append-only, order-preserving list of hooks, one per injectee."""

    def __init__(self) -> None:
        self._hooks: Tuple[LifeCycleHook, ...] = ()
        self._lock = threading.Lock()

    def register_if_absent(self, hook: LifeCycleHook) -> bool:
        """
        Register a hook unless one for the same injectee exists.

        Injectees are compared by identity, not equality.

        Returns:
            True if the hook was added, False if it was a duplicate.
        """
        with self._lock:
            if any(h.injectee is hook.injectee for h in self._hooks):
                return False
            self._hooks = self._hooks + (hook,)
            return True

    @property
    def hooks(self) -> Tuple[LifeCycleHook, ...]:
        """Snapshot of registered hooks in registration order."""
        return self._hooks

    def __iter__(self) -> Iterator[LifeCycleHook]:
        return iter(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def __repr__(self) -> str:
        return f"HookRegistry({[str(h) for h in self._hooks]})"


class HookKind(Enum):
    """Trigger point a hook is registered for."""

    INIT = "init"
    INJECT = "inject"
    START = "start"
    PRE_SHUTDOWN = "pre_shutdown"
    SHUTDOWN = "shutdown"
