"""
Stagehand - Lifecycle Stages

A session moves through a closed, one-directional set of stages:

    INITIALIZING -> STARTING -> STARTED -> STOPPING -> STOPPED

shutdown() may also enter STOPPING directly from INITIALIZING or STARTING.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Iterable


class LifeCycleStage(Enum):
    """Stages of a lifecycle manager."""

    INITIALIZING = "initializing"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self is LifeCycleStage.STOPPED


class AtomicStage:
    """
    Holds the current stage with compare-and-set semantics.

    Exactly one caller wins a given transition; the others observe the
    stage the winner moved to.
    """

    def __init__(self, initial: LifeCycleStage = LifeCycleStage.INITIALIZING):
        self._value = initial
        self._lock = threading.Lock()

    def get(self) -> LifeCycleStage:
        with self._lock:
            return self._value

    def set(self, stage: LifeCycleStage) -> None:
        with self._lock:
            self._value = stage

    def compare_and_set(self, expected: LifeCycleStage, new: LifeCycleStage) -> bool:
        """Move to ``new`` only if the current stage is ``expected``."""
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True

    def transition_from_any(
        self,
        expected: Iterable[LifeCycleStage],
        new: LifeCycleStage,
    ) -> bool:
        """Move to ``new`` if the current stage is any of ``expected``."""
        expected = tuple(expected)
        with self._lock:
            if self._value not in expected:
                return False
            self._value = new
            return True

    def __repr__(self) -> str:
        return f"AtomicStage({self.get().name})"
