"""
Stagehand - Test Configuration

Pytest fixtures and helpers shared by all tests.
"""
import threading
from typing import Any, List, Tuple

import pytest

from lifecycle.handlers import LifeCycleEventHandler
from lifecycle.hooks import LifeCycleHook
from lifecycle.session import LifeCycleSession
from lifecycle.tracer import Tracer


class Component:
    """Stand-in for an injected component; compared by identity only."""

    def __init__(self, label: str):
        self.label = label

    def __repr__(self) -> str:
        return f"Component({self.label!r})"


class Recorder:
    """Thread-safe log of hook executions."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def record(self, label: str) -> None:
        with self._lock:
            self.calls.append(label)

    def hook(self, label: str, surface: Any = Component, injectee: Any = None) -> LifeCycleHook:
        """Hook that records ``label`` when executed."""
        target = injectee if injectee is not None else Component(label)
        return LifeCycleHook(
            surface=surface,
            injectee=target,
            action=lambda: self.record(label),
            name=label,
        )

    def count(self, label: str) -> int:
        with self._lock:
            return self.calls.count(label)


class RecordingTracer(Tracer):
    """Tracer that records (event, session name, detail) tuples."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str, Any]] = []

    def on_session_start(self, session):
        self.events.append(("session_start", session.name, None))

    def before_session_shutdown(self, session):
        self.events.append(("before_session_shutdown", session.name, None))

    def on_session_shutdown(self, session):
        self.events.append(("session_shutdown", session.name, None))

    def on_session_end(self, session):
        self.events.append(("session_end", session.name, None))

    def on_init_instance(self, session, surface, injectee):
        self.events.append(("init_instance", session.name, injectee))

    def on_start_instance(self, session, injectee):
        self.events.append(("start_instance", session.name, injectee))

    def before_shutdown_instance(self, session, injectee):
        self.events.append(("before_shutdown_instance", session.name, injectee))

    def on_shutdown_instance(self, session, injectee):
        self.events.append(("shutdown_instance", session.name, injectee))

    def names(self) -> List[str]:
        return [event for event, _, _ in self.events]


class RecordingHandler(LifeCycleEventHandler):
    """Handler that appends '<tag>.<point>' to a shared list."""

    def __init__(self, tag: str, log: List[str]):
        self.tag = tag
        self.log = log

    def on_init(self, manager, surface, injectee):
        self.log.append(f"{self.tag}.on_init")

    def before_start(self, manager):
        self.log.append(f"{self.tag}.before_start")

    def after_start(self, manager):
        self.log.append(f"{self.tag}.after_start")

    def before_shutdown(self, manager):
        self.log.append(f"{self.tag}.before_shutdown")

    def after_shutdown(self, manager):
        self.log.append(f"{self.tag}.after_shutdown")


@pytest.fixture
def recorder() -> Recorder:
    """Fresh hook execution recorder."""
    return Recorder()


@pytest.fixture
def tracer() -> RecordingTracer:
    """Tracer capturing every notification."""
    return RecordingTracer()


@pytest.fixture
def session(tracer) -> LifeCycleSession:
    """Root session using the default handler chain."""
    return LifeCycleSession("test-session", tracer=tracer)


@pytest.fixture
def manager(session):
    """The lifecycle manager bound to ``session``."""
    return session.lifecycle_manager


# Markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "property: marks property-based tests using Hypothesis")
    config.addinivalue_line("markers", "stateful: marks stateful property tests")
    config.addinivalue_line("markers", "concurrency: marks tests that spawn threads")
