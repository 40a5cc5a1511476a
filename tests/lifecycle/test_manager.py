"""
Tests for lifecycle/manager.py - LifeCycleManager.

Covers:
- start()/shutdown() stage transitions
- Hook ordering (registration order for start, reverse for shutdown)
- Exactly-once registration per injectee
- Late-joining start hooks
- Shutdown-family hooks registered after shutdown
- Hook failures and the resulting intermediate stage
- Binding rules
"""
import pytest

from core.errors import InvalidTransitionError, SessionAlreadyBoundError, SessionNotBoundError
from lifecycle.hooks import HookKind, LifeCycleHook
from lifecycle.manager import LifeCycleManager, default_lifecycle_event_handler
from lifecycle.session import LifeCycleSession
from lifecycle.stage import LifeCycleStage
from tests.conftest import Component, Recorder, RecordingHandler


# =============================================================================
# STAGE TRANSITIONS
# =============================================================================

class TestStageTransitions:
    """Tests for start() and shutdown() transitions."""

    def test_new_manager_is_initializing(self, manager):
        assert manager.current_stage is LifeCycleStage.INITIALIZING

    def test_start_reaches_started(self, manager):
        manager.start()
        assert manager.current_stage is LifeCycleStage.STARTED

    def test_shutdown_after_start_reaches_stopped(self, manager):
        manager.start()
        assert manager.shutdown() is True
        assert manager.current_stage is LifeCycleStage.STOPPED

    def test_second_start_raises(self, manager, recorder):
        manager.add_start_hook(recorder.hook("a"))
        manager.start()

        with pytest.raises(InvalidTransitionError) as exc_info:
            manager.start()

        assert exc_info.value.current_stage is LifeCycleStage.STARTED
        assert exc_info.value.attempted == "start"
        assert recorder.calls == ["a"]

    def test_start_after_shutdown_raises(self, manager):
        manager.shutdown()
        with pytest.raises(InvalidTransitionError):
            manager.start()
        assert manager.current_stage is LifeCycleStage.STOPPED

    def test_shutdown_is_idempotent(self, manager, recorder):
        manager.add_shutdown_hook(recorder.hook("x"))
        manager.start()

        assert manager.shutdown() is True
        assert manager.shutdown() is False
        assert manager.shutdown() is False
        assert recorder.calls == ["x"]

    def test_shutdown_from_initializing_runs_shutdown_hooks(self, manager, recorder):
        manager.add_shutdown_hook(recorder.hook("x"))
        manager.add_shutdown_hook(recorder.hook("y"))

        assert manager.shutdown() is True

        assert recorder.calls == ["y", "x"]
        assert manager.current_stage is LifeCycleStage.STOPPED

    def test_shutdown_from_initializing_skips_start_hooks(self, manager, recorder):
        manager.add_start_hook(recorder.hook("never"))
        manager.shutdown()
        assert recorder.calls == []

    def test_shutdown_during_start_hook(self, manager, recorder):
        """A start hook may shut the session down while it is STARTING."""
        stages = []

        def stop_now():
            stages.append(manager.current_stage)
            manager.shutdown()

        manager.add_start_hook(LifeCycleHook(Component, Component("s"), stop_now, "s"))
        manager.add_shutdown_hook(recorder.hook("x"))

        manager.start()

        assert stages == [LifeCycleStage.STARTING]
        assert recorder.calls == ["x"]
        # start() returns without moving the stage back to STARTED
        assert manager.current_stage is LifeCycleStage.STOPPED


# =============================================================================
# HOOK ORDERING
# =============================================================================

class TestHookOrdering:
    """Tests for the order hooks run in."""

    def test_start_hooks_run_in_registration_order(self, manager, recorder):
        for label in ("a", "b", "c"):
            manager.add_start_hook(recorder.hook(label))

        manager.start()

        assert recorder.calls == ["a", "b", "c"]

    def test_shutdown_hooks_run_in_reverse_order(self, manager, recorder):
        for label in ("x", "y", "z"):
            manager.add_shutdown_hook(recorder.hook(label))

        manager.start()
        manager.shutdown()

        assert recorder.calls == ["z", "y", "x"]

    def test_pre_shutdown_hooks_run_before_shutdown_hooks(self, manager, recorder):
        manager.add_shutdown_hook(recorder.hook("s1"))
        manager.add_pre_shutdown_hook(recorder.hook("p1"))
        manager.add_shutdown_hook(recorder.hook("s2"))
        manager.add_pre_shutdown_hook(recorder.hook("p2"))

        manager.start()
        manager.shutdown()

        assert recorder.calls == ["p2", "p1", "s2", "s1"]

    def test_start_hook_registered_during_start_runs(self, manager, recorder):
        late = recorder.hook("late")

        def register_more():
            recorder.record("first")
            manager.add_start_hook(late)

        manager.add_start_hook(LifeCycleHook(Component, Component("first"), register_more, "first"))
        manager.start()

        assert recorder.calls == ["first", "late"]


# =============================================================================
# EXACTLY-ONCE REGISTRATION
# =============================================================================

class TestExactlyOnce:
    """Tests for per-injectee deduplication."""

    def test_init_hook_runs_once_per_injectee(self, manager, recorder):
        target = Component("db")
        manager.add_init_hook(recorder.hook("init", injectee=target))
        manager.add_init_hook(recorder.hook("init", injectee=target))

        assert recorder.calls == ["init"]
        assert len(manager.init_hooks) == 1

    def test_init_hooks_for_distinct_injectees_both_run(self, manager, recorder):
        manager.add_init_hook(recorder.hook("a"))
        manager.add_init_hook(recorder.hook("b"))
        assert recorder.calls == ["a", "b"]

    def test_dedup_uses_identity_not_equality(self, manager, recorder):
        class Equal:
            def __eq__(self, other):
                return True

            def __hash__(self):
                return 0

        manager.add_init_hook(recorder.hook("a", injectee=Equal()))
        manager.add_init_hook(recorder.hook("b", injectee=Equal()))

        assert recorder.calls == ["a", "b"]

    def test_inject_hook_runs_every_time(self, manager, recorder):
        target = Component("field")
        for _ in range(3):
            manager.add_inject_hook(recorder.hook("inject", injectee=target))

        assert recorder.calls == ["inject", "inject", "inject"]

    def test_duplicate_start_hook_runs_once(self, manager, recorder):
        target = Component("svc")
        manager.add_start_hook(recorder.hook("first", injectee=target))
        manager.add_start_hook(recorder.hook("second", injectee=target))

        manager.start()

        assert recorder.calls == ["first"]

    def test_duplicate_shutdown_hook_runs_once(self, manager, recorder):
        target = Component("svc")
        manager.add_shutdown_hook(recorder.hook("first", injectee=target))
        manager.add_shutdown_hook(recorder.hook("second", injectee=target))

        manager.shutdown()

        assert recorder.calls == ["first"]

    def test_same_injectee_in_different_registries(self, manager, recorder):
        target = Component("svc")
        manager.add_start_hook(recorder.hook("start", injectee=target))
        manager.add_shutdown_hook(recorder.hook("stop", injectee=target))

        manager.start()
        manager.shutdown()

        assert recorder.calls == ["start", "stop"]


# =============================================================================
# LATE REGISTRATION
# =============================================================================

class TestLateRegistration:
    """Tests for hooks registered after their trigger point."""

    def test_start_hook_after_start_runs_immediately(self, manager, recorder, tracer):
        manager.start()
        hook = recorder.hook("late")

        manager.add_start_hook(hook)

        assert recorder.calls == ["late"]
        assert ("start_instance", "test-session", hook.injectee) in tracer.events

    def test_duplicate_late_start_hook_does_not_rerun(self, manager, recorder):
        target = Component("svc")
        manager.add_start_hook(recorder.hook("a", injectee=target))
        manager.start()

        manager.add_start_hook(recorder.hook("b", injectee=target))

        assert recorder.calls == ["a"]

    def test_start_hook_after_shutdown_does_not_run(self, manager, recorder):
        manager.start()
        manager.shutdown()

        manager.add_start_hook(recorder.hook("late"))

        assert recorder.calls == []

    def test_shutdown_hook_after_shutdown_is_dropped(self, manager, recorder):
        manager.start()
        manager.shutdown()

        manager.add_shutdown_hook(recorder.hook("late"))
        manager.add_pre_shutdown_hook(recorder.hook("late-pre"))
        manager.shutdown()

        assert recorder.calls == []
        assert len(manager.shutdown_hooks) == 1

    def test_shutdown_hook_never_runs_eagerly(self, manager, recorder):
        manager.start()
        manager.add_shutdown_hook(recorder.hook("x"))
        assert recorder.calls == []


# =============================================================================
# FAILURES
# =============================================================================

class TestHookFailures:
    """Tests for hooks that raise."""

    def test_failing_start_hook_propagates_and_stays_starting(self, manager, recorder):
        def boom():
            raise RuntimeError("start failed")

        manager.add_start_hook(recorder.hook("a"))
        manager.add_start_hook(LifeCycleHook(Component, Component("b"), boom, "b"))
        manager.add_start_hook(recorder.hook("c"))

        with pytest.raises(RuntimeError, match="start failed"):
            manager.start()

        assert recorder.calls == ["a"]
        assert manager.current_stage is LifeCycleStage.STARTING

    def test_failing_shutdown_hook_propagates_and_stays_stopping(self, manager, recorder):
        def boom():
            raise ValueError("close failed")

        manager.add_shutdown_hook(recorder.hook("x"))
        manager.add_shutdown_hook(LifeCycleHook(Component, Component("y"), boom, "y"))
        manager.add_shutdown_hook(recorder.hook("z"))
        manager.start()

        with pytest.raises(ValueError, match="close failed"):
            manager.shutdown()

        assert recorder.calls == ["z"]
        assert manager.current_stage is LifeCycleStage.STOPPING
        # No retry path: a second shutdown is a no-op
        assert manager.shutdown() is False

    def test_failed_start_can_still_shut_down(self, manager, recorder):
        def boom():
            raise RuntimeError("nope")

        manager.add_start_hook(LifeCycleHook(Component, Component("a"), boom, "a"))
        manager.add_shutdown_hook(recorder.hook("cleanup"))

        with pytest.raises(RuntimeError):
            manager.start()

        assert manager.shutdown() is True
        assert recorder.calls == ["cleanup"]

    def test_failing_init_hook_propagates(self, manager):
        def boom():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            manager.add_init_hook(LifeCycleHook(Component, Component("a"), boom, "a"))


# =============================================================================
# EVENT HANDLER AND TRACER NOTIFICATIONS
# =============================================================================

class TestNotifications:
    """Tests for the order of tracer and handler notifications."""

    def test_tracer_sequence_for_full_lifecycle(self, manager, recorder, tracer):
        pre = recorder.hook("pre")
        stop = recorder.hook("stop")
        manager.add_pre_shutdown_hook(pre)
        manager.add_shutdown_hook(stop)

        manager.start()
        manager.shutdown()

        assert tracer.names() == [
            "session_start",
            "before_session_shutdown",
            "before_shutdown_instance",
            "shutdown_instance",
            "session_shutdown",
            "session_end",
        ]
        assert tracer.events[2][2] is pre.injectee
        assert tracer.events[3][2] is stop.injectee

    def test_handler_points_called_around_transitions(self, tracer):
        log = []
        session = LifeCycleSession(
            "handlers",
            tracer=tracer,
            event_handler=default_lifecycle_event_handler().and_then(RecordingHandler("h", log)),
        )
        stages = []
        session.lifecycle_manager.add_start_hook(
            LifeCycleHook(Component, Component("s"), lambda: stages.append(session.current_stage), "s")
        )

        session.start()
        session.shutdown()

        assert log == ["h.before_start", "h.after_start", "h.before_shutdown", "h.after_shutdown"]
        assert stages == [LifeCycleStage.STARTING]

    def test_on_init_reaches_handlers(self, tracer):
        log = []
        session = LifeCycleSession("init", tracer=tracer, event_handler=RecordingHandler("h", log))

        session.register_injectee(Component, Component("a"))

        assert log == ["h.on_init"]
        assert tracer.names() == ["init_instance"]


# =============================================================================
# BINDING
# =============================================================================

class TestBinding:
    """Tests for two-phase construction."""

    def test_unbound_manager_rejects_stage_query(self):
        manager = LifeCycleManager()
        assert manager.is_bound is False
        with pytest.raises(SessionNotBoundError):
            _ = manager.current_stage

    def test_unbound_manager_rejects_registration(self):
        manager = LifeCycleManager()
        with pytest.raises(SessionNotBoundError) as exc_info:
            manager.add_start_hook(Recorder().hook("a"))
        assert exc_info.value.error_code == "LIFECYCLE_NOT_BOUND"

    def test_unbound_manager_rejects_start_and_shutdown(self):
        manager = LifeCycleManager()
        with pytest.raises(SessionNotBoundError):
            manager.start()
        with pytest.raises(SessionNotBoundError):
            manager.shutdown()

    def test_session_binds_supplied_manager(self, tracer):
        manager = LifeCycleManager()
        session = LifeCycleSession("bound", tracer=tracer, manager=manager)

        assert manager.is_bound
        assert manager.session is session
        assert manager.tracer is tracer
        assert manager.session_name == "bound"

    def test_binding_twice_raises(self, session):
        with pytest.raises(SessionAlreadyBoundError):
            session.lifecycle_manager.bind(session)


# =============================================================================
# ACCESSORS
# =============================================================================

class TestAccessors:
    """Tests for registry accessors and add_hook dispatch."""

    def test_accessors_return_registration_order(self, manager, recorder):
        hooks = [recorder.hook(label) for label in ("a", "b")]
        for h in hooks:
            manager.add_pre_shutdown_hook(h)

        assert manager.pre_shutdown_hooks == tuple(hooks)
        assert manager.start_hooks == ()

    def test_add_hook_dispatches_by_kind(self, manager, recorder):
        manager.add_hook(HookKind.INIT, recorder.hook("init"))
        manager.add_hook(HookKind.START, recorder.hook("start"))
        manager.add_hook(HookKind.PRE_SHUTDOWN, recorder.hook("pre"))
        manager.add_hook(HookKind.SHUTDOWN, recorder.hook("stop"))
        manager.add_hook(HookKind.INJECT, recorder.hook("inject"))

        assert recorder.calls == ["init", "inject"]
        assert [str(h) for h in manager.start_hooks] == ["start"]
        assert [str(h) for h in manager.pre_shutdown_hooks] == ["pre"]
        assert [str(h) for h in manager.shutdown_hooks] == ["stop"]
