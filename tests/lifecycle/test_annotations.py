"""
Tests for decorator-declared lifecycle hooks.
"""
from lifecycle.annotations import (
    DecoratedLifeCycleExecutor,
    marked_methods,
    on_start,
    post_construct,
    pre_destroy,
    pre_shutdown,
)
from lifecycle.hooks import HookKind
from lifecycle.session import LifeCycleSession


class Service:
    def __init__(self):
        self.events = []

    @post_construct
    def init(self):
        self.events.append("init")

    @on_start
    def begin(self):
        self.events.append("start")

    @pre_shutdown
    def drain(self):
        self.events.append("pre_shutdown")

    @pre_destroy
    def close(self):
        self.events.append("shutdown")

    def helper(self):
        self.events.append("helper")


class DerivedService(Service):
    @pre_destroy
    def close(self):
        self.events.append("derived-shutdown")


class Plain:
    pass


class TestMarkers:
    def test_marked_methods(self):
        assert sorted(marked_methods(Service), key=lambda p: p[0]) == [
            ("begin", HookKind.START),
            ("close", HookKind.SHUTDOWN),
            ("drain", HookKind.PRE_SHUTDOWN),
            ("init", HookKind.INIT),
        ]

    def test_decorators_return_the_function(self):
        def f():
            return 1

        assert post_construct(f) is f
        assert f() == 1

    def test_override_replaces_base_method(self):
        kinds = dict(marked_methods(DerivedService))
        assert kinds["close"] is HookKind.SHUTDOWN
        assert list(name for name, _ in marked_methods(DerivedService)).count("close") == 1

    def test_unmarked_class(self):
        assert list(marked_methods(Plain)) == []


class TestDecoratedExecutor:
    def test_full_lifecycle(self):
        session = LifeCycleSession("svc")
        svc = session.register_injectee(Service, Service())

        assert svc.events == ["init"]
        session.start()
        session.shutdown()

        assert svc.events == ["init", "start", "pre_shutdown", "shutdown"]

    def test_derived_override_is_used(self):
        session = LifeCycleSession("svc")
        svc = session.register_injectee(DerivedService, DerivedService())

        session.shutdown()

        assert svc.events == ["init", "pre_shutdown", "derived-shutdown"]

    def test_registering_twice_runs_init_once(self):
        session = LifeCycleSession("svc")
        svc = Service()

        session.register_injectee(Service, svc)
        session.register_injectee(Service, svc)

        assert svc.events == ["init"]
        assert len(session.lifecycle_manager.shutdown_hooks) == 1

    def test_components_shut_down_in_reverse(self):
        session = LifeCycleSession("svc")
        first = session.register_injectee(Service, Service())
        second = session.register_injectee(Service, Service())
        order = []
        first.events = order
        second.events = order

        session.shutdown()

        assert order == ["pre_shutdown", "pre_shutdown", "shutdown", "shutdown"]
        hooks = session.lifecycle_manager.shutdown_hooks
        assert [h.injectee for h in reversed(hooks)] == [second, first]

    def test_registered_after_start_runs_start_hook(self):
        session = LifeCycleSession("svc")
        session.start()

        svc = session.register_injectee(Service, Service())

        assert svc.events == ["init", "start"]

    def test_only_executor_registers(self, manager):
        DecoratedLifeCycleExecutor().on_init(manager, Plain, Plain())
        assert manager.init_hooks == ()
