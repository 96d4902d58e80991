"""Tests for ViewProvider: derived state with always-current dependencies."""

from refx import Container, EventKind, Family, StateNotifier, StateProvider, ViewProvider


class TestView:
    def test_derives_and_recomputes(self):
        c = Container()
        price = StateProvider(3)
        quantity = StateProvider(2)
        total = ViewProvider(lambda ref: ref.watch(price) * ref.watch(quantity))

        assert c.read(total) == 6
        c.notifier(price).set_state(5)
        assert c.read(total) == 10
        c.notifier(quantity).set_state(1)
        assert c.read(total) == 5

    def test_records_dependencies(self):
        c = Container()
        a, b = StateProvider(1), StateProvider(2)
        view = ViewProvider(lambda ref: ref.watch(a) + ref.watch(b))
        n = c.notifier(view)
        assert n.dependencies == {c.notifier(a), c.notifier(b)}
        assert n in c.notifier(a).dependents

    def test_conditional_dependencies_are_replaced(self):
        """A branch no longer taken stops rebuilding the view."""
        c = Container()
        flag = StateProvider(True)
        a = StateProvider(1)
        b = StateProvider(2)
        view = ViewProvider(lambda ref: ref.watch(a) if ref.watch(flag) else ref.watch(b))

        n = c.notifier(view)
        assert n.state == 1
        assert c.notifier(b).listeners == []

        c.notifier(flag).set_state(False)
        assert n.state == 2
        assert n.dependencies == {c.notifier(flag), c.notifier(b)}
        assert c.notifier(a).listeners == []

        builds = n.rebuild_count
        c.notifier(a).set_state(100)
        assert n.rebuild_count == builds

    def test_view_of_view(self):
        c = Container()
        base = StateProvider(2)
        doubled = ViewProvider(lambda ref: ref.watch(base) * 2)
        quadrupled = ViewProvider(lambda ref: ref.watch(doubled) * 2)
        assert c.read(quadrupled) == 8
        c.notifier(base).set_state(5)
        assert c.read(quadrupled) == 20

    def test_selected_view_dependency(self):
        c = Container()
        state = StateProvider({"a": 1, "b": 1})
        only_a = ViewProvider(lambda ref: ref.watch(state.select(lambda s: s["a"])) * 10)
        n = c.notifier(only_a)

        c.notifier(state).set_state({"a": 1, "b": 5})
        assert n.rebuild_count == 0
        c.notifier(state).set_state({"a": 2, "b": 5})
        assert n.rebuild_count == 1
        assert n.state == 20

    def test_rebuild_events(self, container, observer):
        base = StateProvider(1)
        view = ViewProvider(lambda ref: ref.watch(base) + 1)
        v = container.notifier(view)
        observer.clear()

        container.notifier(base).set_state(2)

        rebuilds = observer.of_kind(EventKind.REBUILD)
        assert [(e.rebuildable, e.notifier) for e in rebuilds] == [(v, container.notifier(base))]
        # the view's own change is reported too
        assert [e.notifier for e in observer.of_kind(EventKind.CHANGE)] == [v, container.notifier(base)]


class TestViewDisposal:
    def test_disposing_dependency_disposes_view(self, container, observer):
        base = StateProvider(1)
        view = ViewProvider(lambda ref: ref.watch(base) + 1)
        v = container.notifier(view)

        container.dispose(base)

        assert v.disposed
        assert not container.exists(view)
        disposed = [e.provider for e in observer.of_kind(EventKind.PROVIDER_DISPOSE)]
        assert disposed == [view, base]

    def test_disposing_view_unhooks_it(self):
        c = Container()
        base = StateProvider(1)
        view = ViewProvider(lambda ref: ref.watch(base))
        v = c.notifier(view)
        assert c.notifier(base).listeners == [v]

        c.dispose(view)

        assert c.notifier(base).listeners == []
        assert c.notifier(base).dependents == set()
        c.notifier(base).set_state(2)  # nothing left to rebuild

    def test_view_recreated_fresh(self):
        c = Container()
        base = StateProvider(1)
        view = ViewProvider(lambda ref: ref.watch(base))
        first = c.notifier(view)
        c.dispose(view)
        c.notifier(base).set_state(7)
        second = c.notifier(view)
        assert second is not first
        assert second.state == 7


class TestFamilyViews:
    def test_params_are_independent_dependencies(self):
        c = Container()
        counters = Family(lambda key: StateNotifier(0))
        left = ViewProvider(lambda ref: ref.watch(counters("left")))
        right = ViewProvider(lambda ref: ref.watch(counters("right")))
        vl, vr = c.notifier(left), c.notifier(right)

        c.notifier(counters("left")).set_state(1)

        assert vl.state == 1
        assert vr.state == 0
        assert vr.rebuild_count == 0
