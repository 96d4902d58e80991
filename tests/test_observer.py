"""Tests for observers and the event history."""

import logging

from refx import (
    ChangeEvent,
    Container,
    EventKind,
    HistoryConfig,
    HistoryObserver,
    ListenerConfig,
    LoggingObserver,
    MultiObserver,
    StateProvider,
)


class TestHistoryConfig:
    def test_default_drops_structural_events(self):
        config = HistoryConfig()
        assert config.saves(EventKind.CHANGE)
        assert config.saves(EventKind.REBUILD)
        assert config.saves(EventKind.MESSAGE)
        assert config.saves(EventKind.ACTION_DISPATCHED)
        assert not config.saves(EventKind.PROVIDER_INIT)
        assert not config.saves(EventKind.LISTENER_ADDED)

    def test_all_and_structural(self):
        assert all(HistoryConfig.all().saves(kind) for kind in EventKind)
        structural = HistoryConfig.structural()
        assert structural.saves(EventKind.PROVIDER_DISPOSE)
        assert not structural.saves(EventKind.CHANGE)


class TestHistoryObserver:
    def test_counter_scenario(self, make_subscriber):
        """Two changes, one of them to an equal value: one rebuild."""
        observer = HistoryObserver()
        c = Container(observer=observer)
        counter = StateProvider(0, debug_label="counter")
        n = c.notifier(counter)
        w1 = make_subscriber("W1")
        n.add_listener(w1, ListenerConfig(rebuild_when=lambda prev, next: prev != next))

        n.set_state(1)
        n.set_state(1)

        assert [e.kind for e in observer.history] == [
            EventKind.CHANGE,
            EventKind.REBUILD,
            EventKind.CHANGE,
        ]
        first, rebuild, second = observer.history
        assert (first.prev, first.next, first.rebuilt) == (0, 1, (w1,))
        assert rebuild.rebuildable is w1
        assert (second.prev, second.next, second.rebuilt) == (1, 1, ())

    def test_stop_and_start(self):
        observer = HistoryObserver()
        c = Container(observer=observer)
        n = c.notifier(StateProvider(0))

        observer.stop()
        n.set_state(1)
        assert observer.history == []

        observer.start()
        n.set_state(2)
        assert [e.next for e in observer.history] == [2]

    def test_start_later(self):
        observer = HistoryObserver(HistoryConfig(start_immediately=False))
        c = Container(observer=observer)
        c.message("ignored")
        observer.start()
        c.message("kept")
        assert [e.message for e in observer.history] == ["kept"]

    def test_clear(self, container, observer):
        container.notifier(StateProvider(0)).set_state(1)
        assert observer.history
        observer.clear()
        assert observer.history == []

    def test_only(self):
        observer = HistoryObserver.only(EventKind.PROVIDER_INIT)
        c = Container(observer=observer)
        p = StateProvider(0)
        c.notifier(p).set_state(1)
        assert [e.provider for e in observer.history] == [p]

    def test_events_are_ordered(self, container, observer):
        container.notifier(StateProvider(0)).set_state(1)
        container.message("done")
        seqs = [e.seq for e in observer.history]
        assert seqs == sorted(seqs)
        assert len(set(seqs)) == len(seqs)


class TestMultiObserver:
    def test_forwards_in_order(self):
        calls = []

        class Recorder(HistoryObserver):
            def __init__(self, name):
                super().__init__(HistoryConfig.all())
                self.name = name

            def handle_event(self, event):
                calls.append(self.name)
                super().handle_event(event)

        a, b = Recorder("a"), Recorder("b")
        c = Container(observer=MultiObserver(a, b))
        c.notifier(StateProvider(0)).set_state(1)

        assert calls[:2] == ["a", "b"]
        assert [e.kind for e in a.history] == [e.kind for e in b.history]
        assert isinstance(a.of_kind(EventKind.CHANGE)[0], ChangeEvent)


class TestLoggingObserver:
    def test_logs_events(self, caplog):
        c = Container(observer=LoggingObserver())
        with caplog.at_level(logging.DEBUG, logger="refx.observer"):
            c.notifier(StateProvider(0, debug_label="counter")).set_state(5)
            c.message("hello", origin="test")

        messages = [r.getMessage() for r in caplog.records if r.name == "refx.observer"]
        assert any("change" in m and "counter" in m for m in messages)
        assert any("hello" in m for m in messages)

    def test_silent_when_level_disabled(self, caplog):
        c = Container(observer=LoggingObserver(level=logging.DEBUG))
        with caplog.at_level(logging.WARNING, logger="refx.observer"):
            c.notifier(StateProvider(0)).set_state(1)
        assert [r for r in caplog.records if r.name == "refx.observer"] == []
