"""Tests for redux actions and the dispatcher's audit trail."""

import asyncio
from dataclasses import dataclass

import pytest

from refx import (
    AsyncReduxAction,
    AsyncReduxActionWithResult,
    Container,
    EventKind,
    HistoryObserver,
    ReduxAction,
    ReduxActionWithResult,
    ReduxNotifier,
    ReduxProvider,
    StateProvider,
)


class Counter(ReduxNotifier[int]):
    def init(self) -> int:
        return 0


@dataclass(frozen=True)
class Add(ReduxAction[int]):
    amount: int

    def reduce(self, notifier):
        return notifier.state + self.amount


@dataclass(frozen=True)
class Fail(ReduxAction[int]):
    def reduce(self, notifier):
        raise ValueError("cannot reduce")


@dataclass(frozen=True)
class AddAndReport(ReduxActionWithResult[int, str]):
    amount: int

    def reduce(self, notifier):
        new = notifier.state + self.amount
        return new, f"now {new}"


@dataclass(frozen=True)
class AddTwice(ReduxAction[int]):
    amount: int

    def reduce(self, notifier):
        self.dispatch(notifier, Add(self.amount))
        return notifier.state + self.amount


@dataclass(frozen=True)
class SlowAdd(AsyncReduxAction[int]):
    amount: int
    delay: float

    async def reduce(self, notifier):
        await asyncio.sleep(self.delay)
        return notifier.state + self.amount


@dataclass(frozen=True)
class AsyncFail(AsyncReduxAction[int]):
    async def reduce(self, notifier):
        await asyncio.sleep(0)
        raise RuntimeError("async failure")


@dataclass(frozen=True)
class Fetch(AsyncReduxActionWithResult[int, list]):
    async def reduce(self, notifier):
        return notifier.state + 1, ["item"]


def kinds(observer):
    return [e.kind for e in observer.history]


@pytest.fixture
def action_observer():
    return HistoryObserver.only(
        EventKind.ACTION_DISPATCHED,
        EventKind.ACTION_FINISHED,
        EventKind.ACTION_ERROR,
        EventKind.CHANGE,
    )


class TestDispatch:
    def test_success_trail(self, action_observer):
        c = Container(observer=action_observer)
        counter = ReduxProvider(Counter)
        result = c.redux(counter).dispatch(Add(2))

        assert result == 2
        assert c.read(counter) == 2
        assert kinds(action_observer) == [
            EventKind.ACTION_DISPATCHED,
            EventKind.CHANGE,
            EventKind.ACTION_FINISHED,
        ]
        dispatched, change, finished = action_observer.history
        assert dispatched.debug_origin == "Container"
        assert dispatched.action == Add(2)
        assert change.action == Add(2)
        assert finished.result == 2

    def test_failure_trail(self, action_observer):
        c = Container(observer=action_observer)
        counter = ReduxProvider(Counter)

        with pytest.raises(ValueError, match="cannot reduce"):
            c.redux(counter).dispatch(Fail())

        assert kinds(action_observer) == [EventKind.ACTION_DISPATCHED, EventKind.ACTION_ERROR]
        assert isinstance(action_observer.history[-1].error, ValueError)
        assert c.read(counter) == 0

    def test_with_result(self, action_observer):
        c = Container(observer=action_observer)
        counter = ReduxProvider(Counter)
        assert c.redux(counter).dispatch_with_result(AddAndReport(3)) == "now 3"
        assert c.read(counter) == 3
        assert action_observer.of_kind(EventKind.ACTION_FINISHED)[0].result == "now 3"
        # plain dispatch of the same kind of action returns the new state
        assert c.redux(counter).dispatch(AddAndReport(1)) == 4

    def test_with_result_requires_result_action(self):
        c = Container()
        with pytest.raises(TypeError):
            c.redux(ReduxProvider(Counter)).dispatch_with_result(Add(1))

    def test_sub_action_origin(self, action_observer):
        c = Container(observer=action_observer)
        counter = ReduxProvider(Counter)
        c.redux(counter).dispatch(AddTwice(1))

        assert c.read(counter) == 2
        dispatched = action_observer.of_kind(EventKind.ACTION_DISPATCHED)
        assert [e.debug_origin for e in dispatched] == ["Container", "AddTwice"]
        assert dispatched[1].debug_origin_ref == AddTwice(1)

    def test_origin_from_watchable_ref(self, action_observer, make_subscriber):
        c = Container(observer=action_observer)
        counter = ReduxProvider(Counter)
        button = make_subscriber("IncrementButton")
        c.watchable_ref(button).redux(counter).dispatch(Add(1))
        dispatched = action_observer.of_kind(EventKind.ACTION_DISPATCHED)[0]
        assert dispatched.debug_origin == "IncrementButton"
        assert dispatched.debug_origin_ref is button

    def test_before_and_after_hooks(self):
        log = []

        @dataclass(frozen=True)
        class Hooked(ReduxAction[int]):
            def before(self, notifier):
                log.append(("before", notifier.state))

            def reduce(self, notifier):
                return 10

            def after(self, notifier):
                log.append(("after", notifier.state))

        c = Container()
        c.redux(ReduxProvider(Counter)).dispatch(Hooked())
        assert log == [("before", 0), ("after", 10)]

    def test_only_redux_notifiers(self):
        c = Container()
        with pytest.raises(TypeError):
            c.redux(StateProvider(0))

    def test_async_action_rejected_by_sync_dispatch(self):
        c = Container()
        with pytest.raises(TypeError):
            c.redux(ReduxProvider(Counter)).dispatch(SlowAdd(1, 0))

    def test_notifier_dispatch(self):
        c = Container()
        counter = ReduxProvider(Counter)
        assert c.notifier(counter).dispatch(Add(4)) == 4


class TestDispatchAsync:
    def test_dispatched_at_call_finished_at_completion(self, action_observer):
        async def main():
            c = Container(observer=action_observer)
            counter = ReduxProvider(Counter)
            dispatcher = c.redux(counter)

            slow = dispatcher.dispatch_async(SlowAdd(1, 0.05))
            fast = dispatcher.dispatch_async(SlowAdd(10, 0))
            # both dispatched events exist before anything ran
            assert [e.action for e in action_observer.history] == [SlowAdd(1, 0.05), SlowAdd(10, 0)]

            results = await asyncio.gather(slow, fast)
            return c.read(counter), results

        state, results = asyncio.run(main())

        assert state == 11
        assert results == [11, 10]
        finished = action_observer.of_kind(EventKind.ACTION_FINISHED)
        assert [e.action.amount for e in finished] == [10, 1]

    def test_async_failure(self, action_observer):
        async def main():
            c = Container(observer=action_observer)
            await c.redux(ReduxProvider(Counter)).dispatch_async(AsyncFail())

        with pytest.raises(RuntimeError, match="async failure"):
            asyncio.run(main())
        assert kinds(action_observer) == [EventKind.ACTION_DISPATCHED, EventKind.ACTION_ERROR]

    def test_async_with_result(self):
        async def main():
            c = Container()
            counter = ReduxProvider(Counter)
            result = await c.redux(counter).dispatch_async_with_result(Fetch())
            return result, c.read(counter)

        assert asyncio.run(main()) == (["item"], 1)

    def test_sync_action_rejected_by_async_dispatch(self):
        c = Container()
        with pytest.raises(TypeError):
            c.redux(ReduxProvider(Counter)).dispatch_async(Add(1))
