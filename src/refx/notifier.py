"""Notifiers — the state holders behind every provider.

All variants share one capability surface (read state, listen, stream,
dispose); they differ only in how state is built and who may replace
it:

- ImmutableNotifier: computed once, never changes, never subscribed to.
- Notifier / StateNotifier: replaced through set_state().
- AsyncNotifier / FutureNotifier: backed by a future, state is an AsyncValue.
- ReduxNotifier: replaced only by dispatched actions.
- ViewNotifier: derived from other notifiers, recomputed when they change.

A notifier is created by its provider, set up by a Container, and
unusable after dispose().
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Iterable, TypeVar

from refx._tracking import track_dependencies, untracked
from refx.action import Dispatcher
from refx.async_value import AsyncValue, Snapshot
from refx.errors import DisposedError, RefxError
from refx.event import ChangeEvent, RebuildEvent
from refx.listener import ListenerConfig, NotifierListeners
from refx.ref import Ref, WatchableRef

if TYPE_CHECKING:
    from refx.action import BaseReduxAction
    from refx.container import Container
    from refx.provider import ProviderLike
    from refx.rebuildable import Rebuildable
    from refx.stream import EventStream, NotifierEvent

T = TypeVar("T")

logger = logging.getLogger("refx.notifier")

_UNSET = object()


class BaseNotifier(Generic[T]):
    """Holds one state value and tells its listeners when it is replaced."""

    #: Whether watch() registers a listener on this notifier.
    subscribable = True
    #: Whether a Dispatcher may deliver actions to this notifier.
    accepts_actions = False

    def __init__(self, *, save_prev: bool = False, debug_label: str | None = None) -> None:
        self._state: Any = _UNSET
        self._prev: T | None = None
        self._save_prev = save_prev
        self._debug_label = debug_label
        self._container: Container | None = None
        self._provider: ProviderLike | None = None
        self._listeners: NotifierListeners[T] | None = None
        self._disposed = False
        # Dependency graph: notifiers accessed while building this one,
        # and the notifiers that accessed this one while building.
        self.dependencies: set[BaseNotifier] = set()
        self.dependents: set[BaseNotifier] = set()

    # --- Setup (called by Container) ---

    def _setup(self, container: Container, provider: ProviderLike) -> None:
        self._container = container
        self._provider = provider
        self._listeners = NotifierListeners(self, container.observer)
        self._state = self._build_initial()

    def _build_initial(self) -> T:
        raise NotImplementedError

    @property
    def ref(self) -> Ref:
        """Ref of the owning container, for reading other providers."""
        if self._container is None:
            raise RefxError(f"{self.debug_label} is not attached to a container")
        return self._container.ref

    @property
    def provider(self) -> ProviderLike | None:
        return self._provider

    @property
    def debug_label(self) -> str:
        if self._debug_label is not None:
            return self._debug_label
        if self._provider is not None:
            return self._provider.debug_label
        return type(self).__name__

    # --- State ---

    @property
    def state(self) -> T:
        if self._disposed:
            raise DisposedError(self.debug_label, "read state")
        if self._state is _UNSET:
            raise RefxError(f"{self.debug_label} is not initialized")
        return self._state

    @property
    def prev(self) -> T | None:
        """State before the latest change. Always None unless save_prev=True."""
        return self._prev

    def _set_state(self, value: T, action: BaseReduxAction | None = None) -> None:
        """Replace the state and notify. The only mutation path."""
        if self._disposed:
            raise DisposedError(self.debug_label, "set state")
        if self._listeners is None:
            raise RefxError(f"{self.debug_label} is not attached to a container")

        container = self._container
        if container is not None and container._should_marshal():
            container.scheduler(lambda: self._set_state(value, action))
            return

        prev = self._state
        self._state = value
        self._remember_prev(prev)

        rebuilt = self._listeners.notify_all(prev, value)

        observer = container.observer if container is not None else None
        if observer is not None:
            rebuilt = tuple(rebuilt or ())
            observer.handle_event(
                ChangeEvent(notifier=self, action=action, prev=prev, next=value, rebuilt=rebuilt)
            )
            for rebuildable in rebuilt:
                observer.handle_event(RebuildEvent(rebuildable=rebuildable, notifier=self))

    def _remember_prev(self, prev: T) -> None:
        if self._save_prev:
            self._prev = prev

    # --- Listeners ---

    def add_listener(self, rebuildable: Rebuildable, config: ListenerConfig[T]) -> None:
        if self._disposed:
            raise DisposedError(self.debug_label, "add a listener")
        self._listeners.add_listener(rebuildable, config)

    def remove_listener(self, rebuildable: Rebuildable) -> bool:
        if self._disposed:
            raise DisposedError(self.debug_label, "remove a listener")
        return self._listeners.remove_listener(rebuildable)

    @property
    def listeners(self) -> list[Rebuildable]:
        if self._listeners is None:
            return []
        return self._listeners.listeners

    def stream(self) -> EventStream[NotifierEvent[T]]:
        """Every (prev, next) pair, regardless of rebuild predicates."""
        if self._disposed:
            raise DisposedError(self.debug_label, "open a stream")
        return self._listeners.stream()

    # --- Dependency graph ---

    def _set_dependencies(self, accessed: Iterable[BaseNotifier]) -> None:
        """Replace the dependency edges with the ones observed in the latest pass."""
        new = set(accessed)
        new.discard(self)
        for old in self.dependencies - new:
            old.dependents.discard(self)
            if not old.disposed:
                old._listeners.remove_listener(self)
        for dep in new:
            dep.dependents.add(self)
        self.dependencies = new

    # --- Lifecycle ---

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Dispose this notifier. Idempotent.

        While registered in a container this is Container.dispose() of its
        provider: the instance is forgotten, dependents are disposed first
        and the next access creates a fresh notifier.
        """
        if self._disposed:
            return
        container = self._container
        if container is not None and container._owns(self):
            container.dispose(self._provider)
        else:
            self._teardown()

    def _teardown(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._listeners is not None:
            self._listeners.dispose()
        for dep in self.dependencies:
            dep.dependents.discard(self)
            if not dep.disposed:
                dep._listeners.remove_listener(self)
        self.dependencies = set()
        self.on_dispose()

    def on_dispose(self) -> None:
        """Override to release resources when the notifier is disposed."""

    def __repr__(self) -> str:
        if self._disposed:
            return f"{type(self).__name__}({self.debug_label}, disposed)"
        state = "uninitialized" if self._state is _UNSET else repr(self._state)
        return f"{type(self).__name__}({self.debug_label}, {state})"


class ImmutableNotifier(BaseNotifier[T]):
    """A value computed once from a Ref. Watching it never subscribes."""

    subscribable = False

    def __init__(self, create: Callable[[Ref], T], *, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._create = create

    def _build_initial(self) -> T:
        return self._create(self.ref)

    def add_listener(self, rebuildable: Rebuildable, config: ListenerConfig[T]) -> None:
        if self._disposed:
            raise DisposedError(self.debug_label, "add a listener")


class Notifier(BaseNotifier[T]):
    """Mutable state. Subclass and implement init().

    Usage:
        class Counter(Notifier[int]):
            def init(self) -> int:
                return 0

            def increment(self) -> None:
                self.set_state(self.state + 1)

        counter = NotifierProvider(Counter)
    """

    def init(self) -> T:
        raise NotImplementedError

    def _build_initial(self) -> T:
        return self.init()

    def set_state(self, value: T) -> None:
        """Replace the state. Listeners are notified even if value == state."""
        self._set_state(value)

    def update(self, fn: Callable[[T], T]) -> T:
        new = fn(self.state)
        self._set_state(new)
        return new


class StateNotifier(Notifier[T]):
    """A Notifier whose initial state is given up front."""

    def __init__(self, initial: T, *, save_prev: bool = False, debug_label: str | None = None) -> None:
        super().__init__(save_prev=save_prev, debug_label=debug_label)
        self._initial = initial

    def init(self) -> T:
        return self._initial


class AsyncNotifier(BaseNotifier[AsyncValue[T]]):
    """State backed by a future. Subclass and implement init().

    The state is loading until the future completes, then data or error.
    A completion arriving after the notifier was disposed, or after a
    newer future replaced it, is ignored. Cancelling the current future
    ends in an error state holding CancelledError.

    Creating an AsyncNotifier requires a running event loop.
    """

    def __init__(self, *, save_prev: bool = True, debug_label: str | None = None) -> None:
        super().__init__(save_prev=save_prev, debug_label=debug_label)
        self._future: asyncio.Future[T] | None = None

    def init(self) -> Awaitable[T]:
        raise NotImplementedError

    def _build_initial(self) -> AsyncValue[T]:
        self._future = self._schedule(self.init())
        return AsyncValue.loading()

    @property
    def future(self) -> asyncio.Future[T]:
        if self._disposed:
            raise DisposedError(self.debug_label, "access its future")
        return self._future

    def set_future(self, awaitable: Awaitable[T]) -> asyncio.Future[T]:
        """Replace the future. State goes back to loading, keeping any data."""
        if self._disposed:
            raise DisposedError(self.debug_label, "set a future")
        current = self.state
        if self._save_prev:
            self._prev = current
        self._future = self._schedule(awaitable)
        if current.has_data:
            self._set_state(AsyncValue.loading(current.data))
        else:
            self._set_state(AsyncValue.loading())
        return self._future

    def snapshot(self) -> Snapshot[T]:
        return Snapshot(self._prev, self.state)

    def _remember_prev(self, prev: AsyncValue[T]) -> None:
        # prev tracks the value before the latest future, see set_future().
        pass

    def _schedule(self, awaitable: Awaitable[T]) -> asyncio.Future[T]:
        loop = asyncio.get_running_loop()
        future = untracked(lambda: asyncio.ensure_future(awaitable, loop=loop))
        future.add_done_callback(self._on_future_done)
        return future

    def _on_future_done(self, future: asyncio.Future[T]) -> None:
        if self._disposed:
            logger.debug("Ignoring completion of %s: notifier disposed", self.debug_label)
            return
        if future is not self._future:
            logger.debug("Ignoring completion of %s: future replaced", self.debug_label)
            return
        if future.cancelled():
            self._set_state(AsyncValue.with_error(asyncio.CancelledError()))
            return
        error = future.exception()
        if error is not None:
            self._set_state(AsyncValue.with_error(error))
        else:
            self._set_state(AsyncValue.with_data(future.result()))


class FutureNotifier(AsyncNotifier[T]):
    """AsyncNotifier running a plain async function of a Ref."""

    def __init__(self, fn: Callable[[Ref], Awaitable[T]], *, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._fn = fn

    def init(self) -> Awaitable[T]:
        return self._fn(self.ref)


class ReduxNotifier(BaseNotifier[T]):
    """State replaced only by actions. Subclass and implement init().

    Usage:
        @dataclass(frozen=True)
        class Add(ReduxAction[int]):
            amount: int

            def reduce(self, notifier):
                return notifier.state + self.amount

        class Counter(ReduxNotifier[int]):
            def init(self) -> int:
                return 0

        counter = ReduxProvider(Counter)
        container.redux(counter).dispatch(Add(2))
    """

    accepts_actions = True

    def init(self) -> T:
        raise NotImplementedError

    def _build_initial(self) -> T:
        return self.init()

    def dispatcher(self, debug_origin: str | None = None, debug_origin_ref: Any = None) -> Dispatcher[T]:
        return Dispatcher(self, debug_origin or self.debug_label, debug_origin_ref)

    def dispatch(self, action: BaseReduxAction, *, debug_origin: str | None = None, debug_origin_ref: Any = None) -> Any:
        return self.dispatcher(debug_origin, debug_origin_ref).dispatch(action)

    def dispatch_with_result(self, action: BaseReduxAction, *, debug_origin: str | None = None, debug_origin_ref: Any = None) -> Any:
        return self.dispatcher(debug_origin, debug_origin_ref).dispatch_with_result(action)

    def dispatch_async(self, action: BaseReduxAction, *, debug_origin: str | None = None, debug_origin_ref: Any = None) -> Awaitable[Any]:
        return self.dispatcher(debug_origin, debug_origin_ref).dispatch_async(action)

    def dispatch_async_with_result(self, action: BaseReduxAction, *, debug_origin: str | None = None, debug_origin_ref: Any = None) -> Awaitable[Any]:
        return self.dispatcher(debug_origin, debug_origin_ref).dispatch_async_with_result(action)


class ViewNotifier(BaseNotifier[T]):
    """Derived state. Rebuilds itself whenever a watched notifier changes.

    The build function gets a WatchableRef owned by the view. Every run
    re-discovers the dependencies, so conditional reads stay accurate:
    notifiers the latest run no longer touched lose the view's listener.
    """

    def __init__(self, build: Callable[[WatchableRef], T], *, save_prev: bool = False, debug_label: str | None = None) -> None:
        super().__init__(save_prev=save_prev, debug_label=debug_label)
        self._build = build
        self._ref: WatchableRef | None = None
        self.rebuild_count = 0

    def _build_initial(self) -> T:
        # The container tracks this first run and records the dependencies.
        self._ref = WatchableRef(self._container, self)
        return self._build(self._ref)

    def rebuild(self) -> None:
        if self._disposed:
            return
        self.rebuild_count += 1
        accessed: dict[BaseNotifier, None] = {}
        value = track_dependencies(
            lambda notifier: accessed.setdefault(notifier, None),
            lambda: self._build(self._ref),
        )
        self._set_dependencies(accessed)
        self._set_state(value)
