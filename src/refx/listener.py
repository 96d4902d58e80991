"""Listener registry — one per notifier.

Maps each subscriber (a Rebuildable) to exactly one ListenerConfig and
fans out state changes to them. Subscribers whose `disposed` flag is set
are dropped before every notification, and also every GC_INTERVAL new
registrations, so a notifier that never changes does not accumulate
dead subscribers.

Errors raised by predicates, callbacks or rebuild() are not caught: they
abort the sweep and reach the code that mutated the state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from refx.event import ListenerAddedEvent, ListenerRemovedEvent
from refx.stream import EventStream, NotifierEvent

if TYPE_CHECKING:
    from refx.notifier import BaseNotifier
    from refx.observer import Observer
    from refx.rebuildable import Rebuildable

T = TypeVar("T")

ListenerCallback = Callable[[T, T], None]
RebuildPredicate = Callable[[T, T], bool]

# Every Nth newly seen subscriber triggers a full sweep.
GC_INTERVAL = 10


@dataclass(frozen=True)
class ListenerConfig(Generic[T]):
    """How one subscriber reacts to one notifier.

    callback is called with (prev, next) before the rebuild.
    rebuild_when gates both; None means always.
    """

    callback: ListenerCallback | None = None
    rebuild_when: RebuildPredicate | None = None


class NotifierListeners(Generic[T]):
    """Subscriber map plus broadcast stream of a single notifier."""

    def __init__(self, notifier: BaseNotifier[T], observer: Observer | None) -> None:
        self._notifier = notifier
        self._observer = observer
        # dict keeps registration order; overwriting a key keeps its slot.
        self._listeners: dict[Rebuildable, ListenerConfig[T]] = {}
        self._add_count = 0
        self._stream: EventStream[NotifierEvent[T]] = EventStream()

    @property
    def listeners(self) -> list[Rebuildable]:
        return list(self._listeners)

    def config_of(self, rebuildable: Rebuildable) -> ListenerConfig[T] | None:
        return self._listeners.get(rebuildable)

    def add_listener(self, rebuildable: Rebuildable, config: ListenerConfig[T]) -> None:
        """Register or re-configure rebuildable. Last call wins."""
        if rebuildable not in self._listeners:
            self._add_count += 1
            if self._add_count == GC_INTERVAL:
                self._add_count = 0
                self._remove_disposed()

            if self._observer is not None:
                self._observer.handle_event(
                    ListenerAddedEvent(notifier=self._notifier, rebuildable=rebuildable)
                )

        self._listeners[rebuildable] = config

    def remove_listener(self, rebuildable: Rebuildable) -> bool:
        """Drop rebuildable. Returns whether it was registered."""
        if self._listeners.pop(rebuildable, None) is None:
            return False
        if self._observer is not None:
            self._observer.handle_event(
                ListenerRemovedEvent(notifier=self._notifier, rebuildable=rebuildable)
            )
        return True

    def notify_all(self, prev: T, next: T) -> list[Rebuildable] | None:
        """Fan (prev, next) out to every live subscriber whose predicate holds.

        Returns the rebuilt subscribers, or None when no observer is
        attached (nobody would read the list).
        """
        self._remove_disposed()

        notified: list[Rebuildable] | None = [] if self._observer is not None else None

        # Snapshot: a rebuild may re-register or remove listeners.
        for rebuildable, config in list(self._listeners.items()):
            if config.rebuild_when is not None and not config.rebuild_when(prev, next):
                continue

            if config.callback is not None:
                config.callback(prev, next)

            rebuildable.rebuild()

            if notified is not None:
                notified.append(rebuildable)

        self._stream.emit(NotifierEvent(prev, next))

        return notified

    def stream(self) -> EventStream[NotifierEvent[T]]:
        return self._stream

    def dispose(self) -> None:
        """Forget every subscriber and close the stream. Emits no events."""
        self._listeners.clear()
        self._stream.dispose()

    def _remove_disposed(self) -> None:
        removed = [r for r in self._listeners if r.disposed]
        for r in removed:
            del self._listeners[r]
        if self._observer is not None:
            for r in removed:
                self._observer.handle_event(
                    ListenerRemovedEvent(notifier=self._notifier, rebuildable=r)
                )

    def __len__(self) -> int:
        return len(self._listeners)
