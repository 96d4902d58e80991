"""Change streams: every (prev, next) a notifier goes through.

Rebuild predicates decide who re-renders; a stream ignores them and
delivers every mutation to every reader. Readers derive narrower streams
with map() and filter(). Closing a stream closes what was derived from
it, never its source.

Usage:
    unsubscribe = container.stream(counter).map(lambda e: e.next).subscribe(print)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

Disposer = Callable[[], None]


@dataclass(frozen=True)
class NotifierEvent(Generic[T]):
    prev: T
    next: T


class EventStream(Generic[T]):
    """Broadcasts values to subscribers in subscription order."""

    def __init__(self) -> None:
        self._readers: list[Callable[[T], None]] = []
        self._derived: list[EventStream] = []
        self._detach: Disposer | None = None
        self._closed = False

    @property
    def disposed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._readers)

    def emit(self, value: T) -> None:
        if self._closed:
            return
        # A reader may unsubscribe while it runs.
        for reader in tuple(self._readers):
            reader(value)

    def subscribe(self, reader: Callable[[T], None]) -> Disposer:
        """Start delivering to reader. Call the returned function to stop."""
        self._readers.append(reader)
        return lambda: _discard(self._readers, reader)

    def map(self, fn: Callable[[T], U]) -> EventStream[U]:
        return self._derive(lambda value, out: out.emit(fn(value)))

    def filter(self, fn: Callable[[T], bool]) -> EventStream[T]:
        def forward(value: T, out: EventStream[T]) -> None:
            if fn(value):
                out.emit(value)

        return self._derive(forward)

    def dispose(self) -> None:
        """Close this stream and every stream derived from it."""
        self._closed = True
        self._readers.clear()
        derived, self._derived = self._derived, []
        for stream in derived:
            stream.dispose()
        if self._detach is not None:
            detach, self._detach = self._detach, None
            detach()

    def _derive(self, forward: Callable[[T, EventStream], None]) -> EventStream:
        out: EventStream = EventStream()
        self._derived.append(out)
        stop_reading = self.subscribe(lambda value: forward(value, out))

        def detach() -> None:
            stop_reading()
            _discard(self._derived, out)

        out._detach = detach
        return out


def _discard(items: list, item: object) -> None:
    try:
        items.remove(item)
    except ValueError:
        pass
