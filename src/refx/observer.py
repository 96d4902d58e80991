"""Observers — diagnostic sinks for engine events.

A container hands every event to its observer synchronously. Observers
only consume: they cannot veto, delay or alter what the engine does.
Passing no observer at all is the zero-overhead configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from refx.event import ACTION_KINDS, STRUCTURAL_KINDS, Event, EventKind

DEFAULT_HISTORY_KINDS = frozenset(
    {EventKind.CHANGE, EventKind.REBUILD, EventKind.MESSAGE} | ACTION_KINDS
)


class Observer:
    """Base class of event sinks."""

    def handle_event(self, event: Event) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class HistoryConfig:
    """Which event kinds a HistoryObserver keeps.

    The default keeps state changes, rebuilds, actions and messages, and
    drops the structural events (init, dispose, listener added/removed).
    """

    kinds: frozenset[EventKind] = field(default=DEFAULT_HISTORY_KINDS)
    start_immediately: bool = True

    @classmethod
    def all(cls, *, start_immediately: bool = True) -> HistoryConfig:
        return cls(kinds=frozenset(EventKind), start_immediately=start_immediately)

    @classmethod
    def only(cls, *kinds: EventKind, start_immediately: bool = True) -> HistoryConfig:
        return cls(kinds=frozenset(kinds), start_immediately=start_immediately)

    @classmethod
    def structural(cls, *, start_immediately: bool = True) -> HistoryConfig:
        return cls(kinds=STRUCTURAL_KINDS, start_immediately=start_immediately)

    def saves(self, kind: EventKind) -> bool:
        return kind in self.kinds


class HistoryObserver(Observer):
    """Keeps every accepted event in a list. Mostly for tests and debugging.

    Usage:
        observer = HistoryObserver()
        container = Container(observer=observer)
        ...
        assert [e.kind for e in observer.history] == [EventKind.CHANGE]
    """

    def __init__(self, config: HistoryConfig | None = None) -> None:
        self.config = config or HistoryConfig()
        self.history: list[Event] = []
        self.listening = self.config.start_immediately

    @classmethod
    def all(cls) -> HistoryObserver:
        return cls(HistoryConfig.all())

    @classmethod
    def only(cls, *kinds: EventKind, start_immediately: bool = True) -> HistoryObserver:
        return cls(HistoryConfig.only(*kinds, start_immediately=start_immediately))

    def handle_event(self, event: Event) -> None:
        if self.listening and self.config.saves(event.kind):
            self.history.append(event)

    def of_kind(self, kind: EventKind) -> list[Event]:
        return [e for e in self.history if e.kind is kind]

    def start(self) -> None:
        self.listening = True

    def stop(self) -> None:
        self.listening = False

    def clear(self) -> None:
        self.history.clear()


class MultiObserver(Observer):
    """Forwards every event to several observers, in order."""

    def __init__(self, *observers: Observer) -> None:
        self.observers = list(observers)

    def handle_event(self, event: Event) -> None:
        for observer in self.observers:
            observer.handle_event(event)


class LoggingObserver(Observer):
    """Writes a one-line summary of each event to a logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG) -> None:
        self._logger = logger or logging.getLogger("refx.observer")
        self._level = level

    def handle_event(self, event: Event) -> None:
        if self._logger.isEnabledFor(self._level):
            self._logger.log(self._level, "#%d %s: %s", event.seq, event.kind.value, event.describe())
