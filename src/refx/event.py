"""Events — immutable records of everything the engine does.

Every container hands these to its observer (if it has one). Each event
class carries its EventKind so sinks can filter on a set of kinds
instead of matching on classes.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from refx.notifier import BaseNotifier
    from refx.provider import ProviderLike
    from refx.rebuildable import Rebuildable

# Emission order. itertools.count is atomic under the GIL.
_seq_counter = itertools.count(1)


class EventKind(Enum):
    PROVIDER_INIT = "provider_init"
    PROVIDER_DISPOSE = "provider_dispose"
    LISTENER_ADDED = "listener_added"
    LISTENER_REMOVED = "listener_removed"
    CHANGE = "change"
    REBUILD = "rebuild"
    ACTION_DISPATCHED = "action_dispatched"
    ACTION_FINISHED = "action_finished"
    ACTION_ERROR = "action_error"
    MESSAGE = "message"


STRUCTURAL_KINDS = frozenset(
    {
        EventKind.PROVIDER_INIT,
        EventKind.PROVIDER_DISPOSE,
        EventKind.LISTENER_ADDED,
        EventKind.LISTENER_REMOVED,
    }
)
ACTION_KINDS = frozenset(
    {EventKind.ACTION_DISPATCHED, EventKind.ACTION_FINISHED, EventKind.ACTION_ERROR}
)


def _label(obj: Any) -> str:
    if obj is None:
        return "-"
    return getattr(obj, "debug_label", None) or type(obj).__name__


@dataclass(frozen=True, eq=False, kw_only=True)
class Event:
    """Base of all events. seq increases monotonically across the process."""

    kind: ClassVar[EventKind]
    seq: int = field(default_factory=lambda: next(_seq_counter))

    def describe(self) -> str:
        return self.kind.value


@dataclass(frozen=True, eq=False, kw_only=True)
class ProviderInitEvent(Event):
    kind: ClassVar[EventKind] = EventKind.PROVIDER_INIT
    provider: ProviderLike
    notifier: BaseNotifier
    value: Any

    def describe(self) -> str:
        return f"init {_label(self.notifier)} = {self.value!r}"


@dataclass(frozen=True, eq=False, kw_only=True)
class ProviderDisposeEvent(Event):
    kind: ClassVar[EventKind] = EventKind.PROVIDER_DISPOSE
    provider: ProviderLike
    notifier: BaseNotifier
    origin: str | None = None

    def describe(self) -> str:
        return f"dispose {_label(self.notifier)} (by {self.origin or '-'})"


@dataclass(frozen=True, eq=False, kw_only=True)
class ListenerAddedEvent(Event):
    kind: ClassVar[EventKind] = EventKind.LISTENER_ADDED
    notifier: BaseNotifier
    rebuildable: Rebuildable

    def describe(self) -> str:
        return f"{_label(self.rebuildable)} listens to {_label(self.notifier)}"


@dataclass(frozen=True, eq=False, kw_only=True)
class ListenerRemovedEvent(Event):
    kind: ClassVar[EventKind] = EventKind.LISTENER_REMOVED
    notifier: BaseNotifier
    rebuildable: Rebuildable

    def describe(self) -> str:
        return f"{_label(self.rebuildable)} stopped listening to {_label(self.notifier)}"


@dataclass(frozen=True, eq=False, kw_only=True)
class ChangeEvent(Event):
    """A notifier's state was replaced.

    action is the action that caused the change, if it came through a
    dispatcher. rebuilt lists the subscribers whose predicate passed.
    """

    kind: ClassVar[EventKind] = EventKind.CHANGE
    notifier: BaseNotifier
    action: Any = None
    prev: Any = None
    next: Any = None
    rebuilt: tuple = ()

    def describe(self) -> str:
        return (
            f"change {_label(self.notifier)}: {self.prev!r} -> {self.next!r}"
            f" ({len(self.rebuilt)} rebuilt)"
        )


@dataclass(frozen=True, eq=False, kw_only=True)
class RebuildEvent(Event):
    kind: ClassVar[EventKind] = EventKind.REBUILD
    rebuildable: Rebuildable
    notifier: BaseNotifier

    def describe(self) -> str:
        return f"rebuild {_label(self.rebuildable)} (caused by {_label(self.notifier)})"


@dataclass(frozen=True, eq=False, kw_only=True)
class ActionDispatchedEvent(Event):
    kind: ClassVar[EventKind] = EventKind.ACTION_DISPATCHED
    debug_origin: str
    debug_origin_ref: Any = None
    notifier: BaseNotifier
    action: Any

    def describe(self) -> str:
        return f"{self.debug_origin} dispatched {_label(self.action)} to {_label(self.notifier)}"


@dataclass(frozen=True, eq=False, kw_only=True)
class ActionFinishedEvent(Event):
    kind: ClassVar[EventKind] = EventKind.ACTION_FINISHED
    action: Any
    result: Any = None

    def describe(self) -> str:
        return f"finished {_label(self.action)} -> {self.result!r}"


@dataclass(frozen=True, eq=False, kw_only=True)
class ActionErrorEvent(Event):
    kind: ClassVar[EventKind] = EventKind.ACTION_ERROR
    action: Any
    error: BaseException

    def describe(self) -> str:
        return f"error in {_label(self.action)}: {self.error!r}"


@dataclass(frozen=True, eq=False, kw_only=True)
class MessageEvent(Event):
    kind: ClassVar[EventKind] = EventKind.MESSAGE
    message: str
    origin: str | None = None

    def describe(self) -> str:
        return f"[{self.origin or '-'}] {self.message}"
