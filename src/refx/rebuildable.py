"""Rebuildables — the consumers a notifier can tell to re-render.

The engine never owns a rebuildable's lifecycle. It reads `disposed` to
prune stale listeners and calls `rebuild()` when a watched state changed.
"""

from __future__ import annotations

import itertools
from typing import Callable, Protocol, runtime_checkable

_label_counter = itertools.count(1)


@runtime_checkable
class Rebuildable(Protocol):
    @property
    def disposed(self) -> bool: ...

    @property
    def debug_label(self) -> str: ...

    def rebuild(self) -> None: ...


class CallbackRebuildable:
    """A rebuildable that calls a plain function.

    Handy for non-UI consumers. Call dispose() when done; the next
    sweep of every notifier it watches drops it.

    Usage:
        hits = []
        sub = CallbackRebuildable(lambda: hits.append(1), debug_label="logger")
        ref = container.watchable_ref(sub)
        ref.watch(counter)
        ...
        sub.dispose()
    """

    __slots__ = ("_on_rebuild", "_disposed", "_debug_label", "rebuild_count")

    def __init__(self, on_rebuild: Callable[[], None] | None = None, *, debug_label: str | None = None):
        self._on_rebuild = on_rebuild
        self._disposed = False
        self._debug_label = debug_label or f"CallbackRebuildable#{next(_label_counter)}"
        self.rebuild_count = 0

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def debug_label(self) -> str:
        return self._debug_label

    def rebuild(self) -> None:
        self.rebuild_count += 1
        if self._on_rebuild is not None:
            self._on_rebuild()

    def dispose(self) -> None:
        self._disposed = True

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"CallbackRebuildable({self._debug_label}, {state})"
