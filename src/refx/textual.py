"""Textual integration for refx. Opt-in, requires textual.

WidgetRebuildable lets a Textual widget watch providers:

    class CounterLabel(Static):
        def on_mount(self) -> None:
            self.rx = WidgetRebuildable(self, on_rebuild=self.render_count)
            self.ref = container.watchable_ref(self.rx)
            self.render_count(self)

        def render_count(self, widget) -> None:
            self.update(str(self.ref.watch(counter)))

Textual coupling is isolated here; the core engine stays UI-agnostic.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

# Module-owned pause state, keyed by id(app) so several apps work in tests.
_paused_apps: set[int] = set()

_label_counter = itertools.count(1)


@contextmanager
def pause(app):
    """Suspend widget rebuilds during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class WidgetRebuildable:
    """Rebuildable backed by a Textual widget.

    disposed follows the widget: once it is detached from the DOM (or
    dispose() was called) notifiers drop it on their next sweep.
    rebuild() refreshes the widget, or calls on_rebuild(widget) if given.
    Rebuilds are skipped while the app is paused or not running, are
    marshaled to the app thread with call_from_thread, and NoMatches
    from widget queries is swallowed.
    """

    def __init__(
        self,
        widget: Any,
        *,
        on_rebuild: Callable[[Any], None] | None = None,
        recompose: bool = False,
        debug_label: str | None = None,
    ) -> None:
        self._widget = widget
        self._on_rebuild = on_rebuild
        self._recompose = recompose
        self._disposed = False
        self._main = threading.get_ident()
        self._debug_label = debug_label or f"{type(widget).__name__}#{next(_label_counter)}"

    @property
    def widget(self) -> Any:
        return self._widget

    @property
    def disposed(self) -> bool:
        return self._disposed or not self._widget.is_attached

    @property
    def debug_label(self) -> str:
        return self._debug_label

    def dispose(self) -> None:
        self._disposed = True

    def rebuild(self) -> None:
        app = self._widget.app
        if not is_safe(app):
            return
        if threading.get_ident() != self._main:
            app.call_from_thread(self._safe_rebuild)
        else:
            self._safe_rebuild()

    def _safe_rebuild(self) -> None:
        try:
            if self._on_rebuild is not None:
                self._on_rebuild(self._widget)
            else:
                self._widget.refresh(recompose=self._recompose)
        except NoMatches:
            pass

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"WidgetRebuildable({self._debug_label}, {state})"
