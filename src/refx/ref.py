"""Refs — the façade through which consumers reach providers.

Ref reads, mutates, streams and disposes. WatchableRef belongs to one
rebuildable (a widget, a view) and adds watch(): read and subscribe.

Every access made through a Ref is reported to the dependency tracker,
so a computation running under track_dependencies() learns which
notifiers it touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from refx._tracking import report_access
from refx.action import Dispatcher
from refx.event import MessageEvent
from refx.listener import ListenerCallback, ListenerConfig, RebuildPredicate

if TYPE_CHECKING:
    from refx.async_value import Snapshot
    from refx.container import Container
    from refx.notifier import BaseNotifier
    from refx.provider import ProviderLike
    from refx.rebuildable import Rebuildable
    from refx.stream import EventStream, NotifierEvent
    from refx.watchable import Watchable

T = TypeVar("T")
R = TypeVar("R")


class Ref:
    """Plain access to a container. Does not subscribe."""

    def __init__(self, container: Container) -> None:
        self._container = container

    @property
    def container(self) -> Container:
        return self._container

    @property
    def debug_owner_label(self) -> str:
        return "Container"

    def _access(self, provider: ProviderLike) -> BaseNotifier:
        notifier = self._container.resolve(provider)
        report_access(notifier)
        return notifier

    def read(self, watchable: Watchable[Any, R]) -> R:
        """Current (possibly projected) state, without listening."""
        notifier = self._access(watchable.provider)
        return watchable.select_state(notifier.state)

    def notifier(self, provider: ProviderLike) -> BaseNotifier:
        return self._access(provider)

    def redux(self, provider: ProviderLike) -> Dispatcher:
        """Dispatcher for a ReduxNotifier, labelled with this ref's owner."""
        notifier = self._access(provider)
        return Dispatcher(notifier, self.debug_owner_label, self._origin_ref())

    def stream(self, provider: ProviderLike) -> EventStream[NotifierEvent]:
        """Every change of provider. Dispose the subscription yourself."""
        return self._access(provider).stream()

    def future(self, provider: ProviderLike) -> Awaitable:
        notifier = self._access(provider)
        return notifier.future

    def dispose(self, provider: ProviderLike) -> None:
        """Dispose provider. It is created again on next access."""
        self._container.dispose(provider, origin=self.debug_owner_label)

    def message(self, message: str) -> None:
        """Send a free-form message to the observer."""
        observer = self._container.observer
        if observer is not None:
            observer.handle_event(MessageEvent(message=message, origin=self.debug_owner_label))

    def _origin_ref(self) -> Any:
        return None


class WatchableRef(Ref):
    """Ref owned by a rebuildable. watch() subscribes the owner."""

    def __init__(self, container: Container, rebuildable: Rebuildable) -> None:
        super().__init__(container)
        self._rebuildable = rebuildable

    @property
    def rebuildable(self) -> Rebuildable:
        return self._rebuildable

    @property
    def debug_owner_label(self) -> str:
        return self._rebuildable.debug_label

    def _origin_ref(self) -> Any:
        return self._rebuildable

    def watch(
        self,
        watchable: Watchable[T, R],
        *,
        listener: ListenerCallback | None = None,
        rebuild_when: RebuildPredicate | None = None,
    ) -> R:
        """Read watchable and rebuild the owner when it changes.

        Watching a selection (provider.select(fn)) only rebuilds when
        fn(prev) != fn(next), and only if rebuild_when (if given) agrees.

        Watching the same notifier again replaces the previous listener
        configuration of this owner; only the last watch() counts.
        """
        notifier = self._container.resolve(watchable.provider)
        if notifier.subscribable:
            if watchable.is_selection:
                predicate = _selection_predicate(watchable, rebuild_when)
            else:
                predicate = rebuild_when
            notifier.add_listener(
                self._rebuildable,
                ListenerConfig(callback=listener, rebuild_when=predicate),
            )

        report_access(notifier)

        return watchable.select_state(notifier.state)

    def watch_with_prev(
        self,
        provider: ProviderLike,
        *,
        listener: ListenerCallback | None = None,
        rebuild_when: RebuildPredicate | None = None,
    ) -> Snapshot:
        """Like watch() for async providers, also returning the value before the latest future."""
        notifier = self._container.resolve(provider)
        notifier.add_listener(
            self._rebuildable,
            ListenerConfig(callback=listener, rebuild_when=rebuild_when),
        )
        report_access(notifier)
        return notifier.snapshot()


def _selection_predicate(watchable: Watchable, rebuild_when: RebuildPredicate | None) -> Callable[[Any, Any], bool]:
    select = watchable.select_state

    def predicate(prev: Any, next: Any) -> bool:
        if rebuild_when is not None and not rebuild_when(prev, next):
            return False
        return select(prev) != select(next)

    return predicate
