"""Container — owns the live notifier of every provider.

Notifiers are created lazily on first access and live until disposed.
Disposing a provider also disposes every notifier that was built from
it (views and notifiers that read it while initializing); the next
access creates a fresh instance with no memory of the old one.

Thread safety: no locking. A container belongs to the thread that
created it. Pass a scheduler (e.g. app.call_from_thread) and mutations
issued from other threads are handed to it instead of running inline.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, TypeVar

from refx._tracking import track_dependencies
from refx.action import Dispatcher
from refx.errors import DuplicateInstantiationError
from refx.event import MessageEvent, ProviderDisposeEvent, ProviderInitEvent
from refx.notifier import BaseNotifier
from refx.provider import Family, ProviderOverride
from refx.ref import Ref, WatchableRef

if TYPE_CHECKING:
    from refx.observer import Observer
    from refx.provider import ProviderLike
    from refx.rebuildable import Rebuildable
    from refx.stream import EventStream, NotifierEvent
    from refx.watchable import Watchable

R = TypeVar("R")

logger = logging.getLogger("refx.container")

_NO_PARAM = object()


class Container:
    """Maps provider identities to their live notifiers."""

    def __init__(
        self,
        *,
        observer: Observer | None = None,
        overrides: Iterable[ProviderOverride] = (),
        scheduler: Callable[[Callable[[], None]], Any] | None = None,
    ) -> None:
        self._observer = observer
        self._overrides = {o.provider: o.create for o in overrides}
        self._notifiers: dict[ProviderLike, BaseNotifier] = {}
        self._creating: set[ProviderLike] = set()
        self._scheduler = scheduler
        self._owner_thread = threading.current_thread()
        self.ref = Ref(self)

    @property
    def observer(self) -> Observer | None:
        return self._observer

    # --- Thread marshalling ---

    @property
    def scheduler(self) -> Callable[[Callable[[], None]], Any] | None:
        return self._scheduler

    def set_scheduler(self, scheduler: Callable[[Callable[[], None]], Any] | None) -> None:
        """Marshal mutations from other threads through scheduler.

        Call from the thread that owns the state, e.g.:
            container.set_scheduler(app.call_from_thread)
        """
        self._scheduler = scheduler
        self._owner_thread = threading.current_thread()

    def _should_marshal(self) -> bool:
        return self._scheduler is not None and threading.current_thread() is not self._owner_thread

    # --- Resolution ---

    def resolve(self, provider: ProviderLike | Family, param: Any = _NO_PARAM) -> BaseNotifier:
        """The live notifier of provider (or family member), created if needed."""
        key = _key(provider, param)
        notifier = self._notifiers.get(key)
        if notifier is not None:
            return notifier

        if key in self._creating:
            raise DuplicateInstantiationError(
                key.debug_label, "resolved again while being created (circular dependency?)"
            )
        self._creating.add(key)
        try:
            notifier = self._create(key)
        finally:
            self._creating.discard(key)

        if key in self._notifiers:
            raise DuplicateInstantiationError(key.debug_label, "another instance was registered first")
        self._notifiers[key] = notifier

        logger.debug("Initialized %s", key.debug_label)
        if self._observer is not None:
            self._observer.handle_event(
                ProviderInitEvent(provider=key, notifier=notifier, value=notifier._state)
            )
        return notifier

    def _create(self, provider: ProviderLike) -> BaseNotifier:
        factory = self._overrides.get(provider, provider.create)
        notifier = factory()
        if not isinstance(notifier, BaseNotifier):
            raise TypeError(f"{provider.debug_label} created {type(notifier).__name__}, not a notifier")

        accessed: dict[BaseNotifier, None] = {}
        try:
            track_dependencies(
                lambda n: accessed.setdefault(n, None),
                lambda: notifier._setup(self, provider),
            )
        except Exception:
            # Unhook whatever the failed build already watched.
            notifier._set_dependencies(accessed)
            notifier._teardown()
            raise
        notifier._set_dependencies(accessed)
        return notifier

    def notifier(self, provider: ProviderLike | Family, param: Any = _NO_PARAM) -> BaseNotifier:
        return self.resolve(provider, param)

    def exists(self, provider: ProviderLike | Family, param: Any = _NO_PARAM) -> bool:
        """Whether provider currently has a live notifier. Never creates one."""
        return _key(provider, param) in self._notifiers

    def _owns(self, notifier: BaseNotifier) -> bool:
        provider = notifier.provider
        return provider is not None and self._notifiers.get(provider) is notifier

    def notifiers(self) -> list[BaseNotifier]:
        """All live notifiers, in creation order."""
        return list(self._notifiers.values())

    # --- Access ---

    def read(self, watchable: Watchable[Any, R]) -> R:
        notifier = self.resolve(watchable.provider)
        return watchable.select_state(notifier.state)

    def stream(self, provider: ProviderLike) -> EventStream[NotifierEvent]:
        return self.resolve(provider).stream()

    def future(self, provider: ProviderLike) -> Awaitable:
        return self.resolve(provider).future

    def redux(self, provider: ProviderLike, *, debug_origin: str = "Container") -> Dispatcher:
        return Dispatcher(self.resolve(provider), debug_origin)

    def watchable_ref(self, rebuildable: Rebuildable) -> WatchableRef:
        """A ref whose watch() subscribes rebuildable."""
        return WatchableRef(self, rebuildable)

    def message(self, message: str, *, origin: str | None = None) -> None:
        if self._observer is not None:
            self._observer.handle_event(MessageEvent(message=message, origin=origin))

    # --- Disposal ---

    def dispose(self, provider: ProviderLike | Family, param: Any = _NO_PARAM, *, origin: str | None = None) -> None:
        """Dispose provider and everything built from it. No-op if not alive."""
        self._dispose_key(_key(provider, param), origin)

    def dispose_all(self) -> None:
        """Dispose every live notifier."""
        for key in list(self._notifiers):
            self._dispose_key(key, None)

    def _dispose_key(self, key: ProviderLike, origin: str | None) -> None:
        notifier = self._notifiers.pop(key, None)
        if notifier is None:
            return

        for dependent in list(notifier.dependents):
            if self._owns(dependent):
                self._dispose_key(dependent.provider, origin or notifier.debug_label)
            else:
                dependent._teardown()

        notifier._teardown()

        logger.debug("Disposed %s", key.debug_label)
        if self._observer is not None:
            self._observer.handle_event(
                ProviderDisposeEvent(provider=key, notifier=notifier, origin=origin)
            )

    def __repr__(self) -> str:
        return f"Container({len(self._notifiers)} notifiers)"


def _key(provider: ProviderLike | Family, param: Any) -> ProviderLike:
    if isinstance(provider, Family):
        if param is _NO_PARAM:
            raise TypeError(f"{provider.debug_label} is a family; pass a parameter")
        return provider(param)
    if param is not _NO_PARAM:
        raise TypeError(f"{provider.debug_label} is not a family; it takes no parameter")
    return provider
