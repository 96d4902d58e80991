"""refx: provider-based reactive state containers for Python."""

from importlib.metadata import version as _version

__version__ = _version("refx")

from refx._tracking import track_dependencies
from refx.async_value import AsyncValue, Snapshot
from refx.errors import RefxError, DisposedError, DuplicateInstantiationError
from refx.event import (
    EventKind,
    Event,
    ProviderInitEvent,
    ProviderDisposeEvent,
    ListenerAddedEvent,
    ListenerRemovedEvent,
    ChangeEvent,
    RebuildEvent,
    ActionDispatchedEvent,
    ActionFinishedEvent,
    ActionErrorEvent,
    MessageEvent,
)
from refx.stream import EventStream, NotifierEvent
from refx.rebuildable import Rebuildable, CallbackRebuildable
from refx.listener import ListenerConfig, NotifierListeners
from refx.action import (
    ReduxAction,
    ReduxActionWithResult,
    AsyncReduxAction,
    AsyncReduxActionWithResult,
    Dispatcher,
)
from refx.ref import Ref, WatchableRef
from refx.notifier import (
    BaseNotifier,
    ImmutableNotifier,
    Notifier,
    StateNotifier,
    AsyncNotifier,
    FutureNotifier,
    ReduxNotifier,
    ViewNotifier,
)
from refx.watchable import Watchable, SelectedWatchable
from refx.provider import (
    Provider,
    StateProvider,
    NotifierProvider,
    AsyncNotifierProvider,
    FutureProvider,
    ReduxProvider,
    ViewProvider,
    Family,
    FamilyMember,
    FutureFamilyProvider,
)
from refx.container import Container
from refx.observer import Observer, HistoryConfig, HistoryObserver, MultiObserver, LoggingObserver
# textual is not auto-imported: opt-in only

__all__ = [
    "track_dependencies",
    "AsyncValue",
    "Snapshot",
    "RefxError",
    "DisposedError",
    "DuplicateInstantiationError",
    "EventKind",
    "Event",
    "ProviderInitEvent",
    "ProviderDisposeEvent",
    "ListenerAddedEvent",
    "ListenerRemovedEvent",
    "ChangeEvent",
    "RebuildEvent",
    "ActionDispatchedEvent",
    "ActionFinishedEvent",
    "ActionErrorEvent",
    "MessageEvent",
    "EventStream",
    "NotifierEvent",
    "Rebuildable",
    "CallbackRebuildable",
    "ListenerConfig",
    "NotifierListeners",
    "ReduxAction",
    "ReduxActionWithResult",
    "AsyncReduxAction",
    "AsyncReduxActionWithResult",
    "Dispatcher",
    "Ref",
    "WatchableRef",
    "BaseNotifier",
    "ImmutableNotifier",
    "Notifier",
    "StateNotifier",
    "AsyncNotifier",
    "FutureNotifier",
    "ReduxNotifier",
    "ViewNotifier",
    "Watchable",
    "SelectedWatchable",
    "Provider",
    "StateProvider",
    "NotifierProvider",
    "AsyncNotifierProvider",
    "FutureProvider",
    "ReduxProvider",
    "ViewProvider",
    "Family",
    "FamilyMember",
    "FutureFamilyProvider",
    "Container",
    "Observer",
    "HistoryConfig",
    "HistoryObserver",
    "MultiObserver",
    "LoggingObserver",
]
