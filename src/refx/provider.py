"""Providers — immutable identities that know how to build a notifier.

A provider holds no state. The Container maps each provider (or family
member) to at most one live notifier and builds it on first access by
calling provider.create().

Families produce one provider identity per parameter:

    user = FutureFamilyProvider(lambda ref, user_id: fetch_user(user_id))
    container.read(user(7))         # AsyncValue for user 7
    container.read(user(7)) is ...  # same notifier until disposed
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Hashable, TypeVar, Union

from refx.async_value import AsyncValue
from refx.notifier import BaseNotifier, FutureNotifier, ImmutableNotifier, StateNotifier, ViewNotifier
from refx.watchable import Watchable

if TYPE_CHECKING:
    from refx.ref import Ref, WatchableRef

T = TypeVar("T")
P = TypeVar("P", bound=Hashable)
N = TypeVar("N", bound=BaseNotifier)

_label_counter = itertools.count(1)


class BaseProvider(Watchable[T, T], Generic[N, T]):
    """Identity of one notifier factory. Hashed by identity."""

    def __init__(self, *, debug_label: str | None = None) -> None:
        self._debug_label = debug_label or f"{type(self).__name__}#{next(_label_counter)}"

    @property
    def debug_label(self) -> str:
        return self._debug_label

    @property
    def provider(self) -> BaseProvider[N, T]:
        return self

    def select_state(self, state: T) -> T:
        return state

    def create(self) -> N:
        """Build a fresh, not yet set up notifier."""
        raise NotImplementedError

    def override_with(self, create: Callable[[], N]) -> ProviderOverride:
        """Use create instead of this provider's factory in one container."""
        return ProviderOverride(self, create)

    def override_with_value(self, value: T) -> ProviderOverride:
        """Start this provider at value in one container."""
        return ProviderOverride(self, lambda: self._value_notifier(value))

    def _value_notifier(self, value: T) -> N:
        raise TypeError(f"{self.debug_label} cannot be overridden with a plain value")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._debug_label})"


@dataclass(frozen=True)
class ProviderOverride:
    provider: BaseProvider
    create: Callable[[], BaseNotifier]


class Provider(BaseProvider[ImmutableNotifier[T], T]):
    """A constant computed once per container from a Ref."""

    def __init__(self, create: Callable[[Ref], T], *, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._create = create

    def create(self) -> ImmutableNotifier[T]:
        return ImmutableNotifier(self._create)

    def _value_notifier(self, value: T) -> ImmutableNotifier[T]:
        return ImmutableNotifier(lambda ref: value)


class StateProvider(BaseProvider[StateNotifier[T], T]):
    """A plain mutable value. Change it with container.notifier(p).set_state()."""

    def __init__(self, initial: T, *, save_prev: bool = False, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._initial = initial
        self._save_prev = save_prev

    def create(self) -> StateNotifier[T]:
        return StateNotifier(self._initial, save_prev=self._save_prev)

    def _value_notifier(self, value: T) -> StateNotifier[T]:
        return StateNotifier(value, save_prev=self._save_prev)


class NotifierProvider(BaseProvider[N, T]):
    """Provider of a user-defined Notifier subclass."""

    def __init__(self, factory: Callable[[], N], *, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._factory = factory

    def create(self) -> N:
        return self._factory()


class AsyncNotifierProvider(NotifierProvider[N, AsyncValue[T]]):
    """Provider of a user-defined AsyncNotifier subclass."""


class ReduxProvider(NotifierProvider[N, T]):
    """Provider of a user-defined ReduxNotifier subclass."""


class FutureProvider(BaseProvider[FutureNotifier[T], AsyncValue[T]]):
    """The result of one async function, as an AsyncValue."""

    def __init__(self, fn: Callable[[Ref], Awaitable[T]], *, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._fn = fn

    def create(self) -> FutureNotifier[T]:
        return FutureNotifier(self._fn)

    def _value_notifier(self, value: T) -> FutureNotifier[T]:
        async def _resolved(ref):
            return value

        return FutureNotifier(_resolved)


class ViewProvider(BaseProvider[ViewNotifier[T], T]):
    """Derived state built from other providers.

    Usage:
        total = ViewProvider(lambda ref: ref.watch(price) * ref.watch(quantity))
    """

    def __init__(self, build: Callable[[WatchableRef], T], *, save_prev: bool = False, debug_label: str | None = None) -> None:
        super().__init__(debug_label=debug_label)
        self._build = build
        self._save_prev = save_prev

    def create(self) -> ViewNotifier[T]:
        return ViewNotifier(self._build, save_prev=self._save_prev)


# ─── Families ────────────────────────────────────────────────────────────────


class Family(Generic[P, N]):
    """One provider identity per parameter value.

    factory(param) builds the notifier of a member. family(param) and
    family[param] return the member identity; equal params give equal
    members, so they resolve to the same notifier.
    """

    def __init__(self, factory: Callable[[P], N], *, debug_label: str | None = None) -> None:
        self._factory = factory
        self._debug_label = debug_label or f"{type(self).__name__}#{next(_label_counter)}"

    @property
    def debug_label(self) -> str:
        return self._debug_label

    def __call__(self, param: P) -> FamilyMember[P, N, Any]:
        return FamilyMember(self, param)

    def __getitem__(self, param: P) -> FamilyMember[P, N, Any]:
        return FamilyMember(self, param)

    def create(self, param: P) -> N:
        return self._factory(param)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._debug_label})"


class FutureFamilyProvider(Family[P, FutureNotifier[T]]):
    """One future per parameter: fn(ref, param)."""

    def __init__(self, fn: Callable[[Ref, P], Awaitable[T]], *, debug_label: str | None = None) -> None:
        super().__init__(self._member_notifier, debug_label=debug_label)
        self._fn = fn

    def _member_notifier(self, param: P) -> FutureNotifier[T]:
        fn = self._fn
        return FutureNotifier(lambda ref: fn(ref, param))


class FamilyMember(BaseProvider[N, T], Generic[P, N, T]):
    """The provider identity of one family parameter."""

    def __init__(self, family: Family[P, N], param: P) -> None:
        # No counter label: members are created on every family(param) call.
        self._family = family
        self._param = param
        self._debug_label = f"{family.debug_label}({param!r})"

    @property
    def family(self) -> Family[P, N]:
        return self._family

    @property
    def param(self) -> P:
        return self._param

    def create(self) -> N:
        return self._family.create(self._param)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FamilyMember):
            return NotImplemented
        return self._family is other._family and self._param == other._param

    def __hash__(self) -> int:
        return hash((id(self._family), self._param))


ProviderLike = Union[BaseProvider, FamilyMember]
