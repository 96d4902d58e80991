"""Watchables — what ref.watch() and ref.read() accept.

Every provider is a Watchable of its whole state. provider.select(fn)
narrows it to a projection: watching a projection only rebuilds when
fn(prev) != fn(next). Projections chain with further select() calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from refx.provider import ProviderLike

T = TypeVar("T")
R = TypeVar("R")
R2 = TypeVar("R2")


class Watchable(Generic[T, R]):
    """A provider plus a way to turn its state into the watched value."""

    #: Whether watching this installs a projection-comparing predicate.
    is_selection = False

    @property
    def provider(self) -> ProviderLike:
        raise NotImplementedError

    def select_state(self, state: T) -> R:
        raise NotImplementedError

    def select(self, selector: Callable[[R], R2]) -> SelectedWatchable[T, R2]:
        return SelectedWatchable(self.provider, lambda state: selector(self.select_state(state)))


class SelectedWatchable(Watchable[T, R]):
    """A projection of one provider's state."""

    is_selection = True

    __slots__ = ("_provider", "_selector")

    def __init__(self, provider: ProviderLike, selector: Callable[[T], R]) -> None:
        self._provider = provider
        self._selector = selector

    @property
    def provider(self) -> ProviderLike:
        return self._provider

    def select_state(self, state: T) -> R:
        return self._selector(state)

    def __repr__(self) -> str:
        return f"SelectedWatchable({self._provider.debug_label})"
