"""AsyncValue — the state of a future-backed notifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")

_NO_DATA = object()


@dataclass(frozen=True)
class AsyncValue(Generic[T]):
    """Loading, data, or error. A loading value may keep the previous data.

    Usage:
        value = AsyncValue.loading()
        value = AsyncValue.with_data(42)
        value.when(data=str, loading=lambda: "...", error=repr)
    """

    is_loading: bool = False
    data: T | None = None
    error: BaseException | None = None
    has_data: bool = False

    @classmethod
    def loading(cls, previous: T | object = _NO_DATA) -> AsyncValue[T]:
        if previous is _NO_DATA:
            return cls(is_loading=True)
        return cls(is_loading=True, data=previous, has_data=True)

    @classmethod
    def with_data(cls, data: T) -> AsyncValue[T]:
        return cls(data=data, has_data=True)

    @classmethod
    def with_error(cls, error: BaseException) -> AsyncValue[T]:
        return cls(error=error)

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def when(
        self,
        *,
        data: Callable[[T], R],
        loading: Callable[[], R],
        error: Callable[[BaseException], R],
    ) -> R:
        if self.is_loading:
            return loading()
        if self.error is not None:
            return error(self.error)
        return data(self.data)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        if self.is_loading:
            return f"AsyncValue.loading({self.data!r})" if self.has_data else "AsyncValue.loading()"
        if self.error is not None:
            return f"AsyncValue.with_error({self.error!r})"
        return f"AsyncValue.with_data({self.data!r})"


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Current value of an async notifier plus the one before its latest future."""

    prev: AsyncValue[T] | None
    curr: AsyncValue[T]
