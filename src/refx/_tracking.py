"""Dependency tracking — which notifiers did a computation touch?

Uses contextvars to hold the access hook of the computation that is
currently running. Every notifier access routed through a WatchableRef
reports itself to that hook, so a view learns its dependencies by simply
running its build function.

The hook is installed for exactly one computation and always removed on
exit, even when the computation raises. Nested computations (a view
building another view on first access) restore the outer hook when
they finish.
"""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, Callable, TypeVar

if TYPE_CHECKING:
    from refx.notifier import BaseNotifier

    AccessHook = Callable[[BaseNotifier], None]

R = TypeVar("R")

# The access hook of the computation being tracked right now.
current_access_hook: contextvars.ContextVar[AccessHook | None] = contextvars.ContextVar(
    "current_access_hook", default=None
)


def track_dependencies(on_access: AccessHook, computation: Callable[[], R]) -> R:
    """Run computation, calling on_access for every notifier it accesses.

    on_access may be called several times for the same notifier within
    one pass; callers de-duplicate if they need to.
    """
    token = current_access_hook.set(on_access)
    try:
        return computation()
    finally:
        current_access_hook.reset(token)


def report_access(notifier: BaseNotifier) -> None:
    """Tell the running computation (if any) that notifier was accessed."""
    hook = current_access_hook.get()
    if hook is not None:
        hook(notifier)


def is_tracking() -> bool:
    """Whether a tracked computation is active. Useful for testing."""
    return current_access_hook.get() is not None


def untracked(computation: Callable[[], R]) -> R:
    """Run computation with no access hook installed.

    Tasks created inside copy the current context; creating them here
    keeps a later completion from reporting to a finished computation.
    """
    token = current_access_hook.set(None)
    try:
        return computation()
    finally:
        current_access_hook.reset(token)
