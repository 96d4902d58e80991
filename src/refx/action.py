"""Actions and the dispatcher — reducer-style state transitions.

An action is an immutable value (typically a frozen dataclass) whose
reduce() computes the next state of a ReduxNotifier. The Dispatcher
delivers it and leaves an audit trail on the observer:

    ActionDispatchedEvent -> ChangeEvent -> ActionFinishedEvent
    ActionDispatchedEvent -> ActionErrorEvent   (and the error is re-raised)

Async actions report ActionDispatchedEvent when dispatch_async() is
called, and finish/error when the reducer completes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Generic, TypeVar

from refx.event import ActionDispatchedEvent, ActionErrorEvent, ActionFinishedEvent, Event

if TYPE_CHECKING:
    from refx.notifier import ReduxNotifier

T = TypeVar("T")
R = TypeVar("R")


class BaseReduxAction(Generic[T]):
    """Common surface of all actions."""

    @property
    def debug_label(self) -> str:
        return type(self).__name__

    def before(self, notifier: ReduxNotifier[T]) -> None:
        """Called before reduce(). Raising here aborts the action."""

    def after(self, notifier: ReduxNotifier[T]) -> None:
        """Called after the new state was applied."""

    def dispatch(self, notifier: ReduxNotifier, action: BaseReduxAction) -> Any:
        """Dispatch a sub-action, recording this action as its origin."""
        return notifier.dispatch(action, debug_origin=self.debug_label, debug_origin_ref=self)

    def dispatch_with_result(self, notifier: ReduxNotifier, action: ReduxActionWithResult) -> Any:
        return notifier.dispatch_with_result(action, debug_origin=self.debug_label, debug_origin_ref=self)

    def dispatch_async(self, notifier: ReduxNotifier, action: BaseReduxAction) -> Awaitable[Any]:
        return notifier.dispatch_async(action, debug_origin=self.debug_label, debug_origin_ref=self)


class ReduxAction(BaseReduxAction[T]):
    """reduce() returns the new state. Dispatching returns the new state too."""

    def reduce(self, notifier: ReduxNotifier[T]) -> T:
        raise NotImplementedError


class ReduxActionWithResult(BaseReduxAction[T], Generic[T, R]):
    """reduce() returns (new_state, result). dispatch_with_result() returns result."""

    def reduce(self, notifier: ReduxNotifier[T]) -> tuple[T, R]:
        raise NotImplementedError


class AsyncReduxAction(BaseReduxAction[T]):
    """Async reduce() returning the new state."""

    is_async = True

    async def reduce(self, notifier: ReduxNotifier[T]) -> T:
        raise NotImplementedError


class AsyncReduxActionWithResult(BaseReduxAction[T], Generic[T, R]):
    """Async reduce() returning (new_state, result). See dispatch_async_with_result()."""

    is_async = True

    async def reduce(self, notifier: ReduxNotifier[T]) -> tuple[T, R]:
        raise NotImplementedError


def _split(action: BaseReduxAction, outcome: Any) -> tuple[Any, Any]:
    if isinstance(action, (ReduxActionWithResult, AsyncReduxActionWithResult)):
        new_state, result = outcome
        return new_state, result
    return outcome, outcome


class Dispatcher(Generic[T]):
    """Delivers actions to one ReduxNotifier on behalf of one origin.

    debug_origin names who dispatched (a widget, a notifier, a parent
    action) and ends up in every ActionDispatchedEvent.
    """

    __slots__ = ("_notifier", "_debug_origin", "_debug_origin_ref")

    def __init__(self, notifier: ReduxNotifier[T], debug_origin: str, debug_origin_ref: Any = None) -> None:
        if not notifier.accepts_actions:
            raise TypeError(f"{notifier.debug_label} does not accept actions")
        self._notifier = notifier
        self._debug_origin = debug_origin
        self._debug_origin_ref = debug_origin_ref

    @property
    def notifier(self) -> ReduxNotifier[T]:
        return self._notifier

    @property
    def state(self) -> T:
        return self._notifier.state

    def dispatch(self, action: BaseReduxAction[T]) -> T:
        """Run a synchronous action. Returns the new state; re-raises its error.

        From a foreign thread of a container with a scheduler, the whole
        action is handed to the scheduler. The new state comes back only if
        the scheduler returns the job's outcome, as App.call_from_thread
        does; a fire-and-forget scheduler gives None.
        """
        new_state, _ = self._run(action)
        return new_state

    def dispatch_with_result(self, action: ReduxActionWithResult[T, R]) -> R:
        """Run a synchronous action that also computes a result, and return the result."""
        _require_result(action)
        _, result = self._run(action)
        return result

    def dispatch_async(self, action: BaseReduxAction[T]) -> Awaitable[T]:
        """Start an async action. Await the returned coroutine for the new state.

        The dispatched event is emitted now, not when the coroutine runs.
        """
        return self._start_async(action, with_result=False)

    def dispatch_async_with_result(self, action: AsyncReduxActionWithResult[T, R]) -> Awaitable[R]:
        _require_result(action)
        return self._start_async(action, with_result=True)

    def _run(self, action: BaseReduxAction[T]) -> tuple[T, Any]:
        if getattr(action, "is_async", False):
            raise TypeError(f"{action.debug_label} is async; use dispatch_async()")
        container = self._notifier._container
        if container is not None and container._should_marshal():
            # The whole action runs on the owner thread, events included.
            outcome = container.scheduler(lambda: self._run_inline(action))
            return outcome if isinstance(outcome, tuple) else (None, None)
        return self._run_inline(action)

    def _run_inline(self, action: BaseReduxAction[T]) -> tuple[T, Any]:
        self._dispatched(action)
        notifier = self._notifier
        try:
            action.before(notifier)
            new_state, result = _split(action, action.reduce(notifier))
            notifier._set_state(new_state, action)
            action.after(notifier)
        except Exception as error:
            self._emit(ActionErrorEvent(action=action, error=error))
            raise
        self._emit(ActionFinishedEvent(action=action, result=result))
        return new_state, result

    def _start_async(self, action: BaseReduxAction[T], with_result: bool) -> Awaitable[Any]:
        if not getattr(action, "is_async", False):
            raise TypeError(f"{action.debug_label} is not async; use dispatch()")
        self._dispatched(action)
        return self._run_async(action, with_result)

    async def _run_async(self, action: BaseReduxAction[T], with_result: bool) -> Any:
        notifier = self._notifier
        try:
            action.before(notifier)
            new_state, result = _split(action, await action.reduce(notifier))
            notifier._set_state(new_state, action)
            action.after(notifier)
        except Exception as error:
            self._emit(ActionErrorEvent(action=action, error=error))
            raise
        self._emit(ActionFinishedEvent(action=action, result=result))
        return result if with_result else new_state

    def _dispatched(self, action: BaseReduxAction[T]) -> None:
        self._emit(
            ActionDispatchedEvent(
                debug_origin=self._debug_origin,
                debug_origin_ref=self._debug_origin_ref,
                notifier=self._notifier,
                action=action,
            )
        )

    def _emit(self, event: Event) -> None:
        container = self._notifier._container
        observer = container.observer if container is not None else None
        if observer is not None:
            observer.handle_event(event)


def _require_result(action: BaseReduxAction) -> None:
    if not isinstance(action, (ReduxActionWithResult, AsyncReduxActionWithResult)):
        raise TypeError(f"{action.debug_label} computes no result; use dispatch()")
