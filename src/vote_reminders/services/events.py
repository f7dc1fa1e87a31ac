"""In-process signal emitter used to notify the host application."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Final

logger = logging.getLogger(__name__)

VOTE: Final[str] = "vote"
TEST_VOTE: Final[str] = "testVote"
REMINDER: Final[str] = "reminder"
TEST_REMINDER: Final[str] = "testReminder"

SIGNALS: Final[frozenset[str]] = frozenset({VOTE, TEST_VOTE, REMINDER, TEST_REMINDER})

Listener = Callable[..., Any]


class EventEmitter:
    """Registry of listeners keyed by signal name.

    Listeners are called synchronously in registration order. A listener that
    returns an awaitable is scheduled on the running loop. Exceptions raised by
    listeners are logged and never reach the emitter's caller.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._tasks: set[asyncio.Future[Any]] = set()

    def on(self, signal: str, listener: Listener | None = None) -> Any:
        """Register ``listener`` for ``signal``.

        Without a listener, return a decorator that registers the function it
        wraps.
        """
        if listener is None:
            def decorator(func: Listener) -> Listener:
                self._listeners[signal].append(func)
                return func

            return decorator

        self._listeners[signal].append(listener)
        return listener

    def once(self, signal: str, listener: Listener) -> Listener:
        """Register ``listener`` to be called for the next emission only."""

        def wrapper(*args: Any) -> Any:
            self.off(signal, wrapper)
            return listener(*args)

        wrapper.listener = listener  # type: ignore[attr-defined]
        self._listeners[signal].append(wrapper)
        return wrapper

    def off(self, signal: str, listener: Listener) -> None:
        """Remove a previously registered listener; unknown listeners are ignored.

        Listeners added with ``once`` can be removed by the original function.
        """
        listeners = self._listeners.get(signal)
        if not listeners:
            return
        for registered in listeners:
            if registered == listener or getattr(registered, "listener", None) == listener:
                listeners.remove(registered)
                return

    def listener_count(self, signal: str) -> int:
        return len(self._listeners.get(signal, ()))

    def emit(self, signal: str, *args: Any) -> bool:
        """Call every listener of ``signal`` with ``args``.

        Returns True if the signal had listeners.
        """
        listeners = list(self._listeners.get(signal, ()))
        for listener in listeners:
            try:
                result = listener(*args)
            except Exception:
                logger.exception("Listener %r for %r raised", listener, signal)
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._make_done_callback(signal))
        return bool(listeners)

    async def wait_for_listeners(self) -> None:
        """Await coroutine listeners that are still running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _make_done_callback(self, signal: str) -> Callable[[asyncio.Future[Any]], None]:
        def _done(task: asyncio.Future[Any]) -> None:
            self._tasks.discard(task)
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                logger.error("Async listener for %r raised: %s", signal, exc, exc_info=exc)

        return _done
