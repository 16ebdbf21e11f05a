"""Minimal synchronous publish/subscribe register used by prompt sessions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

Listener = Callable[..., Any]


@dataclass
class _Subscriber:
    callback: Listener
    once: bool = False


class EventBus:
    """Per-session event register with persistent and one-shot subscribers.

    Dispatch is synchronous and follows registration order.  Exceptions
    raised by a callback propagate to the caller of :meth:`emit`.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[_Subscriber]] = {}

    def on(self, event: str, callback: Listener) -> None:
        """Register *callback* for every future *event*."""
        self._subscribers.setdefault(event, []).append(_Subscriber(callback))

    def once(self, event: str, callback: Listener) -> None:
        """Register *callback* for the next *event* only."""
        self._subscribers.setdefault(event, []).append(
            _Subscriber(callback, once=True)
        )

    def off(self, event: str, callback: Listener) -> None:
        """Remove every registration of *callback* for *event*."""
        subscribers = self._subscribers.get(event)
        if not subscribers:
            return
        subscribers[:] = [s for s in subscribers if s.callback != callback]

    def emit(self, event: str, *args: Any) -> None:
        """Invoke the callbacks registered for *event* with *args*.

        The set of callbacks is fixed when dispatch starts.  One-shot
        subscribers that fired are removed after the last callback returns.
        """
        subscribers = self._subscribers.get(event)
        if not subscribers:
            return

        fired: list[_Subscriber] = []
        try:
            for subscriber in list(subscribers):
                if subscriber.once:
                    fired.append(subscriber)
                subscriber.callback(*args)
        finally:
            for subscriber in fired:
                try:
                    subscribers.remove(subscriber)
                except ValueError:
                    # Already dropped by off() or unsubscribe_all()
                    pass

    def listener_count(self, event: str) -> int:
        return len(self._subscribers.get(event, ()))

    def unsubscribe_all(self) -> None:
        """Drop every registration."""
        self._subscribers.clear()
