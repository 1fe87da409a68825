"""Observable value containers for store state.

A subscriber is called with the current value on subscribe and again on
every change. ``subscribe`` returns a callable that removes the subscriber.

Usage:
    count = Observable(0)
    unsubscribe = count.subscribe(print)   # prints 0
    count.update(lambda n: n + 1)          # prints 1
    unsubscribe()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

Unsubscribe = Callable[[], None]


class Observable(Generic[T]):
    """A value holder that notifies subscribers when set."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._notify()

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._value)
            except Exception:
                logger.exception("Subscriber %r failed", callback)


class Derived(Generic[U]):
    """Read-only value computed from one or more observables."""

    def __init__(self, sources: list[Observable], fn: Callable[..., U]) -> None:
        self._sources = sources
        self._fn = fn

    def get(self) -> U:
        return self._fn(*(s.get() for s in self._sources))

    def subscribe(self, callback: Callable[[U], None]) -> Unsubscribe:
        # Each source notifies on its own; the first call per source is
        # suppressed so the subscriber sees the initial value exactly once.
        primed = [False] * len(self._sources)

        def on_change(index: int) -> Callable[[object], None]:
            def _inner(_value: object) -> None:
                if not primed[index]:
                    primed[index] = True
                    return
                callback(self.get())

            return _inner

        unsubscribers = [src.subscribe(on_change(i)) for i, src in enumerate(self._sources)]
        callback(self.get())

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe


def derived(sources: Observable | list[Observable], fn: Callable[..., U]) -> Derived[U]:
    if isinstance(sources, Observable):
        sources = [sources]
    return Derived(list(sources), fn)
